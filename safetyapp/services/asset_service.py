"""
Asset Service
Fixed-asset register lookups and asset tracking transactions. Assets are
identified by an asset number and a sub number; QR pages carry them either
as separate path segments or as a single ``"{asset}-{sub}"`` id.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.config import settings
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.api_models import AssetSubmission
from ..models.database_models import Asset, AssetTransaction
from .pagination import sort_by_timestamp_desc
from .record_query_service import RecordQueryService

logger = logging.getLogger(__name__)

INVALID_ASSET_ERROR = "Invalid asset number"
ASSET_NOT_FOUND_ERROR = "Asset not found"

# Tracking-form date stamp, e.g. "15-06-24 10:05"
ASSET_DATE_FORMAT = "%d-%m-%y %H:%M"


def parse_number(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_asset_id(value: str) -> Optional[Tuple[int, int]]:
    """``"1200345-2"`` -> ``(1200345, 2)``; a missing sub number is 0."""
    asset_part, _, sub_part = (value or "").partition("-")
    asset = parse_number(asset_part)
    sub = parse_number(sub_part) if sub_part else 0
    if asset is None or sub is None:
        return None
    return asset, sub


class AssetService:
    def __init__(self, db: DatabaseService, query_service: RecordQueryService):
        self.db = db
        self.query = query_service
        self.collection = COLLECTIONS['assets']
        self.transactions = COLLECTIONS['asset_transactions']

    async def _find_one(self, bu: str, asset_type: str, site: Optional[str],
                        asset: int, sub: int) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.query.find(
            self.collection, bu=bu, type=asset_type, site=site.lower() if site else None,
            extra_filters=[("asset", "==", asset), ("sub", "==", sub)], limit=1,
        )
        if not success:
            return False, None, error
        if not docs:
            return False, None, ASSET_NOT_FOUND_ERROR
        return True, Asset.from_document(docs[0]).to_response(), None

    async def get_asset(self, bu: str, asset_type: str, site: str,
                        asset: str, sub: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        asset_number, sub_number = parse_number(asset), parse_number(sub)
        if asset_number is None or sub_number is None:
            return False, None, INVALID_ASSET_ERROR
        return await self._find_one(bu, asset_type, site, asset_number, sub_number)

    async def get_asset_by_id(self, bu: str, asset_type: str, asset_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Lookup by ``"{asset}-{sub}"`` without a site filter."""
        parsed = parse_asset_id(asset_id)
        if parsed is None:
            return False, None, INVALID_ASSET_ERROR
        return await self._find_one(bu, asset_type, None, *parsed)

    async def list_assets(self, plant: Optional[str] = None, department: Optional[str] = None,
                          asset_class: Optional[int] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        filters = []
        if plant:
            filters.append(("plant", "==", plant))
        if department:
            filters.append(("department", "==", department))
        if asset_class:
            filters.append(("assetClass", "==", asset_class))

        success, docs, error = await self.db.query_documents(self.collection, filters=filters)
        if not success:
            return False, [], error
        return True, [Asset.from_document(doc).to_response() for doc in docs], None

    async def get_asset_transactions(self, bu: str, asset_type: str,
                                     asset: int, sub: int) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """Tracking history of one asset, latest upload first."""
        success, docs, error = await self.query.find(
            self.transactions, bu=bu, type=asset_type,
            extra_filters=[("asset", "==", asset), ("sub", "==", sub)],
        )
        if not success:
            return False, [], error
        ordered = sort_by_timestamp_desc(docs, field="uploadedAt")
        return True, [AssetTransaction.from_document(doc).to_response() for doc in ordered], None

    async def submit_transaction(self, submission: AssetSubmission,
                                 user: Dict[str, Any]) -> Tuple[bool, Optional[str], Optional[str]]:
        parsed = parse_asset_id(submission.id)
        if parsed is None:
            return False, None, INVALID_ASSET_ERROR
        asset, sub = parsed

        now = datetime.now(timezone.utc)
        local_now = now.astimezone(settings.timezone_for(submission.bu))
        transaction = AssetTransaction(
            asset=asset,
            sub=sub,
            bu=submission.bu,
            type=submission.type,
            site=submission.site,
            date=local_now.strftime(ASSET_DATE_FORMAT),
            inspector=submission.inspector or user.get("email") or "",
            status=submission.status,
            # the returned quantity wins over the tracked one
            qty=submission.qtyR or submission.qty or 1,
            qtyR=submission.qtyR or "",
            place=submission.place,
            url=submission.images[0] if submission.images else "",
            lat=submission.latitude or 0,
            lng=submission.longitude or 0,
            remark=submission.remark,
            transferTo=submission.transferTo,
            uploadedAt=now,
        )
        success, doc_id, error = await self.db.create_document(self.transactions, transaction.to_document())
        if success:
            logger.info(f"[Assets] ✅ Recorded {transaction.status or 'tracking'} for asset {asset}-{sub} ({doc_id})")
        return success, doc_id, error
