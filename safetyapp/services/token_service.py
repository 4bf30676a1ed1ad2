from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo
import logging

from ..database.collections import COLLECTIONS
from ..models.database_models import TokenData
from .record_query_service import RecordQueryService
from .timestamp_normalizer import local_today

logger = logging.getLogger(__name__)

TOKEN_TYPE = "token"


def today_tokens(token_data: Dict[str, Any], tz: ZoneInfo, now: Optional[datetime] = None) -> List[str]:
    """Token strings of the transactions whose ``date`` falls on today's date in ``tz``."""
    today = local_today(tz, now).isoformat()
    tokens = []
    for entry in token_data.get("trans") or []:
        date_value = entry.get("date") if isinstance(entry, dict) else None
        if isinstance(date_value, str) and date_value.split("T")[0] == today and entry.get("token"):
            tokens.append(str(entry["token"]))
    return tokens


class TokenService:
    def __init__(self, query_service: RecordQueryService):
        self.query = query_service
        self.collection = COLLECTIONS['vehicle_transactions']

    async def get_token_data(self, bu: str, token_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Token record for ``bu``/``id``; ``(True, None, None)`` when there is none."""
        success, docs, error = await self.query.find(
            self.collection, bu=bu, type=TOKEN_TYPE, id=token_id, limit=1,
        )
        if not success:
            return False, None, error
        if not docs:
            logger.info(f"No token data found for bu: {bu}, id: {token_id}")
            return True, None, None

        doc = docs[0]
        token = TokenData(
            doc_id=doc["_doc_id"],
            id=str(doc.get("id") or token_id),
            name=doc.get("name") or "",
            position=doc.get("position") or "",
            department=doc.get("department") or "",
            site=doc.get("site") or "",
            type=doc.get("type") or TOKEN_TYPE,
            eSite=doc.get("eSite") or "",
            status=doc.get("status") or "",
            company=doc.get("company") or "",
            trans=[t for t in doc.get("trans") or [] if isinstance(t, dict)],
        )
        return True, token.to_response(), None
