"""
Man Record Service
Personnel safety-activity records: toolbox talks, boot checks, trainings and
grease-method records, plus employee-name enrichment for range listings.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging
import re

from ..core.config import settings
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.api_models import ManRecordSubmission
from ..models.database_models import ManRecord
from .pagination import sort_by_timestamp_desc
from .record_query_service import RecordQueryService
from .storage_service import StorageService
from .timestamp_normalizer import serialize_document, to_datetime

logger = logging.getLogger(__name__)

# Date fields carried by training and method records
MAN_DATE_FIELDS = (
    "timestamp", "createdAt", "trainingDate", "expirationDate",
    "expiryDate", "updateAt", "updatedAt",
)
GREASE_TYPES = {"grease", "greaseform"}
ALL = "all"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_range_bound(value: Optional[str], end: bool = False) -> Optional[datetime]:
    """Parse a range bound; a date-only end bound covers that whole day."""
    if not value:
        return None
    moment = to_datetime(value)
    if moment is not None and end and _DATE_ONLY.match(value.strip()):
        moment = moment + timedelta(days=1) - timedelta(microseconds=1)
    return moment


def _serialize_raw(doc: Dict[str, Any]) -> Dict[str, Any]:
    data = serialize_document(doc, MAN_DATE_FIELDS)
    data["docId"] = data.pop("_doc_id", None)
    return data


class ManRecordService:
    def __init__(self, db: DatabaseService, query_service: RecordQueryService,
                 storage: Optional[StorageService] = None):
        self.db = db
        self.query = query_service
        self.storage = storage or StorageService()
        self.collection = COLLECTIONS['man_transactions']
        self.method_collection = COLLECTIONS['method_transactions']

    async def get_records_in_range(self, bu: str, start: datetime, end: datetime,
                                   site: Optional[str] = None, record_type: Optional[str] = None,
                                   alert_no: Optional[str] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """Records of a business unit in ``[start, end]``, newest first, with employee names."""
        site_filter = None if not site or site.lower() == ALL else site
        type_filter = None if not record_type or record_type.lower() == ALL else record_type
        extra = [("alertNo", "==", alert_no)] if alert_no else None

        success, docs, error = await self.query.find(
            self.collection, bu=bu, type=type_filter, site=site_filter,
            start=start, end=end, extra_filters=extra,
        )
        if not success:
            return False, [], error

        records = [ManRecord.from_document(doc) for doc in sort_by_timestamp_desc(docs)]
        names = await self.get_employee_names([r.id for r in records])
        for record in records:
            record.employeeName = names.get(record.id)

        logger.info(f"[ManRecords] {len(records)} records for bu={bu} site={site_filter or ALL} type={type_filter or ALL}")
        return True, [r.to_response() for r in records], None

    async def get_employee_names(self, employee_ids: List[str]) -> Dict[str, str]:
        """Map empId -> fullName using batched ``in`` queries. Lookup failures are ignored."""
        unique_ids = sorted({emp_id for emp_id in employee_ids if emp_id})
        names: Dict[str, str] = {}
        batch_size = settings.EMPLOYEE_BATCH_SIZE

        for i in range(0, len(unique_ids), batch_size):
            batch = unique_ids[i:i + batch_size]
            success, employees, error = await self.db.query_documents(
                COLLECTIONS['employees'], filters=[("empId", "in", batch)],
            )
            if not success:
                logger.error(f"[ManRecords] Error batch fetching employee names: {error}")
                continue
            for employee in employees:
                if employee.get("empId") and employee.get("fullName"):
                    names[employee["empId"]] = employee["fullName"]
        return names

    async def get_person_records(self, bu: str, record_type: str, person_id: str) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """
        Records for one person or asset id.

        ``training`` reads the trainings collection by ``empId`` (no bu there),
        ``grease``/``greaseform`` reads method records, everything else reads
        man records by bu, type and id.
        """
        kind = (record_type or "").lower()

        if kind == "training":
            success, docs, error = await self.db.query_documents(
                COLLECTIONS['trainings'], filters=[("empId", "==", person_id)],
            )
            if not success:
                return False, [], error
            return True, [_serialize_raw(doc) for doc in sort_by_timestamp_desc(docs)], None

        if kind in GREASE_TYPES:
            success, docs, error = await self.query.find(
                self.method_collection, bu=bu or None, type="greaseform", id=person_id,
            )
            if not success:
                return False, [], error
            return True, [_serialize_raw(doc) for doc in sort_by_timestamp_desc(docs)], None

        success, docs, error = await self.query.find(self.collection, bu=bu, type=kind, id=person_id)
        if not success:
            return False, [], error
        records = [ManRecord.from_document(doc).to_response() for doc in sort_by_timestamp_desc(docs)]
        return True, records, None

    async def _create(self, collection: str, submission: ManRecordSubmission) -> Tuple[bool, Optional[str], Optional[str]]:
        now = datetime.now(timezone.utc)
        record = ManRecord(**submission.model_dump(), timestamp=now, createdAt=now)
        success, doc_id, error = await self.db.create_document(collection, record.to_document())
        if success:
            logger.info(f"[ManRecords] ✅ Recorded {record.type} for {record.id} in {collection} ({doc_id})")
        return success, doc_id, error

    async def submit_record(self, submission: ManRecordSubmission) -> Tuple[bool, Optional[str], Optional[str]]:
        return await self._create(self.collection, submission)

    async def submit_method_record(self, submission: ManRecordSubmission) -> Tuple[bool, Optional[str], Optional[str]]:
        return await self._create(self.method_collection, submission)

    async def delete_record(self, doc_id: str) -> Tuple[bool, Optional[str]]:
        success, _, error = await self.db.get_document(self.collection, doc_id)
        if not success:
            return False, error
        return await self.db.delete_document(self.collection, doc_id)

    async def delete_method_record(self, doc_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Delete a method record and its stored images."""
        success, doc, error = await self.db.get_document(self.method_collection, doc_id)
        if not success:
            return False, None, error

        images = ManRecord.from_document(doc).images
        deleted_images = self.storage.delete_files(images) if images else []

        success, error = await self.db.delete_document(self.method_collection, doc_id)
        if not success:
            return False, None, error
        return True, {"imagesDeleted": len(deleted_images), "imagesTotal": len(images)}, None
