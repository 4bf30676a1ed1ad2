from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..database.database_service import DatabaseService, QueryFilter
from .timestamp_normalizer import record_time, to_datetime

logger = logging.getLogger(__name__)


class RecordQueryService:
    """
    Filtered reads over the record collections.

    Equality filters are sent to Firestore in a fixed order (bu, type, site,
    id) so the same composite indexes serve every caller. Date ranges are
    applied in memory against the normalized record time, since stored
    timestamps come in several shapes that Firestore cannot compare.
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    @staticmethod
    def build_filters(bu: Optional[str] = None, type: Optional[str] = None,
                      site: Optional[str] = None, id: Optional[str] = None,
                      extra_filters: Optional[List[QueryFilter]] = None) -> List[QueryFilter]:
        filters: List[QueryFilter] = []
        if bu:
            filters.append(("bu", "==", bu))
        if type:
            filters.append(("type", "==", type.lower()))
        if site:
            filters.append(("site", "==", site))
        if id:
            filters.append(("id", "==", id))
        filters.extend(extra_filters or [])
        return filters

    @staticmethod
    def in_range(record: Dict[str, Any], start: Optional[datetime], end: Optional[datetime]) -> bool:
        if start is None and end is None:
            return True
        moment = record_time(record)
        if moment is None:
            return False
        if start is not None and moment < start:
            return False
        if end is not None and moment > end:
            return False
        return True

    async def find(self, collection: str, bu: Optional[str] = None, type: Optional[str] = None,
                   site: Optional[str] = None, id: Optional[str] = None,
                   start: Any = None, end: Any = None,
                   extra_filters: Optional[List[QueryFilter]] = None,
                   limit: Optional[int] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """Query ``collection`` with exactly the given filters."""
        filters = self.build_filters(bu, type, site, id, extra_filters)
        success, docs, error = await self.db.query_documents(collection, filters=filters, limit=limit)
        if not success:
            return False, [], error

        start_dt, end_dt = to_datetime(start), to_datetime(end)
        if start_dt or end_dt:
            docs = [doc for doc in docs if self.in_range(doc, start_dt, end_dt)]

        logger.debug(f"[Query] {collection} {filters} -> {len(docs)} records")
        return True, docs, None

    async def find_or_empty(self, collection: str, **criteria) -> List[Dict[str, Any]]:
        """Like ``find`` but a store failure yields an empty list."""
        success, docs, error = await self.find(collection, **criteria)
        if not success:
            logger.error(f"[Query] ⚠️ {collection} query failed, continuing with no records: {error}")
            return []
        return docs
