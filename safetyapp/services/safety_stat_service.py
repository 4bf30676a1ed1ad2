from typing import Any, Dict, List, Optional, Tuple
import logging

from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.database_models import SafetyStat
from .timestamp_normalizer import to_datetime

logger = logging.getLogger(__name__)


def safety_stat_from_document(doc: Dict[str, Any]) -> SafetyStat:
    last_accident = doc.get("lastAccidentDate")
    parsed = to_datetime(last_accident)
    best_record = doc.get("bestRecord")
    try:
        best_record = int(best_record) if best_record not in (None, "") else None
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric bestRecord on {doc.get('_doc_id')}: {best_record!r}")
        best_record = None
    return SafetyStat(
        plantId=str(doc.get("plantId") or doc.get("_doc_id") or ""),
        lastAccidentDate=parsed.date().isoformat() if parsed else None,
        bestRecord=best_record,
    )


class SafetyStatService:
    """Accident-free statistics per plant; documents are keyed by plant id."""

    def __init__(self, db: DatabaseService):
        self.db = db
        self.collection = COLLECTIONS['safety_stats']

    async def get_by_plant(self, plant_id: str) -> Tuple[bool, Optional[SafetyStat], Optional[str]]:
        success, doc, error = await self.db.get_document(self.collection, plant_id)
        if not success:
            return False, None, error
        return True, safety_stat_from_document(doc), None

    async def get_all(self) -> Tuple[bool, List[SafetyStat], Optional[str]]:
        success, docs, error = await self.db.query_documents(self.collection)
        if not success:
            return False, [], error
        return True, [safety_stat_from_document(doc) for doc in docs], None
