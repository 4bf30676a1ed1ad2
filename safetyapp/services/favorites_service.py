from typing import List, Optional, Tuple
import logging

from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.database_models import Machine
from .record_query_service import RecordQueryService

logger = logging.getLogger(__name__)


class FavoritesService:
    """
    Per-user favorite equipment, stored as one document per user id whose
    fields are machine keys set to ``True``.
    """

    def __init__(self, db: DatabaseService, query_service: RecordQueryService):
        self.db = db
        self.query = query_service
        self.collection = COLLECTIONS['machine_favourites']

    async def add_favorites_for_site(self, user_id: str, bu: str, site: str) -> Tuple[bool, List[str], Optional[str]]:
        """Favorite every machine registered at ``bu``/``site`` in a single merge write."""
        success, machines, error = await self.query.find(COLLECTIONS['machine'], bu=bu, site=site)
        if not success:
            return False, [], error

        keys = sorted({Machine.from_document(doc).machine_key for doc in machines})
        if not keys:
            logger.info(f"[Favorites] No machines for bu={bu} site={site}; nothing written for {user_id}")
            return True, [], None

        ok, error = await self.db.set_document(self.collection, user_id, {key: True for key in keys}, merge=True)
        if not ok:
            return False, [], error

        logger.info(f"[Favorites] ✅ Added {len(keys)} favorites for {user_id} ({bu}/{site})")
        return True, keys, None

    async def add_favorite(self, user_id: str, machine_key: str) -> Tuple[bool, Optional[str]]:
        return await self.db.set_document(self.collection, user_id, {machine_key: True}, merge=True)

    async def remove_favorite(self, user_id: str, machine_key: str) -> Tuple[bool, Optional[str]]:
        return await self.db.delete_fields(self.collection, user_id, [machine_key])

    async def get_favorites(self, user_id: str) -> Tuple[bool, List[str], Optional[str]]:
        success, doc, error = await self.db.get_document(self.collection, user_id)
        if not success:
            if error == "Document not found":
                return True, [], None
            return False, [], error
        keys = sorted(key for key, value in doc.items() if value is True and not key.startswith("_"))
        return True, keys, None
