from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.config import settings
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.api_models import InspectionSubmission, MachineCreate
from ..models.database_models import InspectionRecord, Machine, build_machine_key
from .favorites_service import FavoritesService
from .pagination import sort_by_timestamp_desc
from .record_query_service import RecordQueryService
from .storage_service import StorageService

logger = logging.getLogger(__name__)

DUPLICATE_MACHINE_ERROR = "Machine with this BU, Type, and ID already exists"
NOT_FOUND_ERROR = "Document not found"

# Identity of a machine; never changed by an update
IMMUTABLE_FIELDS = {"bu", "type", "id", "docId", "_doc_id", "machineKey", "createdAt", "createdBy"}


def machine_document_id(machine_key: str) -> str:
    return machine_key.replace("/", "-")


class EquipmentService:
    def __init__(self, db: DatabaseService, query_service: RecordQueryService,
                 favorites: FavoritesService, storage: Optional[StorageService] = None):
        self.db = db
        self.query = query_service
        self.favorites = favorites
        self.storage = storage or StorageService()
        self.collection = COLLECTIONS['machine']
        self.transactions = COLLECTIONS['machine_transactions']

    async def create_equipment(self, payload: MachineCreate, user: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """
        Register a machine and favorite it for its creator.

        Returns ``(success, {machineId, machineKey, favorited}, error)``.
        A machine with the same bu/type/id fails with ``DUPLICATE_MACHINE_ERROR``.
        """
        try:
            success, existing, error = await self.query.find(
                self.collection, bu=payload.bu, type=payload.type, id=payload.id, limit=1,
            )
            if not success:
                return False, None, error
            if existing:
                return False, None, DUPLICATE_MACHINE_ERROR

            user_email = user.get("email") or ""
            now = datetime.now(timezone.utc)
            machine_key = build_machine_key(payload.bu, payload.type, payload.id)
            machine_data = {
                "bu": payload.bu,
                "site": payload.site,
                "type": payload.type,
                "id": payload.id,
                "kind": payload.kind or "",
                "location": payload.location or "",
                "plantId": payload.plantId or payload.site,
                "email": payload.email or user_email,
                "status": payload.status or "active",
                "images": [],
                "createdAt": now,
                "createdBy": user_email,
                "updatedAt": now,
                "updatedBy": user_email,
            }

            # Deterministic id: a concurrent create of the same machine fails here
            success, doc_id, error = await self.db.create_document(
                self.collection, machine_data, document_id=machine_document_id(machine_key),
            )
            if not success:
                if error and "already exists" in error:
                    return False, None, DUPLICATE_MACHINE_ERROR
                return False, None, error

            favorited, fav_error = await self.favorites.add_favorite(user["uid"], machine_key)
            if not favorited:
                logger.warning(f"[Equipment] Created {machine_key} but could not favorite it for {user['uid']}: {fav_error}")

            logger.info(f"[Equipment] ✅ Created machine {machine_key} ({doc_id})")
            return True, {"machineId": doc_id, "machineKey": machine_key, "favorited": favorited}, None

        except Exception as e:
            logger.error(f"Error creating machine: {e}")
            return False, None, str(e)

    async def get_equipment(self, doc_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        success, doc, error = await self.db.get_document(self.collection, doc_id)
        if not success:
            return False, None, error
        return True, Machine.from_document(doc).to_response(), None

    async def get_by_key(self, bu: str, machine_type: str, machine_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.query.find(
            self.collection, bu=bu, type=machine_type, id=machine_id, limit=1,
        )
        if not success:
            return False, None, error
        if not docs:
            return False, None, NOT_FOUND_ERROR
        return True, Machine.from_document(docs[0]).to_response(), None

    async def list_equipment(self, bu: Optional[str] = None, site: Optional[str] = None,
                             machine_type: Optional[str] = None,
                             limit: Optional[int] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.query.find(
            self.collection, bu=bu, type=machine_type, site=site,
            limit=limit or settings.MACHINE_LIST_LIMIT,
        )
        if not success:
            return False, [], error
        return True, [Machine.from_document(doc).to_response() for doc in docs], None

    async def update_equipment(self, doc_id: str, update_data: Dict[str, Any], updated_by: str) -> Tuple[bool, Optional[str]]:
        changes = {k: v for k, v in update_data.items() if k not in IMMUTABLE_FIELDS}
        ignored = sorted(set(update_data) & IMMUTABLE_FIELDS - {"docId"})
        if ignored:
            logger.info(f"[Equipment] Ignoring identity fields {ignored} in update of {doc_id}")
        changes["updatedAt"] = datetime.now(timezone.utc)
        changes["updatedBy"] = updated_by
        return await self.db.update_document(self.collection, doc_id, changes, validate=False)

    async def delete_equipment(self, doc_id: str) -> Tuple[bool, Optional[str]]:
        return await self.db.delete_document(self.collection, doc_id)

    async def delete_equipment_with_favorite(self, doc_id: str, machine_key: str, user_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Delete the machine, then drop its key from the user's favorites."""
        success, error = await self.delete_equipment(doc_id)
        if not success:
            return False, None, error

        removed, fav_error = await self.favorites.remove_favorite(user_id, machine_key)
        if not removed:
            logger.warning(f"[Equipment] Deleted {doc_id} but favorite {machine_key} remains for {user_id}: {fav_error}")
        return True, {"favoriteRemoved": removed}, None

    # Inspection records

    async def get_inspection_records(self, bu: str, machine_type: str, machine_id: str) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """All inspections of one machine, newest first."""
        success, docs, error = await self.query.find(
            self.transactions, bu=bu, type=machine_type, id=machine_id,
        )
        if not success:
            return False, [], error
        ordered = sort_by_timestamp_desc(docs)
        return True, [InspectionRecord.from_document(doc).to_response() for doc in ordered], None

    async def submit_inspection(self, submission: InspectionSubmission, user: Dict[str, Any]) -> Tuple[bool, Optional[str], Optional[str]]:
        now = datetime.now(timezone.utc)
        record = InspectionRecord(
            **submission.model_dump(exclude={"inspector"}),
            inspector=submission.inspector or user.get("email") or user.get("uid"),
            timestamp=now,
            createdAt=now,
        )
        success, doc_id, error = await self.db.create_document(self.transactions, record.to_document())
        if success:
            logger.info(f"[Inspection] ✅ Recorded inspection of {build_machine_key(record.bu, record.type, record.id)} ({doc_id})")
        return success, doc_id, error

    async def delete_inspection(self, doc_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        """Delete an inspection record and its stored images."""
        success, doc, error = await self.db.get_document(self.transactions, doc_id)
        if not success:
            return False, None, error

        images = InspectionRecord.from_document(doc).images
        deleted_images = self.storage.delete_files(images) if images else []

        success, error = await self.db.delete_document(self.transactions, doc_id)
        if not success:
            return False, None, error
        return True, {"imagesDeleted": len(deleted_images), "imagesTotal": len(images)}, None
