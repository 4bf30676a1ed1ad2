from typing import Dict, Any, List, Optional, Tuple
from google.api_core.exceptions import AlreadyExists, NotFound
from google.cloud.firestore_v1 import DELETE_FIELD, FieldFilter, Query
import logging

from .collections import COLLECTION_SCHEMAS

logger = logging.getLogger(__name__)

# (field, operator, value)
QueryFilter = Tuple[str, str, Any]

VALIDATION_ERROR_PREFIX = "Missing required fields"


def validation_error(collection: str, data: Dict[str, Any]) -> Optional[str]:
    """Error message if ``data`` lacks a required field of ``collection``."""
    schema = COLLECTION_SCHEMAS.get(collection)
    if not schema:
        return None
    missing = [f for f in schema['required'] if data.get(f) in (None, "")]
    if missing:
        return f"{VALIDATION_ERROR_PREFIX} for {collection}: {', '.join(missing)}"
    return None


def is_validation_error(error: Optional[str]) -> bool:
    """True for errors caused by the payload rather than the store."""
    return bool(error) and error.startswith(VALIDATION_ERROR_PREFIX)


class DatabaseService:
    """
    Thin async facade over a Firestore client.

    Every method catches store errors and reports them through its return
    tuple instead of raising, so callers decide how a failure is surfaced.
    Query results carry the Firestore document id under ``_doc_id``.
    """

    def __init__(self, client):
        self.client = client

    async def create_document(self, collection: str, data: Dict[str, Any],
                              document_id: Optional[str] = None,
                              validate: bool = True) -> Tuple[bool, Optional[str], Optional[str]]:
        """Create a document. With ``document_id`` the write fails if it already exists."""
        try:
            if validate:
                error = validation_error(collection, data)
                if error:
                    return False, None, error

            if document_id:
                ref = self.client.collection(collection).document(document_id)
                ref.create(data)
                return True, ref.id, None

            _, ref = self.client.collection(collection).add(data)
            return True, ref.id, None

        except AlreadyExists:
            return False, None, f"Document {document_id} already exists in {collection}"
        except Exception as e:
            logger.error(f"Error creating document in {collection}: {e}")
            return False, None, str(e)

    async def get_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            snapshot = self.client.collection(collection).document(document_id).get()
            if not snapshot.exists:
                return False, None, "Document not found"
            data = snapshot.to_dict() or {}
            data['_doc_id'] = snapshot.id
            return True, data, None
        except Exception as e:
            logger.error(f"Error fetching {collection}/{document_id}: {e}")
            return False, None, str(e)

    async def update_document(self, collection: str, document_id: str, data: Dict[str, Any],
                              validate: bool = True) -> Tuple[bool, Optional[str]]:
        """Partial update; fails if the document does not exist."""
        try:
            self.client.collection(collection).document(document_id).update(data)
            return True, None
        except NotFound:
            return False, "Document not found"
        except Exception as e:
            logger.error(f"Error updating {collection}/{document_id}: {e}")
            return False, str(e)

    async def set_document(self, collection: str, document_id: str, data: Dict[str, Any],
                           merge: bool = True) -> Tuple[bool, Optional[str]]:
        try:
            self.client.collection(collection).document(document_id).set(data, merge=merge)
            return True, None
        except Exception as e:
            logger.error(f"Error writing {collection}/{document_id}: {e}")
            return False, str(e)

    async def delete_fields(self, collection: str, document_id: str, fields: List[str]) -> Tuple[bool, Optional[str]]:
        """Remove top-level fields; a missing document is left missing."""
        if not fields:
            return True, None
        return await self.set_document(
            collection,
            document_id,
            {field: DELETE_FIELD for field in fields},
            merge=True,
        )

    async def delete_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[str]]:
        try:
            self.client.collection(collection).document(document_id).delete()
            return True, None
        except Exception as e:
            logger.error(f"Error deleting {collection}/{document_id}: {e}")
            return False, str(e)

    async def query_documents(self, collection: str, filters: Optional[List[QueryFilter]] = None,
                              limit: Optional[int] = None,
                              order_by: Optional[Tuple[str, str]] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """
        Run a query built from exactly the given filters, applied in order.
        ``order_by`` is ``(field, "asc"|"desc")``.
        """
        try:
            query = self.client.collection(collection)
            for field, op, value in filters or []:
                query = query.where(filter=FieldFilter(field, op, value))
            if order_by:
                field, direction = order_by
                query = query.order_by(
                    field,
                    direction=Query.DESCENDING if direction == "desc" else Query.ASCENDING,
                )
            if limit:
                query = query.limit(limit)

            documents = []
            for snapshot in query.stream():
                data = snapshot.to_dict() or {}
                data['_doc_id'] = snapshot.id
                documents.append(data)
            return True, documents, None

        except Exception as e:
            logger.error(f"Error querying {collection} with {filters}: {e}")
            return False, [], str(e)
