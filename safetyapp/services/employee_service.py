from typing import Any, Dict, List, Optional, Tuple
import logging

from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from .timestamp_normalizer import serialize_document

logger = logging.getLogger(__name__)

EMPLOYEE_NOT_FOUND_ERROR = "Employee not found"


def _employee_response(doc: Dict[str, Any]) -> Dict[str, Any]:
    data = serialize_document(doc, ())
    data["id"] = data.pop("_doc_id", None)
    return data


class EmployeeService:
    """Employee directory lookups (``employees`` collection, keyed by ``empId``)."""

    def __init__(self, db: DatabaseService):
        self.db = db
        self.collection = COLLECTIONS['employees']

    async def get_employee(self, emp_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.db.query_documents(
            self.collection, filters=[("empId", "==", emp_id)], limit=1,
        )
        if not success:
            return False, None, error
        if not docs:
            logger.info(f"[Employees] No employee found with ID: {emp_id}")
            return False, None, EMPLOYEE_NOT_FOUND_ERROR
        return True, _employee_response(docs[0]), None

    async def list_employees(self) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.db.query_documents(self.collection)
        if not success:
            return False, [], error
        return True, [_employee_response(doc) for doc in docs], None
