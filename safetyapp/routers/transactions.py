from fastapi import APIRouter, HTTPException, Depends, Query, Path
from typing import Dict, Any, List, Optional
import logging

from ..auth.dependencies import get_current_user
from ..core.dependencies import get_dashboard_service, get_equipment_service, get_query_service
from ..database.collections import COLLECTIONS
from ..database.database_service import is_validation_error
from ..models.api_models import InspectionSubmission
from ..models.database_models import InspectionRecord
from ..services.dashboard_service import DashboardService
from ..services.equipment_service import NOT_FOUND_ERROR, EquipmentService
from ..services.pagination import paginate, sort_by_timestamp_desc
from ..services.record_query_service import RecordQueryService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Inspection Transactions"],
)


def _page_response(docs: List[Dict[str, Any]], page: int, limit: int) -> Dict[str, Any]:
    result = paginate(sort_by_timestamp_desc(docs), page, limit)
    return {
        "transactions": [InspectionRecord.from_document(doc).to_response() for doc in result["items"]],
        "hasMore": result["hasMore"],
        "total": result["total"],
        "page": result["page"],
        "limit": result["limit"],
    }


@router.get("/transactions", response_model=Dict[str, Any])
async def get_transactions(
    bu: Optional[str] = Query(None, description="Business unit"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    query_service: RecordQueryService = Depends(get_query_service),
):
    """Inspection records of a business unit, newest first"""
    try:
        if not bu:
            raise HTTPException(status_code=400, detail="Business unit parameter is required")

        success, docs, error = await query_service.find(COLLECTIONS['machine_transactions'], bu=bu)
        if not success:
            raise HTTPException(status_code=500, detail="Failed to fetch transactions")
        return _page_response(docs, page, limit)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching transactions: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")


@router.get("/all-machine-transactions", response_model=Dict[str, Any])
async def get_all_machine_transactions(
    bu: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    site: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    query_service: RecordQueryService = Depends(get_query_service),
):
    try:
        success, docs, error = await query_service.find(
            COLLECTIONS['machine_transactions'], bu=bu, type=type, site=site,
        )
        if not success:
            raise HTTPException(status_code=500, detail="Failed to fetch transactions")

        response = _page_response(docs, page, limit)
        response["filters"] = {"bu": bu, "type": type.lower() if type else None, "site": site}
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching machine transactions: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")


@router.get("/transaction-summary", response_model=Dict[str, Any])
async def get_transaction_summary(
    bu: Optional[str] = Query(None),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    try:
        if not bu:
            raise HTTPException(status_code=400, detail="Business unit parameter is required")
        return await dashboard_service.get_transaction_summary(bu)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching transaction summary for bu={bu}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch transaction summary")


@router.get("/machine-records", response_model=Dict[str, Any])
async def get_machine_records(
    bu: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Inspection history of one machine"""
    try:
        if not bu or not type or not id:
            raise HTTPException(status_code=400, detail="Missing required parameters: bu, type, id")

        success, records, error = await equipment_service.get_inspection_records(bu, type, id)
        if success:
            return {"records": records}
        raise HTTPException(status_code=500, detail="Failed to fetch inspection records")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching machine inspection records: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch inspection records")


@router.post("/machine-records", response_model=Dict[str, Any])
async def submit_machine_record(
    submission: InspectionSubmission,
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    try:
        success, doc_id, error = await equipment_service.submit_inspection(submission, current_user)
        if success:
            return {"success": True, "message": "Inspection saved", "docId": doc_id}
        if is_validation_error(error):
            raise HTTPException(status_code=400, detail=error)
        logger.error(f"Error saving inspection: {error}")
        raise HTTPException(status_code=500, detail="Failed to save inspection")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving inspection: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/machine-records/{doc_id}", response_model=Dict[str, Any])
async def delete_machine_record(
    doc_id: str = Path(..., description="Inspection record document ID"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Delete an inspection record and its images"""
    try:
        success, result, error = await equipment_service.delete_inspection(doc_id)
        if success:
            logger.info(f"Inspection {doc_id} deleted by {current_user.get('uid')}")
            return {"success": True, "message": "Inspection record deleted", **result}
        if error == NOT_FOUND_ERROR:
            raise HTTPException(status_code=404, detail="Inspection record not found")
        raise HTTPException(status_code=500, detail="Failed to delete inspection record")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting inspection {doc_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
