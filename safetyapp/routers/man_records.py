from fastapi import APIRouter, HTTPException, Depends, Query, Path
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import get_current_user
from ..core.dependencies import get_man_record_service
from ..database.database_service import is_validation_error
from ..models.api_models import ManRecordSubmission
from ..services.man_record_service import ManRecordService, parse_range_bound

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/man-records",
    tags=["Man Records"],
)


@router.get("", response_model=Dict[str, Any])
async def get_man_records(
    bu: Optional[str] = Query(None),
    site: Optional[str] = Query(None, description="Site code or 'all'"),
    type: Optional[str] = Query(None, description="Record type or 'all'"),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    alertNo: Optional[str] = Query(None),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    """Man records of a business unit within a date range"""
    try:
        if not bu or not startDate or not endDate:
            raise HTTPException(status_code=400, detail="Missing required parameters")

        start = parse_range_bound(startDate)
        end = parse_range_bound(endDate, end=True)
        if start is None or end is None:
            raise HTTPException(status_code=400, detail="Invalid startDate or endDate")

        success, records, error = await man_service.get_records_in_range(
            bu, start, end, site=site, record_type=type, alert_no=alertNo
        )
        if success:
            return {"success": True, "records": records, "count": len(records)}
        raise HTTPException(status_code=500, detail="Failed to fetch records")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching man records: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch records")


@router.get("/{bu}/{record_type}/{person_id}", response_model=Dict[str, Any])
async def get_person_records(
    bu: str = Path(...),
    record_type: str = Path(..., description="toolbox, boot, training, grease, ..."),
    person_id: str = Path(..., description="Employee or asset id"),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    try:
        success, records, error = await man_service.get_person_records(bu, record_type, person_id)
        if success:
            return {"success": True, "records": records, "count": len(records)}
        raise HTTPException(status_code=500, detail="Failed to fetch records")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching records for {bu}/{record_type}/{person_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch records")


@router.post("", response_model=Dict[str, Any])
async def submit_man_record(
    submission: ManRecordSubmission,
    current_user: Dict[str, Any] = Depends(get_current_user),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    try:
        success, doc_id, error = await man_service.submit_record(submission)
        if success:
            return {"success": True, "message": "Record saved", "docId": doc_id}
        if is_validation_error(error):
            raise HTTPException(status_code=400, detail=error)
        logger.error(f"Error saving man record: {error}")
        raise HTTPException(status_code=500, detail="Failed to save record")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving man record: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{doc_id}", response_model=Dict[str, Any])
async def delete_man_record(
    doc_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    try:
        success, error = await man_service.delete_record(doc_id)
        if success:
            logger.info(f"Man record {doc_id} deleted by {current_user.get('uid')}")
            return {"success": True, "message": "Record deleted"}
        if error == "Document not found":
            raise HTTPException(status_code=404, detail="Record not found")
        raise HTTPException(status_code=500, detail="Failed to delete record")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting man record {doc_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
