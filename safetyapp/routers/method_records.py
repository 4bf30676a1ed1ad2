from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
import logging

from ..auth.dependencies import get_current_user
from ..core.dependencies import get_man_record_service
from ..database.database_service import is_validation_error
from ..models.api_models import ManRecordSubmission
from ..services.man_record_service import ManRecordService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/method-records",
    tags=["Method Records"],
)


@router.post("", response_model=Dict[str, Any])
async def submit_method_record(
    submission: ManRecordSubmission,
    current_user: Dict[str, Any] = Depends(get_current_user),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    """Save a method form (grease and similar) record"""
    try:
        success, doc_id, error = await man_service.submit_method_record(submission)
        if success:
            return {"success": True, "message": "Method record saved", "docId": doc_id}
        if is_validation_error(error):
            raise HTTPException(status_code=400, detail=error)
        logger.error(f"Error saving method record: {error}")
        raise HTTPException(status_code=500, detail="Failed to save method record")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving method record: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{doc_id}", response_model=Dict[str, Any])
async def delete_method_record(
    doc_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    man_service: ManRecordService = Depends(get_man_record_service),
):
    """Delete a method record and its images"""
    try:
        success, result, error = await man_service.delete_method_record(doc_id)
        if success:
            logger.info(f"Method record {doc_id} deleted by {current_user.get('uid')}")
            return {"success": True, "message": "Method record deleted", **result}
        if error == "Document not found":
            raise HTTPException(status_code=404, detail="Method record not found")
        raise HTTPException(status_code=500, detail="Failed to delete method record")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting method record {doc_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
