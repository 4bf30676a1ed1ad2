from fastapi import APIRouter, HTTPException, Depends, Query, Path
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import get_current_user
from ..core.dependencies import get_equipment_service
from ..models.api_models import MachineCreate
from ..services.equipment_service import DUPLICATE_MACHINE_ERROR, NOT_FOUND_ERROR, EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/machines",
    tags=["Machines"],
    responses={404: {"description": "Not found"}}
)


@router.post("", response_model=Dict[str, Any])
async def create_machine(
    payload: MachineCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Register a machine and add it to the creator's favorites"""
    try:
        success, result, error = await equipment_service.create_equipment(payload, current_user)

        if success:
            return {
                "success": True,
                "message": "Machine created and added to favorites",
                **result,
            }
        if error == DUPLICATE_MACHINE_ERROR:
            raise HTTPException(status_code=409, detail=error)
        raise HTTPException(status_code=500, detail="Failed to create machine")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating machine: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=Dict[str, Any])
async def list_machines(
    bu: Optional[str] = Query(None, description="Business unit"),
    site: Optional[str] = Query(None, description="Site code"),
    type: Optional[str] = Query(None, description="Machine type"),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    try:
        success, machines, error = await equipment_service.list_equipment(bu, site, type)
        if success:
            return {"success": True, "machines": machines, "count": len(machines)}
        raise HTTPException(status_code=500, detail="Failed to fetch machines")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching machines: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("", response_model=Dict[str, Any])
async def update_machine(
    update_data: Dict[str, Any],
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Update a machine; the body carries ``docId`` and the fields to change"""
    try:
        doc_id = update_data.get("docId")
        if not doc_id:
            raise HTTPException(status_code=400, detail="Missing docId")

        success, error = await equipment_service.update_equipment(
            doc_id, update_data, current_user.get("email") or current_user.get("uid")
        )
        if success:
            return {"success": True, "message": "Machine updated successfully"}
        if error == NOT_FOUND_ERROR:
            raise HTTPException(status_code=404, detail="Machine not found")
        raise HTTPException(status_code=500, detail="Failed to update machine")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating machine: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("", response_model=Dict[str, Any])
async def delete_machine(
    docId: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    try:
        if not docId:
            raise HTTPException(status_code=400, detail="Missing docId")

        success, error = await equipment_service.delete_equipment(docId)
        if success:
            logger.info(f"Machine {docId} deleted by {current_user.get('uid')}")
            return {"success": True, "message": "Machine deleted successfully"}
        raise HTTPException(status_code=500, detail="Failed to delete machine")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting machine {docId}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/delete", response_model=Dict[str, Any])
async def delete_machine_and_favorite(
    docId: Optional[str] = Query(None),
    machineKey: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Delete a machine and remove it from the caller's favorites"""
    try:
        if not docId or not machineKey:
            raise HTTPException(status_code=400, detail="Missing docId or machineKey")

        success, result, error = await equipment_service.delete_equipment_with_favorite(
            docId, machineKey, current_user["uid"]
        )
        if success:
            return {
                "success": True,
                "message": "Machine and favorite deleted successfully",
                **result,
            }
        raise HTTPException(status_code=500, detail="Failed to delete machine")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting machine {docId}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{doc_id}", response_model=Dict[str, Any])
async def get_machine(
    doc_id: str = Path(..., description="Machine document ID"),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    try:
        success, machine, error = await equipment_service.get_equipment(doc_id)
        if success and machine:
            return {"success": True, "machine": machine}
        if error == NOT_FOUND_ERROR:
            raise HTTPException(status_code=404, detail="Machine not found")
        raise HTTPException(status_code=500, detail="Failed to fetch machine")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching machine {doc_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
