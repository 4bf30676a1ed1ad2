from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import get_current_user
from ..core.dependencies import get_asset_service
from ..database.database_service import is_validation_error
from ..models.api_models import AssetSubmission
from ..services.asset_service import ASSET_NOT_FOUND_ERROR, INVALID_ASSET_ERROR, AssetService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/assets",
    tags=["Assets"],
    responses={404: {"description": "Not found"}}
)


def _asset_or_error(success: bool, asset: Optional[Dict[str, Any]], error: Optional[str]) -> Dict[str, Any]:
    if success:
        return {"success": True, "asset": asset}
    if error == INVALID_ASSET_ERROR:
        raise HTTPException(status_code=400, detail=error)
    if error == ASSET_NOT_FOUND_ERROR:
        raise HTTPException(status_code=404, detail=error)
    raise HTTPException(status_code=500, detail="Failed to fetch asset")


@router.get("", response_model=Dict[str, Any])
async def list_assets(
    plant: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    assetClass: Optional[int] = Query(None),
    asset_service: AssetService = Depends(get_asset_service),
):
    """Register entries, optionally filtered by plant, department and asset class"""
    try:
        success, assets, error = await asset_service.list_assets(plant, department, assetClass)
        if success:
            return {"success": True, "assets": assets, "count": len(assets)}
        raise HTTPException(status_code=500, detail="Failed to fetch assets")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching assets: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch assets")


@router.get("/transactions", response_model=Dict[str, Any])
async def get_asset_transactions(
    bu: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    asset: Optional[int] = Query(None),
    sub: int = Query(0),
    asset_service: AssetService = Depends(get_asset_service),
):
    try:
        if not bu or not type or asset is None:
            raise HTTPException(status_code=400, detail="Missing required parameters: bu, type, asset")

        success, transactions, error = await asset_service.get_asset_transactions(bu, type, asset, sub)
        if success:
            return {"success": True, "transactions": transactions, "count": len(transactions)}
        raise HTTPException(status_code=500, detail="Failed to fetch asset transactions")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching asset transactions: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch asset transactions")


@router.get("/{bu}/{asset_type}/{asset_id}", response_model=Dict[str, Any])
async def get_asset_by_id(
    bu: str,
    asset_type: str,
    asset_id: str,
    asset_service: AssetService = Depends(get_asset_service),
):
    """Asset addressed by a combined ``{asset}-{sub}`` id"""
    try:
        return _asset_or_error(*await asset_service.get_asset_by_id(bu, asset_type, asset_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching asset {bu}/{asset_type}/{asset_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch asset")


@router.get("/{bu}/{asset_type}/{site}/{asset}/{sub}", response_model=Dict[str, Any])
async def get_asset(
    bu: str,
    asset_type: str,
    site: str,
    asset: str,
    sub: str,
    asset_service: AssetService = Depends(get_asset_service),
):
    try:
        return _asset_or_error(*await asset_service.get_asset(bu, asset_type, site, asset, sub))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching asset {bu}/{asset_type}/{site}/{asset}/{sub}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch asset")


@router.post("", response_model=Dict[str, Any])
async def submit_asset_transaction(
    submission: AssetSubmission,
    current_user: Dict[str, Any] = Depends(get_current_user),
    asset_service: AssetService = Depends(get_asset_service),
):
    """Record an asset tracking form"""
    try:
        success, doc_id, error = await asset_service.submit_transaction(submission, current_user)
        if success:
            return {"success": True, "message": "Asset transaction saved", "docId": doc_id}
        if error == INVALID_ASSET_ERROR or is_validation_error(error):
            raise HTTPException(status_code=400, detail=error)
        logger.error(f"Error saving asset transaction: {error}")
        raise HTTPException(status_code=500, detail="Failed to save asset transaction")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving asset transaction: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
