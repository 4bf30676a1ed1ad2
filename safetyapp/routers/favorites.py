from fastapi import APIRouter, HTTPException, Depends, Path
from typing import Dict, Any
import logging

from ..auth.dependencies import ensure_self_or_admin, get_current_user
from ..core.dependencies import get_favorites_service
from ..models.api_models import AddFavoritesRequest
from ..services.favorites_service import FavoritesService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Favorites"],
)


@router.post("/add-favorites", response_model=Dict[str, Any])
async def add_favorites(
    payload: AddFavoritesRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    favorites_service: FavoritesService = Depends(get_favorites_service),
):
    """Favorite every machine at a BU/site for a user (self, or any user for admins)"""
    try:
        ensure_self_or_admin(payload.userId, current_user)

        success, keys, error = await favorites_service.add_favorites_for_site(
            payload.userId, payload.bu, payload.site
        )
        if not success:
            raise HTTPException(status_code=500, detail="Failed to add favorites")

        if not keys:
            return {
                "success": True,
                "message": "No machines found with the specified criteria",
                "count": 0,
                "favorites": [],
            }
        return {
            "success": True,
            "message": "Successfully added machine favorites",
            "count": len(keys),
            "favorites": keys,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[Favorites] Error adding favorites: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/favorites", response_model=Dict[str, Any])
async def get_favorites(
    current_user: Dict[str, Any] = Depends(get_current_user),
    favorites_service: FavoritesService = Depends(get_favorites_service),
):
    try:
        success, keys, error = await favorites_service.get_favorites(current_user["uid"])
        if success:
            return {"success": True, "favorites": keys, "count": len(keys)}
        raise HTTPException(status_code=500, detail="Failed to fetch favorites")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[Favorites] Error fetching favorites: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/favorites/{machine_key}", response_model=Dict[str, Any])
async def add_favorite(
    machine_key: str = Path(..., description="Machine key {bu}_{type}_{id}"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    favorites_service: FavoritesService = Depends(get_favorites_service),
):
    try:
        success, error = await favorites_service.add_favorite(current_user["uid"], machine_key)
        if success:
            return {"success": True, "machineKey": machine_key}
        raise HTTPException(status_code=500, detail="Failed to add favorite")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[Favorites] Error adding favorite {machine_key}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/favorites/{machine_key}", response_model=Dict[str, Any])
async def remove_favorite(
    machine_key: str = Path(..., description="Machine key {bu}_{type}_{id}"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    favorites_service: FavoritesService = Depends(get_favorites_service),
):
    try:
        success, error = await favorites_service.remove_favorite(current_user["uid"], machine_key)
        if success:
            return {"success": True, "machineKey": machine_key}
        raise HTTPException(status_code=500, detail="Failed to remove favorite")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[Favorites] Error removing favorite {machine_key}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
