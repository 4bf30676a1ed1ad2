from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..core.config import settings
from ..core.dependencies import (
    get_form_service,
    get_safety_stat_service,
    get_token_service,
    get_vocabulary_service,
)
from ..services.form_service import FormService
from ..services.safety_stat_service import SafetyStatService
from ..services.token_service import TokenService, today_tokens
from ..services.vocabulary_service import VocabularyService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Reference Data"],
)


@router.get("/token-data", response_model=Dict[str, Any])
async def get_token_data(
    bu: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    token_service: TokenService = Depends(get_token_service),
):
    """Token record of a person, with the tokens issued today"""
    try:
        if not bu or not id:
            raise HTTPException(status_code=400, detail="Both 'bu' and 'id' parameters are required")

        success, token_data, error = await token_service.get_token_data(bu, id)
        if not success:
            raise HTTPException(status_code=500, detail="Internal server error")
        if token_data is None:
            raise HTTPException(status_code=404, detail=f"No token data found for bu: {bu}, id: {id}")

        return {
            "success": True,
            "data": token_data,
            "todayTokens": today_tokens(token_data, settings.timezone_for(bu)),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"API Error fetching token data: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/form-title", response_model=Dict[str, Any])
async def get_form_title(
    bu: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    form_service: FormService = Depends(get_form_service),
):
    try:
        if not bu or not type:
            raise HTTPException(status_code=400, detail="Missing bu or type parameter")

        success, title, error = await form_service.get_form_title(bu, type)
        if not success:
            raise HTTPException(status_code=500, detail="Internal server error")
        return title
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching form title: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/countries", response_model=Dict[str, Any])
async def get_countries(vocabulary_service: VocabularyService = Depends(get_vocabulary_service)):
    try:
        countries = await vocabulary_service.get_countries()
        return {
            "success": True,
            "countries": [c.model_dump() for c in countries],
            "siteMapping": {c.code: c.sites for c in countries},
        }
    except Exception as e:
        logger.error(f"Error fetching countries: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/vocabulary/{bu}", response_model=Dict[str, Any])
async def get_vocabulary(bu: str, vocabulary_service: VocabularyService = Depends(get_vocabulary_service)):
    try:
        success, vocabulary, error = await vocabulary_service.get_vocabulary(bu)
        if not success:
            raise HTTPException(status_code=500, detail="Internal server error")
        if vocabulary is None:
            raise HTTPException(status_code=404, detail=f"No vocabulary for {bu}")
        return {"success": True, "vocabulary": vocabulary.model_dump()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching vocabulary for {bu}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/safety-stats", response_model=Dict[str, Any])
async def get_safety_stats(stat_service: SafetyStatService = Depends(get_safety_stat_service)):
    try:
        success, stats, error = await stat_service.get_all()
        if success:
            return {"success": True, "stats": [s.model_dump() for s in stats]}
        raise HTTPException(status_code=500, detail="Internal server error")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching safety stats: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/safety-stats/{plant_id}", response_model=Dict[str, Any])
async def get_safety_stat(plant_id: str, stat_service: SafetyStatService = Depends(get_safety_stat_service)):
    try:
        success, stat, error = await stat_service.get_by_plant(plant_id)
        if success:
            return {"success": True, "stat": stat.model_dump()}
        if error == "Document not found":
            raise HTTPException(status_code=404, detail=f"No safety stats for plant {plant_id}")
        raise HTTPException(status_code=500, detail="Internal server error")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching safety stats for {plant_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
