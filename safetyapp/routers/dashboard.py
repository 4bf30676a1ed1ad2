from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..core.dependencies import get_dashboard_service
from ..services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Dashboard"],
)


@router.get("/dashboard-data", response_model=Dict[str, Any])
async def get_dashboard_data(
    period: Optional[str] = Query(None, description="daily, weekly, monthly, quarterly or annually"),
    bu: Optional[str] = Query(None),
    site: Optional[str] = Query(None),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
):
    """
    Inspection statistics for the dashboard.

    With ``bu`` the stats are keyed by type then site and include registered
    machine totals; without it they are keyed by business unit then type.
    """
    try:
        success, data, error = await dashboard_service.get_dashboard_stats(period, bu, site)
        if not success:
            raise HTTPException(status_code=400, detail=error)
        return data
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching dashboard data: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch data")
