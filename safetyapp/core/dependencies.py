"""
Request-scoped providers. The store, auth and storage clients are built once
at startup and kept on ``app.state``; services are assembled per request.
"""

from fastapi import Depends, HTTPException, Request, status
import logging

from .config import settings
from ..database.database_service import DatabaseService
from ..services.asset_service import AssetService
from ..services.dashboard_service import DashboardService
from ..services.employee_service import EmployeeService
from ..services.equipment_service import EquipmentService
from ..services.favorites_service import FavoritesService
from ..services.form_service import FormService
from ..services.man_record_service import ManRecordService
from ..services.record_query_service import RecordQueryService
from ..services.safety_stat_service import SafetyStatService
from ..services.storage_service import StorageService
from ..services.token_service import TokenService
from ..services.vocabulary_service import VocabularyService

logger = logging.getLogger(__name__)


def get_database(request: Request) -> DatabaseService:
    db = getattr(request.app.state, "db", None)
    if db is None:
        logger.error("Database requested but Firebase is not initialized")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database not available",
        )
    return db


def get_storage(request: Request) -> StorageService:
    return StorageService(getattr(request.app.state, "bucket", None))


def get_query_service(db: DatabaseService = Depends(get_database)) -> RecordQueryService:
    return RecordQueryService(db)


def get_favorites_service(
    db: DatabaseService = Depends(get_database),
    query_service: RecordQueryService = Depends(get_query_service),
) -> FavoritesService:
    return FavoritesService(db, query_service)


def get_equipment_service(
    db: DatabaseService = Depends(get_database),
    query_service: RecordQueryService = Depends(get_query_service),
    favorites: FavoritesService = Depends(get_favorites_service),
    storage: StorageService = Depends(get_storage),
) -> EquipmentService:
    return EquipmentService(db, query_service, favorites, storage)


def get_dashboard_service(query_service: RecordQueryService = Depends(get_query_service)) -> DashboardService:
    return DashboardService(query_service, settings)


def get_man_record_service(
    db: DatabaseService = Depends(get_database),
    query_service: RecordQueryService = Depends(get_query_service),
    storage: StorageService = Depends(get_storage),
) -> ManRecordService:
    return ManRecordService(db, query_service, storage)


def get_asset_service(
    db: DatabaseService = Depends(get_database),
    query_service: RecordQueryService = Depends(get_query_service),
) -> AssetService:
    return AssetService(db, query_service)


def get_employee_service(db: DatabaseService = Depends(get_database)) -> EmployeeService:
    return EmployeeService(db)


def get_token_service(query_service: RecordQueryService = Depends(get_query_service)) -> TokenService:
    return TokenService(query_service)


def get_form_service(
    db: DatabaseService = Depends(get_database),
    query_service: RecordQueryService = Depends(get_query_service),
) -> FormService:
    return FormService(db, query_service)


def get_vocabulary_service(db: DatabaseService = Depends(get_database)) -> VocabularyService:
    return VocabularyService(db)


def get_safety_stat_service(db: DatabaseService = Depends(get_database)) -> SafetyStatService:
    return SafetyStatService(db)
