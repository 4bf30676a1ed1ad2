from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from firebase_admin import firestore
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from safetyapp.auth.firebase_auth import FirebaseAuth
from safetyapp.core.config import settings
from safetyapp.core.firebase_init import (
    get_firebase_status,
    initialize_firebase,
    initialize_storage,
    shutdown_firebase,
)
from safetyapp.database.database_service import DatabaseService
from safetyapp.middleware.legacy_redirect import LegacyRedirectMiddleware

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Safety Inspection API",
    description="Equipment inspections, favorites, dashboards and personnel safety records",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LegacyRedirectMiddleware)


@app.on_event("startup")
async def startup_event():
    """Build the Firebase-backed clients shared by all requests"""
    logger.info("🚀 FastAPI startup event triggered")

    firebase_app = initialize_firebase()
    app.state.firebase_app = firebase_app
    if firebase_app is None:
        logger.warning("⚠️ Firebase initialization failed - data endpoints will return 500")
        app.state.db = None
        app.state.auth = None
        app.state.bucket = None
        return

    app.state.db = DatabaseService(firestore.client(firebase_app))
    app.state.auth = FirebaseAuth(firebase_app)
    app.state.bucket = initialize_storage(firebase_app)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("⛔ FastAPI shutdown event triggered")
    shutdown_firebase(getattr(app.state, "firebase_app", None))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    logger.info(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "; ".join(errors) or "Invalid request"},
    )


def safe_include_router(router_module_path: str, router_name: str = "router"):
    """Safely include a router with error handling"""
    try:
        module = __import__(router_module_path, fromlist=[router_name])
        router = getattr(module, router_name)
        app.include_router(router)
        logger.info(f"✅ Successfully included {router_module_path}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to include {router_module_path}: {str(e)}")
        return False


logger.info("Loading routers...")

routers_to_load = [
    ("safetyapp.routers.equipment", "Machines"),
    ("safetyapp.routers.favorites", "Favorites"),
    ("safetyapp.routers.transactions", "Inspection Transactions"),
    ("safetyapp.routers.dashboard", "Dashboard"),
    ("safetyapp.routers.man_records", "Man Records"),
    ("safetyapp.routers.method_records", "Method Records"),
    ("safetyapp.routers.assets", "Assets"),
    ("safetyapp.routers.employees", "Employees"),
    ("safetyapp.routers.reference_data", "Reference Data"),
]

successful_routers = []
failed_routers = []

for router_path, router_description in routers_to_load:
    if safe_include_router(router_path):
        successful_routers.append(router_description)
    else:
        failed_routers.append(router_description)

logger.info(f"Successfully loaded routers: {successful_routers}")
if failed_routers:
    logger.warning(f"Failed to load routers: {failed_routers}")


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Safety Inspection API",
        "firebase_status": get_firebase_status(getattr(app.state, "firebase_app", None)),
        "loaded_routers": successful_routers,
        "failed_routers": failed_routers
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "firebase_available": getattr(app.state, "db", None) is not None,
        "storage_available": getattr(app.state, "bucket", None) is not None,
        "loaded_routers": len(successful_routers),
        "failed_routers": len(failed_routers)
    }
