import firebase_admin
from firebase_admin import credentials, storage
import logging
import os
from typing import Optional

from .config import settings

logger = logging.getLogger(__name__)


def initialize_firebase() -> Optional[firebase_admin.App]:
    """
    Build the Firebase Admin app used by the store and auth clients.
    Returns the app, or None when no credentials are available.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    try:
        service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH

        if os.path.exists(service_account_path):
            cred = credentials.Certificate(service_account_path)
        elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
            cred = credentials.ApplicationDefault()
        else:
            logger.warning(f"Firebase service account file not found at {service_account_path}")
            logger.warning("Firebase will not be available for this session.")
            return None

        app = firebase_admin.initialize_app(cred, {
            'projectId': settings.FIREBASE_PROJECT_ID,
            'storageBucket': settings.FIREBASE_STORAGE_BUCKET,
        })
        logger.info("✅ Firebase initialized successfully")
        return app

    except Exception as e:
        logger.error(f"❌ Firebase initialization failed: {e}")
        return None


def shutdown_firebase(app: Optional[firebase_admin.App]) -> None:
    if app is None:
        return
    try:
        firebase_admin.delete_app(app)
        logger.info("Firebase app released")
    except ValueError as e:
        logger.warning(f"Firebase app already released: {e}")


def get_firebase_status(app: Optional[firebase_admin.App]) -> dict:
    """Get Firebase initialization status for debugging."""
    return {
        "initialized": app is not None,
        "apps_count": len(firebase_admin._apps) if firebase_admin._apps else 0,
        "project_id": settings.FIREBASE_PROJECT_ID,
    }


def initialize_storage(app: Optional[firebase_admin.App]):
    """Storage bucket for inspection images, or None if unavailable."""
    if app is None:
        return None
    try:
        bucket = storage.bucket(settings.FIREBASE_STORAGE_BUCKET, app=app)
        logger.info(f"✅ Firebase Storage initialized: gs://{bucket.name}")
        return bucket
    except Exception as e:
        logger.error(f"❌ Error initializing Firebase Storage: {e}")
        return None
