from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from .firebase_auth import FirebaseAuth
from ..core.config import settings

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def get_auth_client(request: Request) -> FirebaseAuth:
    auth_client = getattr(request.app.state, "auth", None)
    if auth_client is None:
        logger.error("[Auth] Auth client requested before startup")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication not available",
        )
    return auth_client


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_client: FirebaseAuth = Depends(get_auth_client),
):
    """
    Verify the session token (cookie first, then bearer header) and return
    the decoded claims. Raises 401 if the token is missing or invalid.
    """
    token = _extract_token(request, credentials)
    if not token:
        logger.warning("[Auth] No session token on mutating request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_data = await auth_client.verify_token(token)
    except Exception as e:
        logger.error(f"[Auth] ❌ Authentication error: {str(e)}")
        user_data = None

    if not user_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"[Auth] ✅ Authenticated user: {user_data.get('email') or user_data.get('uid')}")
    return user_data


def is_admin(user: dict) -> bool:
    return bool(user.get("admin")) or user.get("role") == "admin"


def ensure_self_or_admin(user_id: str, current_user: dict) -> None:
    """Allow users to act on their own data, or admins on anyone's."""
    if current_user.get("uid") == user_id or is_admin(current_user):
        return
    logger.warning(f"[Auth] Self/Admin access denied: '{current_user.get('uid')}' acting on '{user_id}'")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only modify your own favorites",
    )
