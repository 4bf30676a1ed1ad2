from firebase_admin import auth
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class FirebaseAuth:
    def __init__(self, app=None):
        # ``app`` is the firebase_admin.App built at startup
        self.app = app

    async def verify_token(self, token: str) -> Optional[dict]:
        try:
            decoded_token = auth.verify_id_token(token, app=self.app)
            return decoded_token
        except Exception as e:
            logger.warning(f"[Auth] Token verification failed: {e}")
            return None
