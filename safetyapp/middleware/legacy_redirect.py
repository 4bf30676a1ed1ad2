from typing import List, Optional
from urllib.parse import unquote
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from ..core.config import settings

logger = logging.getLogger(__name__)

# Man record types whose legacy pages use a different path segment
MAN_TYPE_PATHS = {
    "toolbox": "toolbox",
    "boot": "bootform",
}


def _segments(path: str) -> List[str]:
    return [unquote(part) for part in path.split("/") if part]


def legacy_target(path: str, base_url: str) -> Optional[str]:
    """
    Legacy-host URL for an old inspection page path, or None if the path
    is not a legacy page.

    ``/Machine/...`` keeps only its last segment. Every ``/Man/...`` path maps
    to ``/Man/{type}/{id}``: the type is the segment after the BU (the one
    before the id in ``/Man/{type}/{id}``), lower-cased with toolbox/boot
    renamed, and the id is the last segment. ``/Man/{x}`` keeps its segment.
    """
    parts = _segments(path)
    if not parts:
        return None
    base = base_url.rstrip("/")

    if parts[0] == "Machine" and len(parts) > 1:
        return f"{base}/Machine/{parts[-1]}"

    if parts[0] == "Man" and len(parts) > 1:
        if len(parts) == 2:
            return f"{base}/Man/{parts[1]}"
        record_type = (parts[2] if len(parts) > 3 else parts[1]).lower()
        record_id = parts[-1]
        return f"{base}/Man/{MAN_TYPE_PATHS.get(record_type, record_type)}/{record_id}"

    return None


class LegacyRedirectMiddleware(BaseHTTPMiddleware):
    """Sends old QR-code page URLs to the legacy web host with a 307."""

    def __init__(self, app, base_url: Optional[str] = None):
        super().__init__(app)
        self.base_url = base_url or settings.LEGACY_BASE_URL

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST":
            target = legacy_target(request.url.path, self.base_url)
            if target:
                logger.info(f"[Redirect] {request.url.path} -> {target}")
                return RedirectResponse(url=target, status_code=307)
        return await call_next(request)
