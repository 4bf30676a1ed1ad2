from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse
import logging

logger = logging.getLogger(__name__)


def storage_path_from_url(url: str) -> Optional[str]:
    """
    Object path for a Firebase Storage download URL
    (``.../o/<encoded path>?alt=media``) or a ``gs://bucket/path`` URI.
    Plain object paths are returned unchanged.
    """
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme == "gs":
        return parsed.path.lstrip("/") or None
    if parsed.scheme in ("http", "https"):
        marker = "/o/"
        if marker not in parsed.path:
            return None
        return unquote(parsed.path.split(marker, 1)[1]) or None
    return url


class StorageService:
    """Deletes record images (inspections, method records) from the Firebase Storage bucket."""

    def __init__(self, bucket=None):
        self.bucket = bucket

    def delete_files(self, urls: Iterable[str]) -> List[str]:
        """Delete each image; failures are logged and skipped. Returns deleted paths."""
        deleted: List[str] = []
        if self.bucket is None:
            logger.warning("[Storage] Bucket not available, images left in place")
            return deleted

        for url in urls or []:
            path = storage_path_from_url(url)
            if not path:
                logger.warning(f"[Storage] Could not resolve storage path for {url}")
                continue
            try:
                self.bucket.blob(path).delete()
                deleted.append(path)
            except Exception as e:
                logger.error(f"[Storage] Failed to delete {path}: {e}")
        return deleted
