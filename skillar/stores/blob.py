"""
Blob Store
==========
Cover images live as plain files under settings.BLOB_DIR:

    data/blobs/skills/<uuid>-<filename>

The blob id is the relative path; the public URL points at the API's /blobs route.
"""

import logging
from pathlib import Path
from urllib.parse import quote

from ..config import settings
from ..errors import FetchError, WriteError

logger = logging.getLogger(__name__)


class LocalBlobStore:
    def __init__(self, root=None, public_base_url: str = None):
        self.root = Path(root or settings.BLOB_DIR).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _resolve(self, blob_id: str) -> Path:
        target = (self.root / blob_id).resolve()
        if self.root not in target.parents:
            raise FetchError(f"Invalid blob id: {blob_id}")
        return target

    def upload(self, path: str, data: bytes) -> str:
        blob_id = "/".join(part for part in path.replace("\\", "/").split("/") if part not in ("", ".", ".."))
        if not blob_id:
            raise WriteError("Empty blob path")
        target = self._resolve(blob_id)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise WriteError(f"Could not store blob {blob_id}: {e}") from e
        logger.info("stored blob %s (%d bytes)", blob_id, len(data))
        return blob_id

    def delete(self, blob_id: str):
        """Remove a stored blob. Missing blobs are ignored."""
        try:
            self._resolve(blob_id).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not remove blob %s: %s", blob_id, e)
            return
        logger.info("removed blob %s", blob_id)

    def get_public_url(self, blob_id: str) -> str:
        return f"{self.public_base_url}/blobs/{quote(blob_id)}"

    def local_path(self, blob_id: str) -> Path:
        """Filesystem path of a stored blob, for serving it."""
        target = self._resolve(blob_id)
        if not target.is_file():
            raise FetchError(f"Blob not found: {blob_id}")
        return target
