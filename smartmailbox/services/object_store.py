"""Object store for document bytes.

Contract:
    upload(data, content_type, path) -> publicly resolvable URL
    delete(path)                     -> None; a missing object is not an error

``LocalObjectStore`` keeps objects under STORAGE_DIR; main.py serves that
directory at /files so the URLs built from PUBLIC_BASE_URL resolve.
"""

import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from ..core.config import settings
from ..exceptions import StorageFailure

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    def upload(self, data: bytes, content_type: str, path: str) -> str: ...

    def delete(self, path: str) -> None: ...


class LocalObjectStore:
    """Filesystem-backed object store."""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls) -> "LocalObjectStore":
        return cls(settings.storage_dir, settings.public_base_url)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise StorageFailure("Storage path escapes the storage root", path=path)
        return target

    def url_for(self, path: str) -> str:
        return f"{self.public_base_url}/{quote(path)}"

    def upload(self, data: bytes, content_type: str, path: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error("Object upload failed", extra={"storage_path": path, "error": str(e)})
            raise StorageFailure("Failed to store document bytes", path=path, original_error=e) from e
        logger.debug(
            "Stored object",
            extra={"storage_path": path, "content_type": content_type, "size": len(data)},
        )
        return self.url_for(path)

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Object delete failed", extra={"storage_path": path, "error": str(e)})
            raise StorageFailure("Failed to delete document bytes", path=path, original_error=e) from e
