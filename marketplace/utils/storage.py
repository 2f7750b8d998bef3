"""
Object storage backends for uploaded listing images.
The local filesystem backend writes with aiofiles and serves files under the media prefix.
"""

from pathlib import Path
from typing import Optional
import logging
import time
import uuid

import aiofiles
import aiofiles.os

from marketplace.config import settings

logger = logging.getLogger(__name__)


def generate_storage_key(property_id: uuid.UUID, extension: str) -> str:
    """
    Build a collision-free object key for a property image.

    Format: ``<property_id>/<property_id>-<epoch millis>-<random>.<ext>``
    """
    millis = int(time.time() * 1000)
    return f"{property_id}/{property_id}-{millis}-{uuid.uuid4().hex[:12]}.{extension.lstrip('.')}"


class StorageBackend:
    """Interface of an object store holding image bytes under string keys."""

    async def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store bytes under ``key`` and return the public URL."""
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Remove the object; False when it did not exist."""
        raise NotImplementedError

    def url(self, key: str) -> str:
        raise NotImplementedError


class LocalFileStorage(StorageBackend):
    """Filesystem storage rooted at ``base_dir``."""

    def __init__(self, base_dir: Optional[str] = None, public_prefix: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.public_prefix = (public_prefix or settings.media_url_prefix).rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.base_dir / key).resolve()
        # Keys must stay inside the storage root
        if self.base_dir.resolve() not in path.parents:
            raise ValueError(f"Invalid storage key: {key}")
        return path

    async def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        path = self._path(key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.debug(f"Stored {len(content)} bytes at {key}")
        return self.url(key)

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        if not await aiofiles.os.path.exists(path):
            return False

        await aiofiles.os.remove(path)
        logger.debug(f"Deleted stored object {key}")
        return True

    def url(self, key: str) -> str:
        return f"{self.public_prefix}/{key}"


def get_storage() -> StorageBackend:
    """Storage dependency; tests override it with a temporary root."""
    return LocalFileStorage()
