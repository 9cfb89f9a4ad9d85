"""Object storage for avatars and cover images.

Learn: The core never touches raw bytes beyond handing them over. An
upload returns a StoredObject (public url + opaque provider id); the
provider id is what gets stored and later passed to delete().

LocalObjectStorage writes into settings.media_root, which the app serves
under settings.media_url. Another backend (S3, GCS, ...) only needs to
implement the two abstract methods.
"""

import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog
from starlette.concurrency import run_in_threadpool

from socialnet.config import Settings

logger = structlog.get_logger()

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class StorageError(Exception):
    """Raised when an upload could not be stored."""


@dataclass(frozen=True)
class StoredObject:
    url: str
    provider_id: str


class ObjectStorage(ABC):
    """Abstract interface all storage providers must implement."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject: ...

    @abstractmethod
    async def delete(self, provider_id: Optional[str]) -> bool: ...


class LocalObjectStorage(ObjectStorage):
    """Stores files on the local filesystem under media_root."""

    def __init__(self, settings: Settings):
        self.root = Path(settings.media_root)
        self.base_url = settings.media_url.rstrip("/")

    async def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        ext = ALLOWED_IMAGE_TYPES.get(content_type) or Path(filename).suffix.lower()
        provider_id = f"{uuid.uuid4().hex}{ext}"
        try:
            await run_in_threadpool(self._write, provider_id, data)
        except OSError as e:
            logger.error("storage.upload_failed", filename=filename, error=str(e))
            raise StorageError(f"Could not store {filename}") from e

        logger.info("storage.uploaded", provider_id=provider_id, size=len(data))
        return StoredObject(url=f"{self.base_url}/{provider_id}", provider_id=provider_id)

    async def delete(self, provider_id: Optional[str]) -> bool:
        if not provider_id:
            return False
        path = self._path(provider_id)
        try:
            await run_in_threadpool(os.remove, path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("storage.delete_failed", provider_id=provider_id, error=str(e))
            return False
        logger.info("storage.deleted", provider_id=provider_id)
        return True

    def _path(self, provider_id: str) -> Path:
        # provider ids are generated here; refuse anything that escapes root
        name = Path(provider_id).name
        return self.root / name

    def _write(self, provider_id: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(provider_id).write_bytes(data)
