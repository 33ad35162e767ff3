"""Asset store port and the best-effort helpers built on it."""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol
from urllib.parse import unquote, urlsplit
from uuid import UUID, uuid4

from media_library.domain.errors import AssetUploadError
from media_library.domain.images import ImageSource, StoredAsset

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class AssetStore(Protocol):
    """Interface for binary asset storage addressed by path."""

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> StoredAsset:
        """Store bytes at path and return the public URL and path."""

    def get_url(self, path: str) -> str:
        """Return the URL for a stored path."""

    def delete(self, path: str) -> None:
        """Delete the object stored at path."""


class AssetFetcher(Protocol):
    """Interface for downloading an asset by its URL."""

    async def fetch(self, url: str) -> bytes:
        """Download the asset and return its bytes."""


class DeleteStatus(str, Enum):
    """Outcome of a best-effort asset delete."""

    DELETED = "deleted"
    FAILED = "failed"
    SKIPPED = "skipped"


def storage_path(user_id: UUID, collection: str, filename: str) -> str:
    """Build a collision-free storage path for a new upload."""
    return f"users/{user_id}/{collection}/{uuid4()}-{filename}"


def upload_source(
    store: AssetStore,
    user_id: UUID,
    collection: str,
    source: ImageSource,
    on_progress: ProgressCallback | None = None,
) -> StoredAsset:
    """Upload an image source to a fresh path, wrapping failures."""
    path = storage_path(user_id, collection, source.filename)
    try:
        return store.upload(path, source.data, source.content_type, on_progress)
    except Exception as exc:
        logger.exception("Asset upload failed", extra={"storage_path": path})
        raise AssetUploadError("Could not upload image.") from exc


def try_delete(store: AssetStore, path: str | None) -> DeleteStatus:
    """Delete an asset, logging instead of raising on failure."""
    if not path:
        return DeleteStatus.SKIPPED
    try:
        store.delete(path)
    except Exception:
        logger.warning(
            "Could not delete asset", exc_info=True, extra={"storage_path": path}
        )
        return DeleteStatus.FAILED
    return DeleteStatus.DELETED


def url_extension(url: str, fallback: str) -> str:
    """Return the file extension of a URL's last path segment."""
    segment = unquote(urlsplit(url).path).rsplit("/", 1)[-1]
    if "." not in segment:
        return fallback
    extension = segment.rsplit(".", 1)[-1].strip().lower()
    if not extension or not extension.isalnum():
        return fallback
    return extension
