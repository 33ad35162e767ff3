"""Library mutation engine.

Every mutation keeps records and assets consistent in the same order:
upload first, write the record second, delete the replaced asset last.
Category records are only created once the image write that uses them
has succeeded.
"""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from media_library.domain.batch import LIBRARY_TABLE, BatchOp
from media_library.domain.categories import (
    UNCATEGORIZED,
    is_uncategorized,
    normalize_category,
)
from media_library.domain.errors import (
    AssetFetchError,
    ImageNotFoundError,
    MediaLibraryError,
    RecordWriteError,
    ValidationError,
)
from media_library.domain.images import ImageSource, LibraryImage
from media_library.services.assets import (
    AssetFetcher,
    AssetStore,
    DeleteStatus,
    ProgressCallback,
    try_delete,
    upload_source,
    url_extension,
)
from media_library.services.batch import BatchWriter, commit_batch
from media_library.services.categories import (
    CategoryRepository,
    ensure_category,
    missing_category_ops,
)

logger = logging.getLogger(__name__)

LIBRARY_COLLECTION = "library"


class LibraryRepository(Protocol):
    """Persistence interface for library image records."""

    def create_image(self, user_id: UUID, payload: dict[str, object]) -> LibraryImage:
        """Create an image record and return it."""

    def get_image(self, image_id: UUID) -> LibraryImage | None:
        """Return an image by id, if present."""

    def update_image(self, image_id: UUID, payload: dict[str, object]) -> LibraryImage:
        """Update an image record and return it."""

    def delete_image(self, image_id: UUID) -> None:
        """Delete an image record."""

    def list_images(
        self, user_id: UUID, category: str | None = None
    ) -> list[LibraryImage]:
        """Return a user's images, newest first, optionally filtered by category."""

    def find_by_category(self, user_id: UUID, name: str) -> list[LibraryImage]:
        """Return images whose category equals name exactly."""

    def find_by_storage_path(self, storage_path: str) -> list[LibraryImage]:
        """Return every image record, of any user, pointing at storage_path."""


@dataclass
class LibraryService:
    """Application service for library image operations."""

    repository: LibraryRepository
    category_repository: CategoryRepository
    assets: AssetStore
    batch_writer: BatchWriter
    fetcher: AssetFetcher
    fallback_extension: str = "png"

    def get(self, user_id: UUID, image_id: UUID) -> LibraryImage:
        """Return an image owned by the user or raise."""
        image = self.repository.get_image(image_id)
        if image is None or image.user_id != user_id:
            raise ImageNotFoundError(f"Image {image_id} not found.")
        return image

    def list_images(
        self, user_id: UUID, category: str | None = None
    ) -> list[LibraryImage]:
        """Return images, treating every "no category" spelling as one filter."""
        if category is None:
            return self.repository.list_images(user_id)
        if is_uncategorized(category):
            return self.list_uncategorized(user_id)
        return self.repository.list_images(user_id, category=category.strip())

    def list_uncategorized(self, user_id: UUID) -> list[LibraryImage]:
        return [
            image
            for image in self.repository.list_images(user_id)
            if is_uncategorized(image.category)
        ]

    def create(  # noqa: PLR0913
        self,
        user_id: UUID,
        name: str,
        description: str | None,
        category: str | None,
        source: ImageSource | None,
        on_progress: ProgressCallback | None = None,
    ) -> LibraryImage:
        """Upload the image, then create its record."""
        cleaned_name = _require_name(name)
        if source is None:
            raise ValidationError("An image file is required for creation.")
        stored_category = _stored_category(category)

        asset = upload_source(
            self.assets, user_id, LIBRARY_COLLECTION, source, on_progress
        )
        payload: dict[str, object] = {
            "name": cleaned_name,
            "description": _clean_optional(description),
            "category": stored_category,
            "image_url": asset.url,
            "storage_path": asset.path,
        }
        try:
            image = self.repository.create_image(user_id, payload)
        except Exception as exc:
            logger.exception("Library image create failed", extra={"user_id": user_id})
            try_delete(self.assets, asset.path)
            raise RecordWriteError("Could not save image to library.") from exc
        self._record_category(user_id, stored_category)
        logger.info("Library image created", extra={"image_id": image.id})
        return image

    def update(  # noqa: PLR0913
        self,
        user_id: UUID,
        image_id: UUID,
        name: str,
        description: str | None,
        category: str | None,
        source: ImageSource | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> LibraryImage:
        """Update fields and optionally replace the image."""
        cleaned_name = _require_name(name)
        current = self.get(user_id, image_id)
        stored_category = _stored_category(category)
        payload: dict[str, object] = {
            "name": cleaned_name,
            "description": _clean_optional(description),
            "category": stored_category,
        }

        new_asset = None
        if source is not None:
            new_asset = upload_source(
                self.assets, user_id, LIBRARY_COLLECTION, source, on_progress
            )
            payload["image_url"] = new_asset.url
            payload["storage_path"] = new_asset.path

        try:
            updated = self.repository.update_image(image_id, payload)
        except Exception as exc:
            logger.exception(
                "Library image update failed", extra={"image_id": image_id}
            )
            if new_asset is not None:
                try_delete(self.assets, new_asset.path)
            raise RecordWriteError("Could not save image to library.") from exc

        self._record_category(user_id, stored_category)
        if new_asset is not None:
            self.release_asset(current.storage_path)
        return updated

    def delete(self, user_id: UUID, image_id: UUID) -> None:
        """Delete the record, then its asset."""
        current = self.get(user_id, image_id)
        try:
            self.repository.delete_image(image_id)
        except Exception as exc:
            logger.exception(
                "Library image delete failed", extra={"image_id": image_id}
            )
            raise RecordWriteError("Could not delete image.") from exc
        self.release_asset(current.storage_path)
        logger.info("Library image deleted", extra={"image_id": image_id})

    def bulk_delete(self, user_id: UUID, image_ids: list[UUID]) -> int:
        """Delete many records in one batch, then their assets one by one."""
        images = self._owned(user_id, image_ids)
        commit_batch(
            self.batch_writer,
            [BatchOp.delete(LIBRARY_TABLE, image.id) for image in images],
            "delete images",
        )
        for path in dict.fromkeys(image.storage_path for image in images):
            self.release_asset(path)
        return len(images)

    def bulk_set_category(
        self, user_id: UUID, image_ids: list[UUID], category: str | None
    ) -> int:
        """Assign one category to many images in one batch."""
        images = self._owned(user_id, image_ids)
        if not images:
            return 0
        stored_category = _stored_category(category)
        ops = missing_category_ops(
            self.category_repository, user_id, [stored_category]
        )
        ops.extend(
            BatchOp.update(LIBRARY_TABLE, image.id, {"category": stored_category})
            for image in images
        )
        commit_batch(self.batch_writer, ops, "categorize images")
        return len(images)

    def set_category(
        self, user_id: UUID, image_id: UUID, category: str | None
    ) -> LibraryImage:
        """Write the category of a single image."""
        self.get(user_id, image_id)
        stored_category = _stored_category(category)
        try:
            updated = self.repository.update_image(
                image_id, {"category": stored_category}
            )
        except Exception as exc:
            logger.exception("Category write failed", extra={"image_id": image_id})
            raise RecordWriteError("Could not update image category.") from exc
        self._record_category(user_id, stored_category)
        return updated

    async def download(self, user_id: UUID, image_id: UUID) -> tuple[str, bytes]:
        """Fetch an image's bytes and a filename to save them under."""
        image = self.get(user_id, image_id)
        try:
            data = await self.fetcher.fetch(image.image_url)
        except Exception as exc:
            logger.exception("Image download failed", extra={"image_id": image_id})
            raise AssetFetchError(f'Could not download "{image.name}".') from exc
        extension = url_extension(image.image_url, self.fallback_extension)
        return f"{image.name}.{extension}", data

    def release_asset(self, storage_path: str) -> DeleteStatus:
        """Delete an asset no longer referenced by any image record.

        Restored backups keep their storage paths, so one asset can back
        several records; it stays until the last of them is gone.
        """
        if not storage_path:
            return DeleteStatus.SKIPPED
        try:
            holders = self.repository.find_by_storage_path(storage_path)
        except MediaLibraryError:
            logger.warning(
                "Asset kept, reference check failed",
                extra={"storage_path": storage_path},
            )
            return DeleteStatus.FAILED
        if holders:
            logger.info(
                "Asset kept, still referenced",
                extra={"storage_path": storage_path, "references": len(holders)},
            )
            return DeleteStatus.SKIPPED
        return try_delete(self.assets, storage_path)

    def _owned(self, user_id: UUID, image_ids: list[UUID]) -> list[LibraryImage]:
        wanted = set(image_ids)
        return [
            image
            for image in self.repository.list_images(user_id)
            if image.id in wanted
        ]

    def _record_category(self, user_id: UUID, stored_category: str) -> None:
        if is_uncategorized(stored_category):
            return
        try:
            ensure_category(self.category_repository, user_id, stored_category)
        except MediaLibraryError:
            logger.warning(
                "Category record not created",
                extra={"user_id": user_id, "category": stored_category},
            )


def _stored_category(category: str | None) -> str:
    return normalize_category(category) or UNCATEGORIZED


def _require_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Image name is required.")
    return cleaned


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
