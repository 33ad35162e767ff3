"""Avatar management service."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from media_library.domain.categories import UNCATEGORIZED
from media_library.domain.errors import (
    AvatarNotFoundError,
    RecordWriteError,
    ValidationError,
)
from media_library.domain.images import Avatar, ImageSource, LibraryImage
from media_library.services.assets import (
    AssetStore,
    ProgressCallback,
    try_delete,
    upload_source,
)
from media_library.services.generation import ImageGenerationService
from media_library.services.library import LIBRARY_COLLECTION, LibraryRepository

logger = logging.getLogger(__name__)

AVATAR_COLLECTION = "avatars"


class AvatarRepository(Protocol):
    """Persistence interface for avatar records."""

    def create_avatar(self, user_id: UUID, payload: dict[str, object]) -> Avatar:
        """Create an avatar and return it."""

    def get_avatar(self, avatar_id: UUID) -> Avatar | None:
        """Return an avatar by id, if present."""

    def update_avatar(self, avatar_id: UUID, payload: dict[str, object]) -> Avatar:
        """Update an avatar and return it."""

    def delete_avatar(self, avatar_id: UUID) -> None:
        """Delete an avatar record."""

    def list_avatars(self, user_id: UUID) -> list[Avatar]:
        """Return a user's avatars, newest first."""


@dataclass
class AvatarService:
    """Creates, updates and deletes avatars together with their assets."""

    repository: AvatarRepository
    library_repository: LibraryRepository
    assets: AssetStore
    generation: ImageGenerationService

    def get(self, user_id: UUID, avatar_id: UUID) -> Avatar:
        avatar = self.repository.get_avatar(avatar_id)
        if avatar is None or avatar.user_id != user_id:
            raise AvatarNotFoundError(f"Avatar {avatar_id} not found.")
        return avatar

    def list_avatars(self, user_id: UUID) -> list[Avatar]:
        return self.repository.list_avatars(user_id)

    async def generate(self, prompt: str, name: str = "avatar") -> ImageSource:
        """Generate an avatar image without saving anything."""
        return await self.generation.generate_source(prompt, name)

    def create(  # noqa: PLR0913
        self,
        user_id: UUID,
        name: str,
        description: str | None,
        prompt: str | None,
        source: ImageSource | None,
        on_progress: ProgressCallback | None = None,
    ) -> Avatar:
        """Upload the image, create the avatar and mirror generated images."""
        cleaned_name = _require_name(name)
        if source is None:
            raise ValidationError("A new image is required for creation.")

        asset = upload_source(
            self.assets, user_id, AVATAR_COLLECTION, source, on_progress
        )
        payload: dict[str, object] = {
            "name": cleaned_name,
            "description": _clean_optional(description),
            "prompt": _clean_optional(prompt),
            "image_url": asset.url,
            "storage_path": asset.path,
        }
        try:
            avatar = self.repository.create_avatar(user_id, payload)
        except Exception as exc:
            logger.exception("Avatar create failed", extra={"user_id": user_id})
            try_delete(self.assets, asset.path)
            raise RecordWriteError("Could not save avatar.") from exc

        if source.generated:
            self._copy_to_library(user_id, cleaned_name, description, source)
        return avatar

    async def create_generated(
        self,
        user_id: UUID,
        name: str,
        description: str | None,
        prompt: str,
    ) -> Avatar:
        """Generate an image from the prompt and save it as a new avatar."""
        cleaned_name = _require_name(name)
        source = await self.generation.generate_source(prompt, cleaned_name)
        return self.create(user_id, cleaned_name, description, prompt, source)

    def update(  # noqa: PLR0913
        self,
        user_id: UUID,
        avatar_id: UUID,
        name: str,
        description: str | None,
        prompt: str | None,
        source: ImageSource | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Avatar:
        """Update fields and optionally replace the image."""
        cleaned_name = _require_name(name)
        current = self.get(user_id, avatar_id)
        payload: dict[str, object] = {
            "name": cleaned_name,
            "description": _clean_optional(description),
            "prompt": _clean_optional(prompt),
        }

        new_asset = None
        if source is not None:
            new_asset = upload_source(
                self.assets, user_id, AVATAR_COLLECTION, source, on_progress
            )
            payload["image_url"] = new_asset.url
            payload["storage_path"] = new_asset.path

        try:
            updated = self.repository.update_avatar(avatar_id, payload)
        except Exception as exc:
            logger.exception("Avatar update failed", extra={"avatar_id": avatar_id})
            if new_asset is not None:
                try_delete(self.assets, new_asset.path)
            raise RecordWriteError("Could not save avatar.") from exc

        if new_asset is not None:
            try_delete(self.assets, current.storage_path)
            if source is not None and source.generated:
                self._copy_to_library(user_id, cleaned_name, description, source)
        return updated

    def delete(self, user_id: UUID, avatar_id: UUID) -> None:
        """Delete the avatar record, then its asset."""
        current = self.get(user_id, avatar_id)
        try:
            self.repository.delete_avatar(avatar_id)
        except Exception as exc:
            logger.exception("Avatar delete failed", extra={"avatar_id": avatar_id})
            raise RecordWriteError("Could not delete avatar.") from exc
        try_delete(self.assets, current.storage_path)

    def _copy_to_library(
        self,
        user_id: UUID,
        name: str,
        description: str | None,
        source: ImageSource,
    ) -> LibraryImage | None:
        """Store a separate copy of a generated image in the library."""
        try:
            asset = upload_source(self.assets, user_id, LIBRARY_COLLECTION, source)
        except Exception:
            logger.warning("Could not copy generated avatar to library", exc_info=True)
            return None
        try:
            return self.library_repository.create_image(
                user_id,
                {
                    "name": name,
                    "description": _clean_optional(description),
                    "category": UNCATEGORIZED,
                    "image_url": asset.url,
                    "storage_path": asset.path,
                },
            )
        except Exception:
            logger.warning("Could not copy generated avatar to library", exc_info=True)
            try_delete(self.assets, asset.path)
            return None


def _require_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Avatar name is required.")
    return cleaned


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
