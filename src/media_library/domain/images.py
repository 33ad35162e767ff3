"""Domain models for library images, avatars and their binary sources."""

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from media_library.domain.errors import ValidationError


@dataclass(frozen=True)
class LibraryImage:
    """Represents an image record in a user's library."""

    id: UUID
    user_id: UUID
    name: str
    description: str | None
    category: str | None
    image_url: str
    storage_path: str
    created_at: datetime | None


@dataclass(frozen=True)
class Avatar:
    """Represents an avatar record, optionally generated from a prompt."""

    id: UUID
    user_id: UUID
    name: str
    description: str | None
    prompt: str | None
    image_url: str
    storage_path: str
    created_at: datetime | None


@dataclass(frozen=True)
class StoredAsset:
    """Location of an uploaded asset in the asset store."""

    url: str
    path: str


@dataclass(frozen=True)
class ImageSource:
    """Raw image payload about to be uploaded."""

    data: bytes
    filename: str
    content_type: str
    generated: bool = False

    @classmethod
    def from_upload(
        cls, filename: str | None, content_type: str | None, data: bytes
    ) -> "ImageSource":
        """Build a source from a user upload, rejecting non-image files."""
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError("Please upload an image file.")
        if not data:
            raise ValidationError("Uploaded image is empty.")
        return cls(
            data=data,
            filename=_safe_filename(filename or "image"),
            content_type=content_type,
        )

    @classmethod
    def from_data_url(cls, data_url: str, filename: str) -> "ImageSource":
        """Build a source from a base64 data URL returned by image generation."""
        header, _, encoded = data_url.partition(",")
        if not header.startswith("data:") or ";base64" not in header or not encoded:
            raise ValidationError("Generated image is not a base64 data URL.")
        content_type = header[len("data:") :].split(";", 1)[0] or "image/png"
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Generated image could not be decoded.") from exc
        extension = content_type.rsplit("/", 1)[-1]
        return cls(
            data=data,
            filename=_safe_filename(f"{filename}.{extension}"),
            content_type=content_type,
            generated=True,
        )


def _safe_filename(filename: str) -> str:
    """Strip directory components so the name can be used inside a storage path."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "image"
