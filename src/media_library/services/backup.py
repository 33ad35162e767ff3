"""Backup and restore of the image library.

Backups are JSON documents wrapping a list of flat image entries with ISO 8601
timestamps. Restores are additive: every valid entry becomes a new record.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from media_library.domain.backup import BACKUP_VERSION, BackupEntry
from media_library.domain.batch import LIBRARY_TABLE, BatchOp
from media_library.domain.categories import UNCATEGORIZED, normalize_category
from media_library.domain.errors import ValidationError
from media_library.domain.images import LibraryImage
from media_library.services.batch import BatchWriter, commit_batch
from media_library.services.categories import (
    CategoryRepository,
    missing_category_ops,
)
from media_library.services.library import LibraryRepository

logger = logging.getLogger(__name__)


@dataclass
class BackupService:
    """Serializes the library to a backup document and restores from one."""

    repository: LibraryRepository
    category_repository: CategoryRepository
    batch_writer: BatchWriter

    def export_user(self, user_id: UUID) -> dict[str, object]:
        """Return a backup document for every image the user owns."""
        return export_document(self.repository.list_images(user_id))

    def restore(self, user_id: UUID, raw: bytes | str) -> int:
        """Parse a backup file and import it."""
        return self.import_document(user_id, loads(raw))

    def import_document(self, user_id: UUID, document: object) -> int:
        """Insert every valid entry as a new record owned by user_id."""
        raw_entries = _entries(document)
        now = datetime.now(tz=UTC)
        image_ops: list[BatchOp] = []
        categories: set[str] = set()
        for raw in raw_entries:
            if not isinstance(raw, dict):
                continue
            try:
                entry = BackupEntry.model_validate(raw)
            except PydanticValidationError:
                continue
            category = normalize_category(entry.category)
            if category is not None:
                categories.add(category)
            record_id = uuid4()
            created_at = entry.created_at or now
            image_ops.append(
                BatchOp.set(
                    LIBRARY_TABLE,
                    record_id,
                    {
                        "id": str(record_id),
                        "user_id": str(user_id),
                        "name": entry.name,
                        "description": entry.description,
                        "category": category or UNCATEGORIZED,
                        "image_url": entry.image_url,
                        "storage_path": entry.storage_path or "",
                        "created_at": created_at.isoformat(),
                    },
                )
            )

        ops = missing_category_ops(self.category_repository, user_id, categories)
        commit_batch(self.batch_writer, ops + image_ops, "restore backup")
        logger.info(
            "Backup restored",
            extra={
                "user_id": user_id,
                "restored": len(image_ops),
                "skipped": len(raw_entries) - len(image_ops),
            },
        )
        return len(image_ops)


def export_document(records: Iterable[LibraryImage]) -> dict[str, object]:
    """Map records to a versioned, portable backup document."""
    return {
        "version": BACKUP_VERSION,
        "exported_at": datetime.now(tz=UTC).isoformat(),
        "images": [_serialize_image(record) for record in records],
    }


def dumps(document: dict[str, object]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def loads(raw: bytes | str) -> object:
    """Parse backup text, rejecting anything that is not JSON."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Backup file is not valid JSON.") from exc


def _entries(document: object) -> list[object]:
    """Return the entry list of a versioned or legacy backup."""
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        version = document.get("version")
        images = document.get("images")
        if version != BACKUP_VERSION:
            raise ValidationError(f"Unsupported backup version: {version!r}.")
        if isinstance(images, list):
            return images
    raise ValidationError("Backup file must contain a list of images.")


def _serialize_image(record: LibraryImage) -> dict[str, object]:
    return {
        "id": str(record.id),
        "user_id": str(record.user_id),
        "name": record.name,
        "description": record.description,
        "category": record.category,
        "image_url": record.image_url,
        "storage_path": record.storage_path,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }
