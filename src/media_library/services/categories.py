"""Category consistency engine.

Category names are stored redundantly on image records, so every rename or
delete is applied to the category record and to every image holding the name
inside one atomic batch.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from media_library.domain.batch import CATEGORY_TABLE, LIBRARY_TABLE, BatchOp
from media_library.domain.categories import UNCATEGORIZED, Category, is_uncategorized
from media_library.domain.errors import (
    CategoryConflictError,
    CategoryNotFoundError,
    RecordWriteError,
    ValidationError,
)
from media_library.domain.images import LibraryImage
from media_library.services.batch import BatchWriter, commit_batch

logger = logging.getLogger(__name__)


class CategoryRepository(Protocol):
    """Persistence interface for category records."""

    def create_category(self, user_id: UUID, name: str) -> Category:
        """Create a category and return it."""

    def get_by_name(self, user_id: UUID, name: str) -> Category | None:
        """Return the category with an exact name, if present."""

    def list_categories(self, user_id: UUID) -> list[Category]:
        """Return every category owned by a user."""


class CategorizedImageFinder(Protocol):
    """Query used to find the images affected by a cascade."""

    def find_by_category(self, user_id: UUID, name: str) -> list[LibraryImage]:
        """Return images whose category equals name exactly."""


@dataclass
class CategoryService:
    """Creates, renames and deletes categories with cascades to images."""

    repository: CategoryRepository
    images: CategorizedImageFinder
    batch_writer: BatchWriter

    def create(self, user_id: UUID, name: str) -> Category:
        """Create a category, enforcing unique names per user."""
        cleaned = validate_category_name(name)
        if self.repository.get_by_name(user_id, cleaned) is not None:
            raise CategoryConflictError(f'Category "{cleaned}" already exists.')
        try:
            return self.repository.create_category(user_id, cleaned)
        except Exception as exc:
            logger.exception("Category creation failed", extra={"user_id": user_id})
            raise RecordWriteError("Could not create category.") from exc

    def list_categories(self, user_id: UUID) -> list[Category]:
        """Return categories sorted by name."""
        categories = self.repository.list_categories(user_id)
        return sorted(categories, key=lambda category: category.name.casefold())

    def rename(self, user_id: UUID, old_name: str, new_name: str) -> int:
        """Rename a category and every image holding it; return images updated."""
        old = (old_name or "").strip()
        if is_uncategorized(old):
            raise ValidationError("The uncategorized group cannot be renamed.")
        new = validate_category_name(new_name)
        if old == new:
            return 0

        record = self.repository.get_by_name(user_id, old)
        matches = self.images.find_by_category(user_id, old)
        if record is None and not matches:
            raise CategoryNotFoundError(f'Category "{old}" does not exist.')
        clash = self.repository.get_by_name(user_id, new)
        if clash is not None and (record is None or clash.id != record.id):
            raise CategoryConflictError(f'Category "{new}" already exists.')

        ops: list[BatchOp] = []
        if record is not None:
            ops.append(BatchOp.update(CATEGORY_TABLE, record.id, {"name": new}))
        ops.extend(
            BatchOp.update(LIBRARY_TABLE, image.id, {"category": new})
            for image in matches
        )
        commit_batch(self.batch_writer, ops, "rename category")
        logger.info(
            "Category renamed",
            extra={"user_id": user_id, "updated_images": len(matches)},
        )
        return len(matches)

    def delete(self, user_id: UUID, name: str) -> int:
        """Delete a category and uncategorize its images; return images updated."""
        cleaned = (name or "").strip()
        if is_uncategorized(cleaned):
            raise ValidationError("The uncategorized group cannot be deleted.")
        record = self.repository.get_by_name(user_id, cleaned)
        matches = self.images.find_by_category(user_id, cleaned)
        if record is None and not matches:
            raise CategoryNotFoundError(f'Category "{cleaned}" does not exist.')

        ops: list[BatchOp] = []
        if record is not None:
            ops.append(BatchOp.delete(CATEGORY_TABLE, record.id))
        ops.extend(
            BatchOp.update(LIBRARY_TABLE, image.id, {"category": UNCATEGORIZED})
            for image in matches
        )
        commit_batch(self.batch_writer, ops, "delete category")
        logger.info(
            "Category deleted",
            extra={"user_id": user_id, "updated_images": len(matches)},
        )
        return len(matches)


def validate_category_name(name: str | None) -> str:
    """Return a trimmed category name or raise for empty and reserved names."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name cannot be empty.")
    if is_uncategorized(cleaned):
        raise ValidationError(f'"{cleaned}" is reserved for uncategorized images.')
    return cleaned


def ensure_category(
    repository: CategoryRepository, user_id: UUID, name: str | None
) -> Category | None:
    """Return the category record for name, creating it when missing."""
    if is_uncategorized(name):
        return None
    cleaned = str(name).strip()
    existing = repository.get_by_name(user_id, cleaned)
    if existing is not None:
        return existing
    try:
        return repository.create_category(user_id, cleaned)
    except Exception as exc:
        existing = repository.get_by_name(user_id, cleaned)
        if existing is not None:
            return existing
        raise RecordWriteError("Could not create category.") from exc


def missing_category_ops(
    repository: CategoryRepository, user_id: UUID, names: Iterable[str | None]
) -> list[BatchOp]:
    """Return batch ops creating each named category the user does not have yet.

    The records only exist once the caller's batch commits.
    """
    created_at = datetime.now(tz=UTC).isoformat()
    wanted = {str(name).strip() for name in names if not is_uncategorized(name)}
    ops: list[BatchOp] = []
    for name in sorted(wanted):
        if repository.get_by_name(user_id, name) is not None:
            continue
        record_id = uuid4()
        ops.append(
            BatchOp.set(
                CATEGORY_TABLE,
                record_id,
                {
                    "id": str(record_id),
                    "user_id": str(user_id),
                    "name": name,
                    "created_at": created_at,
                },
            )
        )
    return ops
