"""Domain models and helpers for image categories."""

from dataclasses import dataclass
from uuid import UUID

UNCATEGORIZED = "uncategorized"
UNCATEGORIZED_LABEL = "Uncategorized"


@dataclass(frozen=True)
class Category:
    """Represents a named category owned by a user."""

    id: UUID
    user_id: UUID
    name: str


def normalize_category(value: str | None) -> str | None:
    """Return the category name, or None for any spelling of "no category"."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() == UNCATEGORIZED:
        return None
    return cleaned


def is_uncategorized(value: str | None) -> bool:
    """Return True for empty, absent or sentinel category values."""
    return normalize_category(value) is None


def category_label(value: str | None) -> str:
    """Return the display label used for grouping and filtering."""
    return normalize_category(value) or UNCATEGORIZED_LABEL
