"""View state derived from record snapshots.

Nothing here is authoritative: every value is recomputed from the image list
the record store returned most recently.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import UUID

from media_library.domain.categories import (
    Category,
    category_label,
    is_uncategorized,
    normalize_category,
)
from media_library.domain.images import Avatar, LibraryImage


class ViewMode(str, Enum):
    """Layout used to render a collection."""

    LIST = "list"
    GRID = "grid"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"


@dataclass(frozen=True)
class CreateDialog:
    """Create form is open."""


@dataclass(frozen=True)
class EditDialog:
    """Edit form is open for a record."""

    record: LibraryImage | Avatar


@dataclass(frozen=True)
class DeleteDialog:
    """Delete confirmation is open for a record."""

    record: LibraryImage | Avatar


@dataclass(frozen=True)
class RenameDialog:
    """Rename form is open for a category."""

    category: Category


@dataclass(frozen=True)
class DeleteCategoryDialog:
    """Delete confirmation is open for a category."""

    category: Category


DialogState = (
    CreateDialog
    | EditDialog
    | DeleteDialog
    | RenameDialog
    | DeleteCategoryDialog
    | None
)


@dataclass(frozen=True)
class LibraryView:
    """Filter, layout and selection applied to the library snapshot."""

    filter_category: str | None = None
    view_mode: ViewMode = ViewMode.SMALL
    selected_ids: frozenset[UUID] = field(default_factory=frozenset)
    dialog: DialogState = None

    def visible(self, images: Iterable[LibraryImage]) -> list[LibraryImage]:
        """Return the images that pass the category filter."""
        if self.filter_category is None:
            return list(images)
        wanted = category_label(self.filter_category)
        return [image for image in images if category_label(image.category) == wanted]

    @staticmethod
    def categories(images: Iterable[LibraryImage]) -> list[str]:
        """Return the distinct non-empty categories seen on images."""
        seen: dict[str, None] = {}
        for image in images:
            name = normalize_category(image.category)
            if name is not None:
                seen.setdefault(name, None)
        return list(seen)

    @staticmethod
    def groups(images: Iterable[LibraryImage]) -> dict[str, list[LibraryImage]]:
        """Group images by display label, folding every "no category" spelling."""
        grouped: dict[str, list[LibraryImage]] = {}
        for image in images:
            grouped.setdefault(category_label(image.category), []).append(image)
        return grouped

    def with_filter(self, category: str | None) -> "LibraryView":
        return replace(self, filter_category=category, selected_ids=frozenset())

    def with_view_mode(self, view_mode: ViewMode) -> "LibraryView":
        return replace(self, view_mode=view_mode)

    def open_dialog(self, dialog: DialogState) -> "LibraryView":
        return replace(self, dialog=dialog)

    def close_dialog(self) -> "LibraryView":
        return replace(self, dialog=None)

    def toggle(self, image_id: UUID) -> "LibraryView":
        """Add or remove an image from the bulk selection."""
        if image_id in self.selected_ids:
            return replace(self, selected_ids=self.selected_ids - {image_id})
        return replace(self, selected_ids=self.selected_ids | {image_id})

    def select_all(self, images: Iterable[LibraryImage]) -> "LibraryView":
        return replace(
            self, selected_ids=frozenset(image.id for image in self.visible(images))
        )

    def select_uncategorized(self, images: Iterable[LibraryImage]) -> "LibraryView":
        return replace(
            self,
            selected_ids=frozenset(
                image.id for image in images if is_uncategorized(image.category)
            ),
        )

    def clear_selection(self) -> "LibraryView":
        return replace(self, selected_ids=frozenset())

    def selected(self, images: Iterable[LibraryImage]) -> list[LibraryImage]:
        """Return selected images in snapshot order, dropping stale ids."""
        return [image for image in images if image.id in self.selected_ids]
