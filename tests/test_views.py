"""Tests for snapshot-derived view state."""

from datetime import UTC, datetime
from uuid import uuid4

from media_library.domain.categories import (
    UNCATEGORIZED_LABEL,
    Category,
    category_label,
    is_uncategorized,
    normalize_category,
)
from media_library.domain.images import LibraryImage
from media_library.domain.views import (
    DeleteCategoryDialog,
    EditDialog,
    LibraryView,
    ViewMode,
)


def _image(name: str, category: str | None) -> LibraryImage:
    return LibraryImage(
        id=uuid4(),
        user_id=uuid4(),
        name=name,
        description=None,
        category=category,
        image_url=f"https://assets.example.com/{name}.png",
        storage_path=f"users/u/library/{name}.png",
        created_at=datetime.now(tz=UTC),
    )


IMAGES = [
    _image("none", None),
    _image("empty", ""),
    _image("sentinel", "uncategorized"),
    _image("cat", "Animals"),
    _image("dog", "Animals"),
    _image("tree", "Plants"),
]


def test_uncategorized_spellings_share_one_group() -> None:
    groups = LibraryView.groups(IMAGES)

    assert [image.name for image in groups[UNCATEGORIZED_LABEL]] == [
        "none",
        "empty",
        "sentinel",
    ]
    assert list(groups) == [UNCATEGORIZED_LABEL, "Animals", "Plants"]


def test_filter_by_any_uncategorized_spelling() -> None:
    for spelling in ["", "uncategorized", "Uncategorized"]:
        view = LibraryView().with_filter(spelling)
        names = [image.name for image in view.visible(IMAGES)]
        assert names == ["none", "empty", "sentinel"]


def test_filter_by_category_and_no_filter() -> None:
    assert [image.name for image in LibraryView().visible(IMAGES)] == [
        image.name for image in IMAGES
    ]
    animals = LibraryView().with_filter("Animals").visible(IMAGES)
    assert [image.name for image in animals] == ["cat", "dog"]


def test_categories_are_distinct_and_skip_uncategorized() -> None:
    assert LibraryView.categories(IMAGES) == ["Animals", "Plants"]


def test_selection_helpers() -> None:
    view = LibraryView().toggle(IMAGES[3].id).toggle(IMAGES[5].id)

    assert [image.name for image in view.selected(IMAGES)] == ["cat", "tree"]
    assert view.toggle(IMAGES[3].id).selected_ids == frozenset({IMAGES[5].id})

    uncategorized = view.select_uncategorized(IMAGES)
    assert [image.name for image in uncategorized.selected(IMAGES)] == [
        "none",
        "empty",
        "sentinel",
    ]
    filtered = view.with_filter("Animals")
    assert filtered.selected_ids == frozenset()
    assert len(filtered.select_all(IMAGES).selected_ids) == 2
    assert view.clear_selection().selected_ids == frozenset()


def test_view_mode_and_dialogs_are_immutable_updates() -> None:
    view = LibraryView()
    category = Category(id=uuid4(), user_id=uuid4(), name="Animals")

    editing = view.with_view_mode(ViewMode.EXTRA_LARGE).open_dialog(
        EditDialog(record=IMAGES[3])
    )

    assert view.view_mode is ViewMode.SMALL
    assert view.dialog is None
    assert editing.view_mode.value == "extra-large"
    assert isinstance(editing.dialog, EditDialog)
    deleting = editing.open_dialog(DeleteCategoryDialog(category))
    assert deleting.close_dialog().dialog is None


def test_category_normalization_helpers() -> None:
    assert normalize_category("  Animals ") == "Animals"
    assert normalize_category(" UNCATEGORIZED ") is None
    assert is_uncategorized(None)
    assert is_uncategorized("")
    assert not is_uncategorized("Animals")
    assert category_label("") == category_label(None) == UNCATEGORIZED_LABEL
