"""Response serializers for domain objects."""

from media_library.domain.categories import Category, category_label
from media_library.domain.images import Avatar, LibraryImage
from media_library.services.bulk import BulkCategorizeSession, BulkItem


def serialize_image(image: LibraryImage) -> dict[str, object]:
    return {
        "id": str(image.id),
        "name": image.name,
        "description": image.description,
        "category": image.category,
        "category_label": category_label(image.category),
        "image_url": image.image_url,
        "storage_path": image.storage_path,
        "created_at": image.created_at.isoformat() if image.created_at else None,
    }


def serialize_avatar(avatar: Avatar) -> dict[str, object]:
    return {
        "id": str(avatar.id),
        "name": avatar.name,
        "description": avatar.description,
        "prompt": avatar.prompt,
        "image_url": avatar.image_url,
        "storage_path": avatar.storage_path,
        "created_at": avatar.created_at.isoformat() if avatar.created_at else None,
    }


def serialize_category(category: Category) -> dict[str, object]:
    return {"id": str(category.id), "name": category.name}


def serialize_session(session: BulkCategorizeSession) -> dict[str, object]:
    """Render the session as the single-focus view the client displays."""
    current = session.current
    return {
        "id": str(session.id),
        "mode": session.mode.value,
        "state": session.state.value,
        "index": session.index,
        "total": len(session.items),
        "saved": session.saved_count,
        "current": _serialize_item(current) if current else None,
    }


def _serialize_item(item: BulkItem) -> dict[str, object]:
    return {
        "image": serialize_image(item.image),
        "proposed_category": item.proposed_category,
        "accepted": item.accepted,
        "error": item.error,
    }
