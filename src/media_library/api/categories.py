"""Category management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from media_library.api.dependencies import current_user_id, get_container
from media_library.api.schemas import CategoryCreate, CategoryRename
from media_library.api.serializers import serialize_category

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Return categories sorted by name."""
    categories = get_container(request).category_service.list_categories(user_id)
    return {"categories": [serialize_category(category) for category in categories]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Create a category."""
    category = get_container(request).category_service.create(user_id, payload.name)
    return serialize_category(category)


@router.patch("/{name}")
async def rename_category(
    name: str,
    payload: CategoryRename,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, int]:
    """Rename a category and every image that uses it."""
    updated = get_container(request).category_service.rename(
        user_id, name, payload.name
    )
    return {"updated_images": updated}


@router.delete("/{name}")
async def delete_category(
    name: str, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, int]:
    """Delete a category; its images become uncategorized."""
    updated = get_container(request).category_service.delete(user_id, name)
    return {"updated_images": updated}
