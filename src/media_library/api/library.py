"""Library image endpoints, including backup, restore and export."""

from urllib.parse import quote
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Request,
    Response,
    UploadFile,
    status,
)

from media_library.api.dependencies import current_user_id, get_container
from media_library.api.schemas import BulkCategoryAssign, ImageIds
from media_library.api.serializers import serialize_image
from media_library.domain.images import ImageSource
from media_library.domain.views import LibraryView
from media_library.services.backup import dumps
from media_library.services.vision import detect_mime_type

router = APIRouter(prefix="/library", tags=["library"])


@router.get("/images")
async def list_images(
    request: Request,
    category: str | None = None,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Return images, newest first, optionally filtered by category."""
    images = get_container(request).library_service.list_images(user_id, category)
    return {"images": [serialize_image(image) for image in images]}


@router.get("/groups")
async def list_groups(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Return images grouped by category label plus the derived category names."""
    images = get_container(request).library_service.list_images(user_id)
    groups = LibraryView.groups(images)
    return {
        "categories": LibraryView.categories(images),
        "groups": {
            label: [serialize_image(image) for image in members]
            for label, members in groups.items()
        },
    }


@router.post("/images", status_code=status.HTTP_201_CREATED)
async def create_image(  # noqa: PLR0913
    request: Request,
    name: str = Form(...),
    description: str | None = Form(default=None),
    category: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Upload an image and add it to the library."""
    source = await _read_source(file)
    image = get_container(request).library_service.create(
        user_id, name, description, category, source
    )
    return serialize_image(image)


@router.patch("/images/{image_id}")
async def update_image(  # noqa: PLR0913
    image_id: UUID,
    request: Request,
    name: str = Form(...),
    description: str | None = Form(default=None),
    category: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Update image details, replacing the image when a file is sent."""
    source = await _read_source(file)
    image = get_container(request).library_service.update(
        user_id, image_id, name, description, category, source
    )
    return serialize_image(image)


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    image_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> Response:
    """Delete an image and its stored file."""
    get_container(request).library_service.delete(user_id, image_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/images/{image_id}/download")
async def download_image(
    image_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> Response:
    """Stream an image back as an attachment."""
    filename, data = await get_container(request).library_service.download(
        user_id, image_id
    )
    return Response(
        content=data,
        media_type=detect_mime_type(data),
        headers=_attachment(filename),
    )


@router.post("/images/bulk-delete")
async def bulk_delete(
    payload: ImageIds, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, int]:
    """Delete every selected image."""
    deleted = get_container(request).library_service.bulk_delete(user_id, payload.ids)
    return {"deleted": deleted}


@router.post("/images/bulk-category")
async def bulk_category(
    payload: BulkCategoryAssign,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, int]:
    """Assign one category to every selected image."""
    updated = get_container(request).library_service.bulk_set_category(
        user_id, payload.ids, payload.category
    )
    return {"updated": updated}


@router.get("/backup")
async def backup(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> Response:
    """Download the library as a JSON backup."""
    document = get_container(request).backup_service.export_user(user_id)
    return Response(
        content=dumps(document),
        media_type="application/json",
        headers=_attachment("image-library-backup.json"),
    )


@router.post("/restore")
async def restore(
    request: Request,
    file: UploadFile = File(...),
    user_id: UUID = Depends(current_user_id),
) -> dict[str, int]:
    """Restore a JSON backup, adding every valid entry as a new image."""
    raw = await file.read()
    restored = get_container(request).backup_service.restore(user_id, raw)
    return {"restored": restored}


@router.get("/export")
async def export(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> Response:
    """Download every image as a ZIP archive foldered by category."""
    container = get_container(request)
    images = container.library_service.list_images(user_id)
    result = await container.export_packager.export_all(images)
    headers = _attachment("image-library.zip")
    headers["X-Export-Included"] = str(len(result.included))
    headers["X-Export-Omitted"] = str(len(result.omitted))
    return Response(
        content=result.archive, media_type="application/zip", headers=headers
    )


async def _read_source(file: UploadFile | None) -> ImageSource | None:
    if file is None or not file.filename:
        return None
    data = await file.read()
    return ImageSource.from_upload(file.filename, file.content_type, data)


def _attachment(filename: str) -> dict[str, str]:
    quoted = quote(filename)
    if quoted != filename:
        return {"Content-Disposition": f"attachment; filename*=utf-8''{quoted}"}
    return {"Content-Disposition": f'attachment; filename="{filename}"'}
