"""Avatar endpoints."""

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
from media_library.api.schemas import GeneratePrompt
from media_library.api.serializers import serialize_avatar
from media_library.domain.errors import ValidationError
from media_library.domain.images import ImageSource

router = APIRouter(prefix="/avatars", tags=["avatars"])


@router.get("")
async def list_avatars(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Return avatars, newest first."""
    avatars = get_container(request).avatar_service.list_avatars(user_id)
    return {"avatars": [serialize_avatar(avatar) for avatar in avatars]}


@router.post("/generate")
async def generate_preview(
    payload: GeneratePrompt,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, str]:
    """Generate an avatar image for preview without saving it."""
    generated = await get_container(request).avatar_service.generation.generate(
        payload.prompt
    )
    return {"image_url": generated.url, "prompt": generated.prompt}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_avatar(  # noqa: PLR0913
    request: Request,
    name: str = Form(...),
    description: str | None = Form(default=None),
    prompt: str | None = Form(default=None),
    generate: bool = Form(default=False),
    file: UploadFile | None = File(default=None),
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Create an avatar from an upload or from a generation prompt."""
    service = get_container(request).avatar_service
    if generate:
        if not prompt:
            raise ValidationError("A prompt is required to generate an image.")
        avatar = await service.create_generated(user_id, name, description, prompt)
    else:
        source = await _read_source(file)
        avatar = service.create(user_id, name, description, prompt, source)
    return serialize_avatar(avatar)


@router.patch("/{avatar_id}")
async def update_avatar(  # noqa: PLR0913
    avatar_id: UUID,
    request: Request,
    name: str = Form(...),
    description: str | None = Form(default=None),
    prompt: str | None = Form(default=None),
    generate: bool = Form(default=False),
    file: UploadFile | None = File(default=None),
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Update avatar details, replacing the image when a file or prompt is sent."""
    service = get_container(request).avatar_service
    if generate:
        if not prompt:
            raise ValidationError("A prompt is required to generate an image.")
        source = await service.generate(prompt, name)
    else:
        source = await _read_source(file)
    avatar = service.update(user_id, avatar_id, name, description, prompt, source)
    return serialize_avatar(avatar)


@router.delete("/{avatar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_avatar(
    avatar_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> Response:
    """Delete an avatar and its stored file."""
    get_container(request).avatar_service.delete(user_id, avatar_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _read_source(file: UploadFile | None) -> ImageSource | None:
    if file is None or not file.filename:
        return None
    data = await file.read()
    return ImageSource.from_upload(file.filename, file.content_type, data)
