"""Bulk categorization workflow endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from media_library.api.dependencies import current_user_id, get_container
from media_library.api.schemas import BulkPropose, BulkSave, BulkSessionStart
from media_library.api.serializers import serialize_session
from media_library.domain.errors import ValidationError

router = APIRouter(prefix="/bulk/sessions", tags=["bulk"])


@router.post("")
async def start_session(
    payload: BulkSessionStart,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Start reviewing a selection, or every uncategorized image."""
    service = get_container(request).bulk_service
    if payload.uncategorized:
        session = await service.start_uncategorized(user_id, payload.mode)
    elif payload.ids:
        session = await service.start(user_id, payload.ids, payload.mode)
    else:
        raise ValidationError("Select images or choose uncategorized.")
    return serialize_session(session)


@router.get("/{session_id}")
async def get_session(
    session_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    session = get_container(request).bulk_service.get(user_id, session_id)
    return serialize_session(session)


@router.post("/{session_id}/propose")
async def propose(
    session_id: UUID,
    payload: BulkPropose,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Set the proposed category for the current image."""
    session = get_container(request).bulk_service.get(user_id, session_id)
    session.propose(payload.category)
    return serialize_session(session)


@router.post("/{session_id}/save")
async def save(
    session_id: UUID,
    payload: BulkSave,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Save the current image's category and move to the next one."""
    service = get_container(request).bulk_service
    session = service.get(user_id, session_id)
    outcome = await session.save(confirmed=payload.confirmed)
    body = serialize_session(session)
    service.finish(session)
    return {"outcome": outcome.value, "session": body}


@router.post("/{session_id}/skip")
async def skip(
    session_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    service = get_container(request).bulk_service
    session = service.get(user_id, session_id)
    await session.skip()
    body = serialize_session(session)
    service.finish(session)
    return body


@router.post("/{session_id}/cancel")
async def cancel(
    session_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Stop the workflow; already saved images keep their categories."""
    service = get_container(request).bulk_service
    session = service.get(user_id, session_id)
    session.cancel()
    body = serialize_session(session)
    service.finish(session)
    return body
