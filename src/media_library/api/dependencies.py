"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Header, HTTPException, Request, status

from media_library.config import parse_allowed_user_ids

if TYPE_CHECKING:
    from media_library.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def current_user_id(
    request: Request, x_user_id: str | None = Header(default=None)
) -> UUID:
    """Resolve the signed-in user from the X-User-Id header."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        user_id = UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    allowed = parse_allowed_user_ids(get_container(request).settings.allowed_user_ids)
    if allowed is not None and str(user_id) not in allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return user_id
