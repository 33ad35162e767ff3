"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from media_library.api.avatars import router as avatars_router
from media_library.api.bulk import router as bulk_router
from media_library.api.categories import router as categories_router
from media_library.api.library import router as library_router
from media_library.app_logging import configure_logging
from media_library.containers import AppContainer
from media_library.domain.errors import (
    AssetFetchError,
    AssetUploadError,
    CategoryConflictError,
    GenerationError,
    MediaLibraryError,
    NotFoundError,
    RecordReadError,
    RecordWriteError,
    ValidationError,
    WorkflowStateError,
)

_STATUS_BY_ERROR: tuple[tuple[type[MediaLibraryError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (CategoryConflictError, status.HTTP_409_CONFLICT),
    (WorkflowStateError, status.HTTP_409_CONFLICT),
    (AssetUploadError, status.HTTP_502_BAD_GATEWAY),
    (AssetFetchError, status.HTTP_502_BAD_GATEWAY),
    (RecordReadError, status.HTTP_502_BAD_GATEWAY),
    (RecordWriteError, status.HTTP_502_BAD_GATEWAY),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(library_router)
    app.include_router(categories_router)
    app.include_router(avatars_router)
    app.include_router(bulk_router)

    @app.exception_handler(MediaLibraryError)
    async def media_library_error(
        request: Request, exc: MediaLibraryError
    ) -> JSONResponse:
        status_code = error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning(
                "Request failed",
                extra={"path": request.url.path, "error": type(exc).__name__},
            )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def error_status(exc: MediaLibraryError) -> int:
    """Map a domain error to the HTTP status returned to the client."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
