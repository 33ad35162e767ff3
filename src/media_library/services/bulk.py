"""Bulk categorization workflow.

A session walks an ordered queue of images one at a time. Each save is its own
single-record write, so a failure on one item never touches items already
saved and never advances the queue on its own.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Protocol
from uuid import UUID, uuid4

from media_library.domain.categories import is_uncategorized, normalize_category
from media_library.domain.errors import (
    AssetFetchError,
    MediaLibraryError,
    SessionNotFoundError,
    ValidationError,
    WorkflowStateError,
)
from media_library.domain.images import LibraryImage
from media_library.services.assets import AssetFetcher
from media_library.services.library import LibraryService
from media_library.services.vision import CategorySuggestionService

logger = logging.getLogger(__name__)

Suggester = Callable[[LibraryImage], Awaitable[str]]


class BulkMode(str, Enum):
    """How proposed categories are produced."""

    MANUAL = "manual"
    AI_ASSISTED = "ai"


class BulkState(str, Enum):
    """Workflow state; the index lives on the session."""

    REVIEWING = "reviewing"
    SAVING = "saving"
    DONE = "done"


class SaveOutcome(str, Enum):
    """Result of a save request."""

    SAVED = "saved"
    NEEDS_CONFIRMATION = "needs_confirmation"
    FAILED = "failed"


class CategoryWriter(Protocol):
    """Single-record category write used by the workflow."""

    def set_category(
        self, user_id: UUID, image_id: UUID, category: str | None
    ) -> LibraryImage:
        """Persist the category of one image."""


@dataclass
class BulkItem:
    """Per-item edits kept only for the lifetime of the session."""

    image: LibraryImage
    proposed_category: str | None
    accepted: bool = False
    suggestion_attempted: bool = False
    error: str | None = None


@dataclass
class BulkCategorizeSession:
    """Linear review state machine over a queue of images."""

    id: UUID
    user_id: UUID
    mode: BulkMode
    items: list[BulkItem]
    writer: CategoryWriter
    suggester: Suggester | None = None
    state: BulkState = BulkState.REVIEWING
    index: int = 0

    @property
    def current(self) -> BulkItem | None:
        if self.state is BulkState.DONE:
            return None
        return self.items[self.index]

    @property
    def saved_count(self) -> int:
        return sum(1 for item in self.items if item.accepted)

    async def enter(self) -> BulkItem | None:
        """Prepare the current item, fetching an AI suggestion when enabled."""
        item = self.current
        if item is None:
            return None
        if (
            self.mode is BulkMode.AI_ASSISTED
            and self.suggester is not None
            and not item.suggestion_attempted
        ):
            item.suggestion_attempted = True
            try:
                item.proposed_category = await self.suggester(item.image)
                item.error = None
            except MediaLibraryError as exc:
                logger.warning(
                    "Category suggestion failed",
                    extra={"image_id": item.image.id, "session_id": self.id},
                )
                item.error = str(exc)
        return item

    def propose(self, category: str | None) -> BulkItem:
        """Replace the proposed category of the current item."""
        item = self._require_reviewing()
        item.proposed_category = category.strip() if category else None
        return item

    async def save(self, confirmed: bool = False) -> SaveOutcome:
        """Write the proposed category for the current item and advance."""
        item = self._require_reviewing()
        if is_uncategorized(item.proposed_category) and not confirmed:
            return SaveOutcome.NEEDS_CONFIRMATION

        self.state = BulkState.SAVING
        try:
            self.writer.set_category(
                self.user_id, item.image.id, item.proposed_category
            )
        except MediaLibraryError as exc:
            item.error = str(exc)
            return SaveOutcome.FAILED
        except Exception:
            logger.exception(
                "Bulk category save failed",
                extra={"image_id": item.image.id, "session_id": self.id},
            )
            item.error = "Could not update image category."
            return SaveOutcome.FAILED
        finally:
            self.state = BulkState.REVIEWING

        item.accepted = True
        item.error = None
        await self._advance()
        return SaveOutcome.SAVED

    async def skip(self) -> BulkItem | None:
        """Move on without writing anything."""
        self._require_reviewing()
        await self._advance()
        return self.current

    def cancel(self) -> None:
        """Stop the workflow; items already saved stay saved."""
        self.state = BulkState.DONE

    async def _advance(self) -> None:
        if self.index + 1 >= len(self.items):
            self.state = BulkState.DONE
            return
        self.index += 1
        await self.enter()

    def _require_reviewing(self) -> BulkItem:
        if self.state is not BulkState.REVIEWING:
            raise WorkflowStateError(f"Session is {self.state.value}.")
        return self.items[self.index]


@dataclass
class _StoredSession:
    session: BulkCategorizeSession
    expires_at: datetime


@dataclass
class InMemorySessionStore:
    """Keeps live workflow sessions in process memory with a TTL."""

    _entries: dict[UUID, _StoredSession] = field(default_factory=dict)

    def get(self, session_id: UUID) -> BulkCategorizeSession | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(session_id, None)
            return None
        return entry.session

    def put(self, session: BulkCategorizeSession, ttl_seconds: int) -> None:
        now = datetime.now(tz=UTC)
        self._sweep(now)
        expires_at = now + timedelta(seconds=ttl_seconds)
        self._entries[session.id] = _StoredSession(session, expires_at)

    def discard(self, session_id: UUID) -> None:
        self._entries.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: datetime) -> None:
        expired = [
            session_id
            for session_id, entry in self._entries.items()
            if now >= entry.expires_at
        ]
        for session_id in expired:
            del self._entries[session_id]


@dataclass
class BulkWorkflowService:
    """Starts and looks up bulk categorization sessions."""

    library: LibraryService
    suggestions: CategorySuggestionService
    fetcher: AssetFetcher
    store: InMemorySessionStore
    ttl_seconds: int = 3600

    async def start(
        self, user_id: UUID, image_ids: list[UUID], mode: BulkMode
    ) -> BulkCategorizeSession:
        """Start a session over the selected images, in library order."""
        wanted = set(image_ids)
        images = [
            image for image in self.library.list_images(user_id) if image.id in wanted
        ]
        return await self._start(user_id, images, mode)

    async def start_uncategorized(
        self, user_id: UUID, mode: BulkMode
    ) -> BulkCategorizeSession:
        """Start a session over every uncategorized image."""
        return await self._start(
            user_id, self.library.list_uncategorized(user_id), mode
        )

    def get(self, user_id: UUID, session_id: UUID) -> BulkCategorizeSession:
        session = self.store.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(f"Session {session_id} not found.")
        return session

    def finish(self, session: BulkCategorizeSession) -> None:
        """Drop a session from the store once it is done."""
        if session.state is BulkState.DONE:
            self.store.discard(session.id)

    async def _start(
        self, user_id: UUID, images: list[LibraryImage], mode: BulkMode
    ) -> BulkCategorizeSession:
        if not images:
            raise ValidationError("No images to categorize.")
        session = BulkCategorizeSession(
            id=uuid4(),
            user_id=user_id,
            mode=mode,
            items=[
                BulkItem(
                    image=image, proposed_category=normalize_category(image.category)
                )
                for image in images
            ],
            writer=self.library,
            suggester=self._suggest if mode is BulkMode.AI_ASSISTED else None,
        )
        self.store.put(session, self.ttl_seconds)
        await session.enter()
        logger.info(
            "Bulk session started",
            extra={"session_id": session.id, "items": len(images)},
        )
        return session

    async def _suggest(self, image: LibraryImage) -> str:
        try:
            data = await self.fetcher.fetch(image.image_url)
        except Exception as exc:
            raise AssetFetchError("Could not load image for suggestion.") from exc
        return await self.suggestions.suggest(data)
