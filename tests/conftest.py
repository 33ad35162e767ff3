"""Shared test fixtures."""

import base64
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from media_library.config import Settings
from media_library.containers import AppContainer
from media_library.domain.batch import (
    CATEGORY_TABLE,
    LIBRARY_TABLE,
    BatchOp,
    BatchOpKind,
)
from media_library.domain.categories import UNCATEGORIZED, Category
from media_library.domain.errors import RecordReadError
from media_library.domain.images import Avatar, LibraryImage, StoredAsset
from media_library.services.assets import AssetFetcher, AssetStore, ProgressCallback
from media_library.services.avatars import AvatarRepository, AvatarService
from media_library.services.backup import BackupService
from media_library.services.batch import BatchWriter
from media_library.services.bulk import BulkWorkflowService, InMemorySessionStore
from media_library.services.categories import CategoryRepository, CategoryService
from media_library.services.export import ExportPackager
from media_library.services.generation import (
    ImageGenerationClient,
    ImageGenerationService,
)
from media_library.services.library import LibraryRepository, LibraryService
from media_library.services.vision import CategorySuggestionService, VisionClient

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-bytes"
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryLibraryRepository(LibraryRepository):
    """In-memory library repository for tests."""

    images: dict[UUID, LibraryImage] = field(default_factory=dict)
    fail_create: bool = False
    fail_update: bool = False
    fail_delete: bool = False
    fail_reads: bool = False
    _sequence: int = 0

    def create_image(self, user_id: UUID, payload: dict[str, object]) -> LibraryImage:
        if self.fail_create:
            raise RuntimeError("insert failed")
        self._sequence += 1
        image = LibraryImage(
            id=uuid4(),
            user_id=user_id,
            name=str(payload["name"]),
            description=payload.get("description"),
            category=payload.get("category"),
            image_url=str(payload["image_url"]),
            storage_path=str(payload.get("storage_path") or ""),
            created_at=BASE_TIME + timedelta(minutes=self._sequence),
        )
        self.images[image.id] = image
        return image

    def get_image(self, image_id: UUID) -> LibraryImage | None:
        return self.images.get(image_id)

    def update_image(self, image_id: UUID, payload: dict[str, object]) -> LibraryImage:
        if self.fail_update:
            raise RuntimeError("update failed")
        updated = replace(self.images[image_id], **payload)
        self.images[image_id] = updated
        return updated

    def delete_image(self, image_id: UUID) -> None:
        if self.fail_delete:
            raise RuntimeError("delete failed")
        self.images.pop(image_id, None)

    def list_images(
        self, user_id: UUID, category: str | None = None
    ) -> list[LibraryImage]:
        images = [
            image
            for image in self.images.values()
            if image.user_id == user_id
            and (category is None or image.category == category)
        ]
        return sorted(images, key=_created_key, reverse=True)

    def find_by_category(self, user_id: UUID, name: str) -> list[LibraryImage]:
        if self.fail_reads:
            raise RecordReadError("Failed to load library images")
        return [
            image
            for image in self.images.values()
            if image.user_id == user_id and image.category == name
        ]

    def find_by_storage_path(self, storage_path: str) -> list[LibraryImage]:
        if self.fail_reads:
            raise RecordReadError("Failed to load library images")
        return [
            image
            for image in self.images.values()
            if image.storage_path == storage_path
        ]


@dataclass
class InMemoryCategoryRepository(CategoryRepository):
    """In-memory category repository enforcing unique names."""

    categories: dict[UUID, Category] = field(default_factory=dict)

    def create_category(self, user_id: UUID, name: str) -> Category:
        if self.get_by_name(user_id, name) is not None:
            raise RuntimeError("duplicate key value violates unique constraint")
        category = Category(id=uuid4(), user_id=user_id, name=name)
        self.categories[category.id] = category
        return category

    def get_by_name(self, user_id: UUID, name: str) -> Category | None:
        for category in self.categories.values():
            if category.user_id == user_id and category.name == name:
                return category
        return None

    def list_categories(self, user_id: UUID) -> list[Category]:
        return [
            category
            for category in self.categories.values()
            if category.user_id == user_id
        ]

    def names(self, user_id: UUID) -> set[str]:
        return {category.name for category in self.list_categories(user_id)}


@dataclass
class InMemoryAvatarRepository(AvatarRepository):
    """In-memory avatar repository for tests."""

    avatars: dict[UUID, Avatar] = field(default_factory=dict)
    fail_create: bool = False
    fail_update: bool = False
    _sequence: int = 0

    def create_avatar(self, user_id: UUID, payload: dict[str, object]) -> Avatar:
        if self.fail_create:
            raise RuntimeError("insert failed")
        self._sequence += 1
        avatar = Avatar(
            id=uuid4(),
            user_id=user_id,
            name=str(payload["name"]),
            description=payload.get("description"),
            prompt=payload.get("prompt"),
            image_url=str(payload["image_url"]),
            storage_path=str(payload.get("storage_path") or ""),
            created_at=BASE_TIME + timedelta(minutes=self._sequence),
        )
        self.avatars[avatar.id] = avatar
        return avatar

    def get_avatar(self, avatar_id: UUID) -> Avatar | None:
        return self.avatars.get(avatar_id)

    def update_avatar(self, avatar_id: UUID, payload: dict[str, object]) -> Avatar:
        if self.fail_update:
            raise RuntimeError("update failed")
        updated = replace(self.avatars[avatar_id], **payload)
        self.avatars[avatar_id] = updated
        return updated

    def delete_avatar(self, avatar_id: UUID) -> None:
        self.avatars.pop(avatar_id, None)

    def list_avatars(self, user_id: UUID) -> list[Avatar]:
        avatars = [
            avatar for avatar in self.avatars.values() if avatar.user_id == user_id
        ]
        return sorted(avatars, key=_created_key, reverse=True)


@dataclass
class InMemoryBatchWriter(BatchWriter):
    """Applies batches to the in-memory repositories all at once."""

    library: InMemoryLibraryRepository
    categories: InMemoryCategoryRepository
    fail: bool = False
    fail_on: UUID | None = None
    commits: list[list[BatchOp]] = field(default_factory=list)

    def commit(self, ops: list[BatchOp]) -> None:
        if self.fail:
            raise RuntimeError("transaction aborted")
        images = dict(self.library.images)
        categories = dict(self.categories.categories)
        for op in ops:
            if op.record_id == self.fail_on:
                raise RuntimeError("transaction aborted mid-batch")
            if op.table == LIBRARY_TABLE:
                _apply(images, op, _image_from_data)
            elif op.table == CATEGORY_TABLE:
                _apply(categories, op, _category_from_data)
            else:
                raise RuntimeError(f"unknown table {op.table}")
        self.library.images.clear()
        self.library.images.update(images)
        self.categories.categories.clear()
        self.categories.categories.update(categories)
        self.commits.append(list(ops))


@dataclass
class InMemoryAssetStore(AssetStore):
    """Asset store keeping bytes by path."""

    objects: dict[str, bytes] = field(default_factory=dict)
    fail_upload: bool = False
    fail_delete: bool = False
    deleted: list[str] = field(default_factory=list)
    progress: list[float] = field(default_factory=list)

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> StoredAsset:
        if self.fail_upload:
            raise RuntimeError("storage unavailable")
        self.objects[path] = data
        for value in (0.0, 100.0):
            self.progress.append(value)
            if on_progress is not None:
                on_progress(value)
        return StoredAsset(url=self.get_url(path), path=path)

    def get_url(self, path: str) -> str:
        return f"https://assets.example.com/{path}"

    def delete(self, path: str) -> None:
        if self.fail_delete:
            raise RuntimeError("storage unavailable")
        self.objects.pop(path, None)
        self.deleted.append(path)


@dataclass
class FakeAssetFetcher(AssetFetcher):
    """Returns fixed bytes for every URL except the failing ones."""

    content: bytes = PNG_BYTES
    failing: set[str] = field(default_factory=set)
    fetched: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> bytes:
        self.fetched.append(url)
        if url in self.failing:
            raise RuntimeError(f"404 for {url}")
        return self.content


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {"category": " Portrait "}
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def suggest(
        self,
        *,
        model: str,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append({"model": model, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeImageClient(ImageGenerationClient):
    """Fake image generation client returning a PNG data URL."""

    data_url: str = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def generate(self, *, model: str, prompt: str, size: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.data_url


def add_image(
    repository: InMemoryLibraryRepository,
    user_id: UUID,
    name: str,
    category: str | None = UNCATEGORIZED,
    image_url: str | None = None,
) -> LibraryImage:
    """Insert an image record directly, bypassing the service."""
    return repository.create_image(
        user_id,
        {
            "name": name,
            "description": None,
            "category": category,
            "image_url": image_url or f"https://assets.example.com/{name}.png",
            "storage_path": f"users/{user_id}/library/{name}.png",
        },
    )


def _created_key(record: LibraryImage | Avatar) -> datetime:
    return record.created_at or BASE_TIME


def _apply(records: dict, op: BatchOp, build) -> None:  # type: ignore[no-untyped-def]
    if op.kind is BatchOpKind.SET:
        records[op.record_id] = build(op.data)
    elif op.kind is BatchOpKind.UPDATE:
        if op.record_id not in records:
            raise RuntimeError(f"record {op.record_id} not found")
        records[op.record_id] = replace(records[op.record_id], **op.data)
    else:
        records.pop(op.record_id, None)


def _image_from_data(data: dict[str, object]) -> LibraryImage:
    return LibraryImage(
        id=UUID(str(data["id"])),
        user_id=UUID(str(data["user_id"])),
        name=str(data["name"]),
        description=data.get("description"),
        category=data.get("category"),
        image_url=str(data["image_url"]),
        storage_path=str(data.get("storage_path") or ""),
        created_at=datetime.fromisoformat(str(data["created_at"])),
    )


def _category_from_data(data: dict[str, object]) -> Category:
    return Category(
        id=UUID(str(data["id"])),
        user_id=UUID(str(data["user_id"])),
        name=str(data["name"]),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def library_repository() -> InMemoryLibraryRepository:
    return InMemoryLibraryRepository()


@pytest.fixture
def category_repository() -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository()


@pytest.fixture
def avatar_repository() -> InMemoryAvatarRepository:
    return InMemoryAvatarRepository()


@pytest.fixture
def batch_writer(
    library_repository: InMemoryLibraryRepository,
    category_repository: InMemoryCategoryRepository,
) -> InMemoryBatchWriter:
    return InMemoryBatchWriter(library_repository, category_repository)


@pytest.fixture
def asset_store() -> InMemoryAssetStore:
    return InMemoryAssetStore()


@pytest.fixture
def fetcher() -> FakeAssetFetcher:
    return FakeAssetFetcher()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def library_service(
    library_repository: InMemoryLibraryRepository,
    category_repository: InMemoryCategoryRepository,
    asset_store: InMemoryAssetStore,
    batch_writer: InMemoryBatchWriter,
    fetcher: FakeAssetFetcher,
) -> LibraryService:
    return LibraryService(
        repository=library_repository,
        category_repository=category_repository,
        assets=asset_store,
        batch_writer=batch_writer,
        fetcher=fetcher,
    )


@pytest.fixture
def category_service(
    library_repository: InMemoryLibraryRepository,
    category_repository: InMemoryCategoryRepository,
    batch_writer: InMemoryBatchWriter,
) -> CategoryService:
    return CategoryService(
        repository=category_repository,
        images=library_repository,
        batch_writer=batch_writer,
    )


@pytest.fixture
def avatar_service(
    avatar_repository: InMemoryAvatarRepository,
    library_repository: InMemoryLibraryRepository,
    asset_store: InMemoryAssetStore,
    image_client: FakeImageClient,
) -> AvatarService:
    return AvatarService(
        repository=avatar_repository,
        library_repository=library_repository,
        assets=asset_store,
        generation=ImageGenerationService(client=image_client, model="gpt-image-1"),
    )


@pytest.fixture
def bulk_service(
    library_service: LibraryService,
    vision_client: FakeVisionClient,
    fetcher: FakeAssetFetcher,
) -> BulkWorkflowService:
    return BulkWorkflowService(
        library=library_service,
        suggestions=CategorySuggestionService(client=vision_client, model="gpt-5.2"),
        fetcher=fetcher,
        store=InMemorySessionStore(),
    )


@pytest.fixture
def backup_service(
    library_repository: InMemoryLibraryRepository,
    category_repository: InMemoryCategoryRepository,
    batch_writer: InMemoryBatchWriter,
) -> BackupService:
    return BackupService(
        repository=library_repository,
        category_repository=category_repository,
        batch_writer=batch_writer,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    library_service: LibraryService,
    category_service: CategoryService,
    avatar_service: AvatarService,
    bulk_service: BulkWorkflowService,
    backup_service: BackupService,
    fetcher: FakeAssetFetcher,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        library_service=library_service,
        category_service=category_service,
        avatar_service=avatar_service,
        bulk_service=bulk_service,
        backup_service=backup_service,
        export_packager=ExportPackager(fetcher=fetcher),
        close_resources=close_resources,
    )
