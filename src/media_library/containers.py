"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from media_library.adapters.httpx_asset_fetcher import HttpxAssetFetcher
from media_library.adapters.openai_image_client import OpenAIImageClient
from media_library.adapters.openai_vision_client import OpenAIVisionClient
from media_library.adapters.supabase_asset_store import SupabaseAssetStore
from media_library.adapters.supabase_avatar_repository import (
    SupabaseAvatarRepository,
)
from media_library.adapters.supabase_batch_writer import SupabaseBatchWriter
from media_library.adapters.supabase_category_repository import (
    SupabaseCategoryRepository,
)
from media_library.adapters.supabase_library_repository import (
    SupabaseLibraryRepository,
)
from media_library.config import Settings
from media_library.services.avatars import AvatarService
from media_library.services.backup import BackupService
from media_library.services.bulk import BulkWorkflowService, InMemorySessionStore
from media_library.services.categories import CategoryService
from media_library.services.export import ExportPackager
from media_library.services.generation import ImageGenerationService
from media_library.services.library import LibraryService
from media_library.services.vision import CategorySuggestionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    library_service: LibraryService
    category_service: CategoryService
    avatar_service: AvatarService
    bulk_service: BulkWorkflowService
    backup_service: BackupService
    export_packager: ExportPackager
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    library_repository = SupabaseLibraryRepository(supabase_client)
    category_repository = SupabaseCategoryRepository(supabase_client)
    avatar_repository = SupabaseAvatarRepository(supabase_client)
    batch_writer = SupabaseBatchWriter(supabase_client)
    asset_store = SupabaseAssetStore(
        supabase_client, bucket=resolved_settings.storage_bucket
    )
    fetcher = HttpxAssetFetcher.create(
        timeout=resolved_settings.asset_fetch_timeout_seconds
    )
    vision_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    image_client = OpenAIImageClient.create(resolved_settings.openai_api_key)

    library_service = LibraryService(
        repository=library_repository,
        category_repository=category_repository,
        assets=asset_store,
        batch_writer=batch_writer,
        fetcher=fetcher,
        fallback_extension=resolved_settings.archive_fallback_extension,
    )
    category_service = CategoryService(
        repository=category_repository,
        images=library_repository,
        batch_writer=batch_writer,
    )
    generation_service = ImageGenerationService(
        client=image_client,
        model=resolved_settings.openai_image_model,
        size=resolved_settings.openai_image_size,
    )
    avatar_service = AvatarService(
        repository=avatar_repository,
        library_repository=library_repository,
        assets=asset_store,
        generation=generation_service,
    )
    bulk_service = BulkWorkflowService(
        library=library_service,
        suggestions=CategorySuggestionService(
            client=vision_client, model=resolved_settings.openai_vision_model
        ),
        fetcher=fetcher,
        store=InMemorySessionStore(),
        ttl_seconds=resolved_settings.bulk_session_ttl_seconds,
    )
    backup_service = BackupService(
        repository=library_repository,
        category_repository=category_repository,
        batch_writer=batch_writer,
    )
    export_packager = ExportPackager(
        fetcher=fetcher,
        fallback_extension=resolved_settings.archive_fallback_extension,
    )

    async def close_resources() -> None:
        await fetcher.close()
        await vision_client.close()
        await image_client.close()

    return AppContainer(
        settings=resolved_settings,
        library_service=library_service,
        category_service=category_service,
        avatar_service=avatar_service,
        bulk_service=bulk_service,
        backup_service=backup_service,
        export_packager=export_packager,
        close_resources=close_resources,
    )
