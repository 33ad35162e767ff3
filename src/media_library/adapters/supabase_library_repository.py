"""Supabase implementation for library image records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from supabase import Client

from media_library.domain.batch import LIBRARY_TABLE
from media_library.domain.errors import RecordReadError, RecordWriteError
from media_library.domain.images import LibraryImage
from media_library.services.library import LibraryRepository


@dataclass
class SupabaseLibraryRepository(LibraryRepository):
    """Supabase-backed repository for library images."""

    client: Client

    def create_image(self, user_id: UUID, payload: dict[str, object]) -> LibraryImage:
        """Create an image record and return it."""
        response = (
            self.client.table(LIBRARY_TABLE)
            .insert({"user_id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RecordWriteError("Failed to create library image")
        return _parse_image(response.data[0])

    def get_image(self, image_id: UUID) -> LibraryImage | None:
        """Return an image by id, if present."""
        rows = fetch_rows(
            self.client.table(LIBRARY_TABLE)
            .select("*")
            .eq("id", str(image_id))
            .limit(1),
            "library image",
        )
        if not rows:
            return None
        return _parse_image(rows[0])

    def update_image(self, image_id: UUID, payload: dict[str, object]) -> LibraryImage:
        """Update an image record and return it."""
        response = (
            self.client.table(LIBRARY_TABLE)
            .update(payload)
            .eq("id", str(image_id))
            .execute()
        )
        if not response.data:
            raise RecordWriteError("Failed to update library image")
        return _parse_image(response.data[0])

    def delete_image(self, image_id: UUID) -> None:
        """Delete an image record."""
        self.client.table(LIBRARY_TABLE).delete().eq("id", str(image_id)).execute()

    def list_images(
        self, user_id: UUID, category: str | None = None
    ) -> list[LibraryImage]:
        """Return a user's images, newest first."""
        query = self.client.table(LIBRARY_TABLE).select("*").eq("user_id", str(user_id))
        if category is not None:
            query = query.eq("category", category)
        rows = fetch_rows(query.order("created_at", desc=True), "library images")
        return [_parse_image(row) for row in rows]

    def find_by_category(self, user_id: UUID, name: str) -> list[LibraryImage]:
        """Return images whose category equals name exactly."""
        rows = fetch_rows(
            self.client.table(LIBRARY_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("category", name),
            "library images",
        )
        return [_parse_image(row) for row in rows]

    def find_by_storage_path(self, storage_path: str) -> list[LibraryImage]:
        """Return every image record, of any user, pointing at storage_path."""
        rows = fetch_rows(
            self.client.table(LIBRARY_TABLE)
            .select("*")
            .eq("storage_path", storage_path),
            "library images",
        )
        return [_parse_image(row) for row in rows]


def fetch_rows(query: Any, what: str) -> list[dict[str, object]]:
    """Execute a select query; API and transport errors become read failures."""
    try:
        response = query.execute()
    except Exception as exc:
        raise RecordReadError(f"Failed to load {what}") from exc
    return response.data or []


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO timestamp column, tolerating nulls."""
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_image(row: dict[str, object]) -> LibraryImage:
    """Parse a library image row into a domain model."""
    return LibraryImage(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
        description=row.get("description"),
        category=row.get("category"),
        image_url=str(row.get("image_url", "")),
        storage_path=str(row.get("storage_path") or ""),
        created_at=parse_timestamp(row.get("created_at")),
    )
