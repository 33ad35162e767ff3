"""Supabase implementation for avatar records."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from media_library.adapters.supabase_library_repository import (
    fetch_rows,
    parse_timestamp,
)
from media_library.domain.batch import AVATAR_TABLE
from media_library.domain.errors import RecordWriteError
from media_library.domain.images import Avatar
from media_library.services.avatars import AvatarRepository


@dataclass
class SupabaseAvatarRepository(AvatarRepository):
    """Supabase-backed repository for avatars."""

    client: Client

    def create_avatar(self, user_id: UUID, payload: dict[str, object]) -> Avatar:
        """Create an avatar and return it."""
        response = (
            self.client.table(AVATAR_TABLE)
            .insert({"user_id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RecordWriteError("Failed to create avatar")
        return _parse_avatar(response.data[0])

    def get_avatar(self, avatar_id: UUID) -> Avatar | None:
        """Return an avatar by id, if present."""
        rows = fetch_rows(
            self.client.table(AVATAR_TABLE)
            .select("*")
            .eq("id", str(avatar_id))
            .limit(1),
            "avatar",
        )
        if not rows:
            return None
        return _parse_avatar(rows[0])

    def update_avatar(self, avatar_id: UUID, payload: dict[str, object]) -> Avatar:
        """Update an avatar and return it."""
        response = (
            self.client.table(AVATAR_TABLE)
            .update(payload)
            .eq("id", str(avatar_id))
            .execute()
        )
        if not response.data:
            raise RecordWriteError("Failed to update avatar")
        return _parse_avatar(response.data[0])

    def delete_avatar(self, avatar_id: UUID) -> None:
        """Delete an avatar record."""
        self.client.table(AVATAR_TABLE).delete().eq("id", str(avatar_id)).execute()

    def list_avatars(self, user_id: UUID) -> list[Avatar]:
        """Return a user's avatars, newest first."""
        rows = fetch_rows(
            self.client.table(AVATAR_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True),
            "avatars",
        )
        return [_parse_avatar(row) for row in rows]


def _parse_avatar(row: dict[str, object]) -> Avatar:
    return Avatar(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
        description=row.get("description"),
        prompt=row.get("prompt"),
        image_url=str(row.get("image_url", "")),
        storage_path=str(row.get("storage_path") or ""),
        created_at=parse_timestamp(row.get("created_at")),
    )
