"""Supabase implementation for category records."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from media_library.adapters.supabase_library_repository import fetch_rows
from media_library.domain.batch import CATEGORY_TABLE
from media_library.domain.categories import Category
from media_library.domain.errors import RecordWriteError
from media_library.services.categories import CategoryRepository


@dataclass
class SupabaseCategoryRepository(CategoryRepository):
    """Supabase-backed repository for categories."""

    client: Client

    def create_category(self, user_id: UUID, name: str) -> Category:
        """Create a category and return it."""
        response = (
            self.client.table(CATEGORY_TABLE)
            .insert({"user_id": str(user_id), "name": name})
            .execute()
        )
        if not response.data:
            raise RecordWriteError("Failed to create category")
        return _parse_category(response.data[0])

    def get_by_name(self, user_id: UUID, name: str) -> Category | None:
        """Return the category with an exact name, if present."""
        rows = fetch_rows(
            self.client.table(CATEGORY_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("name", name)
            .limit(1),
            "category",
        )
        if not rows:
            return None
        return _parse_category(rows[0])

    def list_categories(self, user_id: UUID) -> list[Category]:
        """Return every category owned by a user."""
        rows = fetch_rows(
            self.client.table(CATEGORY_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("name"),
            "categories",
        )
        return [_parse_category(row) for row in rows]


def _parse_category(row: dict[str, object]) -> Category:
    return Category(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=str(row.get("name", "")),
    )
