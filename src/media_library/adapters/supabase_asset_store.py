"""Supabase Storage implementation of the asset store."""

from dataclasses import dataclass

from supabase import Client

from media_library.domain.images import StoredAsset
from media_library.services.assets import AssetStore, ProgressCallback


@dataclass
class SupabaseAssetStore(AssetStore):
    """Stores image bytes in a Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> StoredAsset:
        """Upload bytes and return the public URL."""
        if on_progress is not None:
            on_progress(0.0)
        self.client.storage.from_(self.bucket).upload(
            path,
            data,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        if on_progress is not None:
            on_progress(100.0)
        return StoredAsset(url=self.get_url(path), path=path)

    def get_url(self, path: str) -> str:
        """Return the public URL for a stored path."""
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def delete(self, path: str) -> None:
        """Delete the object stored at path."""
        self.client.storage.from_(self.bucket).remove([path])
