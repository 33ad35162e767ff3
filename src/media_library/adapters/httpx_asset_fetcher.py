"""Asset download client."""

from dataclasses import dataclass

import httpx

from media_library.services.assets import AssetFetcher


@dataclass
class HttpxAssetFetcher(AssetFetcher):
    """Downloads assets by URL using httpx."""

    http_client: httpx.AsyncClient
    timeout: float = 20.0

    @classmethod
    def create(cls, timeout: float = 20.0) -> "HttpxAssetFetcher":
        """Create a fetcher with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(follow_redirects=True), timeout=timeout
        )

    async def fetch(self, url: str) -> bytes:
        """Download the asset and return its bytes."""
        response = await self.http_client.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
