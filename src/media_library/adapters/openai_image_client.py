"""OpenAI Images API client for avatar generation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from media_library.domain.errors import GenerationError
from media_library.services.generation import ImageGenerationClient


@dataclass
class OpenAIImageClient(ImageGenerationClient):
    """Image generation client backed by OpenAI Images API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIImageClient":
        """Create an OpenAI image client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(self, *, model: str, prompt: str, size: str) -> str:
        """Generate one image and return it as a PNG data URL."""
        response = await self.client.images.generate(
            model=model,
            prompt=prompt,
            size=size,
            n=1,
        )
        if not response.data or not response.data[0].b64_json:
            raise GenerationError("Image generation failed.")
        return f"data:image/png;base64,{response.data[0].b64_json}"

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
