"""Avatar image generation from text prompts."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from media_library.domain.ai import GeneratedImage
from media_library.domain.errors import GenerationError, ValidationError
from media_library.domain.images import ImageSource

logger = logging.getLogger(__name__)


class ImageGenerationClient(Protocol):
    """Interface for text-to-image generation."""

    async def generate(self, *, model: str, prompt: str, size: str) -> str:
        """Return the generated image as a base64 data URL."""


@dataclass
class ImageGenerationService:
    """Turns a short description into a portrait suitable for an avatar."""

    client: ImageGenerationClient
    model: str
    size: str = "1024x1024"

    async def generate(self, prompt: str) -> GeneratedImage:
        """Generate an avatar image for the prompt."""
        cleaned = (prompt or "").strip()
        if not cleaned:
            raise ValidationError("A prompt is required to generate an image.")
        try:
            url = await self.client.generate(
                model=self.model, prompt=avatar_prompt(cleaned), size=self.size
            )
            return GeneratedImage(url=url, prompt=cleaned)
        except GenerationError:
            raise
        except PydanticValidationError as exc:
            raise GenerationError("Image generation failed.") from exc
        except Exception as exc:
            logger.exception("Image generation failed")
            raise GenerationError("Image generation failed.") from exc

    async def generate_source(self, prompt: str, filename: str) -> ImageSource:
        """Generate an image and wrap it as an upload source."""
        generated = await self.generate(prompt)
        return ImageSource.from_data_url(generated.url, filename)


def avatar_prompt(description: str) -> str:
    """Wrap a user description in the portrait instructions."""
    return (
        "Generate a user avatar based on the following description: "
        f'"{description}". The image should be a close-up portrait, '
        "suitable for a profile picture."
    )
