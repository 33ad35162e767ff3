"""Category suggestion service using LLM vision."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from media_library.domain.ai import CategorySuggestion
from media_library.domain.errors import GenerationError

logger = logging.getLogger(__name__)

CATEGORY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"category": {"type": "string"}},
    "required": ["category"],
    "additionalProperties": False,
}

CATEGORY_PROMPT = (
    "You are an expert at image analysis and categorization. "
    "Provide a single, concise category for the given image. "
    "The category should be a simple noun or a short, descriptive phrase, "
    'for example "Portrait", "Fantasy Character", "Landscape", "Sci-Fi Armor", '
    '"Abstract Art" or "Animal". Do not provide a description, just the category.'
)


class VisionClient(Protocol):
    """Interface for LLM vision calls with structured output."""

    async def suggest(
        self,
        *,
        model: str,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured data describing the image."""


@dataclass
class CategorySuggestionService:
    """Service that asks a vision model for an image category."""

    client: VisionClient
    model: str

    async def suggest(self, image_bytes: bytes) -> str:
        """Return a trimmed category label for the image."""
        try:
            raw = await self.client.suggest(
                model=self.model,
                image_data_url=to_data_url(image_bytes),
                schema=CATEGORY_SCHEMA,
                prompt=CATEGORY_PROMPT,
            )
            suggestion = CategorySuggestion.model_validate(raw)
        except GenerationError:
            raise
        except PydanticValidationError as exc:
            raise GenerationError("Category suggestion was malformed.") from exc
        except Exception as exc:
            logger.exception("Category suggestion failed")
            raise GenerationError("Category suggestion failed.") from exc
        category = suggestion.category.strip()
        if not category:
            raise GenerationError("Category suggestion was empty.")
        return category


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
