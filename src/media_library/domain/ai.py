"""Models for AI generation and suggestion results."""

from pydantic import BaseModel, Field


class CategorySuggestion(BaseModel):
    """Structured output for category suggestion."""

    category: str = Field(min_length=1)


class GeneratedImage(BaseModel):
    """Image produced from a text prompt, as a base64 data URL."""

    url: str = Field(pattern=r"^data:image/[\w.+-]+;base64,")
    prompt: str
