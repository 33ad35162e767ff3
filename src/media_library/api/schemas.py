"""Pydantic models for API request bodies."""

from uuid import UUID

from pydantic import BaseModel, Field

from media_library.services.bulk import BulkMode


class CategoryCreate(BaseModel):
    """New category payload."""

    name: str


class CategoryRename(BaseModel):
    """Rename payload; the old name comes from the path."""

    name: str


class ImageIds(BaseModel):
    """Bulk selection payload."""

    ids: list[UUID] = Field(min_length=1)


class BulkCategoryAssign(ImageIds):
    """Assign one category to a selection."""

    category: str | None = None


class BulkSessionStart(BaseModel):
    """Start a bulk categorization session."""

    ids: list[UUID] | None = None
    uncategorized: bool = False
    mode: BulkMode = BulkMode.MANUAL


class BulkPropose(BaseModel):
    """Proposed category for the current item."""

    category: str | None = None


class BulkSave(BaseModel):
    """Save the current item, optionally confirming an empty category."""

    confirmed: bool = False


class GeneratePrompt(BaseModel):
    """Prompt for avatar image generation."""

    prompt: str
