"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "media"
    openai_api_key: str
    openai_vision_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_image_size: str = "1024x1024"
    asset_fetch_timeout_seconds: float = 20.0
    archive_fallback_extension: str = "png"
    bulk_session_ttl_seconds: int = 3600
    allowed_user_ids: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_user_ids(raw: str | None) -> set[str] | None:
    """Parse allowed user IDs from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[str] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if value:
            ids.add(value.lower())
    return ids or None
