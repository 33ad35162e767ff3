"""Models for portable library backups."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

BACKUP_VERSION = 1


class BackupEntry(BaseModel):
    """One library image as stored in a backup document."""

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    image_url: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    storage_path: str | None = None
    created_at: datetime | None = None

    @field_validator("user_id", "name", "image_url", mode="before")
    @classmethod
    def _strip_required(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: object) -> object:
        if not isinstance(value, str) or not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
