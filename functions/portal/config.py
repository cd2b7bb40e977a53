"""
Configuration and settings for the course portal backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import NOTIFICATION_POLL_SECONDS


class Settings(BaseSettings):
    """Environment-backed settings (PORTAL_* variables or a .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PORTAL_",
        extra="ignore",
    )

    api_prefix: str = Field(default="/api")

    # Document store. Firestore wins over database_url when enabled.
    use_firestore: bool = Field(default=False)
    firestore_project_id: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(default=None)
    # SQLAlchemy URL for the local document store (sqlite, Postgres, ...)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage for uploaded course files
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    storage_access_key_id: Optional[str] = Field(default=None)
    storage_secret_access_key: Optional[str] = Field(default=None)
    download_url_expires_seconds: int = Field(default=3600)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    seed_demo_data: bool = Field(default=False)

    # Notification "last seen" markers (Redis)
    redis_url: Optional[str] = Field(default=None)
    redis_marker_prefix: str = Field(default="portal:last-notification:")
    notification_poll_seconds: float = Field(default=NOTIFICATION_POLL_SECONDS)

    # Academic track catalogue; the packaged JSON file is used when unset
    academic_tracks_path: Optional[str] = Field(default=None)
    academic_tracks_url: Optional[str] = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
