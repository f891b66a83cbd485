from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from listing_photos.models import StorageConfig

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # General
    project_id: Optional[str] = Field(default=None, description="GCP project ID")
    log_level: str = Field("INFO", description="Root log level for the API process.")

    # Firebase (property store)
    firebase_credentials_json: Optional[str] = Field(
        default=None,
        validation_alias="GOOGLE_APPLICATION_CREDENTIALS",
        description="Path to service-account JSON file or JSON string itself.",
    )
    firebase_database_url: Optional[str] = Field(
        default=None,
        description="Realtime Database URL; derived from project_id when unset.",
    )

    # Cloud Storage
    bucket_name: str = Field("property-photos", description="Bucket holding uploaded property photos.")
    storage_endpoint: str = Field("https://storage.googleapis.com", description="Public object endpoint.")
    storage_public_path: str = Field(
        "",
        description="Path between endpoint and bucket in public URLs, e.g. storage/v1/object/public.",
    )

    # Resolution
    max_photos: int = Field(24, ge=1, description="Maximum number of photo URLs attached to a property.")
    list_limit: int = Field(1000, ge=1, description="Maximum entries returned by one folder listing.")
    bfs_max_prefixes: int = Field(256, ge=1, description="Maximum folders listed by one basename search.")
    verify_candidates: bool = Field(True, description="Probe candidate paths for existence before accepting one.")
    resolve_concurrency: int = Field(8, ge=1, description="Properties resolved in parallel on listing pages.")
    listing_page_size: int = Field(20, ge=1, le=100)

    def storage_config(self) -> StorageConfig:
        """Build the injected storage configuration, failing fast on blanks."""

        if not self.bucket_name.strip():
            raise ConfigError("BUCKET_NAME must not be empty")
        if not self.storage_endpoint.strip():
            raise ConfigError("STORAGE_ENDPOINT must not be empty")
        return StorageConfig(
            bucket=self.bucket_name.strip(),
            endpoint=self.storage_endpoint.strip(),
            public_path=self.storage_public_path,
            list_limit=self.list_limit,
            bfs_max_prefixes=self.bfs_max_prefixes,
            max_photos=self.max_photos,
            verify_candidates=self.verify_candidates,
            resolve_concurrency=self.resolve_concurrency,
        )

    @property
    def database_url(self) -> Optional[str]:
        if self.firebase_database_url:
            return self.firebase_database_url
        if self.project_id:
            return f"https://{self.project_id}.firebaseio.com"
        return None


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
