"""Configuration objects for the Movie Club service."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    tmdb_access_token: Optional[SecretStr] = Field(default=None, validation_alias="TMDB_ACCESS_TOKEN")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3", validation_alias="TMDB_BASE_URL")
    tmdb_image_base_url: str = Field(default="https://image.tmdb.org/t/p", validation_alias="TMDB_IMAGE_BASE_URL")
    catalog_language: str = Field(default="en-US", validation_alias="CATALOG_LANGUAGE")
    catalog_region: str = Field(default="US", validation_alias="CATALOG_REGION")
    serp_api_key: Optional[SecretStr] = Field(default=None, validation_alias="SERP_API_KEY")
    serp_base_url: str = Field(default="https://serpapi.com", validation_alias="SERP_BASE_URL")
    showtime_location: str = Field(
        default="Chicago, Illinois, United States",
        validation_alias="SHOWTIME_LOCATION",
    )
    api_host: Optional[str] = Field(
        default=None,
        validation_alias="API_HOST",
        description="Upstream gateway receiving admin selections.",
    )
    api_key: Optional[SecretStr] = Field(default=None, validation_alias="API_KEY")
    store_path: str = Field(default=".movie_club/selection.json", validation_alias="STORE_PATH")
    timezone: str = Field(default="America/Chicago", validation_alias="TIMEZONE")
    timeout_seconds: float = Field(default=15.0, validation_alias="TIMEOUT_SECONDS")
    environment: str = Field(default="production", validation_alias="ENVIRONMENT")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("api_host", "tmdb_base_url", "serp_base_url", "tmdb_image_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        """Normalise base URLs so paths can be appended directly."""
        if isinstance(value, str):
            return value.strip().rstrip("/") or None
        return value

    @property
    def gateway_configured(self) -> bool:
        """True when both the upstream host and its API key are present."""
        return bool(self.api_host) and bool(self.api_key and self.api_key.get_secret_value())

    @property
    def selection_endpoint(self) -> str:
        """Upstream URL receiving forwarded admin selections."""
        return f"{self.api_host}/admin/selection"


class ServiceInfo(BaseModel):
    """Metadata returned by the health endpoint."""

    generated_at: str
    timezone: str
    environment: str
    version: str
