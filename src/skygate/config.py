"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized configuration loaded from environment or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    nasa_api_key: str = Field(default="DEMO_KEY", alias="NASA_API_KEY")
    nasa_base_url: str = "https://api.nasa.gov"
    nasa_images_url: str = "https://images-api.nasa.gov"
    request_timeout: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=4, ge=1)
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3002


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
