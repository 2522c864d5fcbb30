"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    transform_backend: str = "openai"
    openai_api_key: str | None = None
    openai_image_model: str = "gpt-image-1"
    transform_base_url: str | None = None
    transform_timeout_seconds: float = 120
    max_concurrent_jobs: int | None = 4
    gallery_table: str = "gallery_items"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
