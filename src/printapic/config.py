"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_admin_email: str | None = None
    supabase_admin_password: str | None = None
    supabase_storage_bucket: str = "photos"
    admin_token: str
    edit_provider: str = "bfl"
    bfl_api_key: str | None = None
    bfl_base_url: str = "https://api.bfl.ai/v1"
    bfl_model: str = "flux-kontext-pro"
    bfl_poll_interval_seconds: float = 2.0
    bfl_max_poll_attempts: int = 30
    openai_api_key: str | None = None
    openai_image_model: str = "gpt-image-1"
    edit_worker_concurrency: int = 4
    edit_queue_size: int = 100
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
