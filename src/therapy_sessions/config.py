"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    daily_api_key: str
    daily_base_url: str = "https://api.daily.co/v1"
    notes_api_key: str
    notes_base_url: str = "https://api.deepseek.com/v1"
    notes_model: str = "deepseek-chat"
    clinic_timezone: str = "Africa/Lagos"
    join_early_minutes: int = 30
    join_late_minutes: int = 15
    cancellation_notice_hours: int = 24
    default_slot_minutes: int = 60
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_status_filter(raw: str | None) -> list[str] | None:
    """Parse a comma separated status filter from a query string."""
    if raw is None:
        return None
    statuses = [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
    return statuses or None
