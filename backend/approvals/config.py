from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Incoming Approvals"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Remote HR backend
    hr_api_base_url: str = "http://localhost:8000/api"
    hr_api_timeout_seconds: float = 15.0
    # Service-account token used by the inbox worker
    hr_api_token: str | None = None

    # Decision rules
    override_permission: str = "SYSTEM_FULL_ACCESS"
    lock_fallback_days: int = 60
    lock_timezone: str = "Europe/Istanbul"

    # Decision-history content type ids, per request type
    leave_content_type_id: int = 31
    overtime_content_type_id: int = 32
    cardless_entry_content_type_id: int = 33

    poll_interval_seconds: float = 30.0


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
