"""Configuration for the booking calendar."""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_BOOKINGS_LIMIT, DEFAULT_RANGE_BOOKINGS_LIMIT

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    supabase_url: str = "http://localhost:54321"
    supabase_key: SecretStr = SecretStr("")
    bookings_limit: int = Field(default=DEFAULT_BOOKINGS_LIMIT, gt=0)
    range_bookings_limit: int = Field(default=DEFAULT_RANGE_BOOKINGS_LIMIT, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="BOOKING_CALENDAR_", env_file=".env")

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url}/rest/v1"
