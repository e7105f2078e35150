"""
Application settings.

Values come from environment variables prefixed ``TRAIL_STATUS_`` (or a
``.env`` file). The weather key also honours the provider's conventional
``OPENWEATHER_API_KEY`` name.
"""

from __future__ import annotations

from datetime import timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration, loaded once at startup."""

    model_config = SettingsConfigDict(
        env_prefix="TRAIL_STATUS_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "trail-status"
    app_env: str = "development"
    debug: bool = False

    # Storage
    data_dir: Path = Path("data")
    trails_file: Path | None = None

    # Outbound services
    openweather_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TRAIL_STATUS_OPENWEATHER_API_KEY", "OPENWEATHER_API_KEY"),
    )
    discord_webhook_url: str | None = None
    max_fetch_attempts: int = Field(default=3, ge=1)
    http_timeout: float = 30.0

    # Local day boundaries use a fixed offset, not a named zone (no DST).
    utc_offset_hours: float = -5.0
    units: Literal["imperial", "metric"] = "imperial"

    # Cache-Control max-age for the aggregate response
    cache_max_age: int = 7200
    error_cache_max_age: int = 300

    api_port: int = 8000

    @property
    def tz(self) -> timezone:
        """Fixed-offset timezone used for "today" and "tomorrow" windows."""
        return timezone(timedelta(hours=self.utc_offset_hours))


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
