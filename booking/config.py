"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

log = logging.getLogger("booking.config")

DEFAULT_DURATION_MINUTES = 60


class Settings(BaseSettings):
    # Google OAuth (refresh token issued once, out of band)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_refresh_token: str = ""

    # Calendar
    google_calendar_id: str = "primary"
    timezone: str = "America/New_York"
    booking_duration_minutes: int = DEFAULT_DURATION_MINUTES
    delete_availability: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8787
    debug: bool = False
    cors_origins: str = "*"
    max_body_bytes: int = 200 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}

    @field_validator("booking_duration_minutes", mode="before")
    @classmethod
    def _duration_or_default(cls, value):
        # Zero, negative or non-numeric durations fall back to the default.
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return DEFAULT_DURATION_MINUTES
        return minutes if minutes > 0 else DEFAULT_DURATION_MINUTES

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []
        _placeholders = {"your-client-id", "your-client-secret", "your-refresh-token"}

        required = {
            "GOOGLE_CLIENT_ID": self.google_client_id,
            "GOOGLE_CLIENT_SECRET": self.google_client_secret,
            "GOOGLE_REDIRECT_URI": self.google_redirect_uri,
            "GOOGLE_REFRESH_TOKEN": self.google_refresh_token,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValueError(
                f"Missing required env var(s): {', '.join(missing)}. "
                "Set them in .env to talk to Google Calendar."
            )

        for name, value in required.items():
            if value in _placeholders:
                warnings.append(f"{name} is a placeholder — calendar calls will fail.")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            warnings.append(
                f"TIMEZONE={self.timezone!r} is not a known IANA zone. "
                "Naive times will be read as UTC."
            )

        if self.delete_availability:
            warnings.append(
                "DELETE_AVAILABILITY=true — availability events will be removed after booking."
            )

        return warnings


def load_settings(**overrides) -> Settings:
    """Build the immutable settings once at process start."""
    return Settings(**overrides)
