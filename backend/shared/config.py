"""
Central configuration for the Courtside schedule service.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.enums import Environment, TrustPolicy

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "https://kayleecragg.github.io",
    "https://tennis.ngrok.app",
]


class Settings(BaseSettings):
    """Root settings, built once at startup and handed to each component."""

    model_config = SettingsConfigDict(
        env_prefix="COURTSIDE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"

    # ── HTTP server ──────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    static_dir: Path = Path("public")
    schedule_path: Path = Path("public/schedule.json")

    # ── Upstream polling endpoint ────────────────────────────
    upstream_url: str = "https://www.rolandgarros.com/api/en-us/polling"
    upstream_trust_policy: TrustPolicy = TrustPolicy.VERIFY
    upstream_timeout_s: Optional[float] = Field(
        default=None, description="None disables the timeout on the upstream call."
    )
    upstream_user_agent: str = "courtside-schedule/1.0"

    # ── Refresh loop ─────────────────────────────────────────
    refresh_interval_s: float = Field(default=30.0, gt=0)
    refresh_on_startup: bool = True

    # ── Time conversion ──────────────────────────────────────
    source_timezone: str = "Europe/Paris"
    target_timezone: str = "Australia/Sydney"

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = False
    metrics_port: int = 9090

    @field_validator("cors_origins")
    @classmethod
    def strip_trailing_slash(cls, origins: list[str]) -> list[str]:
        """Origin headers never end with '/', so neither may allow-list entries."""
        return [o.strip().rstrip("/") for o in origins if o.strip()]

    @field_validator("source_timezone", "target_timezone")
    @classmethod
    def validate_timezone(cls, name: str) -> str:
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown IANA timezone: {name!r}") from exc
        return name

    @property
    def source_tz(self) -> ZoneInfo:
        return ZoneInfo(self.source_timezone)

    @property
    def target_tz(self) -> ZoneInfo:
        return ZoneInfo(self.target_timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
