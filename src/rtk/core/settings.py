"""
Centralized settings for the remote toolkit.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    One validated, cached settings object feeds the monitor, the scheduler
    and the handler groups so each reads the same values.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** ``RTK_*`` variables and ``.env`` files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> from rtk.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.request_threshold_seconds
    60.0

Tags:
    settings, configuration, pydantic, environment, rtk-core

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RtkSettings(BaseSettings):
    """Toolkit configuration.

    All fields can be set via ``RTK_*`` environment variables (e.g.
    ``RTK_PING_PORT=2014``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RTK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    # ── Liveness monitor ─────────────────────────────────────────
    ping_host: str | None = Field(
        default=None,
        description="Heartbeat target host; None resolves the local host name",
    )
    ping_port: int = Field(default=2014, ge=1, le=65535)
    request_threshold_seconds: float = Field(default=60.0, gt=0)
    sleep_time_seconds: float = Field(default=30.0, gt=0)

    # ── Scheduler ────────────────────────────────────────────────
    scheduler_interval_seconds: float = Field(default=1.0, gt=0)
    scheduler_max_workers: int = Field(default=4, ge=1)
    timezone: str = Field(default="UTC")
    jobs_db_path: Path = Field(
        default_factory=lambda: Path.home() / ".rtk" / "jobs.db",
        description="SQLite file holding persisted jobs",
    )

    # ── Plugin catalog ───────────────────────────────────────────
    plugin_catalog_url: str = Field(default="http://bukget.org/api/plugins")
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "console", "auto"}:
            raise ValueError("log_format must be json, console or auto")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _cadence_shorter_than_timeout(self) -> RtkSettings:
        if self.sleep_time_seconds >= self.request_threshold_seconds:
            raise ValueError(
                "sleep_time_seconds must be shorter than request_threshold_seconds"
            )
        return self

    # ── Derived properties ───────────────────────────────────────

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def json_logs(self) -> bool | None:
        if self.log_format == "auto":
            return None
        return self.log_format == "json"


_settings_cache: dict[str, RtkSettings] = {}


def get_settings(*, env_file: Path | None = None, _force_reload: bool = False) -> RtkSettings:
    """Load, validate, and cache a :class:`RtkSettings` instance."""
    cache_key = str(env_file or "")
    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    if env_file is not None:
        settings = RtkSettings(_env_file=env_file)  # type: ignore[call-arg]
    else:
        settings = RtkSettings()

    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
