"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Tier policies (window and request ceiling per endpoint class) are NOT read
from the environment; they live in ``admission.core.tiers`` as a fixed table.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production might inject via env vars only
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Admission-control switches.

    ``backend`` selects where window counters live:
    - ``redis``: shared across workers and hosts (production)
    - ``memory``: per-process only, each worker enforces its own limits
    """

    enabled: bool = Field(
        True,
        description="Enable tiered rate limiting on protected routes",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* (and Retry-After on 429) headers",
    )
    backend: str = Field(
        "redis",
        description="Counter store backend: redis or memory",
    )
    key_prefix: str = Field(
        "ratelimit",
        description="Namespace prepended to every counter key",
    )
    fail_open_limit: int = Field(
        999,
        description="Sentinel limit/remaining reported while the counter store is unreachable",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Connection settings for the shared counter store and cache."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout_seconds: float = Field(
        0.5,
        description="Upper bound for a single Redis round trip",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        0.5,
        description="Upper bound for establishing a Redis connection",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Read-through cache configuration."""

    enabled: bool = Field(
        True,
        description="Consult Redis before the process-local cache",
    )
    local_max_entries: int | None = Field(
        1024,
        description="Maximum entries kept in the process-local fallback cache",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: json or plain",
    )
    output: str = Field(
        "stdout",
        description="Log destination: stdout or file",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int | None = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (None disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_app_settings() -> AppSettings:
    """Build app settings from environment.

    Static type checkers treat BaseSettings fields as constructor arguments,
    which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_redis_settings() -> RedisSettings:
    return RedisSettings()  # type: ignore[call-arg]


def _build_cache_settings() -> CacheSettings:
    return CacheSettings()  # type: ignore[call-arg]


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    redis: RedisSettings = Field(default_factory=_build_redis_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
