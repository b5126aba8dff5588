"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


# Per-minute attempt tables. Public and admin tiers are keyed by
# endpoint type then HTTP method; the authenticated tier adds a role level.
DEFAULT_RATE_LIMIT_POLICIES: dict[str, dict[str, Any]] = {
    "public": {
        "auth": {"get": 10, "post": 5, "put": 3, "patch": 3, "delete": 2},
        "general": {"get": 60, "post": 10, "put": 5, "patch": 5, "delete": 3},
        "search": {"get": 30, "post": 5, "put": 2, "patch": 2, "delete": 1},
        "upload": {"get": 10, "post": 3, "put": 2, "patch": 2, "delete": 1},
    },
    "authenticated": {
        "general": {
            "authenticated": {"get": 200, "post": 50, "put": 30, "patch": 30, "delete": 20},
            "premium": {"get": 500, "post": 100, "put": 60, "patch": 60, "delete": 40},
            "admin": {"get": 1000, "post": 200, "put": 100, "patch": 100, "delete": 50},
        },
        "search": {
            "authenticated": {"get": 100, "post": 20, "put": 10, "patch": 10, "delete": 5},
            "premium": {"get": 300, "post": 50, "put": 25, "patch": 25, "delete": 15},
            "admin": {"get": 500, "post": 100, "put": 50, "patch": 50, "delete": 25},
        },
        "upload": {
            "authenticated": {"get": 50, "post": 10, "put": 5, "patch": 5, "delete": 3},
            "premium": {"get": 100, "post": 25, "put": 15, "patch": 15, "delete": 10},
            "admin": {"get": 200, "post": 50, "put": 30, "patch": 30, "delete": 20},
        },
        "heavy": {
            "authenticated": {"get": 20, "post": 5, "put": 3, "patch": 3, "delete": 2},
            "premium": {"get": 50, "post": 15, "put": 10, "patch": 10, "delete": 5},
            "admin": {"get": 100, "post": 30, "put": 20, "patch": 20, "delete": 10},
        },
    },
    "admin": {
        "general": {"get": 300, "post": 50, "put": 30, "patch": 30, "delete": 20},
        "users": {"get": 100, "post": 20, "put": 15, "patch": 15, "delete": 10},
        "settings": {"get": 50, "post": 10, "put": 5, "patch": 5, "delete": 3},
        "logs": {"get": 200, "post": 20, "put": 10, "patch": 10, "delete": 5},
        "reports": {"get": 50, "post": 10, "put": 5, "patch": 5, "delete": 3},
    },
}


def _default_policies() -> dict[str, dict[str, Any]]:
    """Return a deep copy of the default policy tables."""

    return copy.deepcopy(DEFAULT_RATE_LIMIT_POLICIES)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment.

    See _build_app_settings() for rationale about the type ignore.
    """

    return LogSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        False,
        description="Reject requests carrying an unknown X-API-Key header",
    )
    api_keys: str | None = Field(
        None,
        description=(
            "Comma-separated identity entries in the form key:user_id[:role], "
            "used to resolve the caller principal from X-API-Key"
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        "INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
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
    max_bytes: int = Field(
        10_485_760,
        description="Rotate log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Tiered rate limiting configuration."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on throttled routes",
    )
    decay_minutes: int = Field(
        1,
        description="Length of the counting window in minutes (global for all tiers)",
        ge=1,
    )
    add_headers: bool = Field(
        True,
        description="Attach X-RateLimit-* headers to responses",
    )
    log_violations: bool = Field(
        True,
        description="Log a warning for every rejected request",
    )
    backend: str = Field(
        "memory",
        description="Counter store backend: memory or redis",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL when backend=redis",
    )
    redis_socket_timeout: float = Field(
        0.5,
        description="Timeout in seconds for each Redis round-trip",
        gt=0,
    )
    key_prefix: str = Field(
        "",
        description="Optional namespace prepended to every counter key in the store",
    )
    fail_closed_tiers: str = Field(
        "admin",
        description=(
            "Comma-separated tiers that reject requests (503) when the counter "
            "store is unavailable; other tiers let requests through"
        ),
    )
    policies: dict[str, dict[str, Any]] = Field(
        default_factory=_default_policies,
        description="Max attempts per tier/endpoint type/(role)/method (JSON via env)",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def is_fail_closed(self, tier: str) -> bool:
        tiers = {t.strip().lower() for t in self.fail_closed_tiers.split(",") if t.strip()}
        return tier.lower() in tiers


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    rate_limits: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
