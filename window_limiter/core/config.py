"""Limiter configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

The library never reads these on its own; the embedding application builds
``Settings()`` (or a single ``LimiterSettings``) and passes it in.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Literal

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


def load_env_file(app_env: str | None = None) -> Path | None:
    """Load the .env file for ``app_env`` into ``os.environ`` if it exists.

    Nested BaseSettings don't inherit ``env_file``, so the file is loaded into
    the process environment before any settings object is built.

    Returns:
        The loaded path, or None when no file exists for this environment.
    """

    env_path = PROJECT_ROOT / ENV_FILE_MAP.get(app_env or APP_ENV, ".env.development")
    if not env_path.is_file():
        return None

    from dotenv import load_dotenv

    load_dotenv(env_path, override=True)
    return env_path


def _build_limiter_settings() -> "LimiterSettings":
    """Build limiter settings from environment.

    Static type checkers treat fields as constructor arguments, which is not
    how BaseSettings is meant to be used.
    """

    return LimiterSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class LimiterSettings(BaseSettings):
    """Sliding-window limiter parameters."""

    limit_for_period: int = Field(
        10,
        description="Maximum number of admissions per rolling window",
        ge=1,
    )
    refresh_period_seconds: float = Field(
        1.0,
        description="Width of the rolling window in seconds",
        gt=0,
    )
    timeout_seconds: float = Field(
        0.0,
        description="Maximum time acquire_or_timeout may block, in seconds",
        ge=0,
    )
    poll_interval_seconds: float = Field(
        0.01,
        description="Delay between admission attempts while blocking",
        gt=0,
    )
    lock_timeout_seconds: float | None = Field(
        None,
        description="Maximum wait for the store lock per call (None waits forever)",
        ge=0,
        le=threading.TIMEOUT_MAX,
    )
    backend: Literal["memory", "shared"] = Field(
        "memory",
        description="Window store: 'memory' (one process) or 'shared' (multiprocessing)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level name",
    )
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Where log records are written",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        3,
        description="Number of rotated log files to keep",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Settings container composed from domain-specific settings.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load the environment's .env file and build a fresh Settings object."""

    load_env_file()
    return Settings()
