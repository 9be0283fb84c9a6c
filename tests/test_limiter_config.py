"""Tests for construction-time validation and settings loading."""

from __future__ import annotations

import math
import threading
from datetime import timedelta

import pytest
from pydantic import ValidationError

from window_limiter.adapters.window_store import SharedMemoryWindowStore
from window_limiter.core import config
from window_limiter.core.config import LimiterSettings, LogSettings, Settings
from window_limiter.core.errors import AppError, ErrorDetails, InvalidConfigurationError
from window_limiter.services.limiter import Limiter


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit_for_period": 0, "refresh_period": 1},
        {"limit_for_period": -3, "refresh_period": 1},
        {"limit_for_period": 2.5, "refresh_period": 1},
        {"limit_for_period": True, "refresh_period": 1},
        {"limit_for_period": 1, "refresh_period": 0},
        {"limit_for_period": 1, "refresh_period": -1},
        {"limit_for_period": 1, "refresh_period": timedelta(0)},
        {"limit_for_period": 1, "refresh_period": math.inf},
        {"limit_for_period": 1, "refresh_period": math.nan},
        {"limit_for_period": 1, "refresh_period": "1s"},
        {"limit_for_period": 1, "refresh_period": 1, "timeout": -0.1},
        {"limit_for_period": 1, "refresh_period": 1, "timeout": math.nan},
        {"limit_for_period": 1, "refresh_period": 1, "poll_interval": 0},
        {"limit_for_period": 1, "refresh_period": 1, "lock_timeout": -1},
        {"limit_for_period": 1, "refresh_period": 1, "lock_timeout": threading.TIMEOUT_MAX * 2},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(InvalidConfigurationError) as exc_info:
        Limiter(**kwargs)

    assert exc_info.value.code == "invalid_configuration"
    assert isinstance(exc_info.value, AppError)


def test_zero_timeout_and_infinite_timeout_are_valid() -> None:
    assert Limiter(1, 1, 0).timeout == 0.0
    assert Limiter(1, 1, math.inf).timeout == math.inf


def test_error_details_name_the_offending_field() -> None:
    with pytest.raises(InvalidConfigurationError) as exc_info:
        Limiter(1, -5)

    assert exc_info.value.details == {"field": "refresh_period", "value": -5}
    assert str(exc_info.value) == "refresh_period must be > 0"


def test_limiter_settings_defaults() -> None:
    settings = LimiterSettings()

    assert settings.limit_for_period == 10
    assert settings.refresh_period_seconds == 1.0
    assert settings.timeout_seconds == 0.0
    assert settings.poll_interval_seconds == 0.01
    assert settings.lock_timeout_seconds is None
    assert settings.backend == "memory"


def test_limiter_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIMITER_LIMIT_FOR_PERIOD", "3")
    monkeypatch.setenv("LIMITER_REFRESH_PERIOD_SECONDS", "0.5")
    monkeypatch.setenv("LIMITER_TIMEOUT_SECONDS", "2")
    monkeypatch.setenv("LIMITER_BACKEND", "shared")

    settings = LimiterSettings()

    assert settings.limit_for_period == 3
    assert settings.refresh_period_seconds == 0.5
    assert settings.timeout_seconds == 2.0
    assert settings.backend == "shared"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("LIMITER_LIMIT_FOR_PERIOD", "0"),
        ("LIMITER_REFRESH_PERIOD_SECONDS", "0"),
        ("LIMITER_TIMEOUT_SECONDS", "-1"),
        ("LIMITER_BACKEND", "redis"),
        ("LIMITER_LOCK_TIMEOUT_SECONDS", "1e12"),
    ],
)
def test_limiter_settings_reject_out_of_range_environment(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        LimiterSettings()


def test_settings_compose_limiter_and_log_sections(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIMITER_LIMIT_FOR_PERIOD", "42")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "plain")

    settings = Settings()

    assert settings.app_env == "testing"
    assert settings.limiter.limit_for_period == 42
    assert settings.log.level == "DEBUG"
    assert settings.log.format == "plain"


def test_load_env_file_reads_environment_specific_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    (tmp_path / ".env.staging").write_text("LIMITER_LIMIT_FOR_PERIOD=77\n", encoding="utf-8")
    monkeypatch.setattr(config, "PROJECT_ROOT", tmp_path)
    monkeypatch.setenv("LIMITER_LIMIT_FOR_PERIOD", "1")

    loaded = config.load_env_file("staging")

    assert loaded == tmp_path / ".env.staging"
    assert LimiterSettings().limit_for_period == 77


def test_load_env_file_missing_file_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(config, "PROJECT_ROOT", tmp_path)

    assert config.load_env_file("production") is None


def test_log_settings_reject_unknown_format() -> None:
    with pytest.raises(ValidationError):
        LogSettings(format="xml")


def test_get_settings_loads_env_file_for_current_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    (tmp_path / ".env.testing").write_text("LOG_LEVEL=ERROR\n", encoding="utf-8")
    monkeypatch.setattr(config, "PROJECT_ROOT", tmp_path)
    monkeypatch.setattr(config, "APP_ENV", "testing")
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    settings = config.get_settings()

    assert settings.log.level == "ERROR"
    assert settings.limiter.backend == "memory"


def test_largest_platform_lock_timeout_is_accepted() -> None:
    limiter = Limiter(1, 1, lock_timeout=threading.TIMEOUT_MAX)

    assert limiter.try_acquire() is True


def test_error_details_only_carry_declared_fields() -> None:
    declared = set(ErrorDetails.__annotations__)

    with pytest.raises(InvalidConfigurationError) as exc_info:
        Limiter(5, 1, store=SharedMemoryWindowStore(3), name="uploads")

    assert exc_info.value.details is not None
    assert set(exc_info.value.details) <= declared
    assert "context" not in declared
