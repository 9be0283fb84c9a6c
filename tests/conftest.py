"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins APP_ENV to "testing" so settings never pick up a developer's
.env.development file.
"""

from __future__ import annotations

import os

# Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

import pytest


class FakeClock:
    """Deterministic monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_limiter_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep LIMITER_* / LOG_* variables from the outer shell out of tests."""
    for key in list(os.environ):
        if key.startswith(("LIMITER_", "LOG_")):
            monkeypatch.delenv(key, raising=False)
