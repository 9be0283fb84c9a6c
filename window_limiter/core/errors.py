"""Library-level exception types.

Configuration errors fail fast at construction. Lock errors describe an
infrastructure failure and are kept apart from a policy rejection, which is
a plain ``False`` and never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers.

    Fields are optional; each error fills in what it knows.
    """

    field: str
    value: Any
    limit_for_period: int
    capacity: int
    backend: str
    limiter: str
    lock_timeout: float | None


@dataclass
class AppError(Exception):
    """Base error for limiter failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class InvalidConfigurationError(AppError):
    """Raised when limiter or store parameters are out of bounds."""

    def __init__(self, message: str, details: ErrorDetails | None = None) -> None:
        super().__init__(code="invalid_configuration", message=message, details=details)


class LockAcquisitionError(AppError):
    """Raised when the window store lock cannot be obtained."""

    def __init__(self, message: str, details: ErrorDetails | None = None) -> None:
        super().__init__(code="lock_acquisition_failed", message=message, details=details)


class LockReleaseError(AppError):
    """Raised when the window store lock cannot be released."""

    def __init__(self, message: str, details: ErrorDetails | None = None) -> None:
        super().__init__(code="lock_release_failed", message=message, details=details)
