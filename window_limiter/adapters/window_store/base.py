"""Window store interfaces.

The limiter depends on this abstraction (not a concrete implementation) so
the admission log can live in process memory or in memory shared between
processes without changing the admission algorithm.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from window_limiter.core.errors import LockAcquisitionError, LockReleaseError

logger = logging.getLogger(__name__)


class AbstractWindowStore(ABC):
    """Holds the admission log and the lock that guards it.

    ``load`` and ``save`` must only be called while the lock is held; use
    ``locked`` rather than calling ``acquire_lock``/``release_lock`` directly.

    Attributes:
        backend: Short name of the store kind, used in logs and errors.
        capacity: Maximum number of timestamps the store can hold (None for
            unbounded).
    """

    backend: str = "abstract"
    capacity: int | None = None

    @abstractmethod
    def acquire_lock(self, timeout: float | None) -> bool:
        """Acquire the store lock.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            True if the lock was obtained, False if the timeout elapsed.
        """
        raise NotImplementedError

    @abstractmethod
    def release_lock(self) -> None:
        """Release the store lock."""
        raise NotImplementedError

    @abstractmethod
    def load(self) -> list[float]:
        """Return the admission timestamps in insertion order."""
        raise NotImplementedError

    @abstractmethod
    def save(self, timestamps: list[float]) -> None:
        """Replace the admission log with ``timestamps``."""
        raise NotImplementedError

    @contextmanager
    def locked(self, timeout: float | None = None) -> Iterator["AbstractWindowStore"]:
        """Hold the store lock for the duration of the block.

        Raises:
            LockAcquisitionError: If the lock cannot be obtained in time or the
                underlying primitive fails.
            LockReleaseError: If the underlying primitive fails on release.
        """

        try:
            acquired = self.acquire_lock(timeout)
        except (OSError, OverflowError, RuntimeError, ValueError) as exc:
            logger.error(
                "window_store.lock_failed",
                extra={"backend": self.backend, "reason": type(exc).__name__},
            )
            raise LockAcquisitionError(
                f"Unable to acquire {self.backend} window store lock: {exc}",
                details={"backend": self.backend, "lock_timeout": timeout},
            ) from exc

        if not acquired:
            logger.warning(
                "window_store.lock_failed",
                extra={"backend": self.backend, "reason": "timeout", "lock_timeout": timeout},
            )
            raise LockAcquisitionError(
                f"Timed out acquiring {self.backend} window store lock",
                details={"backend": self.backend, "lock_timeout": timeout},
            )

        try:
            yield self
        finally:
            try:
                self.release_lock()
            except (OSError, RuntimeError, ValueError) as exc:
                raise LockReleaseError(
                    f"Unable to release {self.backend} window store lock: {exc}",
                    details={"backend": self.backend},
                ) from exc
