"""Cross-process window store backed by ``multiprocessing`` shared memory.

Both the lock *and* the log live in shared memory, so every process that
inherits the store (as a ``Process`` argument or through fork) sees the same
admissions. Sharing only the lock would leave each process with its own
empty log and enforce no common quota.

The log is a fixed-size array of ``capacity`` doubles plus a length counter.
The limiter never keeps more than ``limit_for_period`` entries, so capacity
equals the limit.
"""

from __future__ import annotations

import multiprocessing
from multiprocessing.context import BaseContext

from window_limiter.adapters.window_store.base import AbstractWindowStore
from window_limiter.core.errors import InvalidConfigurationError, LockAcquisitionError


class SharedMemoryWindowStore(AbstractWindowStore):
    """Admission log in a shared ``double`` array guarded by a process lock."""

    backend = "shared"

    def __init__(self, capacity: int, *, context: BaseContext | None = None) -> None:
        """Allocate the shared log.

        Args:
            capacity: Maximum number of timestamps held (the limiter's limit).
            context: multiprocessing context to allocate from; the default
                context is used when omitted.

        Raises:
            InvalidConfigurationError: If capacity is not a positive integer.
            LockAcquisitionError: If the OS refuses to create the lock.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidConfigurationError(
                "capacity must be a positive integer",
                details={"field": "capacity", "value": capacity, "backend": self.backend},
            )

        ctx = context or multiprocessing.get_context()
        try:
            self._lock = ctx.Lock()
        except (OSError, ImportError) as exc:
            raise LockAcquisitionError(
                f"Unable to create shared window store lock: {exc}",
                details={"backend": self.backend},
            ) from exc

        self.capacity = capacity
        self._timestamps = ctx.RawArray("d", capacity)
        self._size = ctx.RawValue("i", 0)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"SharedMemoryWindowStore(capacity={self.capacity}, size={self._size.value})"

    def acquire_lock(self, timeout: float | None) -> bool:
        if timeout is None:
            return self._lock.acquire()
        return self._lock.acquire(True, timeout)

    def release_lock(self) -> None:
        self._lock.release()

    def load(self) -> list[float]:
        return list(self._timestamps[: self._size.value])

    def save(self, timestamps: list[float]) -> None:
        count = len(timestamps)
        if count > self.capacity:
            raise ValueError(f"cannot store {count} timestamps in a log of capacity {self.capacity}")
        self._timestamps[:count] = timestamps
        self._size.value = count
