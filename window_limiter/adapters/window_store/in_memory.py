"""In-memory window store.

Notes:
- Per-process only: every process (or every fresh store) has its own log.
- Thread-safe: uses a lock around the log.
"""

from __future__ import annotations

import threading

from window_limiter.adapters.window_store.base import AbstractWindowStore


class InMemoryWindowStore(AbstractWindowStore):
    """Admission log kept in a list guarded by a ``threading.Lock``.

    Important:
        Two limiters only share a quota if they share the same store
        instance. Separate instances enforce separate, independent limits.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timestamps: list[float] = []

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryWindowStore(size={len(self._timestamps)})"

    def acquire_lock(self, timeout: float | None) -> bool:
        if timeout is None:
            return self._lock.acquire()
        return self._lock.acquire(timeout=timeout)

    def release_lock(self) -> None:
        self._lock.release()

    def load(self) -> list[float]:
        return list(self._timestamps)

    def save(self, timestamps: list[float]) -> None:
        self._timestamps = list(timestamps)
