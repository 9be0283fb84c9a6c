"""Sliding-window limiter.

Admission is decided against a log of recent admission timestamps:
- Every call prunes entries older than the refresh period, relative to now.
- An entry exactly one period old still counts.
- A new timestamp is appended only while the log holds fewer than
  ``limit_for_period`` entries.

The blocking variants are a poll loop around ``try_acquire``. Waiters get no
FIFO guarantee: whichever poll lands first after a slot frees wins it.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Awaitable, Callable

from window_limiter.adapters.window_store.base import AbstractWindowStore
from window_limiter.adapters.window_store.factory import create_window_store
from window_limiter.adapters.window_store.in_memory import InMemoryWindowStore
from window_limiter.core.config import LimiterSettings
from window_limiter.core.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.01

Duration = float | int | timedelta


@dataclass(frozen=True)
class LimiterSnapshot:
    """Point-in-time view of a limiter's window.

    Attributes:
        limit: Max admissions per window.
        in_window: Admissions still inside the window.
        remaining: Admissions available right now.
        retry_after_seconds: When full, the time until the oldest admission
            reaches the window edge, otherwise None. The entry still counts
            at that instant, so this is a lower bound: a retry admits only
            strictly after it.
    """

    limit: int
    in_window: int
    remaining: int
    retry_after_seconds: float | None


def _to_seconds(name: str, value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigurationError(
            f"{name} must be a number of seconds or a timedelta",
            details={"field": name, "value": value},
        )
    return float(value)


def _validate_limit(limit_for_period: int) -> int:
    if isinstance(limit_for_period, bool) or not isinstance(limit_for_period, int) or limit_for_period < 1:
        raise InvalidConfigurationError(
            "limit_for_period must be a positive integer",
            details={"field": "limit_for_period", "value": limit_for_period},
        )
    return limit_for_period


def _validate_duration(name: str, value: Duration, *, allow_zero: bool, allow_inf: bool = False) -> float:
    seconds = _to_seconds(name, value)
    if math.isnan(seconds) or (math.isinf(seconds) and not allow_inf):
        raise InvalidConfigurationError(
            f"{name} must be finite",
            details={"field": name, "value": value},
        )
    if seconds < 0 or (seconds == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise InvalidConfigurationError(
            f"{name} must be {bound}",
            details={"field": name, "value": value},
        )
    return seconds


class Limiter:
    """Sliding-window limiter shared by concurrent callers.

    Pass one instance (or one store) to every caller that must stay under the
    same quota. Instances with separate stores enforce independent limits.
    """

    def __init__(
        self,
        limit_for_period: int,
        refresh_period: Duration,
        timeout: Duration = 0,
        *,
        poll_interval: Duration = DEFAULT_POLL_INTERVAL,
        lock_timeout: Duration | None = None,
        store: AbstractWindowStore | None = None,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit_for_period: Maximum number of admissions per window.
            refresh_period: Width of the rolling window.
            timeout: Maximum time ``acquire_or_timeout`` may block.
            poll_interval: Delay between attempts while blocking.
            lock_timeout: Maximum wait for the store lock per call; None waits
                indefinitely.
            store: Window store holding the log; a fresh in-memory store is
                created when omitted.
            name: Label attached to log records.
            clock: Monotonic time source in seconds. Every process sharing a
                store must use the same clock.
            sleep: Blocking suspend primitive used by ``acquire_or_timeout``.
                A cancellation event is only waited on while this is the
                default ``time.sleep``.
            async_sleep: Suspend primitive used by
                ``acquire_or_timeout_async``.

        Raises:
            InvalidConfigurationError: If any bound is violated or the store
                cannot hold ``limit_for_period`` timestamps.
        """
        self._limit = _validate_limit(limit_for_period)
        self._refresh_period = _validate_duration("refresh_period", refresh_period, allow_zero=False)
        self._timeout = _validate_duration("timeout", timeout, allow_zero=True, allow_inf=True)
        self._poll_interval = _validate_duration("poll_interval", poll_interval, allow_zero=False)
        self._lock_timeout = (
            None
            if lock_timeout is None
            else _validate_duration("lock_timeout", lock_timeout, allow_zero=True)
        )
        if self._lock_timeout is not None and self._lock_timeout > threading.TIMEOUT_MAX:
            raise InvalidConfigurationError(
                f"lock_timeout must be <= {threading.TIMEOUT_MAX}",
                details={"field": "lock_timeout", "value": lock_timeout},
            )

        store = store if store is not None else InMemoryWindowStore()
        if store.capacity is not None and store.capacity < self._limit:
            raise InvalidConfigurationError(
                "window store capacity is smaller than limit_for_period",
                details={
                    "limit_for_period": self._limit,
                    "capacity": store.capacity,
                    "backend": store.backend,
                },
            )

        self._store = store
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._async_sleep = async_sleep

    @classmethod
    def from_settings(
        cls,
        settings: LimiterSettings,
        *,
        name: str = "default",
        store: AbstractWindowStore | None = None,
    ) -> "Limiter":
        """Build a limiter (and, unless given, its store) from settings."""

        if store is None:
            store = create_window_store(settings.backend, capacity=settings.limit_for_period)

        return cls(
            settings.limit_for_period,
            settings.refresh_period_seconds,
            settings.timeout_seconds,
            poll_interval=settings.poll_interval_seconds,
            lock_timeout=settings.lock_timeout_seconds,
            store=store,
            name=name,
        )

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"Limiter(name={self.name!r}, limit_for_period={self._limit}, "
            f"refresh_period={self._refresh_period}, timeout={self._timeout}, "
            f"store={self._store!r})"
        )

    @property
    def limit_for_period(self) -> int:
        return self._limit

    @property
    def refresh_period(self) -> float:
        return self._refresh_period

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def store(self) -> AbstractWindowStore:
        return self._store

    def _prune(self, timestamps: list[float], now: float) -> list[float]:
        return [t for t in timestamps if now - t <= self._refresh_period]

    def try_acquire(self) -> bool:
        """Attempt one admission without waiting for a slot.

        Returns:
            True if admitted (and recorded), False if the window is full.

        Raises:
            LockAcquisitionError: If the store lock cannot be obtained.
            LockReleaseError: If the store lock cannot be released.
        """

        with self._store.locked(self._lock_timeout) as store:
            now = self._clock()
            timestamps = store.load()
            kept = self._prune(timestamps, now)

            if len(kept) < self._limit:
                kept.append(now)
                store.save(kept)
                admitted = True
            else:
                if len(kept) != len(timestamps):
                    store.save(kept)
                admitted = False

        logger.debug(
            "limiter.admitted" if admitted else "limiter.rejected",
            extra={
                "limiter": self.name,
                "in_window": len(kept),
                "limit": self._limit,
            },
        )
        return admitted

    def _remaining_wait(self, start: float) -> float | None:
        """Return seconds left before the deadline, or None once it has passed."""

        remaining = self._timeout - (self._clock() - start)
        if remaining <= 0:
            return None
        return remaining

    def _log_timeout(self) -> None:
        logger.info(
            "limiter.acquire_timeout",
            extra={"limiter": self.name, "timeout_s": self._timeout},
        )

    def acquire_or_timeout(self, cancel_event: threading.Event | None = None) -> bool:
        """Block until admitted or until ``timeout`` has elapsed.

        The deadline is checked before every sleep, so a zero timeout makes
        exactly one attempt. Sleeps are capped at the time left, keeping the
        worst case within ``timeout + poll_interval``.

        Args:
            cancel_event: Optional event; once set, the wait gives up at the
                next iteration without admitting.

        Returns:
            True if admitted, False on timeout or cancellation.

        Raises:
            LockAcquisitionError: If the store lock cannot be obtained. Lock
                failures are not retried.
        """

        start = self._clock()
        while True:
            if self.try_acquire():
                return True

            remaining = self._remaining_wait(start)
            if remaining is None:
                self._log_timeout()
                return False

            if cancel_event is not None and cancel_event.is_set():
                logger.info("limiter.acquire_cancelled", extra={"limiter": self.name})
                return False

            delay = min(self._poll_interval, remaining)
            if cancel_event is not None and self._sleep is time.sleep:
                cancel_event.wait(delay)
            else:
                self._sleep(delay)

    async def acquire_or_timeout_async(self) -> bool:
        """Asyncio variant of ``acquire_or_timeout``.

        Suspends with ``async_sleep`` (``asyncio.sleep`` by default) so other
        tasks keep running. Task
        cancellation propagates as ``asyncio.CancelledError`` and never leaves
        an admission behind.
        """

        start = self._clock()
        while True:
            if self.try_acquire():
                return True

            remaining = self._remaining_wait(start)
            if remaining is None:
                self._log_timeout()
                return False

            await self._async_sleep(min(self._poll_interval, remaining))

    def snapshot(self) -> LimiterSnapshot:
        """Prune the window and describe it without admitting."""

        with self._store.locked(self._lock_timeout) as store:
            now = self._clock()
            timestamps = store.load()
            kept = self._prune(timestamps, now)
            if len(kept) != len(timestamps):
                store.save(kept)

        in_window = len(kept)
        retry_after: float | None = None
        if in_window >= self._limit:
            # The oldest entry frees its slot once strictly older than the period.
            retry_after = max(0.0, kept[0] + self._refresh_period - now)

        return LimiterSnapshot(
            limit=self._limit,
            in_window=in_window,
            remaining=max(0, self._limit - in_window),
            retry_after_seconds=retry_after,
        )

    def reset(self) -> None:
        """Forget every recorded admission."""

        with self._store.locked(self._lock_timeout) as store:
            store.save([])

        logger.info("limiter.reset", extra={"limiter": self.name})
