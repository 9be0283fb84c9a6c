"""Named limiters, one per protected resource.

The registry is an ordinary object that the application creates and passes to
whatever needs a limiter. Tests build their own registries, so nothing here
is process-wide.
"""

from __future__ import annotations

import logging
import threading

from window_limiter.core.config import LimiterSettings
from window_limiter.core.errors import InvalidConfigurationError
from window_limiter.services.limiter import Limiter

logger = logging.getLogger(__name__)


class LimiterRegistry:
    """Lazily creates and caches one Limiter per resource name."""

    def __init__(self, default_settings: LimiterSettings | None = None) -> None:
        self._default_settings = default_settings or LimiterSettings()  # type: ignore[call-arg]
        self._limiters: dict[str, Limiter] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._limiters

    def __len__(self) -> int:
        with self._lock:
            return len(self._limiters)

    def get(self, name: str) -> Limiter:
        """Return the limiter for ``name``, creating it from the defaults.

        Raises:
            ValueError: If name is empty.
        """
        if not name:
            raise ValueError("name must be a non-empty string")

        with self._lock:
            limiter = self._limiters.get(name)
            if limiter is None:
                limiter = Limiter.from_settings(self._default_settings, name=name)
                self._limiters[name] = limiter
                logger.info(
                    "limiter_registry.created",
                    extra={
                        "limiter": name,
                        "limit": limiter.limit_for_period,
                        "window_s": limiter.refresh_period,
                        "backend": limiter.store.backend,
                    },
                )
            return limiter

    def register(self, name: str, limiter: Limiter) -> Limiter:
        """Register a pre-built limiter under ``name``.

        Raises:
            ValueError: If name is empty.
            InvalidConfigurationError: If the name is already taken.
        """
        if not name:
            raise ValueError("name must be a non-empty string")

        with self._lock:
            if name in self._limiters:
                raise InvalidConfigurationError(
                    f"a limiter named '{name}' is already registered",
                    details={"limiter": name},
                )
            limiter.name = name
            self._limiters[name] = limiter
        return limiter

    def remove(self, name: str) -> Limiter | None:
        """Drop the limiter for ``name`` (its admissions go with it)."""
        with self._lock:
            return self._limiters.pop(name, None)
