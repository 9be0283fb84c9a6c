"""Window store adapters.

This package keeps the admission log behind a small abstraction so a limiter
can run against process memory or memory shared between processes without
changing the admission algorithm.
"""

from window_limiter.adapters.window_store.base import AbstractWindowStore
from window_limiter.adapters.window_store.factory import create_window_store
from window_limiter.adapters.window_store.in_memory import InMemoryWindowStore
from window_limiter.adapters.window_store.shared import SharedMemoryWindowStore

__all__ = [
    "AbstractWindowStore",
    "InMemoryWindowStore",
    "SharedMemoryWindowStore",
    "create_window_store",
]
