"""Factory for creating window store instances."""

from window_limiter.adapters.window_store.base import AbstractWindowStore
from window_limiter.adapters.window_store.in_memory import InMemoryWindowStore
from window_limiter.adapters.window_store.shared import SharedMemoryWindowStore
from window_limiter.core.errors import InvalidConfigurationError


def create_window_store(backend: str, *, capacity: int) -> AbstractWindowStore:
    """Instantiate a window store by backend name.

    Args:
        backend: "memory" for a per-process store, "shared" for a store
            visible to child processes.
        capacity: Limit the store must be able to hold.

    Returns:
        AbstractWindowStore: Fresh, empty store.

    Raises:
        InvalidConfigurationError: If the backend name is unknown.
    """
    name = backend.lower()

    if name == "memory":
        return InMemoryWindowStore()

    if name == "shared":
        return SharedMemoryWindowStore(capacity)

    raise InvalidConfigurationError(
        f"Unknown window store backend: '{backend}'. Supported backends: memory, shared",
        details={"field": "backend", "value": backend},
    )
