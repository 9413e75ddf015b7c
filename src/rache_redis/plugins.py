"""Connection backend discovery via Python entry points."""

from importlib.metadata import entry_points
from typing import Any

from rache_redis.exceptions import BackendNotFoundError
from rache_redis.protocols import KVConnection

BACKEND_GROUP = "rache_redis.backends"


def discover_backends(group: str = BACKEND_GROUP) -> dict[str, Any]:
    """Discover all registered connection backends.

    Args:
        group: Entry point group to scan

    Returns:
        Dictionary mapping backend names to their classes
    """
    eps = entry_points(group=group)
    return {ep.name: ep.load() for ep in eps}


def get_backend(name: str) -> Any:
    """Get a connection backend class by name.

    Args:
        name: The backend name (e.g., "redis", "memory")

    Returns:
        The backend class

    Raises:
        BackendNotFoundError: If the backend is not registered
    """
    backends = discover_backends()
    if name not in backends:
        available = ", ".join(sorted(backends.keys())) or "(none)"
        raise BackendNotFoundError(
            f"Backend '{name}' not found in group '{BACKEND_GROUP}'. Available: {available}"
        )
    return backends[name]


def create_connection(backend: str, **kwargs: Any) -> KVConnection:
    """Create an unconnected KVConnection.

    Args:
        backend: The backend name (e.g., "redis", "memory")
        **kwargs: Backend-specific configuration

    Returns:
        A KVConnection implementation
    """
    cls = get_backend(backend)
    return cls(**kwargs)
