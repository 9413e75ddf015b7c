"""CacheDriver protocol implemented by storage backends for the cache hub."""

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from rache_redis.values import CacheState, CacheValue


@runtime_checkable
class CacheDriver(Protocol):
    """Capability interface a storage backend exposes to the cache hub."""

    async def exists(self, key: str) -> CacheState:
        """Check whether a key is absent, negatively cached or present."""
        ...

    async def get(self, key: str) -> CacheValue:
        """Get a value. Returns UNKNOWN if the key is absent."""
        ...

    async def get_multi(self, keys: Iterable[str]) -> dict[str, CacheValue]:
        """Get several values. The result has an entry for every key."""
        ...

    async def set(self, key: str, value: CacheValue, ttl: int) -> bool:
        """Store a value. A ttl of 0 or less means no expiry."""
        ...

    async def set_multi(self, values: Mapping[str, CacheValue], ttl: int) -> bool:
        """Store several values with a shared ttl."""
        ...

    async def remove(self, key: str) -> bool:
        """Remove a key. No-op if the key doesn't exist."""
        ...

    async def remove_multi(self, keys: Iterable[str]) -> int:
        """Remove keys. Returns how many existed."""
        ...

    def usable(self) -> bool:
        """Whether the backing connection is in normal operating state."""
        ...
