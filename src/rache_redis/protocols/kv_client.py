"""Protocols for the backing key-value store consumed by the driver."""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class ConnectionStatus(str, Enum):
    """Lifecycle status of a backing-store connection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    NORMAL = "normal"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


class KVPipeline(Protocol):
    """Command buffer flushed to the store in one round trip."""

    def set(self, name: str, value: bytes, ex: int | None = None) -> Any:
        """Queue a SET, optionally with expiry in seconds."""
        ...

    async def execute(self) -> list[Any]:
        """Flush all queued commands and return their replies in order."""
        ...

    async def __aenter__(self) -> "KVPipeline":
        ...

    async def __aexit__(self, *args: Any) -> None:
        ...


@runtime_checkable
class KVClient(Protocol):
    """The subset of ``redis.asyncio.Redis`` used by the driver."""

    async def get(self, name: str) -> bytes | None:
        """Get a value. Returns None if the key is absent."""
        ...

    async def mget(self, keys: list[str]) -> list[bytes | None]:
        """Get several values, positionally aligned with keys."""
        ...

    async def set(self, name: str, value: bytes, ex: int | None = None) -> Any:
        """Set a value with optional expiry in seconds."""
        ...

    async def mset(self, mapping: Mapping[str, bytes]) -> Any:
        """Set several values at once, without expiry."""
        ...

    async def delete(self, *names: str) -> int:
        """Delete keys. Returns how many existed."""
        ...

    def pipeline(self, transaction: bool = True) -> KVPipeline:
        """Start a command pipeline."""
        ...


@runtime_checkable
class KVConnection(Protocol):
    """A connection owning a KVClient and reporting its status."""

    @property
    def status(self) -> ConnectionStatus:
        """Current status, read without any I/O."""
        ...

    @property
    def client(self) -> KVClient:
        """The connected client."""
        ...

    async def connect(self) -> None:
        """Open the connection."""
        ...

    async def close(self) -> None:
        """Close the connection."""
        ...
