"""In-memory emulation of the Redis commands used by the driver."""

import asyncio
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any

from redis.exceptions import DataError, ResponseError

from rache_redis.exceptions import ConnectionNotReadyError
from rache_redis.observability import get_logger
from rache_redis.protocols import ConnectionStatus

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """A stored value with optional expiration."""

    value: bytes
    expires_at: float | None = None

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at


def _to_bytes(value: Any) -> bytes:
    """Coerce a value the way redis-py encodes command arguments."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return repr(value).encode("utf-8")
    raise DataError(
        f"Invalid input of type: '{type(value).__name__}'. "
        "Convert to a bytes, string, int or float first."
    )


class MemoryKVClient:
    """Redis-like client backed by a dict.

    Suitable for development and testing. Data is lost on restart.
    """

    def __init__(self) -> None:
        self._data: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    def _read(self, key: str) -> bytes | None:
        """Read a key, dropping it if expired (caller must hold lock)."""
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._data[key]
            return None
        return entry.value

    def _write(self, key: str, value: Any, ex: int | None = None) -> bool:
        """Write a key (caller must hold lock)."""
        if ex is not None and ex <= 0:
            raise ResponseError("invalid expire time in 'set' command")
        expires_at = time.time() + ex if ex is not None else None
        self._data[key] = CacheEntry(value=_to_bytes(value), expires_at=expires_at)
        return True

    def _delete(self, names: Iterable[str]) -> int:
        """Delete keys, counting those that existed (caller must hold lock)."""
        removed = 0
        for name in names:
            if self._read(name) is not None:
                del self._data[name]
                removed += 1
        return removed

    async def get(self, name: str) -> bytes | None:
        """Get a value by key."""
        async with self._lock:
            return self._read(name)

    async def mget(self, keys: str | Iterable[str], *args: str) -> list[bytes | None]:
        """Get values for several keys, in order."""
        names = [keys] if isinstance(keys, str) else list(keys)
        names.extend(args)
        async with self._lock:
            return [self._read(name) for name in names]

    async def set(self, name: str, value: Any, ex: int | None = None) -> bool:
        """Set a value with optional expiry in seconds."""
        async with self._lock:
            return self._write(name, value, ex)

    async def mset(self, mapping: Mapping[str, Any]) -> bool:
        """Set several values without expiry."""
        if not mapping:
            raise ResponseError("wrong number of arguments for 'mset' command")
        async with self._lock:
            for name, value in mapping.items():
                self._write(name, value)
            return True

    async def delete(self, *names: str) -> int:
        """Delete keys. Returns how many existed."""
        if not names:
            raise ResponseError("wrong number of arguments for 'del' command")
        async with self._lock:
            return self._delete(names)

    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob pattern, like KEYS."""
        async with self._lock:
            expired = [k for k, v in self._data.items() if v.is_expired()]
            for k in expired:
                del self._data[k]

            return [k for k in self._data if fnmatchcase(k, pattern)]

    async def flushdb(self) -> bool:
        """Clear all data. Useful for testing."""
        async with self._lock:
            self._data.clear()
            return True

    def pipeline(self, transaction: bool = True) -> "MemoryPipeline":
        """Start a command pipeline."""
        return MemoryPipeline(self, transaction=transaction)

    async def _execute_pipeline(
        self,
        commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]],
    ) -> list[Any]:
        """Apply queued commands in order under one lock acquisition.

        Every command runs, like a non-transactional Redis pipeline; the first
        error is raised once all replies are collected.
        """
        replies: list[Any] = []
        async with self._lock:
            for command, args, kwargs in commands:
                try:
                    if command == "set":
                        replies.append(self._write(*args, **kwargs))
                    elif command == "delete":
                        replies.append(self._delete(args))
                    else:
                        raise ResponseError(f"unknown command '{command}'")
                except (ResponseError, DataError) as e:
                    replies.append(e)

        for reply in replies:
            if isinstance(reply, Exception):
                raise reply
        return replies


class MemoryPipeline:
    """Buffers commands for a MemoryKVClient until execute()."""

    def __init__(self, client: MemoryKVClient, transaction: bool = True) -> None:
        self._client = client
        self.transaction = transaction
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def set(self, name: str, value: Any, ex: int | None = None) -> "MemoryPipeline":
        """Queue a SET."""
        self._commands.append(("set", (name, value), {"ex": ex}))
        return self

    def delete(self, *names: str) -> "MemoryPipeline":
        """Queue a DEL."""
        self._commands.append(("delete", names, {}))
        return self

    def __len__(self) -> int:
        return len(self._commands)

    async def execute(self) -> list[Any]:
        """Flush queued commands and return their replies."""
        commands, self._commands = self._commands, []
        if not commands:
            return []
        return await self._client._execute_pipeline(commands)

    async def reset(self) -> None:
        """Discard queued commands."""
        self._commands = []

    async def __aenter__(self) -> "MemoryPipeline":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.reset()


class MemoryConnection:
    """Connection to an in-process MemoryKVClient.

    Reports the same lifecycle statuses as RedisConnection so drivers can be
    exercised without a server.
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize memory connection.

        Args:
            **kwargs: Ignored (for compatibility with other backends)
        """
        self._client = MemoryKVClient()
        self._status = ConnectionStatus.IDLE

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._status

    @property
    def client(self) -> MemoryKVClient:
        """The in-memory client.

        Raises:
            ConnectionNotReadyError: If not connected
        """
        if self._status is not ConnectionStatus.NORMAL:
            raise ConnectionNotReadyError(
                f"Memory connection is {self._status.value}, call connect() first"
            )
        return self._client

    async def connect(self) -> None:
        """Mark the connection usable. Stored data survives reconnects."""
        self._status = ConnectionStatus.NORMAL
        logger.info("Memory store connected")

    async def close(self) -> None:
        """Mark the connection closed."""
        self._status = ConnectionStatus.CLOSED
        logger.info("Memory store closed")
