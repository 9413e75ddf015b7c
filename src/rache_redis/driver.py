"""Redis-backed cache driver for the cache hub."""

from collections.abc import Iterable, Mapping
from pathlib import Path

from rache_redis.batch import WriteBatch
from rache_redis.config import Config
from rache_redis.observability import (
    OperationContext,
    Timer,
    configure_logging,
    emit_timer,
    get_logger,
)
from rache_redis.plugins import create_connection
from rache_redis.protocols import ConnectionStatus, KVConnection
from rache_redis.values import CacheState, CacheValue, decode, encode, state_of

logger = get_logger(__name__)


def _key_list(keys: Iterable[str]) -> list[str]:
    """Materialize a key collection, refusing a single str."""
    if isinstance(keys, (str, bytes)):
        raise TypeError(f"Expected a collection of keys, got a single key: {keys!r}")
    return list(keys)


class RedisDriver:
    """Implements CacheDriver on top of a connected KVConnection.

    The driver owns no state and no connection lifecycle. It translates the
    hub's tri-state values to Redis bytes and back, and lets every transport
    error propagate unchanged.

    Example usage:
        connection = RedisConnection(host="127.0.0.1", password="secret")
        await connection.connect()
        driver = create_redis_driver(connection)

        await driver.set("user:1", Payload(b'{"name": "alice"}'), ttl=0)
        await driver.set("user:2", NEGATIVE, ttl=60)
        await driver.get("user:3")  # UNKNOWN
    """

    def __init__(self, connection: KVConnection, name: str = "redis") -> None:
        """Initialize the driver.

        Args:
            connection: Connected backing-store connection
            name: Name used to tag logs and metrics
        """
        self.connection = connection
        self.name = name

    async def exists(self, key: str) -> CacheState:
        """Check whether a key is absent, negatively cached or present.

        Redis has no existence check that also tells an empty value from a
        missing key, so this fetches the value.
        """
        raw = await self.connection.client.get(key)
        return state_of(decode(raw))

    async def get(self, key: str) -> CacheValue:
        """Get a value. Returns UNKNOWN if the key is absent."""
        return decode(await self.connection.client.get(key))

    async def get_multi(self, keys: Iterable[str]) -> dict[str, CacheValue]:
        """Get several values with one MGET.

        Args:
            keys: Collection of keys; a bare str is rejected

        Returns:
            An entry for every input key, UNKNOWN for absent ones.
        """
        keys = _key_list(keys)
        if not keys:
            return {}

        replies = await self.connection.client.mget(keys)
        return {key: decode(raw) for key, raw in zip(keys, replies)}

    async def set(self, key: str, value: CacheValue, ttl: int) -> bool:
        """Store a value, expiring after ttl seconds when ttl > 0.

        Returns True once the store acknowledges the write; it is not read back.
        """
        data = encode(value)
        if ttl > 0:
            await self.connection.client.set(key, data, ex=ttl)
        else:
            await self.connection.client.set(key, data)
        return True

    async def set_multi(self, values: Mapping[str, CacheValue], ttl: int) -> bool:
        """Store several values sharing one ttl.

        Without expiry this is a single MSET. With expiry every key gets its
        own SET EX, all flushed in one pipeline. Any failure in the pipeline
        fails the call; keys already applied are not rolled back.
        """
        batch = WriteBatch.from_values(values, ttl)
        if not batch:
            return True

        mode = "pipeline" if batch.expiring else "bulk"
        with OperationContext(driver=self.name, operation="set_multi"):
            with Timer() as timer:
                await batch.submit(self.connection.client)

            logger.debug(
                "Batch written",
                context={"keys": len(batch), "ttl": ttl, "mode": mode},
                duration_ms=timer.duration_ms,
            )
            emit_timer("driver.set_multi", timer.duration_ms, {"mode": mode})
        return True

    async def remove(self, key: str) -> bool:
        """Remove a key. Succeeds whether or not it existed."""
        await self.connection.client.delete(key)
        return True

    async def remove_multi(self, keys: Iterable[str]) -> int:
        """Remove keys with one DEL.

        Args:
            keys: Collection of keys; a bare str is rejected

        Returns:
            Number of keys that existed and were removed
        """
        keys = _key_list(keys)
        if not keys:
            return 0

        with OperationContext(driver=self.name, operation="remove_multi"):
            with Timer() as timer:
                removed = await self.connection.client.delete(*keys)

            logger.debug(
                "Keys removed",
                context={"keys": len(keys), "removed": removed},
                duration_ms=timer.duration_ms,
            )
            emit_timer("driver.remove_multi", timer.duration_ms)
        return removed

    def usable(self) -> bool:
        """Whether the connection is in normal operating state.

        Reads the connection's status only: no I/O, never raises.
        """
        return self.connection.status is ConnectionStatus.NORMAL


def create_redis_driver(connection: KVConnection, name: str = "redis") -> RedisDriver:
    """Wrap a connected KVConnection into a driver for the cache hub."""
    return RedisDriver(connection, name=name)


async def open_driver(config: Config | str | Path) -> RedisDriver:
    """Create, connect and wrap the configured connection.

    Applies the logging section before connecting.

    Args:
        config: Configuration, or path to a YAML or JSON configuration file

    Returns:
        A driver over a connected backend
    """
    if not isinstance(config, Config):
        config = Config.from_file(config)

    configure_logging(config.logging.level, config.logging.format)

    conn_config = config.connection
    connection = create_connection(conn_config.backend, **conn_config.backend_options())
    await connection.connect()

    logger.info(
        "Driver ready",
        context={"driver": config.name, "backend": conn_config.backend},
    )
    return create_redis_driver(connection, name=config.name)
