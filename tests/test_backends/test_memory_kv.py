"""Tests for the in-memory Redis emulation."""

import asyncio

import pytest
from redis.exceptions import DataError, ResponseError

from rache_redis.backends.memory import MemoryConnection, MemoryKVClient
from rache_redis.exceptions import ConnectionNotReadyError
from rache_redis.protocols import ConnectionStatus, KVClient, KVConnection


@pytest.fixture
def kv_client():
    """Create a memory KV client."""
    return MemoryKVClient()


class TestMemoryKVClient:
    """Tests for MemoryKVClient."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, kv_client):
        """Test setting and getting a value."""
        assert await kv_client.set("key", b"value") is True
        assert await kv_client.get("key") == b"value"

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, kv_client):
        """Test getting a key that doesn't exist."""
        assert await kv_client.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_empty_value_is_stored(self, kv_client):
        """An empty value is a present key, not an absent one."""
        await kv_client.set("key", b"")
        assert await kv_client.get("key") == b""
        assert await kv_client.keys() == ["key"]

    @pytest.mark.asyncio
    async def test_values_coerced_like_redis(self, kv_client):
        """Text and numbers are stored as bytes."""
        await kv_client.set("s", "héllo")
        await kv_client.set("i", 42)
        await kv_client.set("f", 1.5)

        assert await kv_client.get("s") == "héllo".encode("utf-8")
        assert await kv_client.get("i") == b"42"
        assert await kv_client.get("f") == b"1.5"

    @pytest.mark.asyncio
    async def test_invalid_value_type(self, kv_client):
        """Unsupported types are rejected."""
        with pytest.raises(DataError):
            await kv_client.set("key", {"a": 1})

    @pytest.mark.asyncio
    async def test_mget(self, kv_client):
        """mget returns values positionally, None for absent keys."""
        await kv_client.mset({"a": b"1", "b": b""})

        assert await kv_client.mget(["a", "missing", "b"]) == [b"1", None, b""]
        assert await kv_client.mget("a", "b") == [b"1", b""]

    @pytest.mark.asyncio
    async def test_mset_empty_rejected(self, kv_client):
        """MSET needs at least one pair."""
        with pytest.raises(ResponseError):
            await kv_client.mset({})

    @pytest.mark.asyncio
    async def test_delete_counts_existing(self, kv_client):
        """delete returns the number of keys that existed."""
        await kv_client.mset({"a": b"1", "b": b"2"})

        assert await kv_client.delete("a", "b", "c") == 2
        assert await kv_client.delete("a") == 0

    @pytest.mark.asyncio
    async def test_ttl_expiration(self, kv_client):
        """Test that TTL causes expiration."""
        await kv_client.set("key", b"value", ex=1)

        assert await kv_client.get("key") == b"value"

        await asyncio.sleep(1.1)

        assert await kv_client.get("key") is None
        assert await kv_client.delete("key") == 0

    @pytest.mark.asyncio
    async def test_invalid_expire(self, kv_client):
        """Non-positive expiry is rejected like the server does."""
        with pytest.raises(ResponseError, match="invalid expire time"):
            await kv_client.set("key", b"value", ex=0)

    @pytest.mark.asyncio
    async def test_keys_glob_pattern(self, kv_client):
        """Test listing keys with a glob pattern."""
        await kv_client.set("prefix:key1", b"value1")
        await kv_client.set("prefix:key2", b"value2")
        await kv_client.set("other:key3", b"value3")

        assert sorted(await kv_client.keys("prefix:*")) == ["prefix:key1", "prefix:key2"]
        assert await kv_client.keys("*:key3") == ["other:key3"]
        assert await kv_client.keys("prefix:key?") != []

    @pytest.mark.asyncio
    async def test_keys_pattern_is_not_a_prefix(self, kv_client):
        """A pattern without wildcards matches only the exact key."""
        await kv_client.set("prefix:key1", b"value1")

        assert await kv_client.keys("prefix:") == []
        assert await kv_client.keys("prefix:key1") == ["prefix:key1"]

    @pytest.mark.asyncio
    async def test_keys_default_lists_everything(self, kv_client):
        """The default pattern matches all live keys."""
        await kv_client.mset({"a": b"1", "b": b""})

        assert sorted(await kv_client.keys()) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_flushdb(self, kv_client):
        """Test clearing all data."""
        await kv_client.mset({"key1": b"value1", "key2": b"value2"})
        await kv_client.flushdb()

        assert await kv_client.mget(["key1", "key2"]) == [None, None]

    def test_satisfies_protocol(self, kv_client):
        """MemoryKVClient implements KVClient."""
        assert isinstance(kv_client, KVClient)


class TestMemoryPipeline:
    """Tests for MemoryPipeline."""

    @pytest.mark.asyncio
    async def test_commands_buffered_until_execute(self, kv_client):
        """Nothing is applied before execute."""
        async with kv_client.pipeline(transaction=False) as pipe:
            pipe.set("a", b"1", ex=30).set("b", b"")
            assert len(pipe) == 2
            assert await kv_client.get("a") is None

            replies = await pipe.execute()

        assert replies == [True, True]
        assert await kv_client.mget(["a", "b"]) == [b"1", b""]

    @pytest.mark.asyncio
    async def test_delete_in_pipeline(self, kv_client):
        """Queued deletes report counts."""
        await kv_client.set("a", b"1")

        pipe = kv_client.pipeline()
        pipe.delete("a", "b")
        assert await pipe.execute() == [1]

    @pytest.mark.asyncio
    async def test_failure_applies_others_then_raises(self, kv_client):
        """Every command runs, then the first error is raised."""
        pipe = kv_client.pipeline(transaction=False)
        pipe.set("a", b"1", ex=10)
        pipe.set("bad", b"x", ex=-1)
        pipe.set("c", b"3", ex=10)

        with pytest.raises(ResponseError):
            await pipe.execute()

        assert await kv_client.mget(["a", "bad", "c"]) == [b"1", None, b"3"]

    @pytest.mark.asyncio
    async def test_empty_execute(self, kv_client):
        """Executing an empty pipeline is a no-op."""
        assert await kv_client.pipeline().execute() == []

    @pytest.mark.asyncio
    async def test_exit_discards_unflushed(self, kv_client):
        """Leaving the context drops queued commands."""
        async with kv_client.pipeline() as pipe:
            pipe.set("a", b"1")

        assert len(pipe) == 0
        assert await kv_client.get("a") is None


class TestMemoryConnection:
    """Tests for MemoryConnection."""

    def test_starts_idle(self):
        """A new connection is idle and has no client."""
        connection = MemoryConnection(host="ignored")

        assert connection.status is ConnectionStatus.IDLE
        with pytest.raises(ConnectionNotReadyError):
            connection.client

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        """connect and close move the status."""
        connection = MemoryConnection()

        await connection.connect()
        assert connection.status is ConnectionStatus.NORMAL
        await connection.client.set("k", b"v")

        await connection.close()
        assert connection.status is ConnectionStatus.CLOSED

        await connection.connect()
        assert await connection.client.get("k") == b"v"

    @pytest.mark.asyncio
    async def test_satisfies_protocol(self, memory_connection):
        """A connected MemoryConnection implements KVConnection."""
        assert isinstance(memory_connection, KVConnection)
