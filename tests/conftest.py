"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from rache_redis.backends.memory import MemoryConnection
from rache_redis.driver import RedisDriver
from rache_redis.protocols import ConnectionStatus


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary for testing."""
    return {
        "name": "users-cache",
        "connection": {
            "backend": "memory",
            "host": "redis.internal",
            "port": 6380,
            "db": 2,
        },
        "logging": {"level": "DEBUG", "format": "text"},
    }


@pytest_asyncio.fixture
async def memory_connection() -> MemoryConnection:
    """Create a connected memory connection."""
    connection = MemoryConnection()
    await connection.connect()
    return connection


@pytest.fixture
def driver(memory_connection) -> RedisDriver:
    """Create a driver over the memory backend."""
    return RedisDriver(memory_connection, name="test")


@pytest.fixture
def fake_client() -> MagicMock:
    """Mock Redis client recording every command."""
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.mget = AsyncMock(return_value=[])
    client.set = AsyncMock(return_value=True)
    client.mset = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=0)

    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=None)
    pipe.execute = AsyncMock(return_value=[])
    client.pipeline = MagicMock(return_value=pipe)
    return client


@pytest.fixture
def fake_connection(fake_client) -> MagicMock:
    """Mock connection in normal state wrapping the fake client."""
    connection = MagicMock()
    connection.client = fake_client
    connection.status = ConnectionStatus.NORMAL
    return connection
