"""Protocol interfaces for the driver and its backing store."""

from rache_redis.protocols.driver import CacheDriver
from rache_redis.protocols.kv_client import (
    ConnectionStatus,
    KVClient,
    KVConnection,
    KVPipeline,
)

__all__ = [
    "CacheDriver",
    "ConnectionStatus",
    "KVClient",
    "KVConnection",
    "KVPipeline",
]
