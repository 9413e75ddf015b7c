"""rache-redis - Redis storage driver for the rache cache hub."""

from rache_redis.batch import WriteBatch, WriteIntent
from rache_redis.config import Config
from rache_redis.driver import RedisDriver, create_redis_driver, open_driver
from rache_redis.exceptions import (
    BackendNotFoundError,
    ConfigError,
    ConnectionNotReadyError,
    RacheError,
    UnencodableValueError,
)
from rache_redis.observability import (
    LogLevel,
    OperationContext,
    StructuredLogger,
    Timer,
    configure_logging,
    emit_timer,
    get_logger,
    register_metric_callback,
    unregister_metric_callback,
)
from rache_redis.protocols import (
    CacheDriver,
    ConnectionStatus,
    KVClient,
    KVConnection,
)
from rache_redis.values import (
    NEGATIVE,
    UNKNOWN,
    CacheState,
    CacheValue,
    NegativeMarker,
    Payload,
    Unknown,
    decode,
    encode,
    state_of,
)

__version__ = "0.1.0"
__all__ = [
    # Driver
    "CacheDriver",
    "Config",
    "RedisDriver",
    "create_redis_driver",
    "open_driver",
    # Values
    "NEGATIVE",
    "UNKNOWN",
    "CacheState",
    "CacheValue",
    "NegativeMarker",
    "Payload",
    "Unknown",
    "decode",
    "encode",
    "state_of",
    # Batching
    "WriteBatch",
    "WriteIntent",
    # Connections
    "ConnectionStatus",
    "KVClient",
    "KVConnection",
    # Errors
    "BackendNotFoundError",
    "ConfigError",
    "ConnectionNotReadyError",
    "RacheError",
    "UnencodableValueError",
    # Observability
    "LogLevel",
    "OperationContext",
    "StructuredLogger",
    "Timer",
    "configure_logging",
    "emit_timer",
    "get_logger",
    "register_metric_callback",
    "unregister_metric_callback",
]
