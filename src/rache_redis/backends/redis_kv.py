"""Redis connection backend."""

from typing import Any

import redis.asyncio as redis

from rache_redis.exceptions import ConnectionNotReadyError
from rache_redis.observability import get_logger
from rache_redis.protocols import ConnectionStatus

logger = get_logger(__name__)


class RedisConnection:
    """Owns a ``redis.asyncio.Redis`` client and tracks its lifecycle.

    Authentication happens on connect(): the initial PING fails if the
    credentials are rejected. Timeouts are the client's socket timeouts;
    the driver adds none of its own.
    """

    def __init__(
        self,
        url: str | None = None,
        host: str = "127.0.0.1",
        port: int = 6379,
        db: int = 0,
        username: str | None = None,
        password: str | None = None,
        socket_timeout: float | None = None,
        socket_connect_timeout: float | None = 5.0,
        health_check_interval: int = 0,
        **kwargs: Any,
    ) -> None:
        """Initialize Redis connection settings.

        Args:
            url: redis:// or rediss:// URL, takes precedence over host/port/db
            host: Server host
            port: Server port
            db: Database index
            username: ACL username
            password: Password (AUTH)
            socket_timeout: Per-command socket timeout in seconds
            socket_connect_timeout: Connect timeout in seconds
            health_check_interval: Seconds between connection health checks
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.url = url
        self.host = host
        self.port = port
        self.db = db
        self.username = username
        self.password = password
        self.socket_timeout = socket_timeout
        self.socket_connect_timeout = socket_connect_timeout
        self.health_check_interval = health_check_interval
        self._redis: redis.Redis | None = None
        self._status = ConnectionStatus.IDLE

    def _build_client(self) -> redis.Redis:
        """Create the client. Replies stay bytes, payloads are binary."""
        options: dict[str, Any] = {
            "decode_responses": False,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "socket_keepalive": True,
            "health_check_interval": self.health_check_interval,
        }
        if self.username is not None:
            options["username"] = self.username
        if self.password is not None:
            options["password"] = self.password

        if self.url:
            return redis.from_url(self.url, **options)
        return redis.Redis(host=self.host, port=self.port, db=self.db, **options)

    @property
    def endpoint(self) -> str:
        """Human readable server location, without credentials."""
        if self.url:
            return self.url.split("@")[-1]
        return f"{self.host}:{self.port}/{self.db}"

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._status

    @property
    def client(self) -> redis.Redis:
        """The connected client.

        Raises:
            ConnectionNotReadyError: If connect() has not succeeded
        """
        if self._redis is None or self._status is not ConnectionStatus.NORMAL:
            raise ConnectionNotReadyError(
                f"Redis connection to {self.endpoint} is {self._status.value}"
            )
        return self._redis

    async def connect(self) -> None:
        """Create the client and verify it with a PING.

        Raises:
            redis.RedisError: If the server is unreachable or rejects auth
        """
        if self._status is ConnectionStatus.NORMAL:
            return

        self._status = ConnectionStatus.CONNECTING
        client = self._build_client()
        try:
            await client.ping()
        except redis.RedisError as e:
            self._status = ConnectionStatus.FAILED
            await client.aclose()
            logger.warning(
                "Redis connection failed",
                context={"endpoint": self.endpoint},
                error=e,
            )
            raise

        self._redis = client
        self._status = ConnectionStatus.NORMAL
        logger.info("Redis connected", context={"endpoint": self.endpoint})

    async def close(self) -> None:
        """Close the client. Safe to call more than once."""
        if self._redis is None:
            self._status = ConnectionStatus.CLOSED
            return

        self._status = ConnectionStatus.CLOSING
        try:
            await self._redis.aclose()
        finally:
            self._redis = None
            self._status = ConnectionStatus.CLOSED
        logger.info("Redis connection closed", context={"endpoint": self.endpoint})
