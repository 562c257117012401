"""
Redis connection manager with retry logic and health checks.

This module provides a thread-safe Redis client with:
- Connection pooling for performance
- Retry logic for transient connection failures
- Lexicographic sorted-set range scans used by the order indexes
- Transactional pipelines for atomic multi-key writes

Example:
    >>> from libs.redis_client import RedisClient
    >>> client = RedisClient(host="localhost", port=6379)
    >>> if client.health_check():
    ...     client.set("order:0x01", '{"orderHash": "0x01"}')
    ...     value = client.get("order:0x01")
    >>> client.close()
"""

import logging
from typing import Any, cast

import redis
from redis.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

# Retries cover transient network faults only; command errors surface immediately.
_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type((ConnectionError, TimeoutError)),
    reraise=True,
)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""

    pass


class RedisClient:
    """
    Redis connection manager with retry logic.

    Attributes:
        host: Redis server hostname
        port: Redis server port
        db: Redis database number (0-15)
        pool: Connection pool (thread-safe)

    Example:
        >>> client = RedisClient(host="localhost", port=6379)
        >>> client.zadd("idx:offerer-createdAt-all:0xabc", {"00000000001700000000:0x01": 0})
        >>> client.zrangebylex("idx:offerer-createdAt-all:0xabc", "-", "+")
        ['00000000001700000000:0x01']

    Notes:
        - Connection pool is thread-safe
        - Retry logic handles transient network errors
        - All methods log errors before re-raising
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        max_connections: int = 10,
        socket_connect_timeout: int = 5,
        socket_timeout: int = 5,
        client: redis.Redis | None = None,
    ):
        """
        Initialize Redis client with connection pooling.

        Args:
            host: Redis server hostname (default: localhost)
            port: Redis server port (default: 6379)
            db: Redis database number (default: 0)
            password: Redis password (default: None)
            max_connections: Max connections in pool (default: 10)
            socket_connect_timeout: Connection timeout in seconds (default: 5)
            socket_timeout: Socket operation timeout in seconds (default: 5)
            client: Pre-built ``redis.Redis`` (e.g. ``fakeredis.FakeRedis``);
                must be created with ``decode_responses=True``. When given,
                no pool is created.

        Raises:
            RedisConnectionError: If initial connection fails
        """
        self.host = host
        self.port = port
        self.db = db

        if client is not None:
            self._client = client
            self.pool = client.connection_pool
            return

        logger.info(
            f"Initializing Redis client: {host}:{port} (db={db}, "
            f"max_connections={max_connections})"
        )

        try:
            self.pool = ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                max_connections=max_connections,
                socket_connect_timeout=socket_connect_timeout,
                socket_timeout=socket_timeout,
            )
            self._client = redis.Redis(connection_pool=self.pool)
            self._client.ping()
            logger.info("Redis connection established successfully")

        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise RedisConnectionError(f"Cannot connect to Redis at {host}:{port}") from e

    @_retry_transient
    def get(self, key: str) -> str | None:
        """
        Get value from Redis with retry logic.

        Args:
            key: Redis key to retrieve

        Returns:
            Value as string, or None if key doesn't exist

        Raises:
            RedisError: If operation fails after retries
        """
        try:
            result = self._client.get(key)
            return cast(str | None, result)
        except RedisError as e:
            logger.error(f"Redis GET failed for key '{key}': {e}")
            raise

    @_retry_transient
    def mget(self, keys: list[str]) -> list[str | None]:
        """
        Get multiple values from Redis in a single round-trip.

        Args:
            keys: List of Redis keys to retrieve

        Returns:
            List of values in the same order as keys. Missing keys return None.

        Notes:
            - Empty list returns empty list (not an error)
        """
        if not keys:
            return []

        try:
            result = self._client.mget(keys)
            return cast(list[str | None], result)
        except RedisError as e:
            logger.error(f"Redis MGET failed for {len(keys)} keys: {e}")
            raise

    @_retry_transient
    def set(self, key: str, value: str, ex: int | None = None) -> None:
        """
        Set value in Redis with optional expiration.

        Args:
            key: Redis key to set
            value: Value to store (string)
            ex: Expiration time in seconds (SET EX)
        """
        try:
            self._client.set(key, value, ex=ex)
        except RedisError as e:
            logger.error(f"Redis SET failed for key '{key}': {e}")
            raise

    @_retry_transient
    def delete(self, *keys: str) -> int:
        """
        Delete one or more keys from Redis with retry logic.

        Returns:
            Number of keys deleted
        """
        if not keys:
            return 0
        try:
            result = self._client.delete(*keys)
            return cast(int, result)
        except RedisError as e:
            logger.error(f"Redis DELETE failed for keys {keys}: {e}")
            raise

    def pipeline(self, transaction: bool = True) -> Any:
        """
        Create a pipeline for atomic operations with WATCH/MULTI/EXEC.

        Args:
            transaction: If True, wrap commands in MULTI/EXEC (default: True)

        Returns:
            Redis Pipeline object

        Example:
            >>> with client.pipeline() as pipe:
            ...     pipe.watch("order:0x01")
            ...     current = pipe.get("order:0x01")
            ...     pipe.multi()
            ...     pipe.set("order:0x01", updated)
            ...     pipe.execute()

        Notes:
            - WatchError is raised if a watched key was modified by another client
            - Pipelines are not retried; callers decide retry policy
        """
        return self._client.pipeline(transaction=transaction)

    @_retry_transient
    def zadd(self, key: str, mapping: dict[str, float]) -> int:
        """
        Add members to a sorted set with scores.

        Returns:
            Number of new members added
        """
        try:
            result = self._client.zadd(key, mapping)
            return cast(int, result)
        except RedisError as e:
            logger.error(f"Redis ZADD failed for key '{key}': {e}")
            raise

    @_retry_transient
    def zrangebylex(
        self, key: str, min: str, max: str, start: int | None = None, num: int | None = None
    ) -> list[str]:
        """
        Return sorted-set members between two lexicographic bounds, ascending.

        Args:
            key: Redis sorted set key (all members share one score)
            min: Lower bound ("-", "[value" inclusive or "(value" exclusive)
            max: Upper bound ("+", "[value" inclusive or "(value" exclusive)
            start: Offset for LIMIT (requires num)
            num: Maximum members to return

        Example:
            >>> client.zrangebylex("idx:chainId-createdAt-all:1", "-", "+", start=0, num=10)
        """
        try:
            result = self._client.zrangebylex(key, min, max, start=start, num=num)
            return cast(list[str], result)
        except RedisError as e:
            logger.error(f"Redis ZRANGEBYLEX failed for key '{key}': {e}")
            raise

    @_retry_transient
    def zrevrangebylex(
        self, key: str, max: str, min: str, start: int | None = None, num: int | None = None
    ) -> list[str]:
        """
        Return sorted-set members between two lexicographic bounds, descending.

        Note the argument order follows Redis: upper bound first.
        """
        try:
            result = self._client.zrevrangebylex(key, max, min, start=start, num=num)
            return cast(list[str], result)
        except RedisError as e:
            logger.error(f"Redis ZREVRANGEBYLEX failed for key '{key}': {e}")
            raise

    @_retry_transient
    def zlexcount(self, key: str, min: str = "-", max: str = "+") -> int:
        """Count sorted-set members between two lexicographic bounds."""
        try:
            result = self._client.zlexcount(key, min, max)
            return cast(int, result)
        except RedisError as e:
            logger.error(f"Redis ZLEXCOUNT failed for key '{key}': {e}")
            raise

    def health_check(self) -> bool:
        """
        Check Redis connectivity.

        Returns:
            True if Redis is reachable, False otherwise
        """
        try:
            self._client.ping()
            return True
        except RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def close(self) -> None:
        """Close connection pool and release resources."""
        logger.info("Closing Redis connection pool")
        self.pool.disconnect()

    def __enter__(self) -> "RedisClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"RedisClient(host={self.host}, port={self.port}, db={self.db})"
