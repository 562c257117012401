"""
Redis Client Library for the order service.

Components:
    RedisClient: Connection manager with retry logic
    RedisKeys: Centralized key formats for orders, indexes and nonces

Usage:
    from libs.redis_client import RedisClient, RedisKeys

    redis_client = RedisClient(host="localhost", port=6379)
    raw = redis_client.get(RedisKeys.order(order_hash))
"""

from .client import RedisClient, RedisConnectionError
from .keys import RedisKeys

__all__ = [
    "RedisClient",
    "RedisConnectionError",
    "RedisKeys",
]

__version__ = "0.1.0"
