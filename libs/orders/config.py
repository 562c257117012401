"""Configuration for the order service.

All environment parsing lives here. Invalid numeric values fall back to the
default with a warning rather than failing startup.

Usage:
    from libs.orders.config import get_config

    config = get_config()
    redis_client = RedisClient(host=config.redis_host, port=config.redis_port)

Environment variables:
    REDIS_HOST, REDIS_PORT, REDIS_DB, REDIS_PASSWORD
    ORDERS_MAX_PAGE_SIZE               (default 50)
    ORDER_DEADLINE_MIN_OFFSET_SECONDS  (default 60)
    ALLOWED_REACTORS                   (comma-separated; empty allows any)
    LOG_LEVEL                          (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from libs.common.exceptions import ConfigurationError
from libs.orders.query_router import MAX_ORDERS
from libs.orders.validator import DEFAULT_MIN_DEADLINE_OFFSET_SECONDS

logger = logging.getLogger(__name__)


def _get_int_env(name: str, default: int) -> int:
    """Parse int from environment variable with fallback to default.

    Args:
        name: Environment variable name
        default: Default value if env var is missing or invalid

    Returns:
        Parsed int value or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s=%s; using default=%s", name, raw, default)
        return default


def _get_list_env(name: str) -> tuple[str, ...]:
    """Parse a comma-separated environment variable, dropping blanks."""
    raw = os.getenv(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class OrderServiceConfig:
    """Resolved order service configuration."""

    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    max_page_size: int = MAX_ORDERS
    deadline_min_offset_seconds: int = DEFAULT_MIN_DEADLINE_OFFSET_SECONDS
    allowed_reactors: tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"


def get_config() -> OrderServiceConfig:
    """Build configuration from the environment.

    Raises:
        ConfigurationError: If a value is present but unusable
    """
    max_page_size = _get_int_env("ORDERS_MAX_PAGE_SIZE", MAX_ORDERS)
    if max_page_size <= 0:
        raise ConfigurationError(f"ORDERS_MAX_PAGE_SIZE must be positive, got {max_page_size}")

    min_offset = _get_int_env(
        "ORDER_DEADLINE_MIN_OFFSET_SECONDS", DEFAULT_MIN_DEADLINE_OFFSET_SECONDS
    )
    if min_offset < 0:
        raise ConfigurationError(
            f"ORDER_DEADLINE_MIN_OFFSET_SECONDS must be non-negative, got {min_offset}"
        )

    return OrderServiceConfig(
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=_get_int_env("REDIS_PORT", 6379),
        redis_db=_get_int_env("REDIS_DB", 0),
        redis_password=os.getenv("REDIS_PASSWORD") or None,
        max_page_size=max_page_size,
        deadline_min_offset_seconds=min_offset,
        allowed_reactors=_get_list_env("ALLOWED_REACTORS"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
