"""Wiring for a ready-to-use :class:`OrderRepository`."""

from __future__ import annotations

import logging

from libs.common.logging import configure_logging
from libs.orders.clock import Clock, current_timestamp_in_seconds
from libs.orders.config import OrderServiceConfig, get_config
from libs.orders.index_catalog import DEFAULT_INDEX_CATALOG, IndexCatalog
from libs.orders.query_router import QueryRouter
from libs.orders.repository import OrderRepository
from libs.orders.store import RedisOrderStore
from libs.orders.validator import OrderValidator
from libs.redis_client import RedisClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "order_service"


def configure_service_logging(config: OrderServiceConfig | None = None) -> logging.Logger:
    """Install JSON logging at the configured level under the service name."""
    config = config or get_config()
    return configure_logging(service_name=SERVICE_NAME, log_level=config.log_level)


def build_order_repository(
    config: OrderServiceConfig | None = None,
    redis_client: RedisClient | None = None,
    catalog: IndexCatalog = DEFAULT_INDEX_CATALOG,
    clock: Clock = current_timestamp_in_seconds,
) -> OrderRepository:
    """
    Build a repository from configuration.

    Args:
        config: Service configuration (default: read from environment)
        redis_client: Existing client; one is created from ``config`` if omitted
        catalog: Index catalog shared by the store and the router
        clock: Time source for validation and ``createdAt``

    Raises:
        RedisConnectionError: If a new client cannot reach Redis
    """
    config = config or get_config()
    if redis_client is None:
        redis_client = RedisClient(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            password=config.redis_password,
        )

    store = RedisOrderStore(redis_client, catalog)
    router = QueryRouter(store, catalog=catalog, max_orders=config.max_page_size)
    validator = OrderValidator(
        get_current_time=clock,
        min_offset=config.deadline_min_offset_seconds,
        allowed_reactors=config.allowed_reactors,
    )
    logger.info(
        "Order repository ready",
        extra={
            "context": {
                "templates": len(catalog.templates),
                "max_page_size": config.max_page_size,
                "reactor_allow_list": len(config.allowed_reactors),
            }
        },
    )
    return OrderRepository(store, router, validator, clock=clock)
