"""
Signed order tracking.

Components:
    OrderRepository: Public operations (query, create, status update, delete)
    QueryRouter: Maps filter sets onto secondary indexes
    IndexCatalog: Supported filter combinations
    OrderValidator: Admission checks for new orders
    RedisOrderStore: Redis-backed storage

Usage:
    from libs.orders import build_order_repository

    repository = build_order_repository()
    page = repository.get_orders(limit=20, filters={"offerer": "0x...", "orderStatus": "open"})
"""

from libs.orders.comparison import ComparisonFilter, ComparisonOperator, parse_comparison_filter
from libs.orders.cursor import decode_cursor, encode_cursor
from libs.orders.factory import build_order_repository, configure_service_logging
from libs.orders.index_catalog import DEFAULT_INDEX_CATALOG, IndexCatalog, IndexTemplate, QueryParam
from libs.orders.models import (
    Order,
    OrderInput,
    OrderOutput,
    OrderStatus,
    QueryResult,
    SettledAmount,
    SortField,
    composite_attributes,
)
from libs.orders.query_router import MAX_ORDERS, QueryRouter
from libs.orders.repository import OrderRepository
from libs.orders.store import IndexPage, IndexQuery, OrderStore, RedisOrderStore
from libs.orders.validator import OrderValidationResult, OrderValidator

__all__ = [
    "ComparisonFilter",
    "ComparisonOperator",
    "parse_comparison_filter",
    "encode_cursor",
    "decode_cursor",
    "build_order_repository",
    "configure_service_logging",
    "DEFAULT_INDEX_CATALOG",
    "IndexCatalog",
    "IndexTemplate",
    "QueryParam",
    "Order",
    "OrderInput",
    "OrderOutput",
    "OrderStatus",
    "QueryResult",
    "SettledAmount",
    "SortField",
    "composite_attributes",
    "MAX_ORDERS",
    "QueryRouter",
    "OrderRepository",
    "IndexPage",
    "IndexQuery",
    "OrderStore",
    "RedisOrderStore",
    "OrderValidationResult",
    "OrderValidator",
]
