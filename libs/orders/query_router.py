"""
Query routing: filter set -> index scan or primary-key lookup.

Routing rules:
    1. Modifiers (sortKey, sort, desc) are removed; the remaining keys are
       the requested dimensions. Keys with a None value count as absent.
    2. ``{orderHash}`` is a point lookup, ``{orderHashes}`` a batch lookup.
    3. Otherwise the catalog template whose dimensions equal the request
       exactly is scanned; no match raises InvalidQueryError.

Scans use the caller's sortKey (default createdAt), apply the ``sort``
comparison only when a sortKey was given, run descending unless
``desc`` is false, and never return more than ``max_orders`` items.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from libs.common.exceptions import InvalidQueryError
from libs.orders.comparison import parse_comparison_filter
from libs.orders.cursor import decode_cursor, encode_cursor
from libs.orders.index_catalog import (
    BATCH_LOOKUP_DIMENSIONS,
    DEFAULT_INDEX_CATALOG,
    MODIFIER_PARAMS,
    POINT_LOOKUP_DIMENSIONS,
    IndexCatalog,
    IndexTemplate,
    QueryParam,
)
from libs.orders.models import Order, QueryResult, SortField
from libs.orders.store import IndexQuery, OrderStore

logger = logging.getLogger(__name__)

MAX_ORDERS = 50


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no")
    return bool(value)


class QueryRouter:
    """
    Resolves a filter set to exactly one access path and executes it.

    Args:
        store: Storage backend
        catalog: Supported index templates (injected, immutable)
        max_orders: Hard ceiling on page size regardless of caller input

    Example:
        >>> router = QueryRouter(store)
        >>> page = router.route({"offerer": "0xabc", "orderStatus": "open"}, limit=10)
        >>> next_page = router.route(
        ...     {"offerer": "0xabc", "orderStatus": "open"}, limit=10, cursor=page.cursor
        ... )
    """

    def __init__(
        self,
        store: OrderStore,
        catalog: IndexCatalog = DEFAULT_INDEX_CATALOG,
        max_orders: int = MAX_ORDERS,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._max_orders = max_orders

    @property
    def catalog(self) -> IndexCatalog:
        return self._catalog

    def effective_limit(self, limit: int | None) -> int:
        """Clamp ``limit`` to ``max_orders``; missing or non-positive means the maximum."""
        if not limit or limit <= 0:
            return self._max_orders
        return min(limit, self._max_orders)

    @staticmethod
    def requested_dimensions(filters: Mapping[str, Any]) -> frozenset[str]:
        present = frozenset(key for key, value in filters.items() if value is not None)
        return present - MODIFIER_PARAMS

    def route(
        self,
        filters: Mapping[str, Any],
        limit: int | None = None,
        cursor: str | None = None,
    ) -> QueryResult:
        """
        Execute the query described by ``filters``.

        Raises:
            InvalidQueryError: Unsupported dimension combination or sort key
            InvalidFilterExpressionError: Malformed ``sort`` expression
            InvalidCursorError: Cursor undecodable or minted for another index
            StorageError: Store failure
        """
        requested = self.requested_dimensions(filters)

        if requested == POINT_LOOKUP_DIMENSIONS:
            item = self._store.get_item(filters[QueryParam.ORDER_HASH.value])
            return QueryResult(orders=[Order.model_validate(item)] if item else [])

        if requested == BATCH_LOOKUP_DIMENSIONS:
            order_hashes = filters[QueryParam.ORDER_HASHES.value]
            if isinstance(order_hashes, str):
                order_hashes = [order_hashes]
            return QueryResult(orders=self.lookup(list(order_hashes)))

        template = self._catalog.match(requested)
        if template is None:
            logger.warning(
                "Unsupported query dimensions",
                extra={"context": {"requested": sorted(requested)}},
            )
            raise InvalidQueryError(
                "Invalid query, must query with one of the following params: "
                f"[{', '.join(self._catalog.supported_dimension_sets())}]"
            )

        return self.query_index(
            template,
            template.build_key(filters),
            limit=limit,
            cursor=cursor,
            sort_key=filters.get(QueryParam.SORT_KEY.value),
            sort=filters.get(QueryParam.SORT.value),
            desc=filters.get(QueryParam.DESC.value),
        )

    def query_index(
        self,
        template: IndexTemplate,
        partition_value: str,
        limit: int | None = None,
        cursor: str | None = None,
        sort_key: SortField | str | None = None,
        sort: str | None = None,
        desc: bool | str | None = None,
    ) -> QueryResult:
        """Scan one partition of ``template``'s index and encode the continuation, if any."""
        try:
            sort_field = self._catalog.resolve_sort_field(sort_key)
        except ValueError as e:
            raise InvalidQueryError(
                f"Invalid sortKey '{sort_key}', must be one of "
                f"[{', '.join(field.value for field in self._catalog.sort_fields)}]"
            ) from e

        comparison = None
        if sort_key is not None:
            comparison = parse_comparison_filter(sort)
        elif sort is not None:
            logger.debug(
                "Ignoring sort expression without sortKey", extra={"context": {"sort": sort}}
            )

        index_id = template.index_id(sort_field)
        start_key = decode_cursor(cursor, index_id) if cursor else None

        page = self._store.query_index(
            IndexQuery(
                template=template,
                partition_value=partition_value,
                sort_field=sort_field,
                comparison=comparison,
                descending=_as_bool(desc, default=True),
                limit=self.effective_limit(limit),
                start_key=start_key,
            )
        )

        return QueryResult(
            orders=[Order.model_validate(item) for item in page.items],
            cursor=encode_cursor(page.last_evaluated_key) if page.last_evaluated_key else None,
        )

    def lookup(self, order_hashes: Sequence[str]) -> list[Order]:
        """Batch primary-key lookup; hashes with no stored order are omitted."""
        return [Order.model_validate(item) for item in self._store.batch_get_items(order_hashes)]
