"""
Order repository: the public surface of the order core.

Composes the query router, the validator and the store. Handlers call this
class and map its exceptions to their transport; nothing here retries.

Operations:
    - get_orders / get_by_offerer / get_by_order_status / get_by_filler /
      get_by_chain_id: paginated index queries
    - get_by_hash: point lookup
    - get_nonce_by_address_and_chain: last nonce used, or a fresh random one
    - create_order: validate, then put order + nonce atomically
    - update_order_status: status transition with composite recomputation
    - delete_orders: batch delete
    - count_orders_by_offerer_and_status: partition size
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from libs.common.exceptions import OrderNotFoundError, OrderValidationError
from libs.common.logging import log_with_context
from libs.orders.clock import Clock, current_timestamp_in_seconds
from libs.orders.index_catalog import QueryParam
from libs.orders.models import (
    Order,
    OrderStatus,
    QueryResult,
    SettledAmount,
    SortField,
    TableKey,
    attribute_value,
    composite_attributes,
)
from libs.orders.nonce import generate_random_nonce
from libs.orders.query_router import QueryRouter
from libs.orders.store import OrderStore
from libs.orders.validator import OrderValidator
from libs.redis_client import RedisKeys

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Reads and writes orders through a single store.

    Args:
        store: Storage backend
        router: Query router sharing the same store
        validator: Admission checks run by create_order
        clock: Source of ``createdAt`` timestamps

    Example:
        >>> repository = OrderRepository(store, QueryRouter(store), OrderValidator(clock))
        >>> repository.create_order(order)
        >>> page = repository.get_orders(limit=20, filters={"offerer": order.offerer})
    """

    def __init__(
        self,
        store: OrderStore,
        router: QueryRouter,
        validator: OrderValidator,
        clock: Clock = current_timestamp_in_seconds,
    ) -> None:
        self._store = store
        self._router = router
        self._validator = validator
        self._clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_orders(
        self, limit: int | None, filters: Mapping[str, Any], cursor: str | None = None
    ) -> QueryResult:
        """Route ``filters`` to an index (or primary-key lookup) and return one page."""
        return self._router.route(filters, limit=limit, cursor=cursor)

    def get_by_offerer(
        self,
        offerer: str,
        limit: int | None = None,
        cursor: str | None = None,
        sort_key: SortField | str | None = None,
        sort: str | None = None,
        desc: bool | None = None,
    ) -> QueryResult:
        return self._query_single_dimension(
            QueryParam.OFFERER, offerer, limit, cursor, sort_key, sort, desc
        )

    def get_by_order_status(
        self,
        order_status: OrderStatus | str,
        limit: int | None = None,
        cursor: str | None = None,
        sort_key: SortField | str | None = None,
        sort: str | None = None,
        desc: bool | None = None,
    ) -> QueryResult:
        return self._query_single_dimension(
            QueryParam.ORDER_STATUS, order_status, limit, cursor, sort_key, sort, desc
        )

    def get_by_filler(
        self,
        filler: str,
        limit: int | None = None,
        cursor: str | None = None,
        sort_key: SortField | str | None = None,
        sort: str | None = None,
        desc: bool | None = None,
    ) -> QueryResult:
        return self._query_single_dimension(
            QueryParam.FILLER, filler, limit, cursor, sort_key, sort, desc
        )

    def get_by_chain_id(
        self,
        chain_id: int,
        limit: int | None = None,
        cursor: str | None = None,
        sort_key: SortField | str | None = None,
        sort: str | None = None,
        desc: bool | None = None,
    ) -> QueryResult:
        return self._query_single_dimension(
            QueryParam.CHAIN_ID, chain_id, limit, cursor, sort_key, sort, desc
        )

    def get_by_hash(self, order_hash: str) -> Order | None:
        item = self._store.get_item(order_hash)
        return Order.model_validate(item) if item is not None else None

    def get_nonce_by_address_and_chain(self, offerer: str, chain_id: int) -> str:
        """Return the last nonce ``offerer`` used on ``chain_id``, or a fresh random nonce."""
        nonce = self._store.get_nonce(RedisKeys.nonce(offerer, chain_id))
        return nonce if nonce is not None else generate_random_nonce()

    def count_orders_by_offerer_and_status(
        self, offerer: str, order_status: OrderStatus | str
    ) -> int:
        template = self._router.catalog.template_for(
            QueryParam.OFFERER.value, QueryParam.ORDER_STATUS.value
        )
        partition_value = template.build_key({"offerer": offerer, "orderStatus": order_status})
        return self._store.count_index(template, partition_value)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_order(self, order: Order) -> Order:
        """
        Validate ``order`` and store it with its nonce in one transaction.

        Returns:
            The stored order, with ``createdAt`` set

        Raises:
            OrderValidationError: The order failed a field check
            StorageError: The transactional write failed
        """
        result = self._validator.validate(order)
        if not result.valid:
            log_with_context(
                logger,
                "WARNING",
                "Order rejected",
                order_hash=order.order_hash,
                reason=result.error_string,
            )
            raise OrderValidationError(result.error_string or "Invalid order")

        stored = self.put_order_and_update_nonce_transaction(order)
        log_with_context(
            logger,
            "INFO",
            "Order accepted",
            order_hash=stored.order_hash,
            offerer=stored.offerer,
            chain_id=stored.chain_id,
        )
        return stored

    def put_order_and_update_nonce_transaction(self, order: Order) -> Order:
        """Write ``order`` (with composites and ``createdAt``) and its offerer nonce atomically."""
        stored = order.model_copy(update={"created_at": self._clock()})
        item = stored.to_item()
        item.update(composite_attributes(item))
        self._store.transact_put_order(
            item,
            nonce_key=RedisKeys.nonce(stored.offerer, stored.chain_id),
            nonce=stored.nonce,
        )
        return stored

    def update_order_status(
        self,
        order_hash: str,
        status: OrderStatus,
        tx_hash: str | None = None,
        settled_amounts: Sequence[SettledAmount] | None = None,
    ) -> Order:
        """
        Move an order to ``status`` and recompute its composite attributes.

        Raises:
            OrderNotFoundError: No order with ``order_hash``
            OrderValidationError: ``status`` is not an order status, or the updated
                item no longer parses as an order (nothing is written)
            StorageError: The store failed or the order changed concurrently
        """
        try:
            status = OrderStatus(status)
        except ValueError:
            raise OrderValidationError(f"Invalid order status: {status}") from None

        def apply(item: dict[str, Any]) -> dict[str, Any]:
            item[TableKey.ORDER_STATUS.value] = attribute_value(status)
            if tx_hash:
                item["txHash"] = tx_hash
            if settled_amounts:
                item["settledAmounts"] = [
                    amount.model_dump(mode="json", by_alias=True) for amount in settled_amounts
                ]
            item.update(composite_attributes(item))
            try:
                Order.model_validate(item)
            except ValidationError as e:
                raise OrderValidationError(
                    f"Updated order is invalid: {e.error_count()} error(s)"
                ) from e
            return item

        try:
            updated = self._store.update_order(order_hash, apply)
            if updated is None:
                raise OrderNotFoundError(
                    f"cannot find order by hash when updating order status: {order_hash}"
                )
        except Exception:
            logger.error(
                "updateOrderStatus error",
                exc_info=True,
                extra={"context": {"order_hash": order_hash, "status": attribute_value(status)}},
            )
            raise

        return Order.model_validate(updated)

    def delete_orders(self, order_hashes: Sequence[str]) -> None:
        self._store.batch_delete(order_hashes)

    def _query_single_dimension(
        self,
        dimension: QueryParam,
        value: Any,
        limit: int | None,
        cursor: str | None,
        sort_key: SortField | str | None,
        sort: str | None,
        desc: bool | None,
    ) -> QueryResult:
        template = self._router.catalog.template_for(dimension.value)
        return self._router.query_index(
            template,
            template.build_key({dimension.value: value}),
            limit=limit,
            cursor=cursor,
            sort_key=sort_key,
            sort=sort,
            desc=desc,
        )
