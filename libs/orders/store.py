"""
Order storage.

:class:`OrderStore` is the contract the router and repository depend on.
:class:`RedisOrderStore` implements it on Redis:

- ``order:{orderHash}`` holds the JSON item (order fields plus composites).
- ``idx:{indexId}:{partitionValue}`` is a sorted set per index partition.
  All members share score 0 and have the form ``{sortValue:020d}:{orderHash}``,
  so lexicographic order is sort-value order with the hash as tie-breaker
  and ZRANGEBYLEX gives exact, resumable range scans.
- ``nonce:{offerer}-{chainId}`` holds the last nonce used.

Writes that touch an order and its index entries run in one MULTI/EXEC.
Read-modify-write paths WATCH the order key; a concurrent change aborts the
write with :class:`StorageError` rather than retrying.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from redis.exceptions import RedisError, WatchError

from libs.common.exceptions import InvalidCursorError, StorageError
from libs.orders.comparison import ComparisonFilter, ComparisonOperator
from libs.orders.index_catalog import IndexCatalog, IndexTemplate
from libs.orders.models import SortField, TableKey
from libs.redis_client import RedisClient, RedisKeys

logger = logging.getLogger(__name__)

_SORT_VALUE_WIDTH = 20
_MEMBER_SEPARATOR = ":"
# Next character after the separator; "{value};" sorts after every "{value}:{hash}".
_AFTER_SEPARATOR = ";"
_MIN_BOUND = "-"
_MAX_BOUND = "+"

ItemMutation = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True)
class IndexQuery:
    """A range scan over one partition of one secondary index."""

    template: IndexTemplate
    partition_value: str
    sort_field: SortField = SortField.CREATED_AT
    comparison: ComparisonFilter | None = None
    descending: bool = True
    limit: int = 50
    start_key: dict[str, Any] | None = None

    @property
    def index_id(self) -> str:
        return self.template.index_id(self.sort_field)


@dataclass(frozen=True)
class IndexPage:
    """Items from a scan and, if truncated, the key of the last item returned."""

    items: list[dict[str, Any]]
    last_evaluated_key: dict[str, Any] | None = None


class OrderStore(Protocol):
    """Storage operations the order core consumes."""

    def get_item(self, order_hash: str) -> dict[str, Any] | None: ...

    def batch_get_items(self, order_hashes: Sequence[str]) -> list[dict[str, Any]]: ...

    def query_index(self, query: IndexQuery) -> IndexPage: ...

    def count_index(self, template: IndexTemplate, partition_value: str) -> int: ...

    def transact_put_order(self, item: dict[str, Any], nonce_key: str, nonce: str) -> None: ...

    def update_order(self, order_hash: str, mutate: ItemMutation) -> dict[str, Any] | None: ...

    def get_nonce(self, nonce_key: str) -> str | None: ...

    def batch_delete(self, order_hashes: Sequence[str]) -> None: ...


def _pad(value: int) -> str:
    return f"{value:0{_SORT_VALUE_WIDTH}d}"


def _member(sort_value: int, order_hash: str) -> str:
    return f"{_pad(sort_value)}{_MEMBER_SEPARATOR}{order_hash}"


def _parse_member(member: str) -> tuple[int, str]:
    sort_value, order_hash = member.split(_MEMBER_SEPARATOR, 1)
    return int(sort_value), order_hash


def comparison_bounds(comparison: ComparisonFilter | None) -> tuple[str, str]:
    """
    Translate a comparison into (min, max) ZRANGEBYLEX bounds.

    Examples:
        >>> comparison_bounds(None)
        ('-', '+')
    """
    if comparison is None:
        return _MIN_BOUND, _MAX_BOUND

    value = _pad(comparison.values[0])
    # "[{v}:" is the first member with value v, "({v}:" stops before it, "({v};" stops after it.
    first_of = f"[{value}{_MEMBER_SEPARATOR}"
    before = f"({value}{_MEMBER_SEPARATOR}"
    after = f"({value}{_AFTER_SEPARATOR}"

    operator = comparison.operator
    if operator is ComparisonOperator.EQ:
        return first_of, after
    if operator is ComparisonOperator.LT:
        return _MIN_BOUND, before
    if operator is ComparisonOperator.LTE:
        return _MIN_BOUND, after
    if operator is ComparisonOperator.GT:
        return after, _MAX_BOUND
    if operator is ComparisonOperator.GTE:
        return first_of, _MAX_BOUND
    # between is inclusive on both ends
    return first_of, f"({_pad(comparison.values[1])}{_AFTER_SEPARATOR}"


def _tighter_min(current: str, candidate: str) -> str:
    if current == _MIN_BOUND:
        return candidate
    if current[1:] != candidate[1:]:
        return max(current, candidate, key=lambda bound: bound[1:])
    return current if current.startswith("(") else candidate


def _tighter_max(current: str, candidate: str) -> str:
    if current == _MAX_BOUND:
        return candidate
    if current[1:] != candidate[1:]:
        return min(current, candidate, key=lambda bound: bound[1:])
    return current if current.startswith("(") else candidate


class RedisOrderStore:
    """
    :class:`OrderStore` backed by Redis.

    Every order is indexed in every catalog template it has values for, once
    per supported sort field.

    Example:
        >>> store = RedisOrderStore(RedisClient(host="localhost"), DEFAULT_INDEX_CATALOG)
        >>> store.get_item("0xabc...")
    """

    def __init__(self, redis_client: RedisClient, catalog: IndexCatalog) -> None:
        self._redis = redis_client
        self._catalog = catalog

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_item(self, order_hash: str) -> dict[str, Any] | None:
        try:
            raw = self._redis.get(RedisKeys.order(order_hash))
        except RedisError as e:
            raise StorageError(f"Failed to read order {order_hash}") from e
        return json.loads(raw) if raw is not None else None

    def batch_get_items(self, order_hashes: Sequence[str]) -> list[dict[str, Any]]:
        """Return the items that exist, in request order; missing hashes are skipped."""
        try:
            raws = self._redis.mget([RedisKeys.order(order_hash) for order_hash in order_hashes])
        except RedisError as e:
            raise StorageError(f"Failed to batch read {len(order_hashes)} orders") from e
        return [json.loads(raw) for raw in raws if raw is not None]

    def query_index(self, query: IndexQuery) -> IndexPage:
        key = RedisKeys.index(query.index_id, query.partition_value)
        lower, upper = comparison_bounds(query.comparison)

        if query.start_key is not None:
            resume = f"({self._resume_member(query)}"
            if query.descending:
                upper = _tighter_max(upper, resume)
            else:
                lower = _tighter_min(lower, resume)

        try:
            # One extra member tells us whether the page is truncated.
            fetch = query.limit + 1
            if query.descending:
                members = self._redis.zrevrangebylex(key, upper, lower, start=0, num=fetch)
            else:
                members = self._redis.zrangebylex(key, lower, upper, start=0, num=fetch)
        except RedisError as e:
            raise StorageError(f"Failed to query index {query.index_id}") from e

        truncated = len(members) > query.limit
        members = members[: query.limit]
        parsed = [_parse_member(member) for member in members]
        items = self.batch_get_items([order_hash for _, order_hash in parsed])

        last_evaluated_key = None
        if truncated and parsed:
            sort_value, order_hash = parsed[-1]
            last_evaluated_key = {
                TableKey.ORDER_HASH.value: order_hash,
                query.template.partition_attribute: query.partition_value,
                query.sort_field.value: sort_value,
            }

        return IndexPage(items=items, last_evaluated_key=last_evaluated_key)

    def count_index(self, template: IndexTemplate, partition_value: str) -> int:
        key = RedisKeys.index(template.index_id(SortField.CREATED_AT), partition_value)
        try:
            return self._redis.zlexcount(key)
        except RedisError as e:
            raise StorageError(f"Failed to count index {template.partition_attribute}") from e

    def get_nonce(self, nonce_key: str) -> str | None:
        try:
            return self._redis.get(nonce_key)
        except RedisError as e:
            raise StorageError(f"Failed to read nonce {nonce_key}") from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def transact_put_order(self, item: dict[str, Any], nonce_key: str, nonce: str) -> None:
        """Write the order, its index entries and the nonce atomically."""
        order_hash = item[TableKey.ORDER_HASH.value]
        order_key = RedisKeys.order(order_hash)
        try:
            with self._redis.pipeline() as pipe:
                pipe.watch(order_key)
                previous_raw = pipe.get(order_key)
                previous = json.loads(previous_raw) if previous_raw is not None else None
                pipe.multi()
                pipe.set(order_key, json.dumps(item))
                self._reindex(pipe, previous, item)
                pipe.set(nonce_key, nonce)
                pipe.execute()
        except WatchError as e:
            logger.error(f"Concurrent write while putting order {order_hash}")
            raise StorageError(f"Concurrent modification of order {order_hash}") from e
        except RedisError as e:
            logger.error(f"Transactional put failed for order {order_hash}: {e}")
            raise StorageError(f"Failed to put order {order_hash}") from e

    def update_order(self, order_hash: str, mutate: ItemMutation) -> dict[str, Any] | None:
        """
        Apply ``mutate`` to the stored item and rewrite it with its index entries.

        Returns:
            The updated item, or None if the order does not exist
        """
        order_key = RedisKeys.order(order_hash)
        try:
            with self._redis.pipeline() as pipe:
                pipe.watch(order_key)
                current_raw = pipe.get(order_key)
                if current_raw is None:
                    pipe.unwatch()
                    return None
                current = json.loads(current_raw)
                updated = mutate(dict(current))
                pipe.multi()
                pipe.set(order_key, json.dumps(updated))
                self._reindex(pipe, current, updated)
                pipe.execute()
                return updated
        except WatchError as e:
            logger.error(f"Concurrent write while updating order {order_hash}")
            raise StorageError(f"Concurrent modification of order {order_hash}") from e
        except RedisError as e:
            logger.error(f"Update failed for order {order_hash}: {e}")
            raise StorageError(f"Failed to update order {order_hash}") from e

    def batch_delete(self, order_hashes: Sequence[str]) -> None:
        """Delete orders and their index entries; unknown hashes are ignored."""
        if not order_hashes:
            return
        order_keys = [RedisKeys.order(order_hash) for order_hash in order_hashes]
        try:
            with self._redis.pipeline() as pipe:
                pipe.watch(*order_keys)
                raws = pipe.mget(order_keys)
                pipe.multi()
                for raw in raws:
                    if raw is not None:
                        self._reindex(pipe, json.loads(raw), None)
                pipe.delete(*order_keys)
                pipe.execute()
        except WatchError as e:
            logger.error(f"Concurrent write while deleting {len(order_hashes)} orders")
            raise StorageError(f"Concurrent modification of {len(order_hashes)} orders") from e
        except RedisError as e:
            logger.error(f"Batch delete failed for {len(order_hashes)} orders: {e}")
            raise StorageError(f"Failed to delete {len(order_hashes)} orders") from e

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def _index_entries(self, item: dict[str, Any] | None) -> set[tuple[str, str]]:
        """Every (index key, member) pair ``item`` belongs to."""
        if item is None:
            return set()
        order_hash = item[TableKey.ORDER_HASH.value]
        entries: set[tuple[str, str]] = set()
        for template in self._catalog.templates:
            partition_value = template.partition_value(item)
            if partition_value is None:
                continue
            for sort_field in self._catalog.sort_fields:
                sort_value = item.get(sort_field.value)
                if sort_value is None:
                    continue
                entries.add(
                    (
                        RedisKeys.index(template.index_id(sort_field), partition_value),
                        _member(int(sort_value), order_hash),
                    )
                )
        return entries

    def _reindex(
        self, pipe: Any, previous: dict[str, Any] | None, current: dict[str, Any] | None
    ) -> None:
        """Queue ZREM/ZADD commands moving index entries from ``previous`` to ``current``."""
        old_entries = self._index_entries(previous)
        new_entries = self._index_entries(current)
        for key, member in old_entries - new_entries:
            pipe.zrem(key, member)
        for key, member in new_entries - old_entries:
            pipe.zadd(key, {member: 0})

    def _resume_member(self, query: IndexQuery) -> str:
        start_key = query.start_key or {}
        try:
            return _member(
                int(start_key[query.sort_field.value]),
                str(start_key[TableKey.ORDER_HASH.value]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidCursorError("Invalid cursor.") from e

