"""
Shared pytest fixtures for the order service tests.

Redis is replaced by fakeredis injected through ``RedisClient(client=...)``,
so the production client, store and repository code paths run unmodified.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import fakeredis
import pytest

from libs.common.logging import clear_trace_id
from libs.orders.index_catalog import DEFAULT_INDEX_CATALOG
from libs.orders.models import Order, OrderInput, OrderOutput
from libs.orders.query_router import QueryRouter
from libs.orders.repository import OrderRepository
from libs.orders.store import RedisOrderStore
from libs.orders.validator import OrderValidator
from libs.redis_client import RedisClient

NOW = 1_700_000_000

OFFERER = "0x" + "11" * 20
OTHER_OFFERER = "0x" + "12" * 20
FILLER = "0x" + "22" * 20
REACTOR = "0x" + "33" * 20
INPUT_TOKEN = "0x" + "44" * 20
OUTPUT_TOKEN = "0x" + "55" * 20


class FakeClock:
    """Deterministic clock; call it for the current unix second."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1) -> None:
        self.now += seconds


def order_hash_for(n: int) -> str:
    return "0x" + f"{n:064x}"


@pytest.fixture(autouse=True)
def _reset_trace_id() -> Any:
    """Keep trace IDs from leaking between tests."""
    clear_trace_id()
    yield
    clear_trace_id()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis() -> fakeredis.FakeRedis:
    """Isolated in-memory Redis server per test."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def redis_client(fake_redis: fakeredis.FakeRedis) -> RedisClient:
    return RedisClient(client=fake_redis)


@pytest.fixture
def store(redis_client: RedisClient) -> RedisOrderStore:
    return RedisOrderStore(redis_client, DEFAULT_INDEX_CATALOG)


@pytest.fixture
def repository(store: RedisOrderStore, clock: FakeClock) -> OrderRepository:
    return OrderRepository(
        store,
        QueryRouter(store, DEFAULT_INDEX_CATALOG),
        OrderValidator(get_current_time=clock),
        clock=clock,
    )


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """
    Factory for orders that pass validation at ``NOW``.

    Each call gets a fresh order hash and nonce; keyword arguments override
    any field (snake_case names).
    """
    counter = itertools.count(1)

    def _make(**overrides: Any) -> Order:
        n = next(counter)
        fields: dict[str, Any] = {
            "order_hash": order_hash_for(n),
            "offerer": OFFERER,
            "reactor": REACTOR,
            "chain_id": 1,
            "nonce": str(1000 + n),
            "deadline": NOW + 600,
            "decay_start_time": NOW,
            "decay_end_time": NOW + 300,
            "input": OrderInput(token=INPUT_TOKEN, amount=10**18),
            "outputs": [
                OrderOutput(
                    token=OUTPUT_TOKEN,
                    recipient=OFFERER,
                    start_amount=2 * 10**18,
                    end_amount=10**18,
                )
            ],
            "encoded_order": "0x" + "00" * 32,
            "signature": "0x" + "ab" * 65,
        }
        fields.update(overrides)
        return Order(**fields)

    return _make
