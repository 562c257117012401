"""Tests for environment-driven configuration and repository wiring."""

import logging
from collections.abc import Callable

import pytest

from libs.common.exceptions import ConfigurationError, OrderValidationError
from libs.orders.config import OrderServiceConfig, get_config
from libs.orders.factory import build_order_repository, configure_service_logging
from libs.orders.models import Order
from libs.redis_client import RedisClient
from tests.conftest import NOW, REACTOR, FakeClock

_ENV_VARS = (
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_DB",
    "REDIS_PASSWORD",
    "ORDERS_MAX_PAGE_SIZE",
    "ORDER_DEADLINE_MIN_OFFSET_SECONDS",
    "ALLOWED_REACTORS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestGetConfig:
    def test_defaults(self) -> None:
        assert get_config() == OrderServiceConfig()

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_HOST", "redis.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_DB", "2")
        monkeypatch.setenv("REDIS_PASSWORD", "secret")
        monkeypatch.setenv("ORDERS_MAX_PAGE_SIZE", "25")
        monkeypatch.setenv("ORDER_DEADLINE_MIN_OFFSET_SECONDS", "120")
        monkeypatch.setenv("ALLOWED_REACTORS", f" {REACTOR}, ,0x{'44' * 20}")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = get_config()

        assert config.redis_host == "redis.internal"
        assert config.redis_port == 6380
        assert config.redis_db == 2
        assert config.redis_password == "secret"
        assert config.max_page_size == 25
        assert config.deadline_min_offset_seconds == 120
        assert config.allowed_reactors == (REACTOR, "0x" + "44" * 20)
        assert config.log_level == "DEBUG"

    def test_invalid_int_falls_back_to_default(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("REDIS_PORT", "not-a-port")

        assert get_config().redis_port == 6379
        assert "Invalid int for REDIS_PORT" in caplog.text

    def test_empty_password_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_PASSWORD", "")

        assert get_config().redis_password is None

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_page_size_rejected(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("ORDERS_MAX_PAGE_SIZE", value)

        with pytest.raises(ConfigurationError):
            get_config()

    def test_negative_min_offset_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ORDER_DEADLINE_MIN_OFFSET_SECONDS", "-5")

        with pytest.raises(ConfigurationError):
            get_config()


class TestBuildOrderRepository:
    def test_wires_a_working_repository(
        self,
        redis_client: RedisClient,
        clock: FakeClock,
        make_order: Callable[..., Order],
    ) -> None:
        repository = build_order_repository(
            config=OrderServiceConfig(max_page_size=2), redis_client=redis_client, clock=clock
        )
        orders = [repository.create_order(make_order()) for _ in range(3)]

        page = repository.get_orders(limit=10, filters={"offerer": orders[0].offerer})

        assert len(page.orders) == 2
        assert page.cursor is not None
        assert orders[0].created_at == NOW

    def test_config_reaches_validator(
        self,
        redis_client: RedisClient,
        clock: FakeClock,
        make_order: Callable[..., Order],
    ) -> None:
        repository = build_order_repository(
            config=OrderServiceConfig(
                deadline_min_offset_seconds=900, allowed_reactors=(REACTOR,)
            ),
            redis_client=redis_client,
            clock=clock,
        )

        with pytest.raises(OrderValidationError, match="Insufficient Deadline"):
            repository.create_order(make_order(deadline=NOW + 600))
        with pytest.raises(OrderValidationError, match="reactor not in allowed set"):
            repository.create_order(make_order(deadline=NOW + 1000, reactor="0x" + "99" * 20))


class TestConfigureServiceLogging:
    def teardown_method(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.WARNING)

    def test_applies_configured_level(self) -> None:
        logger = configure_service_logging(OrderServiceConfig(log_level="DEBUG"))

        assert logger.level == logging.DEBUG
        formatter = logger.handlers[0].formatter
        assert formatter.service_name == "order_service"  # type: ignore[union-attr]

    def test_reads_environment_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        assert configure_service_logging().level == logging.ERROR
