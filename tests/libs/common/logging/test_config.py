"""Tests for logging configuration and trace ID propagation.

Tests verify:
- configure_logging installs a single JSON handler on the root logger
- TraceIDFilter and LogContext carry trace IDs onto records
- log_with_context nests fields under "context"
"""

import json
import logging
from io import StringIO

import pytest

from libs.common.logging import (
    JSONFormatter,
    LogContext,
    TraceIDFilter,
    clear_trace_id,
    configure_logging,
    generate_trace_id,
    get_logger,
    get_or_create_trace_id,
    get_trace_id,
    log_with_context,
    set_trace_id,
)


def _capture(logger: logging.Logger) -> StringIO:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter(service_name="order_service"))
    handler.addFilter(TraceIDFilter())
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return stream


class TestTraceIDs:
    def test_filter_stamps_current_trace_id(self) -> None:
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", (), None)

        set_trace_id("get-orders-1")

        assert TraceIDFilter().filter(record) is True
        assert record.trace_id == "get-orders-1"  # type: ignore[attr-defined]

    def test_filter_stamps_none_without_trace_id(self) -> None:
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", (), None)

        TraceIDFilter().filter(record)

        assert record.trace_id is None  # type: ignore[attr-defined]

    def test_empty_trace_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            set_trace_id("")

    def test_get_or_create_binds_new_id(self) -> None:
        trace_id = get_or_create_trace_id()

        assert trace_id
        assert get_trace_id() == trace_id
        assert get_or_create_trace_id() == trace_id

    def test_generated_ids_are_unique(self) -> None:
        assert generate_trace_id() != generate_trace_id()

    def test_log_context_restores_previous_id(self) -> None:
        set_trace_id("outer")

        with LogContext("inner") as trace_id:
            assert trace_id == "inner"
            assert get_trace_id() == "inner"

        assert get_trace_id() == "outer"

    def test_log_context_clears_when_nothing_was_bound(self) -> None:
        with LogContext() as trace_id:
            assert get_trace_id() == trace_id

        assert get_trace_id() is None


class TestConfigureLogging:
    def teardown_method(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.WARNING)
        clear_trace_id()

    def test_returns_root_logger_at_level(self) -> None:
        logger = configure_logging(service_name="order_service", log_level="debug")

        assert logger is logging.getLogger()
        assert logger.level == logging.DEBUG

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(service_name="order_service", log_level="LOUD")

    def test_replaces_existing_handlers(self) -> None:
        root_logger = logging.getLogger()
        dummy_handler = logging.StreamHandler()
        root_logger.addHandler(dummy_handler)

        configure_logging(service_name="order_service")

        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0] is not dummy_handler
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)

    def test_emits_json_with_trace_id(self) -> None:
        logger = configure_logging(service_name="order_service")
        stream = StringIO()
        logger.handlers[0].setStream(stream)  # type: ignore[attr-defined]

        with LogContext("create-order-7"):
            logger.info("Order accepted")

        log_dict = json.loads(stream.getvalue().strip())
        assert log_dict["service"] == "order_service"
        assert log_dict["trace_id"] == "create-order-7"
        assert log_dict["message"] == "Order accepted"


class TestGetLogger:
    def test_named_logger(self) -> None:
        assert get_logger("libs.orders").name == "libs.orders"

    def test_none_returns_root(self) -> None:
        assert get_logger(None) is logging.getLogger()


class TestLogWithContext:
    def setup_method(self) -> None:
        self.logger = logging.getLogger("tests.log_with_context")
        self.stream = _capture(self.logger)

    def teardown_method(self) -> None:
        self.logger.handlers.clear()
        self.logger.propagate = True

    def test_fields_nested_under_context(self) -> None:
        log_with_context(
            self.logger,
            "WARNING",
            "Order rejected",
            order_hash="0xabc",
            reason="Insufficient Deadline",
        )

        log_dict = json.loads(self.stream.getvalue().strip())
        assert log_dict["level"] == "WARNING"
        assert log_dict["context"] == {"order_hash": "0xabc", "reason": "Insufficient Deadline"}

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_levels(self, level: str) -> None:
        log_with_context(self.logger, level, f"{level} message", index_id="chainId-createdAt-all")

        log_dict = json.loads(self.stream.getvalue().strip())
        assert log_dict["level"] == level
        assert log_dict["message"] == f"{level} message"
