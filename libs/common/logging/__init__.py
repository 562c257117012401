"""Structured logging for the order service.

JSON log lines with trace ID support so every log emitted while serving a
single query or order submission can be correlated.

Usage:
    # At startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="order_service", log_level="INFO")

    # Per request
    from libs.common.logging import LogContext, get_logger, log_with_context
    logger = get_logger(__name__)
    with LogContext(request_trace_id):
        log_with_context(logger, "INFO", "Order accepted", order_hash="0xabc")
"""

from libs.common.logging.config import (
    TraceIDFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from libs.common.logging.context import (
    LogContext,
    clear_trace_id,
    generate_trace_id,
    get_or_create_trace_id,
    get_trace_id,
    set_trace_id,
)
from libs.common.logging.formatter import JSONFormatter

__all__ = [
    "configure_logging",
    "get_logger",
    "log_with_context",
    "TraceIDFilter",
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "get_or_create_trace_id",
    "LogContext",
    "JSONFormatter",
]
