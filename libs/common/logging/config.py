"""Logging setup for the order service.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="order_service", log_level="INFO")
    >>> logger.info("Order service started", extra={"context": {"redis_host": "localhost"}})
"""

import logging
import sys

from libs.common.logging.context import get_trace_id
from libs.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Stamp the context-bound trace ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Install JSON logging on the root logger.

    Call once at process startup. Existing root handlers are replaced so the
    call is idempotent.

    Args:
        service_name: Name written to the "service" field (e.g., "order_service")
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to emit structured context fields

    Returns:
        The configured root logger

    Raises:
        ValueError: If log_level is not a known level name
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(TraceIDFilter())
    root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger sharing the root configuration."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log ``message`` with ``context_fields`` under the "context" key.

    Example:
        >>> log_with_context(
        ...     logger,
        ...     "WARNING",
        ...     "Order rejected",
        ...     order_hash="0xabc",
        ...     reason="Insufficient Deadline",
        ... )
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
