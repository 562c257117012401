"""Trace ID propagation for order service logs.

A trace ID is a UUIDv4 string bound to the current execution context via
``contextvars`` so that concurrent queries and submissions each carry their
own ID into every log record they produce.

Example:
    >>> set_trace_id("req-42")
    >>> get_trace_id()
    'req-42'
"""

import contextvars
import uuid
from types import TracebackType

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)


def generate_trace_id() -> str:
    """Return a fresh UUIDv4 trace ID."""
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    """Return the trace ID bound to the current context, or None."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Bind a trace ID to the current context.

    Args:
        trace_id: Non-empty trace ID

    Raises:
        ValueError: If trace_id is empty
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    """Unbind the trace ID from the current context."""
    _trace_id_var.set(None)


def get_or_create_trace_id() -> str:
    """Return the current trace ID, generating and binding one if unset."""
    trace_id = get_trace_id()
    if trace_id is None:
        trace_id = generate_trace_id()
        set_trace_id(trace_id)
    return trace_id


class LogContext:
    """Scope a trace ID to a block and restore the previous one on exit.

    Example:
        >>> with LogContext("get-orders-1") as trace_id:
        ...     repository.get_orders(limit=10, filters={"offerer": offerer})
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or generate_trace_id()
        self.previous_trace_id: str | None = None

    def __enter__(self) -> str:
        self.previous_trace_id = get_trace_id()
        set_trace_id(self.trace_id)
        return self.trace_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.previous_trace_id is not None:
            set_trace_id(self.previous_trace_id)
        else:
            clear_trace_id()
