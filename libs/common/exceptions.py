"""
Exception hierarchy for the order service.

This module defines all custom exceptions raised by the order core,
organized in a hierarchy for precise error handling by calling handlers.

Callers map these onto transport status codes; the core only guarantees
stable exception types and messages.
"""


class OrderServiceError(Exception):
    """
    Base exception for all order service errors.

    All custom exceptions in the service inherit from this class,
    allowing for catch-all error handling when needed.

    Example:
        >>> try:
        ...     repository.get_orders(limit=10, filters={"offerer": "0xabc"})
        ... except OrderServiceError as e:
        ...     logger.error(f"Order service error: {e}")
    """

    pass


class InvalidQueryError(OrderServiceError):
    """
    Raised when a filter combination matches no supported index.

    Example:
        >>> raise InvalidQueryError("Invalid query, must query with one of ...")
    """

    pass


class InvalidFilterExpressionError(OrderServiceError):
    """
    Raised when a sort comparison expression cannot be parsed.

    Example:
        >>> parse_comparison_filter("gt(abc)")
        Traceback (most recent call last):
        ...
        InvalidFilterExpressionError: Invalid sort expression: gt(abc)
    """

    pass


class InvalidCursorError(OrderServiceError):
    """
    Raised when a pagination cursor is undecodable or was issued for another index.
    """

    pass


class OrderValidationError(OrderServiceError):
    """
    Raised when a candidate order fails a field-level business rule.

    Attributes:
        reason: Human-readable reason from the validator (stable wording)
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class OrderNotFoundError(OrderServiceError):
    """Raised when a referenced order does not exist."""

    pass


class StorageError(OrderServiceError):
    """
    Raised when the backing store fails.

    The original store exception is always chained (``raise ... from e``).
    """

    pass


class ConfigurationError(OrderServiceError):
    """
    Raised when required configuration is missing or malformed.

    Example:
        >>> if not redis_host:
        ...     raise ConfigurationError("REDIS_HOST not configured")
    """

    pass
