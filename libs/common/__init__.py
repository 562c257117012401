"""Common utilities and exceptions."""

from libs.common.exceptions import (
    ConfigurationError,
    InvalidCursorError,
    InvalidFilterExpressionError,
    InvalidQueryError,
    OrderNotFoundError,
    OrderServiceError,
    OrderValidationError,
    StorageError,
)

__all__ = [
    "OrderServiceError",
    "InvalidQueryError",
    "InvalidFilterExpressionError",
    "InvalidCursorError",
    "OrderValidationError",
    "OrderNotFoundError",
    "StorageError",
    "ConfigurationError",
]
