"""
Order admission checks.

:class:`OrderValidator` runs a fixed sequence of field checks and stops at
the first failure, so a given bad order always yields the same reason.
Order of checks:

1. deadline window
2. start time not after deadline
3. nonce
4. offerer address
5. reactor address (plus optional allow-list)
6. input token address
7. input amount
8. outputs, in list order
9. order hash format

The validator is side-effect free. Time comes from an injected clock, or
from the ``now`` argument.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from libs.orders.clock import Clock
from libs.orders.models import Order, OrderOutput

ONE_YEAR_IN_SECONDS = 60 * 60 * 24 * 365
DEFAULT_MIN_DEADLINE_OFFSET_SECONDS = 60
UINT256_MAX_EXCLUSIVE = 1 << 256

_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
_ORDER_HASH_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")
_NONCE_PATTERN = re.compile(r"[0-9]+")

INVALID_ADDRESS = "invalid address"
INVALID_NONCE = "must be a non-negative integer string"
INVALID_ORDER_HASH = "must be 0x followed by 64 hex characters"
REACTOR_NOT_ALLOWED = "reactor not in allowed set"


@dataclass(frozen=True)
class OrderValidationResult:
    """Outcome of validation; ``error_string`` is set only when invalid."""

    valid: bool
    error_string: str | None = None


VALID = OrderValidationResult(valid=True)


def _invalid(error_string: str) -> OrderValidationResult:
    return OrderValidationResult(valid=False, error_string=error_string)


def is_valid_address(value: str | None) -> bool:
    return value is not None and _ADDRESS_PATTERN.fullmatch(value) is not None


def is_valid_order_hash(value: str | None) -> bool:
    return value is not None and _ORDER_HASH_PATTERN.fullmatch(value) is not None


def is_valid_nonce(value: str | None) -> bool:
    return value is not None and _NONCE_PATTERN.fullmatch(value) is not None


def is_valid_uint256(value: int) -> bool:
    return 0 <= value < UINT256_MAX_EXCLUSIVE


class OrderValidator:
    """
    Validates candidate orders before they are stored.

    Args:
        get_current_time: Clock returning unix seconds
        min_offset: Minimum seconds between now and the deadline
        allowed_reactors: Reactor addresses accepted; empty accepts any
            well-formed address

    Example:
        >>> validator = OrderValidator(get_current_time=lambda: 1_700_000_000)
        >>> result = validator.validate(order)
        >>> if not result.valid:
        ...     print(result.error_string)
    """

    def __init__(
        self,
        get_current_time: Clock,
        min_offset: int = DEFAULT_MIN_DEADLINE_OFFSET_SECONDS,
        allowed_reactors: Iterable[str] = (),
    ) -> None:
        self._get_current_time = get_current_time
        self._min_offset = min_offset
        self._allowed_reactors = frozenset(reactor.lower() for reactor in allowed_reactors)

    def validate(self, order: Order, now: int | None = None) -> OrderValidationResult:
        """Run every check in order and return the first failure, or VALID."""
        if now is None:
            now = self._get_current_time()

        checks = (
            lambda: self._validate_deadline(order.deadline, now),
            lambda: self._validate_start_time(order.effective_start_time, order.deadline),
            lambda: self._validate_nonce(order.nonce),
            lambda: self._validate_address(order.offerer, "Invalid offerer"),
            lambda: self._validate_reactor(order.reactor),
            lambda: self._validate_address(order.input.token, "Invalid input token"),
            lambda: self._validate_input_amount(order.input.amount),
            lambda: self._validate_outputs(order.outputs),
            lambda: self._validate_hash(order.order_hash),
        )
        for check in checks:
            result = check()
            if not result.valid:
                return result
        return VALID

    def _validate_deadline(self, deadline: int, now: int) -> OrderValidationResult:
        if deadline < now + self._min_offset:
            return _invalid("Insufficient Deadline")
        # Status tracking runs for at most one year per order.
        if deadline > now + ONE_YEAR_IN_SECONDS:
            return _invalid("Deadline field invalid: Order expiry cannot be larger than one year")
        return VALID

    def _validate_start_time(self, start_time: int | None, deadline: int) -> OrderValidationResult:
        if start_time is not None and start_time > deadline:
            return _invalid("Invalid startTime: startTime > deadline")
        return VALID

    def _validate_nonce(self, nonce: str) -> OrderValidationResult:
        if not is_valid_nonce(nonce):
            return _invalid(f"Invalid nonce: {INVALID_NONCE}")
        return VALID

    def _validate_address(self, address: str, prefix: str) -> OrderValidationResult:
        if not is_valid_address(address):
            return _invalid(f"{prefix}: {INVALID_ADDRESS}")
        return VALID

    def _validate_reactor(self, reactor: str) -> OrderValidationResult:
        result = self._validate_address(reactor, "Invalid reactor")
        if not result.valid:
            return result
        if self._allowed_reactors and reactor.lower() not in self._allowed_reactors:
            return _invalid(f"Invalid reactor: {REACTOR_NOT_ALLOWED}")
        return VALID

    def _validate_input_amount(self, amount: int) -> OrderValidationResult:
        if not is_valid_uint256(amount):
            return _invalid(f"Invalid input amount: {amount}")
        return VALID

    def _validate_outputs(self, outputs: list[OrderOutput]) -> OrderValidationResult:
        for output in outputs:
            if not is_valid_address(output.token):
                return _invalid(f"Invalid output token {output.token}")
            if not is_valid_address(output.recipient):
                return _invalid(f"Invalid recipient {output.recipient}")
            if not is_valid_uint256(output.start_amount):
                return _invalid(f"Invalid startAmount {output.start_amount}")
            if not is_valid_uint256(output.end_amount):
                return _invalid(f"Invalid endAmount {output.end_amount}")
            if output.end_amount > output.start_amount:
                return _invalid("Invalid endAmount > startAmount")
        return VALID

    def _validate_hash(self, order_hash: str) -> OrderValidationResult:
        if not is_valid_order_hash(order_hash):
            return _invalid(f"Invalid orderHash: {INVALID_ORDER_HASH}")
        return VALID
