"""
Sort-key comparison expressions.

A comparison restricts an index scan on its sort key, e.g. ``gt(1700000000)``
or ``between(1700000000,1700086400)``. Operands are non-negative integers
because every sortable attribute is a unix timestamp.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from libs.common.exceptions import InvalidFilterExpressionError

_EXPRESSION_PATTERN = re.compile(r"\s*(\w+)\(\s*([^()]*?)\s*\)\s*")
_OPERAND_PATTERN = re.compile(r"[0-9]+")


class ComparisonOperator(str, Enum):
    EQ = "eq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    BETWEEN = "between"


@dataclass(frozen=True)
class ComparisonFilter:
    """Parsed comparison: ``between`` carries two inclusive operands, the rest one."""

    operator: ComparisonOperator
    values: tuple[int, ...]


def parse_comparison_filter(expression: str | None) -> ComparisonFilter | None:
    """
    Parse ``op(value[,value])`` into a :class:`ComparisonFilter`.

    Args:
        expression: Raw expression; None or blank means no range restriction

    Returns:
        Parsed filter, or None when no expression was supplied

    Raises:
        InvalidFilterExpressionError: Unknown operator, wrong operand count,
            or an operand that is not a non-negative integer

    Examples:
        >>> parse_comparison_filter("gte(10)")
        ComparisonFilter(operator=<ComparisonOperator.GTE: 'gte'>, values=(10,))
        >>> parse_comparison_filter(None) is None
        True
    """
    if expression is None or not expression.strip():
        return None

    match = _EXPRESSION_PATTERN.fullmatch(expression)
    if match is None:
        raise InvalidFilterExpressionError(f"Invalid sort expression: {expression}")

    raw_operator, raw_operands = match.groups()
    try:
        operator = ComparisonOperator(raw_operator)
    except ValueError:
        raise InvalidFilterExpressionError(
            f"Unsupported sort operator '{raw_operator}', must be one of "
            f"[{', '.join(op.value for op in ComparisonOperator)}]"
        ) from None

    operands = [operand.strip() for operand in raw_operands.split(",")]
    expected = 2 if operator is ComparisonOperator.BETWEEN else 1
    if len(operands) != expected:
        raise InvalidFilterExpressionError(
            f"Operator '{operator.value}' takes {expected} operand(s), got {len(operands)}: "
            f"{expression}"
        )
    if not all(_OPERAND_PATTERN.fullmatch(operand) for operand in operands):
        raise InvalidFilterExpressionError(f"Invalid sort expression: {expression}")

    return ComparisonFilter(operator=operator, values=tuple(int(operand) for operand in operands))
