"""Tests for sort comparison expression parsing."""

import pytest

from libs.common.exceptions import InvalidFilterExpressionError
from libs.orders.comparison import ComparisonFilter, ComparisonOperator, parse_comparison_filter


class TestParseComparisonFilter:
    """Valid expressions map onto operator and integer operands."""

    @pytest.mark.parametrize(
        ("expression", "operator", "values"),
        [
            ("eq(1700000000)", ComparisonOperator.EQ, (1700000000,)),
            ("lt(5)", ComparisonOperator.LT, (5,)),
            ("lte(5)", ComparisonOperator.LTE, (5,)),
            ("gt(0)", ComparisonOperator.GT, (0,)),
            ("gte(42)", ComparisonOperator.GTE, (42,)),
            ("between(10,20)", ComparisonOperator.BETWEEN, (10, 20)),
        ],
    )
    def test_supported_operators(
        self, expression: str, operator: ComparisonOperator, values: tuple[int, ...]
    ) -> None:
        assert parse_comparison_filter(expression) == ComparisonFilter(operator, values)

    def test_whitespace_is_tolerated(self) -> None:
        parsed = parse_comparison_filter("  between( 10 , 20 ) ")

        assert parsed == ComparisonFilter(ComparisonOperator.BETWEEN, (10, 20))

    @pytest.mark.parametrize("expression", [None, "", "   "])
    def test_missing_expression_means_no_restriction(self, expression: str | None) -> None:
        assert parse_comparison_filter(expression) is None

    def test_large_operands_stay_exact(self) -> None:
        parsed = parse_comparison_filter(f"gt({2**64})")

        assert parsed is not None
        assert parsed.values == (2**64,)


class TestParseComparisonFilterErrors:
    """Malformed expressions raise InvalidFilterExpressionError."""

    @pytest.mark.parametrize(
        "expression",
        [
            "gt",
            "gt(",
            "gt)",
            "gt()",
            "gt(abc)",
            "gt(-1)",
            "gt(1.5)",
            "(5)",
            "gt((5))",
            "gt(5) x",
            "gt(\u0661\u0662)",
            "between(1,\uff12)",
        ],
    )
    def test_malformed(self, expression: str) -> None:
        with pytest.raises(InvalidFilterExpressionError):
            parse_comparison_filter(expression)

    def test_unknown_operator_lists_supported_ones(self) -> None:
        with pytest.raises(InvalidFilterExpressionError, match="Unsupported sort operator 'ne'"):
            parse_comparison_filter("ne(5)")

    @pytest.mark.parametrize("expression", ["between(5)", "between(1,2,3)"])
    def test_between_requires_two_operands(self, expression: str) -> None:
        with pytest.raises(InvalidFilterExpressionError, match="takes 2 operand"):
            parse_comparison_filter(expression)

    def test_single_operand_operator_rejects_two(self) -> None:
        with pytest.raises(InvalidFilterExpressionError, match="takes 1 operand"):
            parse_comparison_filter("gt(1,2)")
