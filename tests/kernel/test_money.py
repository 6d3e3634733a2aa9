"""Tests for Decimal coercion and currency arithmetic."""

from decimal import Decimal

import pytest

from salesos_kernel.domain.money import (
    add_currency,
    divide_currency,
    is_numeric,
    multiply_currency,
    percent_of_currency,
    round_currency,
    subtract_currency,
    to_decimal,
    within_tolerance,
)


class TestToDecimal:
    @pytest.mark.parametrize(
        "value", [None, "", "   ", "abc", True, float("nan"), float("inf"), "Infinity", "NaN"]
    )
    def test_coerces_to_zero(self, value):
        assert to_decimal(value) == Decimal("0")

    @pytest.mark.parametrize(
        "value,expected",
        [
            (12, Decimal("12")),
            ("12.5", Decimal("12.5")),
            (" 1,250.75 ", Decimal("1250.75")),
            (0.1, Decimal("0.1")),
            (Decimal("3.14159"), Decimal("3.14159")),
        ],
    )
    def test_parses_numbers(self, value, expected):
        assert to_decimal(value) == expected


class TestIsNumeric:
    @pytest.mark.parametrize("value", [0, "1.5", " 2 ", Decimal("7"), 2.5, "1,000"])
    def test_numeric(self, value):
        assert is_numeric(value)

    @pytest.mark.parametrize("value", [None, "", "x1", True, float("nan"), "inf"])
    def test_not_numeric(self, value):
        assert not is_numeric(value)


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [("2.345", "2.35"), ("2.344", "2.34"), ("-2.345", "-2.35"), ("0.005", "0.01"), (None, "0.00")],
    )
    def test_round_half_up(self, value, expected):
        assert round_currency(value) == Decimal(expected)

    def test_add(self):
        assert add_currency("0.10", "0.20", None, "abc") == Decimal("0.30")

    def test_subtract(self):
        assert subtract_currency("10", "0.015") == Decimal("9.99")

    def test_multiply(self):
        assert multiply_currency("19.99", 3) == Decimal("59.97")

    def test_divide(self):
        assert divide_currency("100", "3") == Decimal("33.33")
        assert divide_currency("100", 0) == Decimal("0.00")

    def test_percent(self):
        assert percent_of_currency("1000", "2.5") == Decimal("25.00")
        assert percent_of_currency("83.33", "33.33") == Decimal("27.77")

    def test_within_tolerance(self):
        assert within_tolerance("1.00", "1.01")
        assert not within_tolerance("1.00", "1.02")
