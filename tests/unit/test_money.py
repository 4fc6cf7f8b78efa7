"""Amount parsing and compact formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from nabung.savings.errors import InvalidAmountError, LedgerError
from nabung.savings.money import (
    MAX_AMOUNT,
    format_compact_amount,
    parse_amount,
    parse_balance,
    to_decimal,
)


class TestToDecimal:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.10")
        assert to_decimal(19.99) == Decimal("19.99")

    def test_accepts_int_str_decimal(self):
        assert to_decimal(40000) == Decimal("40000.00")
        assert to_decimal(" 1500.5 ") == Decimal("1500.50")
        assert to_decimal(Decimal("7")) == Decimal("7.00")

    @pytest.mark.parametrize("value", ["abc", "", "1,000", "NaN", "Infinity", float("inf"), float("nan")])
    def test_rejects_unparsable_and_non_finite(self, value):
        with pytest.raises(InvalidAmountError):
            to_decimal(value)

    def test_rejects_bool(self):
        with pytest.raises(InvalidAmountError):
            to_decimal(True)

    def test_rejects_more_than_two_places(self):
        with pytest.raises(InvalidAmountError, match="two decimal places"):
            to_decimal("10.005")

    def test_rejects_values_beyond_column_precision(self):
        assert to_decimal(MAX_AMOUNT) == MAX_AMOUNT
        with pytest.raises(InvalidAmountError, match="too large"):
            to_decimal("1e20")


class TestParseAmount:
    @pytest.mark.parametrize("value", [0, "0", -1, "-0.01"])
    def test_non_positive_rejected(self, value):
        with pytest.raises(InvalidAmountError, match="greater than 0"):
            parse_amount(value)

    def test_smallest_unit_accepted(self):
        assert parse_amount("0.01") == Decimal("0.01")

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_amount(-5)
        with pytest.raises(LedgerError):
            parse_amount(-5)


class TestParseBalance:
    def test_zero_allowed(self):
        assert parse_balance(0) == Decimal("0.00")

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmountError, match="negative"):
            parse_balance("-1")


class TestFormatCompactAmount:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("900"), "900"),
            (Decimal("999.5"), "1000"),
            (Decimal("1000"), "1K"),
            (Decimal("250000"), "250K"),
            (Decimal("1500"), "2K"),
            (Decimal("1000000"), "1.0M"),
            (Decimal("1550000"), "1.6M"),
            (Decimal("12345678.90"), "12.3M"),
        ],
    )
    def test_thresholds(self, amount, expected):
        assert format_compact_amount(amount) == expected
