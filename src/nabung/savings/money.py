"""Monetary parsing and formatting helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from nabung.savings.errors import InvalidAmountError

MONEY_PLACES = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999999.99")  # Numeric(15, 2)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a monetary input to Decimal without binary float drift.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not
    Decimal("0.1000000000000000055511151231257827...").

    Raises:
        InvalidAmountError: If the value is not a finite number with at most
            two fractional digits.
    """
    if isinstance(value, bool):
        msg = "Amount must be a number"
        raise InvalidAmountError(msg)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        msg = f"Invalid amount: {value!r}"
        raise InvalidAmountError(msg) from e

    if not amount.is_finite():
        msg = "Amount must be finite"
        raise InvalidAmountError(msg)
    if abs(amount) > MAX_AMOUNT:
        msg = "Amount is too large"
        raise InvalidAmountError(msg)
    if amount != amount.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP):
        msg = "Amount supports at most two decimal places"
        raise InvalidAmountError(msg)
    return amount.quantize(MONEY_PLACES)


def parse_amount(value: Decimal | int | float | str) -> Decimal:
    """Parse a deposit/withdrawal/target amount. Must be strictly positive."""
    amount = to_decimal(value)
    if amount <= 0:
        msg = "Amount must be greater than 0"
        raise InvalidAmountError(msg)
    return amount


def parse_balance(value: Decimal | int | float | str) -> Decimal:
    """Parse a balance override from a patch. Zero is allowed, negatives are not."""
    amount = to_decimal(value)
    if amount < 0:
        msg = "Amount must not be negative"
        raise InvalidAmountError(msg)
    return amount


def format_compact_amount(amount: Decimal | int | float) -> str:
    """Short human form used in activity descriptions: 1.5M, 250K, 900."""
    value = Decimal(str(amount))
    if value >= 1_000_000:
        return f"{(value / 1_000_000).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}M"
    if value >= 1_000:
        return f"{(value / 1_000).quantize(Decimal('1'), rounding=ROUND_HALF_UP)}K"
    return f"{value.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}"
