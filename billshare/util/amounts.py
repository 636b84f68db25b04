"""Parsing and formatting of money amounts and quantities."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


def parse_amount(raw: str, previous: Decimal | None = None) -> Decimal | None:
    """
    Parse a user-typed amount, accepting a comma as decimal separator.

    Non-numeric input keeps ``previous`` (which may be None).

    Examples:
        parse_amount("3,50") -> Decimal("3.50")
        parse_amount("abc", Decimal("2")) -> Decimal("2")
    """
    cleaned = raw.strip().replace(",", ".", 1)
    if not cleaned:
        return previous
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return previous
    if not value.is_finite():
        return previous
    return value


def format_amount(value: Decimal) -> str:
    """Render an amount with exactly two decimals, rounding half up."""
    return f"{value.quantize(CENTS, rounding=ROUND_HALF_UP)}"
