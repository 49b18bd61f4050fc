"""
Decimal money helpers for catalog prices and cart totals.

Amounts stay ``Decimal`` end to end; floats appear only when a total is
written into a JSON response (``to_float``).
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Amount = Union[str, int, float, Decimal, None]

CENT = Decimal("0.01")
ZERO = Decimal("0")

CURRENCY_SYMBOLS: dict[str, str] = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}


def to_decimal(value: Amount) -> Decimal:
    """Coerce a price-like value to ``Decimal``; unparseable input counts as zero."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    try:
        # str() first: Decimal(9.9) would carry the binary float error
        return Decimal(str(value) if isinstance(value, float) else value)
    except (InvalidOperation, ValueError, TypeError):
        return ZERO


def round_money(value: Amount) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Amount, currency: str = "EUR") -> str:
    """Display string for an amount, e.g. ``€99.00`` or ``1,234.50 CHF``."""
    amount = f"{round_money(value):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(currency)
    return f"{symbol}{amount}" if symbol else f"{amount} {currency}"


def to_float(value: Amount) -> float:
    """JSON boundary only."""
    return float(round_money(value))


def subtract(minuend: Amount, subtrahend: Amount) -> Decimal:
    return to_decimal(minuend) - to_decimal(subtrahend)


def multiply(price: Amount, factor: Amount) -> Decimal:
    return to_decimal(price) * to_decimal(factor)


def divide(price: Amount, divisor: Amount) -> Decimal:
    """Division where a zero divisor yields zero instead of raising."""
    divisor = to_decimal(divisor)
    return to_decimal(price) / divisor if divisor else ZERO
