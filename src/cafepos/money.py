"""Currency formatting and lenient parsing."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from . import config
from .errors import InvalidPriceError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Longest leading decimal number, after non-numeric characters are stripped
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def quantize(amount: Decimal) -> Decimal:
    """Round an amount to two decimal places."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    """
    Convert a numeric value to Decimal without float artifacts.

    Raises:
        InvalidOperation: If the value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def format_money(amount: Decimal | int | float, symbol: str | None = None) -> str:
    """
    Format an amount as a currency string, e.g. "$1,250.00".

    Args:
        amount: Amount to format.
        symbol: Currency symbol (defaults to the configured one).
    """
    if symbol is None:
        symbol = config.currency_symbol()
    value = quantize(to_decimal(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def parse_money(text: str | None) -> Decimal:
    """
    Best-effort parse of a formatted currency string.

    Everything except digits and the decimal point is dropped, then the
    longest leading number is read. Empty or unparsable input yields 0, so
    one corrupt record never breaks an aggregation.
    """
    if not isinstance(text, str):
        return ZERO
    cleaned = re.sub(r"[^0-9.]", "", text)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return ZERO
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return ZERO


def parse_price(value: int | float | str) -> Decimal:
    """
    Parse a price entered by staff.

    Strings are cleaned to digits and the decimal point first.

    Raises:
        InvalidPriceError: If the price is missing, not numeric, or <= 0.
    """
    if isinstance(value, bool):
        raise InvalidPriceError(value, "not a number")
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        if not cleaned:
            raise InvalidPriceError(value, "not a number")
        try:
            price = Decimal(cleaned)
        except InvalidOperation:
            raise InvalidPriceError(value, "not a number")
    else:
        try:
            price = to_decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidPriceError(value, "not a number")

    if not price.is_finite() or price <= 0:
        raise InvalidPriceError(value, "must be greater than 0")
    return price
