"""Currency amount parsing and formatting"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_TWO_PLACES = Decimal("0.01")


def coerce_amount(value: Any) -> Decimal:
    """
    Coerce a loosely typed monetary value to Decimal.

    Strips everything except digits, '.' and '-' ("₹1,999" -> 1999). Anything
    that still fails to parse becomes 0: pricing degrades, it never raises.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if isinstance(value, int):
        return Decimal(value)

    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def coerce_count(value: Any) -> int:
    """Coerce a loosely typed month count to int (truncating fractions)"""
    return int(coerce_amount(value))


def format_amount(amount: Decimal) -> str:
    """Render an amount as a two-fraction-digit string: 219 -> '219.00'"""
    return str(amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
