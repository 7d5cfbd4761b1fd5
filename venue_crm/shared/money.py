"""Fixed-point money helpers; floats never enter a calculation"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a NUMERIC(12, 2) column holds
MAX_MONEY = Decimal("9999999999.99")

Number = Union[Decimal, int, float, str, None]


def to_decimal(value: Number) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Route through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Number) -> Decimal:
    """Round to cents with ROUND_HALF_UP"""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
