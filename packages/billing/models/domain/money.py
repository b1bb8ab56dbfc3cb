"""
Money handling.

Amounts are ``Decimal`` end to end and are quantized to cents with
ROUND_HALF_UP. JSON output renders them as numbers.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Union

from pydantic import PlainSerializer

CENT = Decimal("0.01")

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
