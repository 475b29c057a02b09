from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

_CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(value) -> Decimal:
    """Round half-up to two decimal places."""
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    return round_money(sum(values, ZERO))


def format_currency(amount: Decimal) -> str:
    return f"Rs. {round_money(amount):,.2f}"
