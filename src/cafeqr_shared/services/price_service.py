"""
Order total calculation.

Amounts are integer Rupiah. QRIS payments get a unique code added to the
total so staff can match an incoming transfer to its order.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from cafeqr_shared.constants import UNIQUE_CODE_MAX, UNIQUE_CODE_MIN, PaymentMethod


@dataclass(frozen=True)
class OrderTotals:
    subtotal: int
    unique_code: int | None
    total_amount: int


def _item_value(item, key: str) -> int:
    if isinstance(item, Mapping):
        return int(item[key])
    return int(getattr(item, key))


def calculate_subtotal(items: Iterable) -> int:
    """Sum of price x quantity over the items."""
    return sum(_item_value(item, "price") * _item_value(item, "quantity") for item in items)


def compute_totals(
    items: Iterable,
    payment_method: PaymentMethod | str,
    rng: random.Random | None = None,
) -> OrderTotals:
    """
    Compute subtotal, unique code and total for an order.

    Examples:
        2 x 15000 + 1 x 20000 paid with qris, code drawn as 123:
            subtotal = 50000, unique_code = 123, total_amount = 50123
        The same items paid with cash:
            subtotal = 50000, unique_code = None, total_amount = 50000
    """
    subtotal = calculate_subtotal(items)
    if PaymentMethod(payment_method) == PaymentMethod.QRIS:
        rng = rng or random.SystemRandom()
        unique_code = rng.randrange(UNIQUE_CODE_MIN, UNIQUE_CODE_MAX)
        return OrderTotals(subtotal, unique_code, subtotal + unique_code)
    return OrderTotals(subtotal, None, subtotal)
