from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import NewType

TripId = NewType("TripId", str)
ParticipantId = NewType("ParticipantId", str)
ExpenseId = NewType("ExpenseId", str)
TransferId = NewType("TransferId", str)
CurrencyCode = NewType("CurrencyCode", str)

# Amounts within this distance of zero (or of each other) are treated as settled/equal.
EPSILON = Decimal("0.01")
CENT = Decimal("0.01")


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_negligible(value: Decimal) -> bool:
    return abs(value) <= EPSILON
