from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Sequence

from .base_types import CENT, EPSILON, ParticipantId
from .ledger import ExpenseShare


class ShareValidationError(ValueError):
    pass


class EmptyShares(ShareValidationError):
    def __init__(self) -> None:
        super().__init__("Expense shares are required")


class ShareSumMismatch(ShareValidationError):
    def __init__(self, *, expected: Decimal, actual: Decimal) -> None:
        self.expected = expected
        self.actual = actual
        self.difference = actual - expected
        super().__init__(f"Shares total ({actual}) does not equal total amount ({expected})")


def validate_shares(
    amount: Decimal,
    shares: Sequence[ExpenseShare] | None,
    *,
    allow_equal_split: bool = False,
) -> None:
    """Check that ``shares`` add up to ``amount`` within EPSILON.

    Returns normally when the shares are acceptable. An absent or empty share list is
    only accepted when the caller explicitly asks for the equal-split fallback.
    """
    if not shares:
        if allow_equal_split:
            return
        raise EmptyShares()

    total = sum((share.amount for share in shares), start=Decimal(0))
    if abs(total - amount) > EPSILON:
        raise ShareSumMismatch(expected=amount, actual=total)


def split_equally(amount: Decimal, participant_ids: Sequence[ParticipantId]) -> list[ExpenseShare]:
    """Split ``amount`` into cent-exact shares that sum to exactly ``amount``.

    Leftover cents go one each to the first participants, in the given order.
    """
    if not participant_ids:
        raise EmptyShares()

    count = len(participant_ids)
    base = (amount / count).quantize(CENT, rounding=ROUND_DOWN)
    leftover_cents = int((amount - base * count) / CENT)

    shares: list[ExpenseShare] = []
    for idx, participant_id in enumerate(participant_ids):
        share_amount = base + CENT if idx < leftover_cents else base
        shares.append(ExpenseShare(participant_id=participant_id, amount=share_amount))
    return shares
