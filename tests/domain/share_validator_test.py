from decimal import Decimal

import pytest

from domain.ledger import ExpenseShare
from domain.share_validator import EmptyShares, ShareSumMismatch, ShareValidationError, split_equally, validate_shares
from tests.constants import ALICE, BOB, CAROL


def _shares(*amounts: str) -> list[ExpenseShare]:
    ids = [ALICE, BOB, CAROL]
    return [ExpenseShare(participant_id=ids[idx], amount=Decimal(amount)) for idx, amount in enumerate(amounts)]


def test_shares_summing_to_amount_are_accepted() -> None:
    validate_shares(Decimal(100), _shares("40", "60"))


def test_sum_off_by_more_than_a_cent_is_rejected() -> None:
    with pytest.raises(ShareSumMismatch) as exc_info:
        validate_shares(Decimal(100), _shares("40", "59"))

    err = exc_info.value
    assert err.expected == Decimal(100)
    assert err.actual == Decimal(99)
    assert err.difference == Decimal(-1)
    assert isinstance(err, ShareValidationError)
    assert isinstance(err, ValueError)


def test_difference_within_a_cent_is_tolerated() -> None:
    validate_shares(Decimal("100.00"), _shares("33.33", "33.33", "33.33"))
    validate_shares(Decimal("100.00"), _shares("33.34", "33.34", "33.33"))


def test_difference_just_above_a_cent_is_rejected() -> None:
    with pytest.raises(ShareSumMismatch):
        validate_shares(Decimal("100.00"), _shares("33.33", "33.33", "33.32"))


@pytest.mark.parametrize("shares", [None, []])
def test_missing_shares_are_rejected(shares: list[ExpenseShare] | None) -> None:
    with pytest.raises(EmptyShares):
        validate_shares(Decimal(100), shares)


def test_missing_shares_allowed_when_equal_split_requested() -> None:
    validate_shares(Decimal(100), [], allow_equal_split=True)
    validate_shares(Decimal(100), None, allow_equal_split=True)


def test_equal_split_flag_does_not_skip_sum_check() -> None:
    with pytest.raises(ShareSumMismatch):
        validate_shares(Decimal(100), _shares("10"), allow_equal_split=True)


def test_split_equally_distributes_leftover_cents_in_order() -> None:
    shares = split_equally(Decimal("100.00"), [ALICE, BOB, CAROL])

    assert [share.participant_id for share in shares] == [ALICE, BOB, CAROL]
    assert [share.amount for share in shares] == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(share.amount for share in shares) == Decimal("100.00")
    validate_shares(Decimal("100.00"), shares)


def test_split_equally_even_amount() -> None:
    shares = split_equally(Decimal("300"), [ALICE, BOB, CAROL])

    assert all(share.amount == Decimal(100) for share in shares)


def test_split_equally_needs_participants() -> None:
    with pytest.raises(EmptyShares):
        split_equally(Decimal(10), [])
