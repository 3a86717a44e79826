from decimal import Decimal

import pytest

from domain.balance_tracker import BalanceKey, DuplicateParticipant, ParticipantBalanceTracker, UnknownParticipant
from tests.constants import ALICE, BOB, CAROL, EUR, STRANGER, USD


def test_tracker_accumulates_per_participant_and_currency() -> None:
    tracker = ParticipantBalanceTracker([ALICE, BOB])

    tracker.apply_movement(participant_id=ALICE, currency=EUR, amount=Decimal("30"))
    tracker.apply_movement(participant_id=ALICE, currency=EUR, amount=Decimal("-12.5"))
    tracker.apply_movement(participant_id=ALICE, currency=USD, amount=Decimal("7"))
    tracker.apply_movement(participant_id=BOB, currency=EUR, amount=Decimal("-17.5"))

    assert dict(tracker.items()) == {
        BalanceKey(ALICE, EUR): Decimal("17.5"),
        BalanceKey(ALICE, USD): Decimal("7"),
        BalanceKey(BOB, EUR): Decimal("-17.5"),
    }
    assert tracker.currencies() == [EUR, USD]
    assert tracker.currency_total(EUR) == Decimal(0)


def test_unknown_participant_is_rejected_instead_of_creating_a_key() -> None:
    tracker = ParticipantBalanceTracker([ALICE])

    with pytest.raises(UnknownParticipant) as exc_info:
        tracker.apply_movement(participant_id=STRANGER, currency=EUR, amount=Decimal(1))

    assert exc_info.value.participant_id == STRANGER
    assert tracker.items() == []


def test_duplicate_roster_entries_are_rejected() -> None:
    with pytest.raises(DuplicateParticipant):
        ParticipantBalanceTracker([ALICE, BOB, ALICE])


def test_items_follow_roster_order_then_currency() -> None:
    tracker = ParticipantBalanceTracker([CAROL, ALICE])
    tracker.apply_movement(participant_id=ALICE, currency=USD, amount=Decimal(1))
    tracker.apply_movement(participant_id=ALICE, currency=EUR, amount=Decimal(2))
    tracker.apply_movement(participant_id=CAROL, currency=USD, amount=Decimal(3))

    keys = [key for key, _ in tracker.items()]

    assert keys == [BalanceKey(CAROL, USD), BalanceKey(ALICE, EUR), BalanceKey(ALICE, USD)]
