from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Sequence

from .balance_tracker import ParticipantBalanceTracker
from .base_types import is_negligible, round_cents
from .ledger import Balance, Expense, Participant, Transfer
from .share_validator import split_equally

logger = logging.getLogger(__name__)


def compute_balances(
    participants: Sequence[Participant],
    expenses: Iterable[Expense],
    transfers: Iterable[Transfer],
) -> list[Balance]:
    """Net balance of every participant in every currency they touched.

    Expenses with no shares are split equally across ``participants`` as given,
    i.e. the roster at computation time, not at the time the expense was recorded.
    The split is cent-exact, so it adds no rounding residue of its own.
    Entries that round to within EPSILON of zero are omitted; each one dropped can
    leave up to EPSILON of residue in its currency total.
    """
    tracker = ParticipantBalanceTracker(participant.id for participant in participants)
    names = {participant.id: participant.name for participant in participants}
    expenses = list(expenses)
    transfers = list(transfers)

    _check_references(tracker, expenses, transfers)

    for expense in expenses:
        _apply_expense(tracker, expense)
    for transfer in transfers:
        # Sender's debt shrinks, receiver's credit shrinks.
        tracker.apply_movement(participant_id=transfer.from_id, currency=transfer.currency, amount=transfer.amount)
        tracker.apply_movement(participant_id=transfer.to_id, currency=transfer.currency, amount=-transfer.amount)

    balances: list[Balance] = []
    for key, raw_amount in tracker.items():
        amount = round_cents(raw_amount)
        if is_negligible(amount):
            continue
        balances.append(
            Balance(
                participant_id=key.participant_id,
                participant_name=names[key.participant_id],
                currency=key.currency,
                amount=amount,
            )
        )

    logger.debug(
        "Computed %d balances from %d expenses and %d transfers", len(balances), len(expenses), len(transfers)
    )
    for currency in tracker.currencies():
        reported = sum((balance.amount for balance in balances if balance.currency == currency), start=Decimal(0))
        logger.debug("%s total: raw=%s reported=%s", currency, tracker.currency_total(currency), reported)
    return balances


def _apply_expense(tracker: ParticipantBalanceTracker, expense: Expense) -> None:
    tracker.apply_movement(participant_id=expense.payer_id, currency=expense.currency, amount=expense.amount)

    if expense.shares:
        for share in expense.shares:
            tracker.apply_movement(participant_id=share.participant_id, currency=expense.currency, amount=-share.amount)
        return

    for share in split_equally(expense.amount, tracker.roster):
        tracker.apply_movement(participant_id=share.participant_id, currency=expense.currency, amount=-share.amount)


def _check_references(
    tracker: ParticipantBalanceTracker,
    expenses: Sequence[Expense],
    transfers: Sequence[Transfer],
) -> None:
    for expense in expenses:
        tracker.require_known(expense.payer_id, context=f"payer of expense={expense.id}")
        for share in expense.shares:
            tracker.require_known(share.participant_id, context=f"share of expense={expense.id}")
    for transfer in transfers:
        tracker.require_known(transfer.from_id, context=f"sender of transfer={transfer.id}")
        tracker.require_known(transfer.to_id, context=f"receiver of transfer={transfer.id}")
