from __future__ import annotations

from decimal import Decimal
from itertools import count
from random import Random
from typing import Iterable

from domain.base_types import CurrencyCode, ExpenseId, ParticipantId, TransferId
from domain.ledger import Balance, Debt, Expense, ExpenseShare, Participant, Transfer

_ID_COUNTER = count()


def make_expense(
    *,
    payer: ParticipantId,
    amount: str | Decimal,
    currency: CurrencyCode,
    shares: Iterable[tuple[ParticipantId, str | Decimal]] = (),
) -> Expense:
    """Helper to build an Expense with readable ``(participant, amount)`` share tuples."""
    return Expense(
        id=ExpenseId(f"expense-{next(_ID_COUNTER)}"),
        amount=Decimal(amount),
        currency=currency,
        payer_id=payer,
        shares=[ExpenseShare(participant_id=pid, amount=Decimal(value)) for pid, value in shares],
    )


def make_transfer(
    *,
    sender: ParticipantId,
    receiver: ParticipantId,
    amount: str | Decimal,
    currency: CurrencyCode,
) -> Transfer:
    return Transfer(
        id=TransferId(f"transfer-{next(_ID_COUNTER)}"),
        amount=Decimal(amount),
        currency=currency,
        from_id=sender,
        to_id=receiver,
    )


def debts_as_transfers(debts: Iterable[Debt]) -> list[Transfer]:
    return [
        make_transfer(sender=debt.from_id, receiver=debt.to_id, amount=debt.amount, currency=debt.currency)
        for debt in debts
    ]


def balance_map(balances: Iterable[Balance]) -> dict[tuple[ParticipantId, CurrencyCode], Decimal]:
    return {(balance.participant_id, balance.currency): balance.amount for balance in balances}


def random_ledger(
    rng: Random,
    participants: list[Participant],
    currencies: list[CurrencyCode],
    *,
    expense_count: int = 8,
    transfer_count: int = 3,
) -> tuple[list[Expense], list[Transfer]]:
    """Deterministic pseudo-random expenses (explicit, partial and share-less) and transfers."""
    ids = [participant.id for participant in participants]
    expenses: list[Expense] = []
    for _ in range(expense_count):
        currency = rng.choice(currencies)
        payer = rng.choice(ids)
        amount = Decimal(rng.randint(100, 50_000)) / 100
        mode = rng.randint(0, 2)
        if mode == 0:
            expenses.append(make_expense(payer=payer, amount=amount, currency=currency))
            continue
        members = ids if mode == 1 else rng.sample(ids, rng.randint(1, len(ids)))
        weights = [rng.randint(1, 5) for _ in members]
        cents = int(amount * 100)
        split = [cents * weight // sum(weights) for weight in weights]
        split[0] += cents - sum(split)
        shares = [(pid, Decimal(part) / 100) for pid, part in zip(members, split)]
        expenses.append(make_expense(payer=payer, amount=amount, currency=currency, shares=shares))

    transfers: list[Transfer] = []
    for _ in range(transfer_count):
        sender, receiver = rng.sample(ids, 2)
        amount = Decimal(rng.randint(100, 20_000)) / 100
        currency = rng.choice(currencies)
        transfers.append(make_transfer(sender=sender, receiver=receiver, amount=amount, currency=currency))
    return expenses, transfers
