from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .base_types import EPSILON, CurrencyCode, ParticipantId, is_negligible, round_cents
from .ledger import Balance, Debt


@dataclass
class _Position:
    participant_id: ParticipantId
    name: str
    remaining: Decimal


def compute_debts(balances: Iterable[Balance]) -> list[Debt]:
    """Suggest settlement transfers that bring every balance to zero.

    Greedy matching of the largest creditor with the largest debtor, independently per
    currency. Produces at most ``n - 1`` transfers for ``n`` non-zero balances in a currency.
    """
    by_currency: dict[CurrencyCode, list[Balance]] = defaultdict(list)
    for balance in balances:
        by_currency[balance.currency].append(balance)

    debts: list[Debt] = []
    for currency in sorted(by_currency):
        debts.extend(_settle_currency(currency, by_currency[currency]))
    return debts


def _settle_currency(currency: CurrencyCode, balances: list[Balance]) -> list[Debt]:
    creditors = [
        _Position(balance.participant_id, balance.participant_name, balance.amount)
        for balance in balances
        if balance.amount > EPSILON
    ]
    debtors = [
        _Position(balance.participant_id, balance.participant_name, balance.amount)
        for balance in balances
        if balance.amount < -EPSILON
    ]
    creditors.sort(key=lambda pos: (-pos.remaining, pos.participant_id))
    debtors.sort(key=lambda pos: (pos.remaining, pos.participant_id))

    debts: list[Debt] = []
    cred_idx = 0
    debt_idx = 0
    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor = creditors[cred_idx]
        debtor = debtors[debt_idx]

        amount = round_cents(min(creditor.remaining, abs(debtor.remaining)))
        if amount > EPSILON:
            debts.append(
                Debt(
                    from_id=debtor.participant_id,
                    to_id=creditor.participant_id,
                    from_name=debtor.name,
                    to_name=creditor.name,
                    amount=amount,
                    currency=currency,
                )
            )

        creditor.remaining -= amount
        debtor.remaining += amount

        if creditor.remaining <= EPSILON:
            cred_idx += 1
        if is_negligible(debtor.remaining):
            debt_idx += 1

    return debts
