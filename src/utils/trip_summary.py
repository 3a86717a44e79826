from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from domain.base_types import CurrencyCode, ParticipantId, round_cents
from domain.debt_simplifier import compute_debts
from domain.ledger import Balance, Debt, Expense, Participant, Transfer
from domain.ledger_builder import compute_balances
from domain.share_validator import split_equally

from .formatting import format_money

PERCENT = Decimal("0.1")


@dataclass
class PayerShare:
    participant_id: ParticipantId
    name: str
    amount: Decimal
    percentage: Decimal


@dataclass
class CurrencySpending:
    """How much each participant paid out of a currency's total spending."""

    currency: CurrencyCode
    total: Decimal
    expense_count: int
    payers: list[PayerShare] = field(default_factory=list)

    @property
    def top_spender(self) -> PayerShare | None:
        return self.payers[0] if self.payers else None


@dataclass
class ParticipantTotals:
    participant_id: ParticipantId
    name: str
    currency: CurrencyCode
    paid: Decimal = Decimal(0)
    consumed: Decimal = Decimal(0)
    sent: Decimal = Decimal(0)
    received: Decimal = Decimal(0)

    @property
    def net(self) -> Decimal:
        return round_cents(self.paid - self.consumed + self.sent - self.received)


@dataclass
class TripSummary:
    balances: list[Balance]
    debts: list[Debt]
    spending: list[CurrencySpending]
    participant_totals: list[ParticipantTotals]

    def debt_currencies(self) -> list[CurrencyCode]:
        return sorted({debt.currency for debt in self.debts})

    def debt_matrix(self, currency: CurrencyCode) -> dict[tuple[ParticipantId, ParticipantId], Decimal]:
        """``(from_id, to_id) -> amount`` for the suggested debts in one currency."""
        return {(debt.from_id, debt.to_id): debt.amount for debt in self.debts if debt.currency == currency}


def compute_trip_summary(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
    transfers: Sequence[Transfer],
) -> TripSummary:
    balances = compute_balances(participants, expenses, transfers)
    debts = compute_debts(balances)
    return TripSummary(
        balances=balances,
        debts=debts,
        spending=compute_spending(participants, expenses),
        participant_totals=compute_participant_totals(participants, expenses, transfers),
    )


def compute_spending(participants: Sequence[Participant], expenses: Sequence[Expense]) -> list[CurrencySpending]:
    names = {participant.id: participant.name for participant in participants}
    paid: dict[CurrencyCode, dict[ParticipantId, Decimal]] = defaultdict(lambda: defaultdict(lambda: Decimal(0)))
    counts: dict[CurrencyCode, int] = defaultdict(int)
    for expense in expenses:
        paid[expense.currency][expense.payer_id] += expense.amount
        counts[expense.currency] += 1

    result: list[CurrencySpending] = []
    for currency in sorted(paid):
        by_payer = paid[currency]
        total = sum(by_payer.values(), start=Decimal(0))
        payers = [
            PayerShare(
                participant_id=payer_id,
                name=names.get(payer_id, payer_id),
                amount=amount,
                percentage=(amount * 100 / total).quantize(PERCENT),
            )
            for payer_id, amount in by_payer.items()
        ]
        payers.sort(key=lambda payer: (-payer.amount, payer.participant_id))
        result.append(CurrencySpending(currency=currency, total=total, expense_count=counts[currency], payers=payers))
    return result


def compute_participant_totals(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
    transfers: Sequence[Transfer],
) -> list[ParticipantTotals]:
    """Gross per-participant figures behind each balance, one row per currency touched."""
    names = {participant.id: participant.name for participant in participants}
    rows: dict[tuple[ParticipantId, CurrencyCode], ParticipantTotals] = {}

    def row(participant_id: ParticipantId, currency: CurrencyCode) -> ParticipantTotals:
        key = (participant_id, currency)
        if key not in rows:
            rows[key] = ParticipantTotals(
                participant_id=participant_id, name=names.get(participant_id, participant_id), currency=currency
            )
        return rows[key]

    for expense in expenses:
        row(expense.payer_id, expense.currency).paid += expense.amount
        if expense.shares:
            for share in expense.shares:
                row(share.participant_id, expense.currency).consumed += share.amount
        elif participants:
            for share in split_equally(expense.amount, [participant.id for participant in participants]):
                row(share.participant_id, expense.currency).consumed += share.amount

    for transfer in transfers:
        row(transfer.from_id, transfer.currency).sent += transfer.amount
        row(transfer.to_id, transfer.currency).received += transfer.amount

    order = {participant.id: idx for idx, participant in enumerate(participants)}
    totals = sorted(rows.values(), key=lambda item: (order.get(item.participant_id, len(order)), item.currency))
    for item in totals:
        item.consumed = round_cents(item.consumed)
    return totals


def render_trip_summary(summary: TripSummary) -> None:
    print("Balances:")
    if not summary.balances:
        print("  (all settled)")
    for balance in summary.balances:
        print(f"  {balance.participant_name}: {format_money(balance.amount, balance.currency, signed=True)}")

    print("\nSuggested transfers:")
    if not summary.debts:
        print("  (none)")
    for debt in summary.debts:
        print(f"  {debt.from_name} -> {debt.to_name}: {format_money(debt.amount, debt.currency)}")
    for currency in summary.debt_currencies():
        render_debt_matrix(summary, currency)

    print("\nSpending by payer:")
    if not summary.spending:
        print("  (no expenses)")
    for spending in summary.spending:
        print(
            f"  {spending.currency}: {format_money(spending.total, spending.currency)} "
            f"across {spending.expense_count} expenses"
        )
        for payer in spending.payers:
            print(f"    {payer.name}: {format_money(payer.amount, spending.currency)} ({payer.percentage}%)")

    if summary.participant_totals:
        render_participant_totals(summary.participant_totals)


def render_participant_totals(totals: Sequence[ParticipantTotals]) -> None:
    labels = ("Participant", "Cur", "Paid", "Share", "Sent", "Received", "Net")
    rows = [
        (
            item.name,
            item.currency,
            f"{item.paid:.2f}",
            f"{item.consumed:.2f}",
            f"{item.sent:.2f}",
            f"{item.received:.2f}",
            f"{item.net:+.2f}",
        )
        for item in totals
    ]
    widths = [max(len(label), max((len(row[idx]) for row in rows), default=0)) for idx, label in enumerate(labels)]

    header = " ".join(
        f"{label:<{widths[idx]}}" if idx < 2 else f"{label:>{widths[idx]}}" for idx, label in enumerate(labels)
    )
    lines = ["", "Participant totals:", header, "-" * len(header)]
    for row in rows:
        lines.append(
            " ".join(f"{cell:<{widths[idx]}}" if idx < 2 else f"{cell:>{widths[idx]}}" for idx, cell in enumerate(row))
        )
    lines.append("-" * len(header))
    print("\n".join(lines))


def render_debt_matrix(summary: TripSummary, currency: CurrencyCode) -> None:
    """Debtors as rows, creditors as columns; blank cells mean no transfer between the pair."""
    matrix = summary.debt_matrix(currency)
    names: dict[ParticipantId, str] = {}
    for debt in summary.debts:
        names[debt.from_id] = debt.from_name
        names[debt.to_id] = debt.to_name
    debtors = sorted({from_id for from_id, _ in matrix}, key=lambda pid: names[pid])
    creditors = sorted({to_id for _, to_id in matrix}, key=lambda pid: names[pid])
    cells = {key: f"{amount:.2f}" for key, amount in matrix.items()}

    first_width = max([len(currency)] + [len(names[pid]) for pid in debtors])
    widths = [
        max([len(names[to_id])] + [len(cells.get((from_id, to_id), "")) for from_id in debtors]) for to_id in creditors
    ]

    lines = ["", f"  Debt matrix ({currency}):"]
    header = [f"{currency:<{first_width}}"] + [f"{names[pid]:>{width}}" for pid, width in zip(creditors, widths)]
    lines.append("    " + " ".join(header))
    for from_id in debtors:
        row = [f"{names[from_id]:<{first_width}}"]
        row += [f"{cells.get((from_id, to_id), ''):>{width}}" for to_id, width in zip(creditors, widths)]
        lines.append("    " + " ".join(row))
    print("\n".join(lines))
