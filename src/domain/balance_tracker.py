from __future__ import annotations

from decimal import Decimal
from typing import Iterable, NamedTuple

from .base_types import CurrencyCode, ParticipantId


class LedgerError(Exception):
    pass


class UnknownParticipant(LedgerError):
    def __init__(self, *, participant_id: str, context: str) -> None:
        self.participant_id = participant_id
        self.context = context
        super().__init__(f"Unknown participant={participant_id} referenced by {context}")


class DuplicateParticipant(LedgerError):
    def __init__(self, *, participant_id: str) -> None:
        self.participant_id = participant_id
        super().__init__(f"Participant={participant_id} appears more than once in the roster")


class BalanceKey(NamedTuple):
    participant_id: ParticipantId
    currency: CurrencyCode


class ParticipantBalanceTracker:
    """Running per-participant, per-currency totals for a fixed roster."""

    def __init__(self, participant_ids: Iterable[ParticipantId]) -> None:
        self._roster: list[ParticipantId] = []
        for participant_id in participant_ids:
            if participant_id in self._roster:
                raise DuplicateParticipant(participant_id=participant_id)
            self._roster.append(participant_id)
        self._known = frozenset(self._roster)
        self._balances: dict[BalanceKey, Decimal] = {}

    @property
    def roster(self) -> list[ParticipantId]:
        return list(self._roster)

    def require_known(self, participant_id: ParticipantId, *, context: str) -> None:
        if participant_id not in self._known:
            raise UnknownParticipant(participant_id=participant_id, context=context)

    def apply_movement(self, *, participant_id: ParticipantId, currency: CurrencyCode, amount: Decimal) -> None:
        self.require_known(participant_id, context=f"{currency} movement")
        key = BalanceKey(participant_id, currency)
        self._balances[key] = self._balances.get(key, Decimal(0)) + amount

    def currencies(self) -> list[CurrencyCode]:
        return sorted({key.currency for key in self._balances})

    def currency_total(self, currency: CurrencyCode) -> Decimal:
        return sum(
            (balance for key, balance in self._balances.items() if key.currency == currency),
            start=Decimal(0),
        )

    def items(self) -> list[tuple[BalanceKey, Decimal]]:
        """Entries in roster order, then currency code."""
        order = {participant_id: idx for idx, participant_id in enumerate(self._roster)}
        return sorted(self._balances.items(), key=lambda item: (order[item[0].participant_id], item[0].currency))
