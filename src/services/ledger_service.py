from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from db.repositories import ExpenseRepository, ParticipantRepository, TransferRepository, TripRepository
from domain.balance_tracker import UnknownParticipant
from domain.base_types import ExpenseId, ParticipantId, TransferId, TripId
from domain.debt_simplifier import compute_debts
from domain.ledger import Balance, Debt, Expense, Participant, Transfer, Trip
from domain.ledger_builder import compute_balances
from domain.share_validator import split_equally as equal_shares
from domain.share_validator import validate_shares
from utils.trip_summary import TripSummary, compute_trip_summary

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class TripNotFound(RecordNotFound):
    def __init__(self, trip_id: str) -> None:
        super().__init__("Trip", trip_id)


class ExpenseNotFound(RecordNotFound):
    def __init__(self, expense_id: str) -> None:
        super().__init__("Expense", expense_id)


class TransferNotFound(RecordNotFound):
    def __init__(self, transfer_id: str) -> None:
        super().__init__("Transfer", transfer_id)


@dataclass
class TripSnapshot:
    trip: Trip
    participants: list[Participant]
    expenses: list[Expense]
    transfers: list[Transfer]


class TripLedgerService:
    """Read and write path around the ledger engine for stored trips.

    Every write validates before touching storage, so a rejected request leaves nothing behind.
    """

    def __init__(self, session: Session) -> None:
        self.trips = TripRepository(session)
        self.participants = ParticipantRepository(session)
        self.expenses = ExpenseRepository(session)
        self.transfers = TransferRepository(session)

    def create_trip(self, trip: Trip) -> Trip:
        created = self.trips.create(trip)
        logger.info("Created trip %s (%s)", created.id, created.name)
        return created

    def get_trip(self, trip_id: TripId) -> Trip:
        trip = self.trips.get(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    def update_trip(self, trip: Trip) -> Trip:
        updated = self.trips.update(trip)
        if updated is None:
            raise TripNotFound(trip.id)
        logger.info("Updated trip %s (%s), archived=%s", updated.id, updated.name, updated.is_archived)
        return updated

    def archive_trip(self, trip_id: TripId, *, archived: bool = True) -> Trip:
        trip = self.get_trip(trip_id)
        return self.update_trip(trip.model_copy(update={"is_archived": archived}))

    def delete_trip(self, trip_id: TripId) -> None:
        if not self.trips.delete(trip_id):
            raise TripNotFound(trip_id)
        logger.info("Deleted trip %s", trip_id)

    def add_participant(self, trip_id: TripId, participant: Participant) -> Participant:
        self.get_trip(trip_id)
        return self.participants.create(participant, trip_id=trip_id)

    def record_expense(
        self,
        trip_id: TripId,
        expense: Expense,
        *,
        split_equally: bool = False,
        allow_share_less: bool = False,
    ) -> Expense:
        """Validate and store an expense together with its shares.

        ``split_equally`` turns a share-less expense into explicit equal shares over the current roster.
        ``allow_share_less`` stores it without shares instead, leaving the split to the ledger fallback.
        """
        self.get_trip(trip_id)
        expense = self._prepare_expense(
            trip_id, expense, split_equally=split_equally, allow_share_less=allow_share_less
        )
        created = self.expenses.create(expense, trip_id=trip_id)
        logger.info(
            "Recorded expense %s in trip %s: %s %s paid by %s",
            created.id,
            trip_id,
            created.amount,
            created.currency,
            created.payer_id,
        )
        return created

    def update_expense(self, expense: Expense, *, split_equally: bool = False) -> Expense:
        existing = self.expenses.get(expense.id)
        if existing is None or existing.trip_id is None:
            raise ExpenseNotFound(expense.id)
        expense = self._prepare_expense(existing.trip_id, expense, split_equally=split_equally)
        updated = self.expenses.replace(expense)
        if updated is None:
            raise ExpenseNotFound(expense.id)
        logger.info("Replaced expense %s with %d shares", updated.id, len(updated.shares))
        return updated

    def delete_expense(self, expense_id: ExpenseId) -> None:
        if not self.expenses.delete(expense_id):
            raise ExpenseNotFound(expense_id)
        logger.info("Deleted expense %s", expense_id)

    def record_transfer(self, trip_id: TripId, transfer: Transfer) -> Transfer:
        self.get_trip(trip_id)
        roster = self._roster_ids(trip_id)
        for participant_id, role in ((transfer.from_id, "sender"), (transfer.to_id, "receiver")):
            if participant_id not in roster:
                raise UnknownParticipant(participant_id=participant_id, context=f"{role} of transfer={transfer.id}")
        created = self.transfers.create(transfer, trip_id=trip_id)
        logger.info(
            "Recorded transfer %s in trip %s: %s -> %s %s %s",
            created.id,
            trip_id,
            created.from_id,
            created.to_id,
            created.amount,
            created.currency,
        )
        return created

    def delete_transfer(self, transfer_id: TransferId) -> None:
        if not self.transfers.delete(transfer_id):
            raise TransferNotFound(transfer_id)
        logger.info("Deleted transfer %s", transfer_id)

    def snapshot(self, trip_id: TripId) -> TripSnapshot:
        trip = self.get_trip(trip_id)
        return TripSnapshot(
            trip=trip,
            participants=self.participants.list_for_trip(trip_id),
            expenses=self.expenses.list_for_trip(trip_id),
            transfers=self.transfers.list_for_trip(trip_id),
        )

    def balances(self, trip_id: TripId) -> list[Balance]:
        snapshot = self.snapshot(trip_id)
        return compute_balances(snapshot.participants, snapshot.expenses, snapshot.transfers)

    def debts(self, trip_id: TripId) -> list[Debt]:
        return compute_debts(self.balances(trip_id))

    def summary(self, trip_id: TripId) -> TripSummary:
        snapshot = self.snapshot(trip_id)
        return compute_trip_summary(snapshot.participants, snapshot.expenses, snapshot.transfers)

    def _prepare_expense(
        self, trip_id: TripId, expense: Expense, *, split_equally: bool, allow_share_less: bool = False
    ) -> Expense:
        roster = self._roster_ids(trip_id)
        if split_equally and not expense.shares:
            # Freeze the split over today's roster instead of relying on the ledger fallback.
            expense = expense.model_copy(update={"shares": equal_shares(expense.amount, roster)})

        validate_shares(expense.amount, expense.shares, allow_equal_split=allow_share_less)

        if expense.payer_id not in roster:
            raise UnknownParticipant(participant_id=expense.payer_id, context=f"payer of expense={expense.id}")
        for share in expense.shares:
            if share.participant_id not in roster:
                raise UnknownParticipant(participant_id=share.participant_id, context=f"share of expense={expense.id}")
        return expense.model_copy(update={"trip_id": trip_id})

    def _roster_ids(self, trip_id: TripId) -> list[ParticipantId]:
        return [participant.id for participant in self.participants.list_for_trip(trip_id)]