from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from db import models
from domain.base_types import CurrencyCode, ExpenseId, ParticipantId, TransferId, TripId
from domain.ledger import Expense, ExpenseShare, Participant, Transfer, Trip


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TripRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, trip: Trip) -> Trip:
        orm_trip = models.TripOrm(
            id=trip.id,
            name=trip.name,
            location=trip.location,
            start_date=trip.start_date,
            end_date=trip.end_date,
            is_archived=trip.is_archived,
        )
        self._session.add(orm_trip)
        self._session.commit()
        return self._to_domain(orm_trip)

    def get(self, trip_id: TripId) -> Trip | None:
        orm_trip = self._session.get(models.TripOrm, trip_id)
        if orm_trip is None:
            return None
        return self._to_domain(orm_trip)

    def list(self, *, include_archived: bool = True) -> list[Trip]:
        query = self._session.query(models.TripOrm)
        if not include_archived:
            query = query.filter(models.TripOrm.is_archived.is_(False))
        return [self._to_domain(trip) for trip in query.order_by(models.TripOrm.name.asc()).all()]

    def update(self, trip: Trip) -> Trip | None:
        orm_trip = self._session.get(models.TripOrm, trip.id)
        if orm_trip is None:
            return None

        orm_trip.name = trip.name
        orm_trip.location = trip.location
        orm_trip.start_date = trip.start_date
        orm_trip.end_date = trip.end_date
        orm_trip.is_archived = trip.is_archived
        self._session.commit()
        return self._to_domain(orm_trip)

    def delete(self, trip_id: TripId) -> bool:
        """Remove a trip together with its participants, expenses, shares and transfers."""
        orm_trip = self._session.get(models.TripOrm, trip_id)
        if orm_trip is None:
            return False
        self._session.delete(orm_trip)
        self._session.commit()
        return True

    @staticmethod
    def _to_domain(orm_trip: models.TripOrm) -> Trip:
        return Trip(
            id=TripId(orm_trip.id),
            name=orm_trip.name,
            location=orm_trip.location,
            start_date=orm_trip.start_date,
            end_date=orm_trip.end_date,
            is_archived=orm_trip.is_archived,
        )


class ParticipantRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, participant: Participant, *, trip_id: TripId) -> Participant:
        next_position = (
            self._session.query(func.count(models.ParticipantOrm.id))
            .filter(models.ParticipantOrm.trip_id == trip_id)
            .scalar()
        )
        orm_participant = models.ParticipantOrm(
            id=participant.id,
            trip_id=trip_id,
            name=participant.name.strip(),
            position=next_position or 0,
        )
        self._session.add(orm_participant)
        self._session.commit()
        return self._to_domain(orm_participant)

    def list_for_trip(self, trip_id: TripId) -> list[Participant]:
        orm_participants = (
            self._session.query(models.ParticipantOrm)
            .filter(models.ParticipantOrm.trip_id == trip_id)
            .order_by(models.ParticipantOrm.position.asc())
            .all()
        )
        return [self._to_domain(participant) for participant in orm_participants]

    @staticmethod
    def _to_domain(orm_participant: models.ParticipantOrm) -> Participant:
        return Participant(
            id=ParticipantId(orm_participant.id),
            name=orm_participant.name,
            trip_id=TripId(orm_participant.trip_id),
        )


class ExpenseRepository:
    """Expenses are stored together with their shares; shares are only ever replaced as a unit."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, expense: Expense, *, trip_id: TripId) -> Expense:
        orm_expense = models.ExpenseOrm(
            id=expense.id,
            trip_id=trip_id,
            payer_id=expense.payer_id,
            amount=expense.amount,
            currency=expense.currency,
            description=expense.description,
            occurred_at=expense.date,
        )
        orm_expense.shares = self._to_orm_shares(expense.shares)

        self._session.add(orm_expense)
        self._commit()
        return self._to_domain(orm_expense)

    def replace(self, expense: Expense) -> Expense | None:
        orm_expense = self._session.get(models.ExpenseOrm, expense.id)
        if orm_expense is None:
            return None

        orm_expense.payer_id = expense.payer_id
        orm_expense.amount = expense.amount
        orm_expense.currency = expense.currency
        orm_expense.description = expense.description
        orm_expense.occurred_at = expense.date
        # delete-orphan drops the previous shares in the same flush.
        orm_expense.shares = self._to_orm_shares(expense.shares)

        self._commit()
        return self._to_domain(orm_expense)

    def delete(self, expense_id: ExpenseId) -> bool:
        orm_expense = self._session.get(models.ExpenseOrm, expense_id)
        if orm_expense is None:
            return False
        self._session.delete(orm_expense)
        self._commit()
        return True

    def get(self, expense_id: ExpenseId) -> Expense | None:
        orm_expense = self._session.get(models.ExpenseOrm, expense_id)
        if orm_expense is None:
            return None
        return self._to_domain(orm_expense)

    def list_for_trip(self, trip_id: TripId) -> list[Expense]:
        orm_expenses = (
            self._session.query(models.ExpenseOrm)
            .filter(models.ExpenseOrm.trip_id == trip_id)
            .order_by(models.ExpenseOrm.occurred_at.desc())
            .all()
        )
        return [self._to_domain(expense) for expense in orm_expenses]

    def _commit(self) -> None:
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    @staticmethod
    def _to_orm_shares(shares: list[ExpenseShare]) -> list[models.ExpenseShareOrm]:
        return [
            models.ExpenseShareOrm(participant_id=share.participant_id, amount=share.amount, position=position)
            for position, share in enumerate(shares)
        ]

    @staticmethod
    def _to_domain(orm_expense: models.ExpenseOrm) -> Expense:
        return Expense(
            id=ExpenseId(orm_expense.id),
            amount=orm_expense.amount,
            currency=CurrencyCode(orm_expense.currency),
            payer_id=ParticipantId(orm_expense.payer_id),
            shares=[
                ExpenseShare(participant_id=ParticipantId(share.participant_id), amount=share.amount)
                for share in orm_expense.shares
            ],
            description=orm_expense.description,
            date=_as_utc(orm_expense.occurred_at),
            trip_id=TripId(orm_expense.trip_id),
        )


class TransferRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, transfer: Transfer, *, trip_id: TripId) -> Transfer:
        orm_transfer = models.TransferOrm(
            id=transfer.id,
            trip_id=trip_id,
            from_id=transfer.from_id,
            to_id=transfer.to_id,
            amount=transfer.amount,
            currency=transfer.currency,
            description=transfer.description,
            occurred_at=transfer.date,
        )
        self._session.add(orm_transfer)
        self._session.commit()
        return self._to_domain(orm_transfer)

    def delete(self, transfer_id: TransferId) -> bool:
        orm_transfer = self._session.get(models.TransferOrm, transfer_id)
        if orm_transfer is None:
            return False
        self._session.delete(orm_transfer)
        self._session.commit()
        return True

    def get(self, transfer_id: TransferId) -> Transfer | None:
        orm_transfer = self._session.get(models.TransferOrm, transfer_id)
        if orm_transfer is None:
            return None
        return self._to_domain(orm_transfer)

    def list_for_trip(self, trip_id: TripId) -> list[Transfer]:
        orm_transfers = (
            self._session.query(models.TransferOrm)
            .filter(models.TransferOrm.trip_id == trip_id)
            .order_by(models.TransferOrm.occurred_at.desc())
            .all()
        )
        return [self._to_domain(transfer) for transfer in orm_transfers]

    @staticmethod
    def _to_domain(orm_transfer: models.TransferOrm) -> Transfer:
        return Transfer(
            id=TransferId(orm_transfer.id),
            amount=orm_transfer.amount,
            currency=CurrencyCode(orm_transfer.currency),
            from_id=ParticipantId(orm_transfer.from_id),
            to_id=ParticipantId(orm_transfer.to_id),
            description=orm_transfer.description,
            date=_as_utc(orm_transfer.occurred_at),
            trip_id=TripId(orm_transfer.trip_id),
        )
