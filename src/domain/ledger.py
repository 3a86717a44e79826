from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from .base_types import CurrencyCode, ExpenseId, ParticipantId, TransferId, TripId


def _new_id() -> str:
    return str(uuid4())


class Trip(BaseModel):
    id: TripId = TripId(Field(default_factory=_new_id))
    name: str
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_archived: bool = False

    @model_validator(mode="after")
    def _validate_fields(self) -> Trip:
        if not self.name.strip():
            raise ValueError("Trip.name must be non-empty")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Trip.end_date must not precede start_date")
        return self


class Participant(BaseModel):
    id: ParticipantId = ParticipantId(Field(default_factory=_new_id))
    name: str
    trip_id: TripId | None = None

    @model_validator(mode="after")
    def _validate_name(self) -> Participant:
        if not self.name.strip():
            raise ValueError("Participant.name must be non-empty")
        return self


class ExpenseShare(BaseModel):
    """Portion of one expense owed by one participant."""

    participant_id: ParticipantId
    amount: Decimal

    @model_validator(mode="after")
    def _validate_amount(self) -> ExpenseShare:
        if self.amount < 0:
            raise ValueError("ExpenseShare.amount must be >= 0")
        return self


class Expense(BaseModel):
    """Money paid by one participant on behalf of the group.

    An empty ``shares`` list means "split equally across the trip roster";
    the ledger builder resolves that against the roster it is given.
    """

    id: ExpenseId = ExpenseId(Field(default_factory=_new_id))
    amount: Decimal
    currency: CurrencyCode
    payer_id: ParticipantId
    shares: list[ExpenseShare] = Field(default_factory=list)
    description: str = ""
    date: datetime | None = None
    trip_id: TripId | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> Expense:
        if self.amount <= 0:
            raise ValueError("Expense.amount must be > 0")
        if not self.currency.strip():
            raise ValueError("Expense.currency must be non-empty")
        self.currency = CurrencyCode(self.currency.strip().upper())
        return self


class Transfer(BaseModel):
    """Money that already moved directly from one participant to another."""

    id: TransferId = TransferId(Field(default_factory=_new_id))
    amount: Decimal
    currency: CurrencyCode
    from_id: ParticipantId
    to_id: ParticipantId
    description: str | None = None
    date: datetime | None = None
    trip_id: TripId | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> Transfer:
        if self.amount <= 0:
            raise ValueError("Transfer.amount must be > 0")
        if not self.currency.strip():
            raise ValueError("Transfer.currency must be non-empty")
        if self.from_id == self.to_id:
            raise ValueError("Transfer sender and recipient cannot be the same participant")
        self.currency = CurrencyCode(self.currency.strip().upper())
        return self


class Balance(BaseModel):
    """Net position of a participant in one currency.

    Sign convention:
    - Positive amount: the group owes the participant.
    - Negative amount: the participant owes the group.
    """

    participant_id: ParticipantId
    participant_name: str
    currency: CurrencyCode
    amount: Decimal


class Debt(BaseModel):
    """Suggested settlement transfer ``from_id -> to_id``."""

    from_id: ParticipantId
    to_id: ParticipantId
    from_name: str
    to_name: str
    amount: Decimal
    currency: CurrencyCode
