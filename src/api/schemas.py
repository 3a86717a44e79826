from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, model_validator

from config import config
from domain.base_types import ParticipantId
from domain.ledger import ExpenseShare


def _default_currency() -> str:
    return config().default_currency


class TripCreate(BaseModel):
    name: str
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class TripUpdate(BaseModel):
    """Partial update; only the fields present in the body are changed."""

    name: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_archived: bool | None = None


class ParticipantCreate(BaseModel):
    name: str


class ExpenseWrite(BaseModel):
    """Body for creating or replacing an expense.

    Leave ``shares`` empty and set ``split_equally`` to divide the amount over the current roster.
    """

    amount: Decimal
    currency: str | None = None
    payer_id: ParticipantId
    shares: list[ExpenseShare] | None = None
    split_equally: bool = False
    description: str
    date: datetime | None = None

    @model_validator(mode="after")
    def _require_description(self) -> ExpenseWrite:
        if not self.description.strip():
            raise ValueError("Expense description is required")
        return self

    def resolved_currency(self) -> str:
        return self.currency or _default_currency()


class TransferWrite(BaseModel):
    amount: Decimal
    currency: str | None = None
    from_id: ParticipantId
    to_id: ParticipantId
    description: str | None = None
    date: datetime | None = None

    def resolved_currency(self) -> str:
        return self.currency or _default_currency()
