from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class TripOrm(Base):
    __tablename__ = "trips"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    participants: Mapped[list["ParticipantOrm"]] = relationship(
        cascade="all, delete-orphan", back_populates="trip", order_by="ParticipantOrm.position"
    )
    expenses: Mapped[list["ExpenseOrm"]] = relationship(cascade="all, delete-orphan", back_populates="trip")
    transfers: Mapped[list["TransferOrm"]] = relationship(cascade="all, delete-orphan", back_populates="trip")


class ParticipantOrm(Base):
    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    trip_id: Mapped[str] = mapped_column(String, ForeignKey("trips.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Insertion order within the trip; the roster order used by the ledger.
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    trip: Mapped[TripOrm] = relationship(back_populates="participants")


class ExpenseOrm(Base):
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    trip_id: Mapped[str] = mapped_column(String, ForeignKey("trips.id"), nullable=False, index=True)
    payer_id: Mapped[str] = mapped_column(String, ForeignKey("participants.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    occurred_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    trip: Mapped[TripOrm] = relationship(back_populates="expenses")
    shares: Mapped[list["ExpenseShareOrm"]] = relationship(
        cascade="all, delete-orphan", back_populates="expense", lazy="joined", order_by="ExpenseShareOrm.position"
    )


class ExpenseShareOrm(Base):
    __tablename__ = "expense_shares"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    expense_id: Mapped[str] = mapped_column(String, ForeignKey("expenses.id"), nullable=False, index=True)
    participant_id: Mapped[str] = mapped_column(String, ForeignKey("participants.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    expense: Mapped[ExpenseOrm] = relationship(back_populates="shares")


class TransferOrm(Base):
    __tablename__ = "transfers"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    trip_id: Mapped[str] = mapped_column(String, ForeignKey("trips.id"), nullable=False, index=True)
    from_id: Mapped[str] = mapped_column(String, ForeignKey("participants.id"), nullable=False)
    to_id: Mapped[str] = mapped_column(String, ForeignKey("participants.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    occurred_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    trip: Mapped[TripOrm] = relationship(back_populates="transfers")
