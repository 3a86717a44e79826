from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from domain.ledger import Expense, Participant, Transfer, Trip
from services.ledger_service import TripLedgerService

logger = logging.getLogger(__name__)


class TripFile(BaseModel):
    """JSON document describing one trip: roster, expenses and transfers."""

    trip: Trip
    participants: list[Participant]
    expenses: list[Expense] = Field(default_factory=list)
    transfers: list[Transfer] = Field(default_factory=list)


def load_trip_file(path: Path) -> TripFile:
    if not path.exists():
        raise FileNotFoundError(f"Trip file {path} does not exist")
    return TripFile.model_validate_json(path.read_text(encoding="utf-8"))


def import_trip(service: TripLedgerService, trip_file: TripFile, *, freeze_equal_splits: bool = False) -> Trip:
    """Store a trip file through the ledger service.

    Expenses without shares either keep relying on the current-roster fallback or, with
    ``freeze_equal_splits``, get explicit equal shares computed at import time.
    """
    trip = service.create_trip(trip_file.trip)
    for participant in trip_file.participants:
        service.add_participant(trip.id, participant)
    for expense in trip_file.expenses:
        service.record_expense(
            trip.id,
            expense,
            split_equally=freeze_equal_splits,
            allow_share_less=not freeze_equal_splits,
        )
    for transfer in trip_file.transfers:
        service.record_transfer(trip.id, transfer)

    logger.info(
        "Imported trip %s: %d participants, %d expenses, %d transfers",
        trip.name,
        len(trip_file.participants),
        len(trip_file.expenses),
        len(trip_file.transfers),
    )
    return trip


__all__ = ["TripFile", "import_trip", "load_trip_file"]
