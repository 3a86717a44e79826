from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from config import PROJECT_ROOT
from importers.trip_import import TripFile, import_trip, load_trip_file
from services.ledger_service import TripLedgerService
from tests.helpers.ledger_factory import balance_map

EXAMPLE_TRIP = PROJECT_ROOT / "data" / "trips" / "example.json"

EXPECTED_BALANCES = {
    ("anna", "EUR"): Decimal("125.00"),
    ("boris", "EUR"): Decimal("-50.00"),
    ("vera", "EUR"): Decimal("-75.00"),
    ("anna", "USD"): Decimal("-30.00"),
    ("vera", "USD"): Decimal("30.00"),
}


@pytest.fixture()
def trip_file() -> TripFile:
    return load_trip_file(EXAMPLE_TRIP)


def test_load_trip_file(trip_file: TripFile) -> None:
    assert trip_file.trip.id == "lisbon-2025"
    assert [participant.name for participant in trip_file.participants] == ["Anna", "Boris", "Vera"]
    assert len(trip_file.expenses) == 3
    assert trip_file.expenses[0].shares == []
    assert trip_file.transfers[0].amount == Decimal("50.00")


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_trip_file(tmp_path / "missing.json")


def test_import_keeps_share_less_expenses(ledger_service: TripLedgerService, trip_file: TripFile) -> None:
    trip = import_trip(ledger_service, trip_file)

    stored = ledger_service.snapshot(trip.id)
    rent = next(expense for expense in stored.expenses if expense.description == "Apartment")

    assert rent.shares == []
    assert balance_map(ledger_service.balances(trip.id)) == EXPECTED_BALANCES
    assert [(debt.from_id, debt.to_id, debt.amount, debt.currency) for debt in ledger_service.debts(trip.id)] == [
        ("vera", "anna", Decimal("75.00"), "EUR"),
        ("boris", "anna", Decimal("50.00"), "EUR"),
        ("anna", "vera", Decimal("30.00"), "USD"),
    ]


def test_import_can_freeze_equal_splits(ledger_service: TripLedgerService, trip_file: TripFile) -> None:
    trip = import_trip(ledger_service, trip_file, freeze_equal_splits=True)

    stored = ledger_service.snapshot(trip.id)
    rent = next(expense for expense in stored.expenses if expense.description == "Apartment")

    assert [(share.participant_id, share.amount) for share in rent.shares] == [
        ("anna", Decimal("100.00")),
        ("boris", Decimal("100.00")),
        ("vera", Decimal("100.00")),
    ]
    assert balance_map(ledger_service.balances(trip.id)) == EXPECTED_BALANCES


def test_invalid_trip_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"trip": {"name": "x"}, "participants": [{"name": ""}]}', encoding="utf-8")

    with pytest.raises(ValueError):
        load_trip_file(path)
