from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from config import ARTIFACTS_DIR, PROJECT_ROOT, config
from db.db import init_db
from domain.ledger import Trip
from importers.trip_import import import_trip, load_trip_file
from services.ledger_service import TripLedgerService
from utils.trip_summary import render_trip_summary


def run(trip_json: Path, db_file: Path, *, freeze_equal_splits: bool) -> None:
    # Setup components
    session = init_db(db_file=db_file, reset=True, echo=config().db_echo)
    service = TripLedgerService(session)

    # Get data
    trip_file = load_trip_file(trip_json)
    trip = import_trip(service, trip_file, freeze_equal_splits=freeze_equal_splits)

    # Print summary
    print_trip_header(trip)
    render_trip_summary(service.summary(trip.id))


def print_trip_header(trip: Trip) -> None:
    print(f"Trip: {trip.name}")
    if trip.location:
        print(f"  Location: {trip.location}")
    if trip.start_date or trip.end_date:
        print(f"  Dates: {trip.start_date or '?'} - {trip.end_date or '?'}")
    print()


def main(argv: Sequence[str] | None = None) -> None:
    logging.basicConfig(level=config().log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Import a trip and print balances and suggested settlements.")
    parser.add_argument("--trip-json", type=Path, default=PROJECT_ROOT / "data" / "trips" / "example.json")
    parser.add_argument("--db", type=Path, default=ARTIFACTS_DIR / "trip_ledger_report.db")
    parser.add_argument(
        "--freeze-equal-splits",
        action="store_true",
        help="Store explicit equal shares for expenses listed without shares.",
    )
    args = parser.parse_args(argv)
    run(args.trip_json, args.db, freeze_equal_splits=args.freeze_equal_splits)


if __name__ == "__main__":
    main()
