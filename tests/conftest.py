from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from domain.ledger import Participant, Trip
from services.ledger_service import TripLedgerService
from tests.constants import ALICE, BOB, CAROL, TRIP_ID

# One shared connection so the API test client's worker threads see the same in-memory database.
engine: Engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def roster() -> list[Participant]:
    return [
        Participant(id=ALICE, name="Alice"),
        Participant(id=BOB, name="Bob"),
        Participant(id=CAROL, name="Carol"),
    ]


@pytest.fixture(scope="function")
def ledger_service(test_session: Session) -> TripLedgerService:
    return TripLedgerService(test_session)


@pytest.fixture(scope="function")
def stored_trip(ledger_service: TripLedgerService, roster: list[Participant]) -> Trip:
    trip = ledger_service.create_trip(Trip(id=TRIP_ID, name="Weekend in Porto"))
    for participant in roster:
        ledger_service.add_participant(trip.id, participant)
    return trip
