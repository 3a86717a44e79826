from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from services.ledger_service import TripLedgerService


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_ledger_service(session: Annotated[Session, Depends(get_session)]) -> TripLedgerService:
    return TripLedgerService(session)
