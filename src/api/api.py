import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, Any, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_ledger_service
from api.schemas import ExpenseWrite, ParticipantCreate, TransferWrite, TripCreate, TripUpdate
from config import config
from db.db import create_db_engine
from domain.balance_tracker import LedgerError
from domain.base_types import CurrencyCode, ExpenseId, TransferId, TripId
from domain.ledger import Balance, Debt, Expense, Participant, Transfer, Trip
from domain.share_validator import ShareValidationError
from services.ledger_service import RecordNotFound, TripLedgerService
from utils.trip_summary import TripSummary

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = config()
    engine = create_db_engine(settings.db_file, echo=settings.db_echo)
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)

LedgerService = Annotated[TripLedgerService, Depends(get_ledger_service)]


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


@app.exception_handler(ShareValidationError)
async def share_validation_error(request: Request, exc: ShareValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ValidationError)
async def domain_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return JSONResponse(status_code=400, content={"error": errors})


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]} for error in exc.errors()]
    return JSONResponse(status_code=400, content={"error": errors})


@app.exception_handler(RecordNotFound)
async def record_not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(LedgerError)
async def ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


@app.post("/trips")
def create_trip(body: TripCreate, service: LedgerService) -> Trip:
    return service.create_trip(Trip(**body.model_dump()))


@app.get("/trips")
def list_trips(service: LedgerService, include_archived: bool = True) -> list[Trip]:
    return service.trips.list(include_archived=include_archived)


@app.get("/trips/{trip_id}")
def get_trip(trip_id: str, service: LedgerService) -> Trip:
    return service.get_trip(TripId(trip_id))


@app.put("/trips/{trip_id}")
def update_trip(trip_id: str, body: TripUpdate, service: LedgerService) -> Trip:
    existing = service.get_trip(TripId(trip_id))
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
    if "location" in changes:
        changes["location"] = (changes["location"] or "").strip() or None
    if changes.get("is_archived") is None:
        changes.pop("is_archived", None)
    trip = Trip(**{**existing.model_dump(), **changes})
    return service.update_trip(trip)


@app.delete("/trips/{trip_id}")
def delete_trip(trip_id: str, service: LedgerService) -> dict[str, str]:
    service.delete_trip(TripId(trip_id))
    return {"message": "Trip deleted successfully"}


@app.post("/trips/{trip_id}/participants")
def add_participant(trip_id: str, body: ParticipantCreate, service: LedgerService) -> Participant:
    return service.add_participant(TripId(trip_id), Participant(name=body.name))


@app.get("/trips/{trip_id}/participants")
def list_participants(trip_id: str, service: LedgerService) -> list[Participant]:
    return service.snapshot(TripId(trip_id)).participants


@app.post("/trips/{trip_id}/expenses")
def create_expense(trip_id: str, body: ExpenseWrite, service: LedgerService) -> Expense:
    expense = Expense(**_expense_fields(body))
    return service.record_expense(TripId(trip_id), expense, split_equally=body.split_equally)


@app.get("/trips/{trip_id}/expenses")
def list_expenses(trip_id: str, service: LedgerService) -> list[Expense]:
    return service.snapshot(TripId(trip_id)).expenses


@app.put("/expenses/{expense_id}")
def update_expense(expense_id: str, body: ExpenseWrite, service: LedgerService) -> Expense:
    expense = Expense(id=ExpenseId(expense_id), **_expense_fields(body))
    return service.update_expense(expense, split_equally=body.split_equally)


@app.delete("/expenses/{expense_id}")
def delete_expense(expense_id: str, service: LedgerService) -> dict[str, str]:
    service.delete_expense(ExpenseId(expense_id))
    return {"message": "Expense deleted successfully"}


@app.post("/trips/{trip_id}/transfers")
def create_transfer(trip_id: str, body: TransferWrite, service: LedgerService) -> Transfer:
    transfer = Transfer(
        amount=body.amount,
        currency=CurrencyCode(body.resolved_currency()),
        from_id=body.from_id,
        to_id=body.to_id,
        description=body.description.strip() if body.description else None,
        date=body.date,
    )
    return service.record_transfer(TripId(trip_id), transfer)


@app.get("/trips/{trip_id}/transfers")
def list_transfers(trip_id: str, service: LedgerService) -> list[Transfer]:
    return service.snapshot(TripId(trip_id)).transfers


@app.delete("/transfers/{transfer_id}")
def delete_transfer(transfer_id: str, service: LedgerService) -> dict[str, str]:
    service.delete_transfer(TransferId(transfer_id))
    return {"message": "Transfer deleted successfully"}


@app.get("/trips/{trip_id}/balances")
def get_balances(trip_id: str, service: LedgerService) -> list[Balance]:
    return service.balances(TripId(trip_id))


@app.get("/trips/{trip_id}/debts")
def get_debts(trip_id: str, service: LedgerService) -> list[Debt]:
    return service.debts(TripId(trip_id))


@app.get("/trips/{trip_id}/summary")
def get_summary(trip_id: str, service: LedgerService) -> dict[str, Any]:
    summary = service.summary(TripId(trip_id))
    return {
        "balances": [balance.model_dump(mode="json") for balance in summary.balances],
        "debts": [debt.model_dump(mode="json") for debt in summary.debts],
        "spending": [
            {
                "currency": spending.currency,
                "total": str(spending.total),
                "expense_count": spending.expense_count,
                "payers": [
                    {
                        "participant_id": payer.participant_id,
                        "name": payer.name,
                        "amount": str(payer.amount),
                        "percentage": str(payer.percentage),
                    }
                    for payer in spending.payers
                ],
            }
            for spending in summary.spending
        ],
        "participant_totals": [
            {
                "participant_id": item.participant_id,
                "name": item.name,
                "currency": item.currency,
                "paid": str(item.paid),
                "consumed": str(item.consumed),
                "sent": str(item.sent),
                "received": str(item.received),
                "net": str(item.net),
            }
            for item in summary.participant_totals
        ],
        "debt_matrix": {currency: _nested_matrix(summary, currency) for currency in summary.debt_currencies()},
    }


def _nested_matrix(summary: TripSummary, currency: CurrencyCode) -> dict[str, dict[str, str]]:
    matrix: dict[str, dict[str, str]] = {}
    for (from_id, to_id), amount in summary.debt_matrix(currency).items():
        matrix.setdefault(from_id, {})[to_id] = str(amount)
    return matrix


def _expense_fields(body: ExpenseWrite) -> dict[str, Any]:
    return {
        "amount": body.amount,
        "currency": CurrencyCode(body.resolved_currency()),
        "payer_id": body.payer_id,
        "shares": body.shares or [],
        "description": body.description.strip(),
        "date": body.date,
    }
