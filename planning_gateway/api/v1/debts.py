"""/v1/debts and /v1/schedule - debt accounts, schedules and payment confirmation"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response
from sqlalchemy.orm import Session, sessionmaker

from planning_gateway.api.dependencies import get_ledger_client, get_request_id, get_today
from planning_gateway.api.errors import parse_request, unit_of_work
from planning_gateway.api.v1 import commands
from planning_gateway.api.v1.schemas import (
    AddDebtAccountRequest,
    ConfirmDebtPaymentRequest,
    DebtAccountSchema,
    EmptyRequest,
    GenerateDebtScheduleRequest,
    IdRequest,
    ListDebtScheduleRequest,
    ScheduleEntrySchema,
    UpdateDebtAccountRequest,
    WireModel,
)
from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.session import get_db, get_session_factory

router = APIRouter()


class GenerateScheduleBody(WireModel):
    months: Optional[int] = None


class ConfirmPaymentBody(WireModel):
    account_id: Optional[str] = None
    category_id: Optional[str] = None


def _context(request: Request, today: date, **extra) -> commands.CommandContext:
    return commands.CommandContext(request_id=get_request_id(request), today=today, **extra)


@router.post("/debts", response_model=DebtAccountSchema, status_code=201)
def create_debt(
    body: AddDebtAccountRequest,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        return commands.add_debt_account(db, body, ctx)


@router.get("/debts", response_model=List[DebtAccountSchema])
def list_debts(request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    return commands.list_debt_accounts(db, EmptyRequest(), _context(request, today))


@router.patch("/debts/{debt_id}", response_model=DebtAccountSchema)
def update_debt(
    debt_id: str,
    request: Request,
    changes: dict = Body(...),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    body = parse_request(UpdateDebtAccountRequest, {**changes, "id": debt_id})
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        return commands.update_debt_account(db, body, ctx)


@router.delete("/debts/{debt_id}", status_code=204)
def delete_debt(debt_id: str, request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        commands.delete_debt_account(db, IdRequest(id=debt_id), ctx)
    return Response(status_code=204)


@router.get("/debts/{debt_id}/schedule", response_model=List[ScheduleEntrySchema])
def get_schedule(debt_id: str, request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    """Schedule entries of a debt, paid and unpaid, in due date order"""
    return commands.list_debt_schedule(db, ListDebtScheduleRequest(debt_id=debt_id), _context(request, today))


@router.post("/debts/{debt_id}/schedule", response_model=List[ScheduleEntrySchema])
def generate_schedule(
    debt_id: str,
    request: Request,
    body: Optional[GenerateScheduleBody] = None,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Generate or regenerate a debt's schedule.

    Paid entries are preserved; every unpaid entry is replaced.
    """
    command = parse_request(
        GenerateDebtScheduleRequest, {"debtAccountId": debt_id, "months": body.months if body else None}
    )
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        return commands.generate_debt_schedule(db, command, ctx)


@router.post("/schedule/{schedule_id}/confirm", response_model=List[ScheduleEntrySchema])
def confirm_payment(
    schedule_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    body: Optional[ConfirmPaymentBody] = None,
    db: Session = Depends(get_db),
    ledger_client: LedgerClient = Depends(get_ledger_client),
    session_factory: sessionmaker = Depends(get_session_factory),
    today: date = Depends(get_today),
):
    """Mark a scheduled payment paid; confirming twice is a no-op"""
    body = body or ConfirmPaymentBody()
    command = ConfirmDebtPaymentRequest(
        schedule_id=schedule_id, account_id=body.account_id, category_id=body.category_id
    )
    ctx = _context(
        request,
        today,
        background_tasks=background_tasks,
        ledger_client=ledger_client,
        session_factory=session_factory,
    )
    with unit_of_work(db, ctx.request_id):
        return commands.confirm_debt_payment(db, command, ctx)
