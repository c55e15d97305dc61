"""/v1/plans - monthly plans, planned items and plan-vs-actual"""

from datetime import date
from typing import List, Literal

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from planning_gateway.api.dependencies import get_request_id, get_today
from planning_gateway.api.errors import parse_request, unit_of_work
from planning_gateway.api.v1 import commands
from planning_gateway.api.v1.schemas import (
    AddPlannedExpenseRequest,
    AddPlannedIncomeRequest,
    AddPlannedSavingRequest,
    CreateMonthlyPlanRequest,
    EmptyRequest,
    IdRequest,
    MonthlyPlanSchema,
    PlanActualSchema,
    PlanIdRequest,
    UpdatePlannedExpenseRequest,
    UpdatePlannedIncomeRequest,
    UpdatePlannedSavingRequest,
)
from planning_gateway.infrastructure.database.session import get_db

router = APIRouter()

ItemCollection = Literal["incomes", "expenses", "savings"]

# URL collection -> (item kind, add request, update request)
COLLECTIONS = {
    "incomes": ("income", AddPlannedIncomeRequest, UpdatePlannedIncomeRequest),
    "expenses": ("expense", AddPlannedExpenseRequest, UpdatePlannedExpenseRequest),
    "savings": ("saving", AddPlannedSavingRequest, UpdatePlannedSavingRequest),
}


def _context(request: Request, today: date) -> commands.CommandContext:
    return commands.CommandContext(request_id=get_request_id(request), today=today)


@router.post("/plans", response_model=MonthlyPlanSchema, status_code=201)
def create_plan(
    body: CreateMonthlyPlanRequest,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        return commands.create_monthly_plan(db, body, ctx)


@router.get("/plans", response_model=List[MonthlyPlanSchema])
def list_plans(request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    """Plans newest month first, totals derived from their items"""
    return commands.list_monthly_plans(db, EmptyRequest(), _context(request, today))


@router.get("/plans/{plan_id}", response_model=MonthlyPlanSchema)
def get_plan(plan_id: str, request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    return commands.get_monthly_plan(db, PlanIdRequest(plan_id=plan_id), _context(request, today))


@router.get("/plans/{plan_id}/actual", response_model=PlanActualSchema)
def get_plan_actual(plan_id: str, request: Request, db: Session = Depends(get_db), today: date = Depends(get_today)):
    return commands.plan_vs_actual(db, PlanIdRequest(plan_id=plan_id), _context(request, today))


@router.get("/plans/{plan_id}/{collection}")
def list_items(
    plan_id: str,
    collection: ItemCollection,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    kind = COLLECTIONS[collection][0]
    items = commands.list_items_handler(kind)(db, PlanIdRequest(plan_id=plan_id), _context(request, today))
    return [item.model_dump(by_alias=True, mode="json") for item in items]


@router.post("/plans/{plan_id}/{collection}", status_code=201)
def add_item(
    plan_id: str,
    collection: ItemCollection,
    request: Request,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    kind, add_model, _ = COLLECTIONS[collection]
    body = parse_request(add_model, {**payload, "monthlyPlanId": plan_id})
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        item = commands.add_item_handler(kind)(db, body, ctx)
    return item.model_dump(by_alias=True, mode="json")


@router.patch("/{collection}/{item_id}")
def update_item(
    collection: ItemCollection,
    item_id: str,
    request: Request,
    changes: dict = Body(...),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    kind, _, update_model = COLLECTIONS[collection]
    body = parse_request(update_model, {**changes, "id": item_id})
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        item = commands.update_item_handler(kind)(db, body, ctx)
    return item.model_dump(by_alias=True, mode="json")


@router.delete("/{collection}/{item_id}", status_code=204)
def delete_item(
    collection: ItemCollection,
    item_id: str,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    kind = COLLECTIONS[collection][0]
    ctx = _context(request, today)
    with unit_of_work(db, ctx.request_id):
        commands.delete_item_handler(kind)(db, IdRequest(id=item_id), ctx)
    return Response(status_code=204)
