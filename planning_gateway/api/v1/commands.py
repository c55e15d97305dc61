"""Command handlers shared by the RPC boundary and the REST routes

Each handler takes a session, a validated request model and the request
context, and returns the response payload. Transactions are owned by the
caller (see ``unit_of_work``).
"""

import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional, Tuple, Type

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from planning_gateway.api.v1 import schemas
from planning_gateway.infrastructure.clients.ledger import LedgerClient
from planning_gateway.infrastructure.database.repositories import ReminderRepository
from planning_gateway.infrastructure.observability.logging import log_payment_confirmed, log_schedule_generated
from planning_gateway.infrastructure.observability.metrics import record_payment_confirmed, record_schedule_generated
from planning_gateway.services import debts, plans
from planning_gateway.services.outbox import dispatch_ledger_events


@dataclass
class CommandContext:
    request_id: str
    today: date
    background_tasks: Optional[BackgroundTasks] = None
    ledger_client: Optional[LedgerClient] = None
    session_factory: Optional[sessionmaker] = None


Handler = Callable[[Session, schemas.WireModel, CommandContext], object]


# Debts


def add_debt_account(db: Session, body: schemas.AddDebtAccountRequest, ctx: CommandContext):
    debt = debts.add_debt_account(db, **body.to_fields())
    return schemas.DebtAccountSchema.from_model(debt)


def list_debt_accounts(db: Session, body: schemas.EmptyRequest, ctx: CommandContext):
    return [schemas.DebtAccountSchema.from_model(d) for d in debts.list_debt_accounts(db)]


def update_debt_account(db: Session, body: schemas.UpdateDebtAccountRequest, ctx: CommandContext):
    debt = debts.update_debt_account(db, body.id, body.to_changes())
    return schemas.DebtAccountSchema.from_model(debt)


def delete_debt_account(db: Session, body: schemas.IdRequest, ctx: CommandContext):
    debts.delete_debt_account(db, body.id)
    return None


def generate_debt_schedule(db: Session, body: schemas.GenerateDebtScheduleRequest, ctx: CommandContext):
    start_time = time.time()
    entries, replaced = debts.generate_debt_schedule(db, body.debt_account_id, months=body.months, today=ctx.today)

    duration_ms = (time.time() - start_time) * 1000
    record_schedule_generated(len(entries))
    log_schedule_generated(
        ctx.request_id,
        body.debt_account_id,
        entries_created=len(entries),
        entries_replaced=replaced,
        balance_cents=sum(e.planned_principal_cents for e in entries),
        duration_ms=duration_ms,
    )
    return [schemas.ScheduleEntrySchema.from_model(e) for e in entries]


def list_debt_schedule(db: Session, body: schemas.ListDebtScheduleRequest, ctx: CommandContext):
    return [schemas.ScheduleEntrySchema.from_model(e) for e in debts.list_debt_schedule(db, body.debt_id)]


def confirm_debt_payment(db: Session, body: schemas.ConfirmDebtPaymentRequest, ctx: CommandContext):
    entries, already_paid = debts.confirm_debt_payment(
        db, body.schedule_id, account_id=body.account_id, category_id=body.category_id
    )
    confirmed = next(e for e in entries if e.id == body.schedule_id)

    record_payment_confirmed(already_paid)
    log_payment_confirmed(
        ctx.request_id,
        body.schedule_id,
        confirmed.debt_account_id,
        already_paid=already_paid,
        balance_cents=confirmed.debt_account.current_balance_cents,
    )

    # Delivery runs after the response, i.e. after the confirmation committed
    if not already_paid and body.account_id and ctx.background_tasks is not None:
        ctx.background_tasks.add_task(dispatch_ledger_events, ctx.session_factory, ctx.ledger_client)

    return [schemas.ScheduleEntrySchema.from_model(e) for e in entries]


# Monthly plans


def _plan_schema(db: Session, plan) -> schemas.MonthlyPlanSchema:
    return schemas.MonthlyPlanSchema.from_model(plan, plans.plan_totals(db, plan.id))


def create_monthly_plan(db: Session, body: schemas.CreateMonthlyPlanRequest, ctx: CommandContext):
    plan = plans.create_monthly_plan(db, body.month, body.note)
    return _plan_schema(db, plan)


def list_monthly_plans(db: Session, body: schemas.EmptyRequest, ctx: CommandContext):
    return [_plan_schema(db, plan) for plan in plans.list_monthly_plans(db)]


def get_monthly_plan(db: Session, body: schemas.PlanIdRequest, ctx: CommandContext):
    return _plan_schema(db, plans.get_monthly_plan(db, body.plan_id))


def plan_vs_actual(db: Session, body: schemas.PlanIdRequest, ctx: CommandContext):
    return schemas.PlanActualSchema.from_domain(plans.plan_vs_actual(db, body.plan_id))


ITEM_SCHEMAS = {
    "income": schemas.PlannedIncomeSchema,
    "expense": schemas.PlannedExpenseSchema,
    "saving": schemas.PlannedSavingSchema,
}


def add_item_handler(kind: str) -> Handler:
    def handler(db: Session, body, ctx: CommandContext):
        item = plans.add_planned_item(db, kind, body.monthly_plan_id, **body.to_fields())
        return ITEM_SCHEMAS[kind].from_model(item)

    return handler


def list_items_handler(kind: str) -> Handler:
    def handler(db: Session, body: schemas.PlanIdRequest, ctx: CommandContext):
        return [ITEM_SCHEMAS[kind].from_model(item) for item in plans.list_planned_items(db, kind, body.plan_id)]

    return handler


def update_item_handler(kind: str) -> Handler:
    def handler(db: Session, body, ctx: CommandContext):
        item = plans.update_planned_item(db, kind, body.id, body.to_changes())
        return ITEM_SCHEMAS[kind].from_model(item)

    return handler


def delete_item_handler(kind: str) -> Handler:
    def handler(db: Session, body: schemas.IdRequest, ctx: CommandContext):
        plans.delete_planned_item(db, kind, body.id)
        return None

    return handler


# Reminders


def list_reminders(db: Session, body: schemas.ListRemindersRequest, ctx: CommandContext):
    return [schemas.ReminderSchema.from_model(r) for r in ReminderRepository(db).list_reminders(body.status)]


# Registry: command name -> (request model, handler)
COMMANDS: Dict[str, Tuple[Type[schemas.WireModel], Handler]] = {
    "add_debt_account": (schemas.AddDebtAccountRequest, add_debt_account),
    "list_debt_accounts": (schemas.EmptyRequest, list_debt_accounts),
    "update_debt_account": (schemas.UpdateDebtAccountRequest, update_debt_account),
    "delete_debt_account": (schemas.IdRequest, delete_debt_account),
    "generate_debt_schedule": (schemas.GenerateDebtScheduleRequest, generate_debt_schedule),
    "list_debt_schedule": (schemas.ListDebtScheduleRequest, list_debt_schedule),
    "confirm_debt_payment": (schemas.ConfirmDebtPaymentRequest, confirm_debt_payment),
    "create_monthly_plan": (schemas.CreateMonthlyPlanRequest, create_monthly_plan),
    "list_monthly_plans": (schemas.EmptyRequest, list_monthly_plans),
    "plan_vs_actual": (schemas.PlanIdRequest, plan_vs_actual),
    "add_planned_income": (schemas.AddPlannedIncomeRequest, add_item_handler("income")),
    "list_planned_incomes": (schemas.PlanIdRequest, list_items_handler("income")),
    "update_planned_income": (schemas.UpdatePlannedIncomeRequest, update_item_handler("income")),
    "delete_planned_income": (schemas.IdRequest, delete_item_handler("income")),
    "add_planned_expense": (schemas.AddPlannedExpenseRequest, add_item_handler("expense")),
    "list_planned_expenses": (schemas.PlanIdRequest, list_items_handler("expense")),
    "update_planned_expense": (schemas.UpdatePlannedExpenseRequest, update_item_handler("expense")),
    "delete_planned_expense": (schemas.IdRequest, delete_item_handler("expense")),
    "add_planned_saving": (schemas.AddPlannedSavingRequest, add_item_handler("saving")),
    "list_planned_savings": (schemas.PlanIdRequest, list_items_handler("saving")),
    "update_planned_saving": (schemas.UpdatePlannedSavingRequest, update_item_handler("saving")),
    "delete_planned_saving": (schemas.IdRequest, delete_item_handler("saving")),
    "list_reminders": (schemas.ListRemindersRequest, list_reminders),
}
