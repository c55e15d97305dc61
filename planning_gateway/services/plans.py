"""Monthly plans, planned items and plan-vs-actual"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy.orm import Session

from planning_gateway.domain.exceptions import ConflictError, NotFoundError, ValidationError
from planning_gateway.domain.models import PlanActual, PlanItemAmounts
from planning_gateway.domain.reconciliation import compute_plan_actual
from planning_gateway.infrastructure.database.models import (
    MonthlyPlan,
    PlannedExpense,
    PlannedIncome,
    PlannedSaving,
)
from planning_gateway.infrastructure.database.repositories import PlanItem, PlanRepository
from planning_gateway.utils.date_utils import first_of_month

ITEM_MODELS: Dict[str, Type[PlanItem]] = {
    "income": PlannedIncome,
    "expense": PlannedExpense,
    "saving": PlannedSaving,
}

ITEM_LABELS = {
    "income": "Planned income",
    "expense": "Planned expense",
    "saving": "Planned saving",
}

UPDATABLE_ITEM_FIELDS = {
    "income": (
        "source_name",
        "type",
        "expected_amount_cents",
        "actual_amount_cents",
        "expected_date",
        "is_fixed",
        "account_id",
        "status",
    ),
    "expense": ("label", "category_id", "expected_amount_cents", "actual_amount_cents", "frequency"),
    "saving": ("goal_id", "expected_amount_cents", "actual_amount_cents"),
}

# Columns that may be explicitly cleared with null
NULLABLE_ITEM_FIELDS = {"expected_date", "account_id", "category_id", "goal_id"}


def _model_for(kind: str) -> Type[PlanItem]:
    try:
        return ITEM_MODELS[kind]
    except KeyError:
        raise ValidationError(f"Unknown planned item kind: {kind}")


def _check_amounts(fields: Dict[str, Any]) -> None:
    for field in ("expected_amount_cents", "actual_amount_cents"):
        if field in fields and fields[field] < 0:
            raise ValidationError(f"{field.replace('_cents', '')} cannot be negative")


def _get_plan_or_raise(db: Session, plan_id: str) -> MonthlyPlan:
    plan = PlanRepository(db).get_plan(plan_id)
    if plan is None:
        raise NotFoundError("Monthly plan", plan_id)
    return plan


def create_monthly_plan(db: Session, month: date, note: Optional[str] = None) -> MonthlyPlan:
    """Create the plan for ``month``; one plan per calendar month"""
    month = first_of_month(month)
    plan_repo = PlanRepository(db)
    if plan_repo.get_plan_by_month(month) is not None:
        raise ConflictError(f"A plan for {month.isoformat()} already exists")
    return plan_repo.create_plan(month, note)


def list_monthly_plans(db: Session) -> List[MonthlyPlan]:
    return PlanRepository(db).list_plans()


def get_monthly_plan(db: Session, plan_id: str) -> MonthlyPlan:
    return _get_plan_or_raise(db, plan_id)


def plan_totals(db: Session, plan_id: str) -> Tuple[int, int, int]:
    """(income, expenses, savings) expected totals, always derived from the items"""
    plan_repo = PlanRepository(db)
    return (
        plan_repo.sum_expected(PlannedIncome, plan_id),
        plan_repo.sum_expected(PlannedExpense, plan_id),
        plan_repo.sum_expected(PlannedSaving, plan_id),
    )


def add_planned_item(db: Session, kind: str, plan_id: str, **fields) -> PlanItem:
    model = _model_for(kind)
    _get_plan_or_raise(db, plan_id)
    _check_amounts(fields)
    return PlanRepository(db).add_item(model, monthly_plan_id=plan_id, **fields)


def list_planned_items(db: Session, kind: str, plan_id: str) -> List[PlanItem]:
    model = _model_for(kind)
    _get_plan_or_raise(db, plan_id)
    return PlanRepository(db).list_items(model, plan_id)


def update_planned_item(db: Session, kind: str, item_id: str, changes: Dict[str, Any]) -> PlanItem:
    """Apply a partial update to a planned income, expense or saving"""
    model = _model_for(kind)
    plan_repo = PlanRepository(db)
    item = plan_repo.get_item(model, item_id)
    if item is None:
        raise NotFoundError(ITEM_LABELS[kind], item_id)

    unknown = set(changes) - set(UPDATABLE_ITEM_FIELDS[kind])
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    for field, value in changes.items():
        if value is None and field not in NULLABLE_ITEM_FIELDS:
            raise ValidationError(f"{field} cannot be null")
    _check_amounts(changes)

    for field, value in changes.items():
        setattr(item, field, value)

    db.flush()
    return item


def delete_planned_item(db: Session, kind: str, item_id: str) -> None:
    model = _model_for(kind)
    plan_repo = PlanRepository(db)
    item = plan_repo.get_item(model, item_id)
    if item is None:
        raise NotFoundError(ITEM_LABELS[kind], item_id)
    plan_repo.delete_item(item)


def plan_vs_actual(db: Session, plan_id: str) -> PlanActual:
    """Recompute planned vs actual totals of a plan from its current items"""
    _get_plan_or_raise(db, plan_id)
    plan_repo = PlanRepository(db)

    def amounts(model: Type[PlanItem]) -> List[PlanItemAmounts]:
        return [
            PlanItemAmounts(expected_cents=item.expected_amount_cents, actual_cents=item.actual_amount_cents)
            for item in plan_repo.list_items(model, plan_id)
        ]

    return compute_plan_actual(
        plan_id,
        incomes=amounts(PlannedIncome),
        expenses=amounts(PlannedExpense),
        savings=amounts(PlannedSaving),
    )
