"""Pydantic schemas for API request/response validation

Wire format is camelCase JSON with money in major units; everything past
this module works in integer cents.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from planning_gateway.domain.money import from_cents, to_cents


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def money_changes(model: WireModel, money_fields: tuple[str, ...], exclude: set[str]) -> Dict[str, Any]:
    """Fields explicitly sent in a partial update, with money converted to cents"""
    changes = model.model_dump(exclude_unset=True, exclude=exclude)
    for field in money_fields:
        if field in changes:
            value = changes.pop(field)
            changes[f"{field}_cents"] = None if value is None else to_cents(value)
    return changes


# Requests


DebtType = Literal["loan", "credit_card", "overdraft"]


class AddDebtAccountRequest(WireModel):
    """Request body for add_debt_account"""

    name: str = Field(..., min_length=1)
    type: DebtType
    principal: Decimal = Field(..., description="Original borrowed sum in major units")
    interest_rate: float = Field(..., allow_inf_nan=False, description="Annual percentage rate")
    min_monthly_payment: Decimal
    due_day: int
    start_date: date
    current_balance: Optional[Decimal] = Field(None, description="Overrides the starting balance")

    def to_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "principal_cents": to_cents(self.principal),
            "interest_rate": self.interest_rate,
            "min_monthly_payment_cents": to_cents(self.min_monthly_payment),
            "due_day": self.due_day,
            "start_date": self.start_date,
            "current_balance_cents": None if self.current_balance is None else to_cents(self.current_balance),
        }


class UpdateDebtAccountRequest(WireModel):
    """Request body for update_debt_account; only sent fields change"""

    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[DebtType] = None
    principal: Optional[Decimal] = None
    interest_rate: Optional[float] = Field(None, allow_inf_nan=False)
    min_monthly_payment: Optional[Decimal] = None
    due_day: Optional[int] = None
    current_balance: Optional[Decimal] = None

    def to_changes(self) -> Dict[str, Any]:
        return money_changes(self, ("principal", "min_monthly_payment", "current_balance"), exclude={"id"})


class IdRequest(WireModel):
    id: str = Field(..., min_length=1)


class EmptyRequest(WireModel):
    pass


class GenerateDebtScheduleRequest(WireModel):
    """Request body for generate_debt_schedule"""

    debt_account_id: str = Field(..., min_length=1)
    months: Optional[int] = Field(None, gt=0, description="Horizon; omit to amortize to zero")


class ListDebtScheduleRequest(WireModel):
    debt_id: str = Field(..., min_length=1)


class ConfirmDebtPaymentRequest(WireModel):
    """Request body for confirm_debt_payment"""

    schedule_id: str = Field(..., min_length=1)
    account_id: Optional[str] = Field(None, description="Ledger account the payment is posted from")
    category_id: Optional[str] = None


class PlanIdRequest(WireModel):
    plan_id: str = Field(..., min_length=1)


class CreateMonthlyPlanRequest(WireModel):
    """Request body for create_monthly_plan; totals are derived and not accepted"""

    month: date
    note: Optional[str] = None


class AddPlannedIncomeRequest(WireModel):
    monthly_plan_id: str = Field(..., min_length=1)
    source_name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    expected_amount: Decimal
    expected_date: Optional[date] = None
    is_fixed: bool = True
    account_id: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "type": self.type,
            "expected_amount_cents": to_cents(self.expected_amount),
            "expected_date": self.expected_date,
            "is_fixed": self.is_fixed,
            "account_id": self.account_id,
        }


class UpdatePlannedIncomeRequest(WireModel):
    id: str = Field(..., min_length=1)
    source_name: Optional[str] = None
    type: Optional[str] = None
    expected_amount: Optional[Decimal] = None
    actual_amount: Optional[Decimal] = None
    expected_date: Optional[date] = None
    is_fixed: Optional[bool] = None
    account_id: Optional[str] = None
    status: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        return money_changes(self, ("expected_amount", "actual_amount"), exclude={"id"})


class AddPlannedExpenseRequest(WireModel):
    monthly_plan_id: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    expected_amount: Decimal
    frequency: str = "once"

    def to_fields(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "category_id": self.category_id,
            "expected_amount_cents": to_cents(self.expected_amount),
            "frequency": self.frequency,
        }


class UpdatePlannedExpenseRequest(WireModel):
    id: str = Field(..., min_length=1)
    label: Optional[str] = None
    category_id: Optional[str] = None
    expected_amount: Optional[Decimal] = None
    actual_amount: Optional[Decimal] = None
    frequency: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        return money_changes(self, ("expected_amount", "actual_amount"), exclude={"id"})


class AddPlannedSavingRequest(WireModel):
    monthly_plan_id: str = Field(..., min_length=1)
    goal_id: Optional[str] = None
    expected_amount: Decimal

    def to_fields(self) -> Dict[str, Any]:
        return {"goal_id": self.goal_id, "expected_amount_cents": to_cents(self.expected_amount)}


class UpdatePlannedSavingRequest(WireModel):
    id: str = Field(..., min_length=1)
    goal_id: Optional[str] = None
    expected_amount: Optional[Decimal] = None
    actual_amount: Optional[Decimal] = None

    def to_changes(self) -> Dict[str, Any]:
        return money_changes(self, ("expected_amount", "actual_amount"), exclude={"id"})


class ListRemindersRequest(WireModel):
    status: Optional[Literal["scheduled", "done"]] = None


# Responses


class DebtAccountSchema(WireModel):
    """Debt account as returned to clients"""

    id: str
    name: str
    type: str
    principal: float
    interest_rate: float
    min_monthly_payment: float
    due_day: int
    start_date: date
    current_balance: float

    @classmethod
    def from_model(cls, debt) -> "DebtAccountSchema":
        return cls(
            id=debt.id,
            name=debt.name,
            type=debt.type,
            principal=from_cents(debt.principal_cents),
            interest_rate=debt.interest_rate,
            min_monthly_payment=from_cents(debt.min_monthly_payment_cents),
            due_day=debt.due_day,
            start_date=debt.start_date,
            current_balance=from_cents(debt.current_balance_cents),
        )


class ScheduleEntrySchema(WireModel):
    """Single scheduled debt payment"""

    id: str
    debt_account_id: str
    due_date: date
    planned_payment: float
    planned_interest: float
    planned_principal: float
    is_paid: bool

    @classmethod
    def from_model(cls, entry) -> "ScheduleEntrySchema":
        return cls(
            id=entry.id,
            debt_account_id=entry.debt_account_id,
            due_date=entry.due_date,
            planned_payment=from_cents(entry.planned_payment_cents),
            planned_interest=from_cents(entry.planned_interest_cents),
            planned_principal=from_cents(entry.planned_principal_cents),
            is_paid=entry.is_paid,
        )


class MonthlyPlanSchema(WireModel):
    id: str
    month: date
    total_planned_income: float
    total_planned_expenses: float
    total_planned_savings: float
    note: Optional[str] = None

    @classmethod
    def from_model(cls, plan, totals: tuple[int, int, int]) -> "MonthlyPlanSchema":
        income, expenses, savings = totals
        return cls(
            id=plan.id,
            month=plan.month,
            total_planned_income=from_cents(income),
            total_planned_expenses=from_cents(expenses),
            total_planned_savings=from_cents(savings),
            note=plan.note,
        )


class PlannedIncomeSchema(WireModel):
    id: str
    monthly_plan_id: str
    source_name: str
    type: str
    expected_amount: float
    actual_amount: float
    expected_date: Optional[date] = None
    is_fixed: bool
    account_id: Optional[str] = None
    status: str

    @classmethod
    def from_model(cls, item) -> "PlannedIncomeSchema":
        return cls(
            id=item.id,
            monthly_plan_id=item.monthly_plan_id,
            source_name=item.source_name,
            type=item.type,
            expected_amount=from_cents(item.expected_amount_cents),
            actual_amount=from_cents(item.actual_amount_cents),
            expected_date=item.expected_date,
            is_fixed=item.is_fixed,
            account_id=item.account_id,
            status=item.status,
        )


class PlannedExpenseSchema(WireModel):
    id: str
    monthly_plan_id: str
    label: str
    category_id: Optional[str] = None
    expected_amount: float
    actual_amount: float
    frequency: str

    @classmethod
    def from_model(cls, item) -> "PlannedExpenseSchema":
        return cls(
            id=item.id,
            monthly_plan_id=item.monthly_plan_id,
            label=item.label,
            category_id=item.category_id,
            expected_amount=from_cents(item.expected_amount_cents),
            actual_amount=from_cents(item.actual_amount_cents),
            frequency=item.frequency,
        )


class PlannedSavingSchema(WireModel):
    id: str
    monthly_plan_id: str
    goal_id: Optional[str] = None
    expected_amount: float
    actual_amount: float

    @classmethod
    def from_model(cls, item) -> "PlannedSavingSchema":
        return cls(
            id=item.id,
            monthly_plan_id=item.monthly_plan_id,
            goal_id=item.goal_id,
            expected_amount=from_cents(item.expected_amount_cents),
            actual_amount=from_cents(item.actual_amount_cents),
        )


class PlanActualSchema(WireModel):
    """Planned vs actual totals of a monthly plan"""

    plan_id: str
    planned_income: float
    actual_income: float
    planned_expenses: float
    actual_expenses: float
    planned_savings: float = 0.0
    actual_savings: float = 0.0

    @classmethod
    def from_domain(cls, summary) -> "PlanActualSchema":
        return cls(
            plan_id=summary.plan_id,
            planned_income=from_cents(summary.planned_income_cents),
            actual_income=from_cents(summary.actual_income_cents),
            planned_expenses=from_cents(summary.planned_expenses_cents),
            actual_expenses=from_cents(summary.actual_expenses_cents),
            planned_savings=from_cents(summary.planned_savings_cents),
            actual_savings=from_cents(summary.actual_savings_cents),
        )


class ReminderSchema(WireModel):
    id: str
    debt_account_id: str
    schedule_entry_id: str
    title: str
    amount: float
    due_at: datetime
    status: str

    @classmethod
    def from_model(cls, reminder) -> "ReminderSchema":
        return cls(
            id=reminder.id,
            debt_account_id=reminder.debt_account_id,
            schedule_entry_id=reminder.schedule_entry_id,
            title=reminder.title,
            amount=from_cents(reminder.amount_cents),
            due_at=reminder.due_at,
            status=reminder.status,
        )


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Envelope for every failed call"""

    error: ErrorDetail

