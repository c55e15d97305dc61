"""Data access layer for debts, schedules, plans and the ledger outbox"""

from datetime import date, datetime, time
from typing import List, Optional, Type, TypeVar, Union
from sqlalchemy import func
from sqlalchemy.orm import Session
from planning_gateway.infrastructure.database.models import (
    DebtAccount,
    DebtPaymentSchedule,
    MonthlyPlan,
    OutboundWebhook,
    PaymentReminder,
    PlannedExpense,
    PlannedIncome,
    PlannedSaving,
)
from planning_gateway.domain.models import ScheduledPayment

PlanItem = Union[PlannedIncome, PlannedExpense, PlannedSaving]
PlanItemT = TypeVar("PlanItemT", PlannedIncome, PlannedExpense, PlannedSaving)


class DebtRepository:
    """Repository for debt accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_debt(self, **fields) -> DebtAccount:
        db_debt = DebtAccount(**fields)
        self.db.add(db_debt)
        self.db.flush()
        return db_debt

    def get_debt(self, debt_id: str, for_update: bool = False) -> Optional[DebtAccount]:
        """Fetch a debt; ``for_update`` takes a row lock on backends that support it"""
        query = self.db.query(DebtAccount).filter(DebtAccount.id == debt_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_debts(self) -> List[DebtAccount]:
        return self.db.query(DebtAccount).order_by(DebtAccount.created_at.desc(), DebtAccount.id).all()

    def delete_debt(self, debt: DebtAccount) -> None:
        """Delete a debt together with its schedule entries and reminders"""
        self.db.delete(debt)
        self.db.flush()


class ScheduleRepository:
    """Repository for debt payment schedule entries"""

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, schedule_id: str, fresh: bool = False) -> Optional[DebtPaymentSchedule]:
        """Fetch an entry; ``fresh`` overwrites any copy already in the session"""
        query = self.db.query(DebtPaymentSchedule).filter(DebtPaymentSchedule.id == schedule_id)
        if fresh:
            query = query.populate_existing()
        return query.first()

    def get_debt_account_id(self, schedule_id: str) -> Optional[str]:
        """Owning debt of an entry, read without loading the entry itself"""
        return (
            self.db.query(DebtPaymentSchedule.debt_account_id)
            .filter(DebtPaymentSchedule.id == schedule_id)
            .scalar()
        )

    def list_entries(self, debt_id: str) -> List[DebtPaymentSchedule]:
        """Entries of one debt in ascending due date order"""
        return (
            self.db.query(DebtPaymentSchedule)
            .filter(DebtPaymentSchedule.debt_account_id == debt_id)
            .order_by(DebtPaymentSchedule.due_date.asc())
            .all()
        )

    def latest_paid_due_date(self, debt_id: str) -> Optional[date]:
        return (
            self.db.query(func.max(DebtPaymentSchedule.due_date))
            .filter(
                DebtPaymentSchedule.debt_account_id == debt_id,
                DebtPaymentSchedule.is_paid.is_(True),
            )
            .scalar()
        )

    def delete_unpaid(self, debt_id: str) -> int:
        """Remove every unpaid entry (and its reminder) of a debt; paid entries stay untouched"""
        unpaid = (
            self.db.query(DebtPaymentSchedule)
            .filter(
                DebtPaymentSchedule.debt_account_id == debt_id,
                DebtPaymentSchedule.is_paid.is_(False),
            )
            .all()
        )
        for entry in unpaid:
            self.db.delete(entry)

        # Deletes must hit the database before replacement rows reuse their due dates
        self.db.flush()
        return len(unpaid)

    def create_entries(self, debt_id: str, payments: List[ScheduledPayment]) -> List[DebtPaymentSchedule]:
        """Persist generated payments as unpaid schedule entries"""
        entries = []
        for payment in payments:
            db_entry = DebtPaymentSchedule(
                debt_account_id=debt_id,
                due_date=payment.due_date,
                planned_payment_cents=payment.payment_cents,
                planned_interest_cents=payment.interest_cents,
                planned_principal_cents=payment.principal_cents,
                is_paid=False,
            )
            self.db.add(db_entry)
            entries.append(db_entry)

        self.db.flush()
        return entries


class ReminderRepository:
    """Repository for payment reminders"""

    def __init__(self, db: Session):
        self.db = db

    def create_for_entry(self, debt: DebtAccount, entry: DebtPaymentSchedule, hour: int) -> PaymentReminder:
        db_reminder = PaymentReminder(
            debt_account_id=debt.id,
            schedule_entry_id=entry.id,
            title=f"Debt payment: {debt.name}",
            amount_cents=entry.planned_payment_cents,
            due_at=datetime.combine(entry.due_date, time(hour=hour)),
            status="scheduled",
        )
        self.db.add(db_reminder)
        return db_reminder

    def get_for_entry(self, schedule_id: str) -> Optional[PaymentReminder]:
        return self.db.query(PaymentReminder).filter(PaymentReminder.schedule_entry_id == schedule_id).first()

    def list_reminders(self, status: Optional[str] = None) -> List[PaymentReminder]:
        query = self.db.query(PaymentReminder)
        if status is not None:
            query = query.filter(PaymentReminder.status == status)
        return query.order_by(PaymentReminder.due_at.asc()).all()


class PlanRepository:
    """Repository for monthly plans and their planned items"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(self, month: date, note: Optional[str]) -> MonthlyPlan:
        db_plan = MonthlyPlan(month=month, note=note)
        self.db.add(db_plan)
        self.db.flush()
        return db_plan

    def get_plan(self, plan_id: str) -> Optional[MonthlyPlan]:
        return self.db.query(MonthlyPlan).filter(MonthlyPlan.id == plan_id).first()

    def get_plan_by_month(self, month: date) -> Optional[MonthlyPlan]:
        return self.db.query(MonthlyPlan).filter(MonthlyPlan.month == month).first()

    def list_plans(self) -> List[MonthlyPlan]:
        return self.db.query(MonthlyPlan).order_by(MonthlyPlan.month.desc()).all()

    def add_item(self, model: Type[PlanItemT], **fields) -> PlanItemT:
        db_item = model(**fields)
        self.db.add(db_item)
        self.db.flush()
        return db_item

    def get_item(self, model: Type[PlanItemT], item_id: str) -> Optional[PlanItemT]:
        return self.db.query(model).filter(model.id == item_id).first()

    def list_items(self, model: Type[PlanItemT], plan_id: str) -> List[PlanItemT]:
        return (
            self.db.query(model)
            .filter(model.monthly_plan_id == plan_id)
            .order_by(model.created_at.asc(), model.id)
            .all()
        )

    def delete_item(self, item: PlanItem) -> None:
        self.db.delete(item)
        self.db.flush()

    def sum_expected(self, model: Type[PlanItemT], plan_id: str) -> int:
        """Derived plan total, recomputed from current rows"""
        return (
            self.db.query(func.coalesce(func.sum(model.expected_amount_cents), 0))
            .filter(model.monthly_plan_id == plan_id)
            .scalar()
        )

    def first_expense_for_category(self, plan_id: str, category_id: str) -> Optional[PlannedExpense]:
        return (
            self.db.query(PlannedExpense)
            .filter(PlannedExpense.monthly_plan_id == plan_id, PlannedExpense.category_id == category_id)
            .order_by(PlannedExpense.created_at.asc(), PlannedExpense.id)
            .first()
        )


class OutboxRepository:
    """Repository for outbound ledger webhooks"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, event_type: str, payload: dict, target_url: str) -> OutboundWebhook:
        db_webhook = OutboundWebhook(
            event_type=event_type,
            payload=payload,
            target_url=target_url,
            status="pending",
            attempts=0,
        )
        self.db.add(db_webhook)
        self.db.flush()
        return db_webhook

    def list_pending(self, limit: int = 50) -> List[OutboundWebhook]:
        return (
            self.db.query(OutboundWebhook)
            .filter(OutboundWebhook.status == "pending")
            .order_by(OutboundWebhook.created_at.asc())
            .limit(limit)
            .all()
        )
