"""Debt account store, schedule generation and payment confirmation"""

from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from planning_gateway.config import settings
from planning_gateway.domain.amortization import generate_schedule, validate_terms
from planning_gateway.domain.exceptions import ConflictError, NotFoundError, ValidationError
from planning_gateway.domain.models import DEBT_TYPES, DebtTerms, LedgerPosting
from planning_gateway.domain.reconciliation import apply_principal_payment
from planning_gateway.infrastructure.database.models import DebtAccount, DebtPaymentSchedule
from planning_gateway.infrastructure.database.repositories import (
    DebtRepository,
    OutboxRepository,
    PlanRepository,
    ReminderRepository,
    ScheduleRepository,
)
from planning_gateway.infrastructure.observability.metrics import conflict_counter
from planning_gateway.services.outbox import DEBT_PAYMENT_POSTED
from planning_gateway.utils.date_utils import first_of_month

UPDATABLE_DEBT_FIELDS = (
    "name",
    "type",
    "principal_cents",
    "interest_rate",
    "min_monthly_payment_cents",
    "due_day",
    "current_balance_cents",
)


def _flush_or_conflict(db: Session, entity_id: str) -> None:
    """Flush pending writes, turning a lost optimistic-lock race into ConflictError"""
    try:
        db.flush()
    except StaleDataError as e:
        conflict_counter.inc()
        raise ConflictError(f"Debt account {entity_id} was modified concurrently") from e


def _check_debt_fields(debt_type: str, principal_cents: int, current_balance_cents: int) -> None:
    if debt_type not in DEBT_TYPES:
        raise ValidationError(f"Debt type must be one of {', '.join(DEBT_TYPES)}")
    if principal_cents < 0:
        raise ValidationError("Principal cannot be negative")
    if current_balance_cents < 0:
        raise ValidationError("Current balance cannot be negative")


def _get_debt_or_raise(db: Session, debt_id: str, for_update: bool = False) -> DebtAccount:
    debt = DebtRepository(db).get_debt(debt_id, for_update=for_update)
    if debt is None:
        raise NotFoundError("Debt account", debt_id)
    return debt


def add_debt_account(
    db: Session,
    name: str,
    type: str,
    principal_cents: int,
    interest_rate: float,
    min_monthly_payment_cents: int,
    due_day: int,
    start_date: date,
    current_balance_cents: Optional[int] = None,
) -> DebtAccount:
    """Create a debt; the running balance starts at the principal unless overridden"""
    balance = principal_cents if current_balance_cents is None else current_balance_cents
    _check_debt_fields(type, principal_cents, balance)
    validate_terms(interest_rate, min_monthly_payment_cents, due_day)

    return DebtRepository(db).create_debt(
        name=name,
        type=type,
        principal_cents=principal_cents,
        interest_rate=interest_rate,
        min_monthly_payment_cents=min_monthly_payment_cents,
        due_day=due_day,
        start_date=start_date,
        current_balance_cents=balance,
    )


def list_debt_accounts(db: Session) -> List[DebtAccount]:
    return DebtRepository(db).list_debts()


def update_debt_account(db: Session, debt_id: str, changes: Dict[str, Any]) -> DebtAccount:
    """Apply a partial update; the merged terms must still be valid"""
    debt = _get_debt_or_raise(db, debt_id, for_update=True)

    unknown = set(changes) - set(UPDATABLE_DEBT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown debt fields: {', '.join(sorted(unknown))}")

    merged = {field: changes.get(field, getattr(debt, field)) for field in UPDATABLE_DEBT_FIELDS}
    if any(merged[field] is None for field in UPDATABLE_DEBT_FIELDS):
        raise ValidationError("Debt fields cannot be null")

    _check_debt_fields(merged["type"], merged["principal_cents"], merged["current_balance_cents"])
    validate_terms(merged["interest_rate"], merged["min_monthly_payment_cents"], merged["due_day"])

    for field, value in changes.items():
        setattr(debt, field, value)

    _flush_or_conflict(db, debt_id)
    return debt


def delete_debt_account(db: Session, debt_id: str) -> None:
    debt = _get_debt_or_raise(db, debt_id)
    DebtRepository(db).delete_debt(debt)


def list_debt_schedule(db: Session, debt_id: str) -> List[DebtPaymentSchedule]:
    _get_debt_or_raise(db, debt_id)
    return ScheduleRepository(db).list_entries(debt_id)


def generate_debt_schedule(
    db: Session,
    debt_account_id: str,
    months: Optional[int] = None,
    today: Optional[date] = None,
) -> Tuple[List[DebtPaymentSchedule], int]:
    """
    Generate (or regenerate) the unpaid part of a debt's schedule.

    Flow:
    1. Lock the debt row
    2. Amortize the current balance, which already reflects paid entries
    3. Replace every unpaid entry and its reminder; paid entries stay untouched
    4. Raise a reminder for each new entry
    5. Bump the debt's version so a concurrent confirmation cannot interleave

    Returns:
        (new entries in due date order, number of unpaid entries replaced)
    """
    today = today or date.today()
    debt = _get_debt_or_raise(db, debt_account_id, for_update=True)
    schedule_repo = ScheduleRepository(db)

    # New entries start after the latest paid one so due dates never collide
    first_due_on = max(today, debt.start_date)
    last_paid = schedule_repo.latest_paid_due_date(debt.id)
    if last_paid is not None:
        first_due_on = max(first_due_on, last_paid + timedelta(days=1))

    payments = generate_schedule(
        DebtTerms(
            balance_cents=debt.current_balance_cents,
            interest_rate=debt.interest_rate,
            min_monthly_payment_cents=debt.min_monthly_payment_cents,
            due_day=debt.due_day,
        ),
        first_due_on=first_due_on,
        months=months,
        max_months=settings.max_schedule_months,
    )

    replaced = schedule_repo.delete_unpaid(debt.id)
    entries = schedule_repo.create_entries(debt.id, payments)

    reminder_repo = ReminderRepository(db)
    for entry in entries:
        reminder_repo.create_for_entry(debt, entry, hour=settings.reminder_hour)

    debt.schedule_generated_at = datetime.now(timezone.utc)
    _flush_or_conflict(db, debt.id)

    return entries, replaced


def confirm_debt_payment(
    db: Session,
    schedule_id: str,
    account_id: Optional[str] = None,
    category_id: Optional[str] = None,
) -> Tuple[List[DebtPaymentSchedule], bool]:
    """
    Mark a scheduled payment as paid and reconcile everything that depends on it.

    Effects, all in the caller's transaction:
    - entry ``is_paid`` set and its reminder closed
    - debt balance reduced by the entry's planned principal
    - ledger posting queued in the outbox when ``account_id`` is given
    - planned payment accrued into the matching planned expense when
      ``category_id`` is given

    Confirming an already-paid entry changes nothing.

    Returns:
        (all entries of the debt in due date order, whether it was already paid)
    """
    schedule_repo = ScheduleRepository(db)
    debt_account_id = schedule_repo.get_debt_account_id(schedule_id)
    if debt_account_id is None:
        raise NotFoundError("Schedule entry", schedule_id)

    debt = _get_debt_or_raise(db, debt_account_id, for_update=True)
    # Re-read under the debt lock; a regeneration or confirmation may have committed meanwhile
    entry = schedule_repo.get_entry(schedule_id, fresh=True)
    if entry is None:
        conflict_counter.inc()
        raise ConflictError(f"Schedule entry {schedule_id} was replaced by a concurrent regeneration")

    if entry.is_paid:
        return schedule_repo.list_entries(debt.id), True

    entry.is_paid = True
    debt.current_balance_cents = apply_principal_payment(debt.current_balance_cents, entry.planned_principal_cents)
    debt.last_confirmed_at = datetime.now(timezone.utc)

    reminder = ReminderRepository(db).get_for_entry(entry.id)
    if reminder is not None:
        reminder.status = "done"

    if account_id:
        posting = LedgerPosting(
            schedule_id=entry.id,
            debt_account_id=debt.id,
            account_id=account_id,
            category_id=category_id,
            amount_cents=entry.planned_payment_cents,
            occurred_on=entry.due_date,
        )
        payload = {"event": DEBT_PAYMENT_POSTED, "type": "expense", **asdict(posting)}
        payload["occurred_on"] = posting.occurred_on.isoformat()
        webhook = OutboxRepository(db).enqueue(DEBT_PAYMENT_POSTED, payload, settings.ledger_webhook_url)
        entry.ledger_event_id = webhook.id

    if category_id:
        plan_repo = PlanRepository(db)
        plan = plan_repo.get_plan_by_month(first_of_month(entry.due_date))
        expense = plan_repo.first_expense_for_category(plan.id, category_id) if plan else None
        if expense is not None:
            expense.actual_amount_cents += entry.planned_payment_cents

    _flush_or_conflict(db, debt.id)
    return schedule_repo.list_entries(debt.id), False
