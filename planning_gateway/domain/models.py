"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

DEBT_TYPES = ("loan", "credit_card", "overdraft")


@dataclass
class DebtTerms:
    """Repayment terms of a debt account, money in cents"""

    balance_cents: int
    interest_rate: float  # Annual percentage, 0-100
    min_monthly_payment_cents: int
    due_day: int  # 1-31, clamped to month end


@dataclass
class ScheduledPayment:
    """Single planned payment produced by the schedule generator"""

    due_date: date
    payment_cents: int
    interest_cents: int
    principal_cents: int


@dataclass
class PlanItemAmounts:
    """Expected/actual pair of one planned income, expense or saving"""

    expected_cents: int
    actual_cents: int = 0


@dataclass
class PlanActual:
    """Planned vs actual totals of a monthly plan"""

    plan_id: str
    planned_income_cents: int
    actual_income_cents: int
    planned_expenses_cents: int
    actual_expenses_cents: int
    planned_savings_cents: int
    actual_savings_cents: int


@dataclass
class LedgerPosting:
    """Transaction handed to the external ledger when a payment is confirmed"""

    schedule_id: str
    debt_account_id: str
    account_id: str
    category_id: Optional[str]
    amount_cents: int
    occurred_on: date
