"""Plan-vs-actual reconciliation and debt balance bookkeeping"""

from typing import Iterable

from planning_gateway.domain.models import PlanActual, PlanItemAmounts


def sum_expected(items: Iterable[PlanItemAmounts]) -> int:
    return sum(item.expected_cents for item in items)


def sum_actual(items: Iterable[PlanItemAmounts]) -> int:
    return sum(item.actual_cents for item in items)


def compute_plan_actual(
    plan_id: str,
    incomes: Iterable[PlanItemAmounts],
    expenses: Iterable[PlanItemAmounts],
    savings: Iterable[PlanItemAmounts],
) -> PlanActual:
    """
    Aggregate planned vs actual totals for one monthly plan.

    Always computed from the items passed in; a plan without items yields
    all zeros.
    """
    incomes, expenses, savings = list(incomes), list(expenses), list(savings)
    return PlanActual(
        plan_id=plan_id,
        planned_income_cents=sum_expected(incomes),
        actual_income_cents=sum_actual(incomes),
        planned_expenses_cents=sum_expected(expenses),
        actual_expenses_cents=sum_actual(expenses),
        planned_savings_cents=sum_expected(savings),
        actual_savings_cents=sum_actual(savings),
    )


def apply_principal_payment(balance_cents: int, principal_cents: int) -> int:
    """Balance after a confirmed payment; never drops below zero"""
    return max(balance_cents - principal_cents, 0)
