"""Unit tests for plan-vs-actual aggregation"""

from planning_gateway.domain.models import PlanItemAmounts
from planning_gateway.domain.reconciliation import apply_principal_payment, compute_plan_actual


def test_empty_plan_is_all_zero():
    summary = compute_plan_actual("plan-1", incomes=[], expenses=[], savings=[])

    assert summary.plan_id == "plan-1"
    assert summary.planned_income_cents == 0
    assert summary.actual_income_cents == 0
    assert summary.planned_expenses_cents == 0
    assert summary.actual_expenses_cents == 0
    assert summary.planned_savings_cents == 0
    assert summary.actual_savings_cents == 0


def test_sums_expected_and_actual_per_kind():
    summary = compute_plan_actual(
        "plan-1",
        incomes=[PlanItemAmounts(300000, 300000), PlanItemAmounts(50000, 20000)],
        expenses=[PlanItemAmounts(120000, 90000), PlanItemAmounts(5000)],
        savings=[PlanItemAmounts(40000, 40000)],
    )

    assert summary.planned_income_cents == 350000
    assert summary.actual_income_cents == 320000
    assert summary.planned_expenses_cents == 125000
    assert summary.actual_expenses_cents == 90000
    assert summary.planned_savings_cents == 40000
    assert summary.actual_savings_cents == 40000


def test_accepts_generators():
    expenses = (PlanItemAmounts(c, c) for c in (100, 200))
    summary = compute_plan_actual("plan-1", incomes=[], expenses=expenses, savings=[])

    assert summary.planned_expenses_cents == 300
    assert summary.actual_expenses_cents == 300


def test_apply_principal_payment():
    assert apply_principal_payment(120000, 3800) == 116200
    assert apply_principal_payment(1000, 3800) == 0
