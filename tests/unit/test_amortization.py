"""Unit tests for amortization schedule generation"""

import pytest
from datetime import date
from planning_gateway.domain.amortization import generate_schedule, monthly_interest, validate_terms
from planning_gateway.domain.exceptions import InvalidTermsError, ValidationError
from planning_gateway.domain.models import DebtTerms


@pytest.fixture
def car_loan_terms() -> DebtTerms:
    return DebtTerms(balance_cents=120000, interest_rate=12, min_monthly_payment_cents=5000, due_day=15)


def running_balances(start: int, schedule) -> list[int]:
    balances = []
    balance = start
    for payment in schedule:
        balance -= payment.principal_cents
        balances.append(balance)
    return balances


def test_monthly_interest():
    """Interest is balance * rate / 1200, rounded half-up"""
    assert monthly_interest(120000, 12) == 1200
    assert monthly_interest(116200, 12) == 1162
    assert monthly_interest(50, 12) == 1  # exactly 0.5 rounds up
    assert monthly_interest(49, 12) == 0
    assert monthly_interest(120000, 0) == 0


def test_first_period_of_car_loan(car_loan_terms: DebtTerms):
    """Period 1: interest 1200, payment 5000, principal 3800"""
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1))

    first = schedule[0]
    assert first.due_date == date(2025, 1, 15)
    assert first.interest_cents == 1200
    assert first.payment_cents == 5000
    assert first.principal_cents == 3800
    assert running_balances(120000, schedule)[0] == 116200


def test_principal_sums_to_balance(car_loan_terms: DebtTerms):
    """Final entry absorbs the residual so principal sums exactly"""
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1))

    assert sum(p.principal_cents for p in schedule) == 120000
    assert running_balances(120000, schedule)[-1] == 0


def test_final_entry_clamped_to_remaining_balance(car_loan_terms: DebtTerms):
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1))
    balances = running_balances(120000, schedule)

    final = schedule[-1]
    remaining_before_final = balances[-2]
    assert final.principal_cents == remaining_before_final
    assert final.payment_cents == final.principal_cents + final.interest_cents
    assert final.payment_cents <= 5000


def test_balance_strictly_decreasing(car_loan_terms: DebtTerms):
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1))
    balances = running_balances(120000, schedule)

    assert all(b >= 0 for b in balances)
    assert all(later < earlier for earlier, later in zip(balances, balances[1:]))


def test_payment_never_below_interest():
    """Minimum below the accrued interest is raised to the interest"""
    terms = DebtTerms(balance_cents=500000, interest_rate=18, min_monthly_payment_cents=2500, due_day=1)
    schedule = generate_schedule(terms, first_due_on=date(2025, 1, 1), months=6)

    for payment in schedule:
        assert payment.payment_cents >= payment.interest_cents
        assert payment.principal_cents >= 0


def test_due_dates_ascending_and_monthly(car_loan_terms: DebtTerms):
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 20))

    dates = [p.due_date for p in schedule]
    assert dates[0] == date(2025, 2, 15)
    assert dates == sorted(dates)
    assert len(set((d.year, d.month) for d in dates)) == len(dates)


def test_due_day_clamped_in_short_months():
    terms = DebtTerms(balance_cents=300000, interest_rate=0, min_monthly_payment_cents=10000, due_day=31)
    schedule = generate_schedule(terms, first_due_on=date(2024, 1, 20), months=4)

    assert [p.due_date for p in schedule] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_months_window_has_no_balloon(car_loan_terms: DebtTerms):
    """An explicit horizon truncates the schedule without clearing the balance"""
    schedule = generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1), months=3)

    assert len(schedule) == 3
    assert all(p.payment_cents == 5000 for p in schedule)
    assert sum(p.principal_cents for p in schedule) < 120000


def test_months_window_stops_at_zero_balance():
    terms = DebtTerms(balance_cents=12000, interest_rate=0, min_monthly_payment_cents=5000, due_day=10)
    schedule = generate_schedule(terms, first_due_on=date(2025, 1, 1), months=12)

    assert [p.principal_cents for p in schedule] == [5000, 5000, 2000]


def test_interest_only_debt_ends_with_balloon():
    """Payment equal to interest never amortizes; the cap entry clears the balance"""
    terms = DebtTerms(balance_cents=100000, interest_rate=24, min_monthly_payment_cents=1000, due_day=5)
    schedule = generate_schedule(terms, first_due_on=date(2025, 1, 1), max_months=12)

    assert len(schedule) == 12
    assert all(p.principal_cents == 0 for p in schedule[:-1])
    assert schedule[-1].principal_cents == 100000
    assert schedule[-1].payment_cents == 102000
    assert sum(p.principal_cents for p in schedule) == 100000


def test_zero_balance_yields_no_entries():
    terms = DebtTerms(balance_cents=0, interest_rate=12, min_monthly_payment_cents=5000, due_day=15)
    assert generate_schedule(terms, first_due_on=date(2025, 1, 1)) == []


def test_invalid_months_rejected(car_loan_terms: DebtTerms):
    with pytest.raises(ValidationError):
        generate_schedule(car_loan_terms, first_due_on=date(2025, 1, 1), months=0)


@pytest.mark.parametrize(
    "interest_rate,min_payment,due_day",
    [
        (-1, 5000, 15),
        (101, 5000, 15),
        (float("nan"), 5000, 15),
        (float("inf"), 5000, 15),
        (12, 0, 15),
        (12, -100, 15),
        (12, 5000, 0),
        (12, 5000, 32),
    ],
)
def test_invalid_terms(interest_rate, min_payment, due_day):
    with pytest.raises(InvalidTermsError):
        validate_terms(interest_rate, min_payment, due_day)

    terms = DebtTerms(
        balance_cents=100000,
        interest_rate=interest_rate,
        min_monthly_payment_cents=min_payment,
        due_day=due_day,
    )
    with pytest.raises(InvalidTermsError):
        generate_schedule(terms, first_due_on=date(2025, 1, 1))
