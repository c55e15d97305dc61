"""Debt amortization schedule generation"""

import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from planning_gateway.domain.exceptions import InvalidTermsError, ValidationError
from planning_gateway.domain.models import DebtTerms, ScheduledPayment
from planning_gateway.domain.money import round_half_up
from planning_gateway.utils.date_utils import due_dates


def validate_terms(interest_rate: float, min_monthly_payment_cents: int, due_day: int) -> None:
    """
    Reject debt terms the generator cannot amortize.

    Raises:
        InvalidTermsError: Rate outside 0-100 or not finite, non-positive minimum payment,
            or due day outside 1-31
    """
    if not math.isfinite(interest_rate):
        raise InvalidTermsError(f"Interest rate must be a finite number, got {interest_rate}")
    if interest_rate < 0 or interest_rate > 100:
        raise InvalidTermsError(f"Interest rate must be between 0 and 100, got {interest_rate}")
    if min_monthly_payment_cents <= 0:
        raise InvalidTermsError("Minimum monthly payment must be positive")
    if due_day < 1 or due_day > 31:
        raise InvalidTermsError(f"Due day must be between 1 and 31, got {due_day}")


def monthly_interest(balance_cents: int, interest_rate: float) -> int:
    """Interest accrued on ``balance_cents`` over one month, rounded half-up to the cent"""
    return round_half_up(Decimal(balance_cents) * Decimal(str(interest_rate)) / Decimal(1200))


def generate_schedule(
    terms: DebtTerms,
    first_due_on: date,
    months: Optional[int] = None,
    max_months: int = 600,
) -> List[ScheduledPayment]:
    """
    Generate a monthly amortization schedule for a debt.

    Requirements:
    - One payment per month, anchored at the due day (clamped in short months)
    - Payment is the larger of the minimum payment and the accrued interest
    - The final payment clears the balance exactly, absorbing any residual cent
    - Without an explicit horizon, the entry at ``max_months`` is a balloon
      payment so the principal always sums to the starting balance

    Args:
        terms: Balance, rate, minimum payment and due day
        first_due_on: Earliest date the first payment may fall on
        months: Optional window length; the schedule stops early if the
            balance reaches zero
        max_months: Safety cap used when ``months`` is not given

    Returns:
        List of ScheduledPayment objects in ascending due date order

    Example:
        balance 120000, 12% APR, minimum 5000
        Period 1: interest 1200, payment 5000, principal 3800, balance → 116200
    """
    validate_terms(terms.interest_rate, terms.min_monthly_payment_cents, terms.due_day)

    if months is not None and months < 1:
        raise ValidationError(f"Months must be positive, got {months}")

    balance = terms.balance_cents
    if balance <= 0:
        return []

    limit = months if months is not None else max_months
    balloon_at_limit = months is None

    schedule: List[ScheduledPayment] = []
    for period, due_date in zip(range(limit), due_dates(first_due_on, terms.due_day)):
        interest = monthly_interest(balance, terms.interest_rate)
        payment = max(terms.min_monthly_payment_cents, interest)
        principal = payment - interest

        final = principal >= balance or (balloon_at_limit and period == limit - 1)
        if final:
            principal = balance
            payment = principal + interest

        schedule.append(
            ScheduledPayment(
                due_date=due_date,
                payment_cents=payment,
                interest_cents=interest,
                principal_cents=principal,
            )
        )

        balance -= principal
        if final:
            break

    return schedule
