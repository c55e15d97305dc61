"""Date manipulation utilities"""

import calendar
from datetime import date
from typing import Iterator


def first_of_month(value: date) -> date:
    """Normalize a date to the first day of its month"""
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """Shift a first-of-month date by whole months"""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def anchored_day(year: int, month: int, day: int) -> date:
    """Date for ``day`` in the given month, clamped to the month's last day"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def due_dates(on_or_after: date, due_day: int) -> Iterator[date]:
    """
    Yield monthly due dates anchored at ``due_day``, starting from the first
    one on or after ``on_or_after``.

    Example:
        on_or_after=2025-01-20, due_day=31 → 2025-01-31, 2025-02-28, 2025-03-31, ...
    """
    cursor = first_of_month(on_or_after)
    if anchored_day(cursor.year, cursor.month, due_day) < on_or_after:
        cursor = add_months(cursor, 1)

    while True:
        yield anchored_day(cursor.year, cursor.month, due_day)
        cursor = add_months(cursor, 1)
