# rentez/domain/rent_schedule.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date


def add_months(d: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the last day of the target month.

        add_months(date(2026, 1, 31), 1) -> 2026-02-28
        add_months(date(2026, 1, 31), 2) -> 2026-03-31
    """
    idx = d.month - 1 + int(months)
    y = d.year + idx // 12
    m = idx % 12 + 1
    last_day = calendar.monthrange(y, m)[1]
    return date(y, m, min(d.day, last_day))


def lease_end_date(start: date, duration_months: int) -> date:
    if duration_months < 1:
        raise ValueError("lease duration must be at least one month")
    return add_months(start, duration_months)


@dataclass(frozen=True)
class ScheduledPayment:
    month_number: int
    due_date: date
    amount: float
    status: str = "pending"
    verification_status: str = "not_submitted"


def build_rent_schedule(start: date, end: date, monthly_rent: float) -> list[ScheduledPayment]:
    """
    One installment per elapsed month of the lease.

    Due date k is start + k months (always stepped from the start date, so a
    31st start doesn't drift to the 28th after February). Generation stops
    once a due date reaches or passes the end date, so a D-month lease yields
    exactly D rows, the last one due on the end date.
    """
    if end <= start:
        return []

    out: list[ScheduledPayment] = []
    k = 1
    while True:
        due = add_months(start, k)
        out.append(ScheduledPayment(month_number=k, due_date=due, amount=float(monthly_rent)))
        if due >= end:
            break
        k += 1
    return out
