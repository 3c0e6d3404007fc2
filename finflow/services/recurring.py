import pandas as pd
from datetime import date
from typing import Iterator

_STEPS = {
    "daily": "days",
    "weekly": "weeks",
    "monthly": "months",
    "yearly": "years",
}


def occurrence(start: date, frequency: str, k: int) -> date:
    """k-th occurrence of a schedule, counted from its start date.

    Month and year steps are taken from ``start`` rather than chained, so a
    rule starting on the 31st lands on each month's last day without drifting.
    """
    if frequency not in _STEPS:
        raise ValueError(f"Unknown frequency: {frequency}")
    return (pd.Timestamp(start) + pd.DateOffset(**{_STEPS[frequency]: k})).date()


def iter_occurrences(start: date, frequency: str, until: date) -> Iterator[date]:
    k = 0
    while True:
        current = occurrence(start, frequency, k)
        if current > until:
            return
        yield current
        k += 1


def due_dates(rule, as_of: date) -> list[date]:
    if not rule.is_active:
        return []

    limit = as_of
    if rule.end_date is not None and rule.end_date < limit:
        limit = rule.end_date

    return [
        d for d in iter_occurrences(rule.start_date, rule.frequency, limit)
        if rule.last_generated is None or d > rule.last_generated
    ]
