from datetime import date
from types import SimpleNamespace

import pytest

from finflow.services.recurring import due_dates, occurrence


def _rule(frequency="monthly", start=date(2024, 1, 31), end=None, last=None, active=True):
    return SimpleNamespace(frequency=frequency, start_date=start, end_date=end,
                           last_generated=last, is_active=active)


def test_monthly_occurrences_clamp_to_month_end_without_drift():
    start = date(2024, 1, 31)
    assert occurrence(start, "monthly", 1) == date(2024, 2, 29)
    assert occurrence(start, "monthly", 2) == date(2024, 3, 31)
    assert occurrence(start, "monthly", 3) == date(2024, 4, 30)


def test_other_frequencies():
    start = date(2024, 2, 29)
    assert occurrence(start, "daily", 2) == date(2024, 3, 2)
    assert occurrence(start, "weekly", 1) == date(2024, 3, 7)
    assert occurrence(start, "yearly", 1) == date(2025, 2, 28)
    with pytest.raises(ValueError):
        occurrence(start, "hourly", 1)


def test_due_dates_from_start_inclusive():
    assert due_dates(_rule(), as_of=date(2024, 3, 31)) == [
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)
    ]


def test_due_dates_skip_already_generated():
    rule = _rule(last=date(2024, 2, 29))
    assert due_dates(rule, as_of=date(2024, 4, 15)) == [date(2024, 3, 31)]


def test_due_dates_respect_end_date_and_active_flag():
    rule = _rule(frequency="weekly", start=date(2024, 3, 1), end=date(2024, 3, 14))
    assert due_dates(rule, as_of=date(2024, 12, 31)) == [date(2024, 3, 1), date(2024, 3, 8)]
    assert due_dates(_rule(active=False), as_of=date(2024, 12, 31)) == []


def test_nothing_due_before_start():
    assert due_dates(_rule(start=date(2024, 5, 1)), as_of=date(2024, 4, 30)) == []
