"""
Budget progress and alerting.

Everything here is a pure function over already-fetched, user-scoped rows.
Budgets and transactions may be ORM objects or pydantic models; only their
attributes are read.
"""
from datetime import date
from typing import Iterable, Optional, Sequence

from finflow.config import ALERT_THRESHOLD_PERCENT, EXCEEDED_THRESHOLD_PERCENT
from finflow.schemas.budget import BudgetAlert, BudgetStatus
from finflow.services.formatting import format_currency, format_percent

# A percentage below a threshold must not round onto it
PERCENT_DIGITS = 6


def matches_budget(budget, trx) -> bool:
    return (
        trx.category == budget.category
        and trx.type == budget.type
        and budget.period_start <= trx.date <= budget.period_end
    )


def actual_for_budget(budget, transactions: Iterable) -> float:
    return sum(float(t.amount) for t in transactions if matches_budget(budget, t))


def classify_alert(percentage: float) -> Optional[str]:
    if percentage >= EXCEEDED_THRESHOLD_PERCENT:
        return "exceeded"
    if percentage >= ALERT_THRESHOLD_PERCENT:
        return "warning"
    return None


def _build_alert(budget, severity: str, percentage: float, actual: float) -> BudgetAlert:
    title = "Budget Exceeded" if severity == "exceeded" else "Budget Alert"
    message = (
        f"Your {budget.category} {budget.type} is at {format_percent(percentage)} of budget "
        f"({format_currency(actual)} of {format_currency(budget.planned_amount)})"
    )
    return BudgetAlert(
        budget_id=getattr(budget, "id", None),
        category=budget.category,
        type=budget.type,
        severity=severity,
        title=title,
        message=message,
        percentage=round(percentage, PERCENT_DIGITS),
        planned=budget.planned_amount,
        actual=round(actual, 2)
    )


def budget_status(budget, transactions: Iterable) -> BudgetStatus:
    planned = float(budget.planned_amount)
    actual = actual_for_budget(budget, transactions)

    # planned_amount > 0 is enforced when the budget is created
    percentage = (actual / planned) * 100
    difference = actual - planned
    difference_pct = (difference / planned) * 100
    status = "over" if difference > 0 else "under"

    status_text = (
        f"{status.capitalize()} budget by {format_currency(abs(difference))} "
        f"({format_percent(difference_pct, 1)})"
    )

    severity = classify_alert(percentage)
    alert = _build_alert(budget, severity, percentage, actual) if severity else None

    return BudgetStatus(
        budget_id=getattr(budget, "id", None),
        category=budget.category,
        type=budget.type,
        planned_amount=planned,
        period_start=budget.period_start,
        period_end=budget.period_end,
        actual=round(actual, 2),
        percentage=round(percentage, PERCENT_DIGITS),
        display_percentage=round(min(percentage, 100.0), PERCENT_DIGITS),
        difference=round(difference, 2),
        difference_percentage=round(difference_pct, 2),
        status=status,
        status_text=status_text,
        alert=alert
    )


def compute_budget_status(budgets: Sequence, transactions: Sequence) -> list[BudgetStatus]:
    """One status per budget, in the order the budgets were given."""
    transactions = list(transactions)
    return [budget_status(b, transactions) for b in budgets]


def budget_alerts(statuses: Iterable[BudgetStatus]) -> list[BudgetAlert]:
    return [s.alert for s in statuses if s.alert is not None]


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    # Closed intervals: a shared boundary day counts as overlap
    return start_a <= end_b and start_b <= end_a


def find_overlapping_budget(existing: Iterable, category: str, flow_type: str, start: date, end: date):
    for b in existing:
        if b.category != category or b.type != flow_type:
            continue
        if periods_overlap(b.period_start, b.period_end, start, end):
            return b
    return None
