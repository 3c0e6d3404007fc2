import calendar
import pandas as pd
from collections import defaultdict
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from finflow.schemas.analytics import BalanceOverview, CategoryAmount, MonthlyPoint, MonthlyTrend, PeriodSummary


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_month(value: str) -> tuple[date, date]:
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise ValueError('Invalid month format (YYYY-MM)')
    return month_bounds(parsed.year, parsed.month)


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def select_in_period(transactions: Iterable, start: date, end: date) -> list:
    return [t for t in transactions if start <= t.date <= end]


def flow_totals(transactions: Iterable) -> tuple[float, float]:
    inflow = 0.0
    outflow = 0.0
    for t in transactions:
        if t.type == "inflow":
            inflow += float(t.amount)
        else:
            outflow += float(t.amount)
    return inflow, outflow


def category_breakdown(transactions: Iterable, flow_type: str, top_n: Optional[int] = None) -> list[CategoryAmount]:
    totals = defaultdict(float)
    for t in transactions:
        if t.type == flow_type:
            totals[t.category] += float(t.amount)

    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    if top_n is not None:
        ranked = ranked[:top_n]
    return [CategoryAmount(category=name, amount=round(amount, 2)) for name, amount in ranked]


def summarize_period(transactions: Sequence, start: date, end: date, top_n: Optional[int] = None) -> PeriodSummary:
    selected = select_in_period(transactions, start, end)
    inflow, outflow = flow_totals(selected)

    return PeriodSummary(
        start=start,
        end=end,
        total_inflow=round(inflow, 2),
        total_outflow=round(outflow, 2),
        balance=round(inflow - outflow, 2),
        inflow_categories=category_breakdown(selected, "inflow", top_n),
        outflow_categories=category_breakdown(selected, "outflow", top_n)
    )


def monthly_trend(transactions: Sequence, months: int = 6) -> MonthlyTrend:
    rows = [{"date": t.date, "type": t.type, "amount": float(t.amount)} for t in transactions]
    if not rows:
        return MonthlyTrend(months=[], avg_monthly_outflow=0.0)

    df = pd.DataFrame(rows)
    df['month'] = pd.to_datetime(df['date']).dt.strftime('%Y-%m')

    pivot = (
        df.pivot_table(index='month', columns='type', values='amount', aggfunc='sum', fill_value=0.0)
        .reindex(columns=['inflow', 'outflow'], fill_value=0.0)
        .sort_index()
        .tail(months)
    )

    points = [
        MonthlyPoint(
            month=month,
            inflow=round(float(row['inflow']), 2),
            outflow=round(float(row['outflow']), 2),
            balance=round(float(row['inflow'] - row['outflow']), 2)
        )
        for month, row in pivot.iterrows()
    ]
    avg_outflow = float(pivot['outflow'].mean()) if not pivot.empty else 0.0

    return MonthlyTrend(months=points, avg_monthly_outflow=round(avg_outflow, 2))


def balance_overview(transactions: Sequence, today: date) -> BalanceOverview:
    total_in, total_out = flow_totals(transactions)
    balance = total_in - total_out

    month_start, month_end = month_bounds(today.year, today.month)
    cur_in, cur_out = flow_totals(select_in_period(transactions, month_start, month_end))

    prev_start, prev_end = month_bounds(*previous_month(today.year, today.month))
    prev_in, prev_out = flow_totals(select_in_period(transactions, prev_start, prev_end))
    prev_balance = prev_in - prev_out

    change = ((balance - prev_balance) / abs(prev_balance or 1)) * 100

    return BalanceOverview(
        balance=round(balance, 2),
        total_inflow=round(total_in, 2),
        total_outflow=round(total_out, 2),
        current_month_inflow=round(cur_in, 2),
        current_month_outflow=round(cur_out, 2),
        current_month_balance=round(cur_in - cur_out, 2),
        previous_month_balance=round(prev_balance, 2),
        balance_change_percent=round(change, 1)
    )
