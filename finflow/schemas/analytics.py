from pydantic import BaseModel, ConfigDict
from typing import List
from datetime import date


class CategoryAmount(BaseModel):
    category: str
    amount: float


class PeriodSummary(BaseModel):
    start: date
    end: date
    total_inflow: float
    total_outflow: float
    balance: float
    inflow_categories: List[CategoryAmount]
    outflow_categories: List[CategoryAmount]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "start": "2024-03-01",
            "end": "2024-03-31",
            "total_inflow": 2500.0,
            "total_outflow": 1300.0,
            "balance": 1200.0,
            "inflow_categories": [{"category": "Salary", "amount": 2000.0}],
            "outflow_categories": [{"category": "Rent", "amount": 1000.0}]
        }
    })


class MonthlyPoint(BaseModel):
    month: str
    inflow: float
    outflow: float
    balance: float


class MonthlyTrend(BaseModel):
    months: List[MonthlyPoint]
    avg_monthly_outflow: float


class BalanceOverview(BaseModel):
    balance: float
    total_inflow: float
    total_outflow: float
    current_month_inflow: float
    current_month_outflow: float
    current_month_balance: float
    previous_month_balance: float
    balance_change_percent: float
