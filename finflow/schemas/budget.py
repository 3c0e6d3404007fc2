from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Literal, Optional
from datetime import date, datetime

from finflow.config import MAX_AMOUNT
from finflow.schemas.transaction import FlowType

AlertSeverity = Literal["warning", "exceeded"]


class BudgetCreate(BaseModel):
    category: str = Field(..., min_length=1)
    type: FlowType
    planned_amount: float = Field(..., gt=0, lt=MAX_AMOUNT)
    period_start: date
    period_end: date

    @model_validator(mode='after')
    def period_must_be_ordered(self):
        if self.period_start >= self.period_end:
            raise ValueError('Period start must be before period end')
        return self


class BudgetResponse(BaseModel):
    id: int
    category: str
    type: FlowType
    planned_amount: float
    period_start: date
    period_end: date
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BudgetAlert(BaseModel):
    budget_id: Optional[int] = None
    category: str
    type: FlowType
    severity: AlertSeverity
    title: str
    message: str
    percentage: float
    planned: float
    actual: float


class BudgetStatus(BaseModel):
    budget_id: Optional[int] = None
    category: str
    type: FlowType
    planned_amount: float
    period_start: date
    period_end: date

    actual: float
    percentage: float
    display_percentage: float
    difference: float
    difference_percentage: float
    status: Literal["over", "under"]
    status_text: str
    alert: Optional[BudgetAlert] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "budget_id": 1,
            "category": "Groceries",
            "type": "outflow",
            "planned_amount": 500.0,
            "period_start": "2024-03-01",
            "period_end": "2024-03-31",
            "actual": 450.0,
            "percentage": 90.0,
            "display_percentage": 90.0,
            "difference": -50.0,
            "difference_percentage": -10.0,
            "status": "under",
            "status_text": "Under budget by ৳50.00 (-10.0%)",
            "alert": {
                "budget_id": 1,
                "category": "Groceries",
                "type": "outflow",
                "severity": "warning",
                "title": "Budget Alert",
                "message": "Your Groceries outflow is at 90% of budget (৳450.00 of ৳500.00)",
                "percentage": 90.0,
                "planned": 500.0,
                "actual": 450.0
            }
        }
    })
