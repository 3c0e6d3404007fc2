from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Literal, Optional, List
from datetime import date

from finflow.config import MAX_AMOUNT
from finflow.schemas.transaction import FlowType, TransactionResponse

Frequency = Literal["daily", "weekly", "monthly", "yearly"]


class RecurringCreate(BaseModel):
    amount: float = Field(..., gt=0, lt=MAX_AMOUNT)
    category: str = Field(..., min_length=1)
    type: FlowType
    description: Optional[str] = None
    frequency: Frequency = "monthly"
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def dates_must_be_ordered(self):
        if self.end_date is not None and self.start_date >= self.end_date:
            raise ValueError('Start date must be before end date')
        return self


class RecurringToggle(BaseModel):
    is_active: bool


class RecurringResponse(BaseModel):
    id: int
    amount: float
    category: str
    type: FlowType
    description: Optional[str] = None
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    last_generated: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class GenerationResult(BaseModel):
    as_of: date
    rules_processed: int
    created: List[TransactionResponse]
