from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Literal, Optional
import datetime as dt

from finflow.config import MAX_AMOUNT

FlowType = Literal["inflow", "outflow"]


class TransactionBase(BaseModel):
    date: dt.date
    amount: float = Field(..., gt=0, lt=MAX_AMOUNT)
    category: str = Field(..., min_length=1)
    type: FlowType
    description: Optional[str] = None

    @field_validator('category')
    @classmethod
    def strip_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Category must not be blank')
        return v

    @field_validator('description')
    @classmethod
    def empty_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(TransactionBase):
    pass


class TransactionResponse(TransactionBase):
    id: int
    recurring_id: Optional[int] = None
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)
