from pydantic import BaseModel, Field, ConfigDict, field_validator

from finflow.schemas.transaction import FlowType


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: FlowType

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Category name must not be blank')
        return v


class CategoryResponse(BaseModel):
    id: int
    name: str
    type: FlowType

    model_config = ConfigDict(from_attributes=True)
