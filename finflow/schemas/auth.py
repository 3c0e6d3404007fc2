from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
from typing import Literal, Optional


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class FeedbackCreate(BaseModel):
    feedback_type: Literal["suggestion", "bug", "general", "feature"] = "suggestion"
    message: str = Field(..., min_length=1, max_length=5000)


class FeedbackResponse(BaseModel):
    id: int
    feedback_type: str
    message: str

    model_config = ConfigDict(from_attributes=True)
