"""
Pydantic schemas for cancellation request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class CancellationCreate(BaseModel):
    booking_id: int = Field(..., gt=0)
    reason: str = Field(..., max_length=2000)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("reason must not be blank")
        return value


class CancellationResponse(BaseModel):
    id: int
    booking_id: int
    reason: str
    created_at: datetime

    model_config = {"from_attributes": True}
