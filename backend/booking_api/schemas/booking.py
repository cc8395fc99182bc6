"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class BookingCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    movie_name: Optional[str] = Field(None, max_length=255)
    event_name: Optional[str] = Field(None, max_length=255)
    date: str = Field(..., max_length=32)
    time: str = Field(..., max_length=32)
    # "A1, A2" or ["A1", "A2"]; normalized by the service
    seats: Optional[Union[str, list[Union[str, int]]]] = None

    @field_validator("name", "movie_name", "event_name", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        # Stored titles must equal the trimmed title used for locks and claims
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("date", "time")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def require_showing_title(self) -> "BookingCreate":
        if not self.movie_name and not self.event_name:
            raise ValueError("movie_name or event_name is required")
        return self


class BookingResponse(BaseModel):
    id: int
    name: Optional[str]
    movie_name: Optional[str]
    event_name: Optional[str]
    date: str
    time: str
    seats: list[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingFilters(BaseModel):
    movie_name: Optional[str] = None
    event_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    name: Optional[str] = None
    active_only: bool = False


class BookedSeatsResponse(BaseModel):
    booked_seats: list[str] = Field(..., alias="bookedSeats")

    model_config = {"populate_by_name": True}


class BookingDeleteResponse(BaseModel):
    message: str
    deleted_booking: BookingResponse = Field(..., alias="deletedBooking")

    model_config = {"populate_by_name": True}
