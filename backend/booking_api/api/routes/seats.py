"""
Seat availability endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.exceptions import ValidationError
from booking_api.db.session import get_db
from booking_api.schemas.booking import BookedSeatsResponse
from booking_api.services.booking_service import fetch_booked_seats
from booking_api.services.seats import ShowingKey

router = APIRouter(prefix="/booked-seats", tags=["Seats"])


@router.get("", response_model=BookedSeatsResponse)
async def booked_seats_endpoint(
    movie: Optional[str] = Query(None, description="Movie or event name"),
    date: Optional[str] = Query(None),
    time: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Seats already held by active bookings for one showing. Never cached."""
    missing = [
        param for param, value in (("movie", movie), ("date", date), ("time", time))
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required query parameters: {', '.join(missing)}")

    key = ShowingKey.build(movie, None, date, time)
    return BookedSeatsResponse(booked_seats=await fetch_booked_seats(db, key))
