"""
Booking endpoints with concurrency-safe seat admission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.db.session import get_db
from booking_api.schemas.booking import BookingCreate, BookingResponse, BookingFilters, BookingDeleteResponse
from booking_api.services.booking_service import book_seats, delete_booking, list_bookings
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.strategy_factory import get_showing_guard

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    guard: ShowingGuard = Depends(get_showing_guard),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats for a showing.

    Admission is serialized per showing, so two overlapping requests never
    both succeed. Returns 409 naming every seat that is already taken.
    """
    return await book_seats(db, guard, booking_data)


@router.get("", response_model=list[BookingResponse])
async def list_bookings_endpoint(
    movie_name: Optional[str] = Query(None),
    event_name: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    time: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List bookings, optionally filtered by showing, requester name or status."""
    filters = BookingFilters(
        movie_name=movie_name,
        event_name=event_name,
        date=date,
        time=time,
        name=name,
        active_only=active_only,
    )
    return await list_bookings(db, filters)


@router.delete("/{booking_id}", response_model=BookingDeleteResponse)
async def delete_booking_endpoint(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Permanently remove a booking. Its seats become available again."""
    booking = await delete_booking(db, booking_id)
    return BookingDeleteResponse(
        message="Booking deleted",
        deleted_booking=BookingResponse.model_validate(booking),
    )
