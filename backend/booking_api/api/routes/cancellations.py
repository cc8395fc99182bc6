"""
Cancellation endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.db.session import get_db
from booking_api.schemas.cancellation import CancellationCreate, CancellationResponse
from booking_api.services.cancellation_service import cancel_booking, list_cancellations

router = APIRouter(prefix="/cancelled-bookings", tags=["Cancellations"])


@router.post("", response_model=CancellationResponse, status_code=status.HTTP_201_CREATED)
async def cancel_booking_endpoint(
    cancellation_data: CancellationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking with a reason and release its seats."""
    return await cancel_booking(db, cancellation_data)


@router.get("", response_model=list[CancellationResponse])
async def list_cancellations_endpoint(
    booking_id: Optional[int] = Query(None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    return await list_cancellations(db, booking_id)
