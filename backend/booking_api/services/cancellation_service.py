"""
Cancellation service.

A cancellation writes three things in one transaction: the cancellation
record, the booking's status flip to "cancelled", and the removal of the
booking's seat claims. Either all three land or none do, so a booking is
never left cancelled-but-holding-seats or active-with-a-cancellation.
"""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.exceptions import BookingNotFoundError, ValidationError
from booking_api.core.logging import get_logger
from booking_api.core.metrics import cancellations, record_db_operation
from booking_api.db.session import bounded
from booking_api.models.booking import Booking, SeatClaim, STATUS_CANCELLED
from booking_api.models.cancellation import CancelledBooking
from booking_api.schemas.cancellation import CancellationCreate

logger = get_logger(__name__)


async def cancel_booking(
    db: AsyncSession,
    cancellation_data: CancellationCreate,
    timeout: Optional[float] = None,
) -> CancelledBooking:
    """
    Cancel a booking and release its seats.
    Raises BookingNotFoundError for unknown ids, ValidationError if already cancelled.
    """
    booking_id = cancellation_data.booking_id

    async def _cancel() -> tuple[CancelledBooking, Booking]:
        result = await db.execute(
            select(Booking).where(Booking.id == booking_id).with_for_update()
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise BookingNotFoundError(booking_id)

        if booking.status == STATUS_CANCELLED:
            raise ValidationError(f"Booking {booking_id} is already cancelled")

        record = CancelledBooking(booking_id=booking_id, reason=cancellation_data.reason)
        db.add(record)
        booking.status = STATUS_CANCELLED
        await db.execute(delete(SeatClaim).where(SeatClaim.booking_id == booking_id))
        await db.flush()
        await db.refresh(record)
        await db.commit()
        record_db_operation("write")
        return record, booking

    try:
        record, booking = await bounded(_cancel(), "cancel_booking", timeout)
    except BookingNotFoundError:
        logger.warning("cancellation_failed", booking_id=booking_id, reason="not_found")
        raise
    except ValidationError:
        logger.warning("cancellation_failed", booking_id=booking_id, reason="already_cancelled")
        raise

    cancellations.inc()
    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        cancellation_id=record.id,
        showing=str(booking.showing_key),
        seats_released=booking.seats,
    )
    return record


async def list_cancellations(
    db: AsyncSession,
    booking_id: Optional[int] = None,
    timeout: Optional[float] = None,
) -> list[CancelledBooking]:
    """List cancellation records, newest last, optionally for one booking."""
    query = select(CancelledBooking)
    if booking_id is not None:
        query = query.where(CancelledBooking.booking_id == booking_id)

    async def _list() -> list[CancelledBooking]:
        result = await db.execute(query.order_by(CancelledBooking.id.asc()))
        record_db_operation("read")
        return list(result.scalars().all())

    return await bounded(_list(), "list_cancellations", timeout)
