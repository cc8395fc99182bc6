"""
Booking service with concurrency-safe seat admission.

CONCURRENCY STRATEGY: Showing Guard + Seat Claims
=================================================

Problem:
  Admission is read-then-write. Two requests for the same showing both read
  the booked seats, both see A1 free, both insert. Result: double booking.

Solution, in two layers:

  1. Showing guard. The availability read, the conflict check, the insert
     and the commit all run while holding a lock keyed by the showing
     (movie/event title, date, time). A second request for the same showing
     waits, then reads the committed state of the first. Different showings
     never wait on each other.

  2. Seat claims. Each admitted seat is also written to seat_claims, which
     has UNIQUE(show_title, show_date, show_time, seat). If two processes
     without a shared guard (local strategy, several workers) race, the
     loser's commit fails with an IntegrityError, is rolled back, and the
     decision is re-run against fresh data.

  The whole decision runs under STORAGE_TIMEOUT_SECONDS, including time
  spent waiting for the guard.
"""

import time
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.exceptions import BookingNotFoundError, SeatConflictError, ValidationError
from booking_api.core.logging import get_logger
from booking_api.core.metrics import booking_latency, db_retries, record_booking_attempt, record_db_operation
from booking_api.db.session import bounded
from booking_api.models.booking import Booking, SeatClaim, STATUS_ACTIVE
from booking_api.models.cancellation import CancelledBooking
from booking_api.schemas.booking import BookingCreate, BookingFilters
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.seats import ShowingKey, normalize_seats, sorted_seats

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3


# Same title rule as ShowingKey.build, for rows stored without show_title
_canonical_title = func.coalesce(
    Booking.show_title,
    func.nullif(func.trim(Booking.movie_name), ""),
    func.trim(Booking.event_name),
)


def _showing_filter(key: ShowingKey):
    return (
        Booking.status == STATUS_ACTIVE,
        Booking.date == key.date,
        Booking.time == key.time,
        _canonical_title == key.title,
    )


async def _claimed_seats(db: AsyncSession, key: ShowingKey, seats: frozenset[str]) -> frozenset[str]:
    """Which of `seats` already have a claim row for the showing."""
    result = await db.execute(
        select(SeatClaim.seat).where(
            SeatClaim.show_title == key.title,
            SeatClaim.show_date == key.date,
            SeatClaim.show_time == key.time,
            SeatClaim.seat.in_(sorted(seats)),
        )
    )
    record_db_operation("read")
    return frozenset(result.scalars())


async def get_booked_seats(db: AsyncSession, key: ShowingKey) -> frozenset[str]:
    """Union of seats held by every active booking for the showing."""
    result = await db.execute(select(Booking.seats).where(*_showing_filter(key)))
    record_db_operation("read")

    booked: set[str] = set()
    for seats in result.scalars():
        booked |= normalize_seats(seats)
    return frozenset(booked)


async def fetch_booked_seats(
    db: AsyncSession,
    key: ShowingKey,
    timeout: Optional[float] = None,
) -> list[str]:
    """Booked seats for a showing, in natural order, under the storage deadline."""
    booked = await bounded(get_booked_seats(db, key), "booked_seats", timeout)
    return sorted_seats(booked)


async def _admit(
    db: AsyncSession,
    guard: ShowingGuard,
    key: ShowingKey,
    requested: frozenset[str],
    booking_data: BookingCreate,
) -> Booking:
    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        async with guard.hold(key):
            taken = await get_booked_seats(db, key)
            conflicts = requested & taken
            if conflicts:
                raise SeatConflictError(sorted_seats(conflicts))

            booking = Booking(
                name=booking_data.name,
                movie_name=booking_data.movie_name,
                event_name=booking_data.event_name,
                show_title=key.title,
                date=key.date,
                time=key.time,
                seats=sorted_seats(requested),
                status=STATUS_ACTIVE,
            )
            booking.claims = [
                SeatClaim(show_title=key.title, show_date=key.date, show_time=key.time, seat=seat)
                for seat in requested
            ]
            db.add(booking)
            try:
                await db.flush()
            except IntegrityError:
                # Another process claimed one of these seats since our read
                await db.rollback()
                db_retries.inc()
                record_db_operation("retry")
                logger.info("booking_retry", showing=str(key), attempt=attempt, reason="seat_claim_conflict")
                continue

            await db.refresh(booking)
            await db.commit()
            record_db_operation("write")
            logger.info(
                "booking_created",
                booking_id=booking.id,
                showing=str(key),
                seats=booking.seats,
                attempt=attempt,
            )
            return booking

    # Still losing the race after every attempt: the claims rejected the insert,
    # so they name the conflicting seats
    conflicts = await _claimed_seats(db, key, requested)
    if not conflicts:
        conflicts = requested & await get_booked_seats(db, key)
    raise SeatConflictError(sorted_seats(conflicts or requested))


async def book_seats(
    db: AsyncSession,
    guard: ShowingGuard,
    booking_data: BookingCreate,
    timeout: Optional[float] = None,
) -> Booking:
    """
    Admit a booking if none of its seats are held for the showing.

    Raises ValidationError before touching storage if no seat survives
    normalization, SeatConflictError naming every overlapping seat, and
    StorageError / StorageTimeoutError on data-access failure.
    """
    requested = normalize_seats(booking_data.seats)
    if not requested:
        record_booking_attempt("error")
        raise ValidationError("At least one seat is required")

    key = ShowingKey.build(booking_data.movie_name, booking_data.event_name, booking_data.date, booking_data.time)
    start = time.perf_counter()
    try:
        booking = await bounded(_admit(db, guard, key, requested, booking_data), "book_seats", timeout)
    except SeatConflictError as e:
        record_booking_attempt("conflict")
        logger.warning(
            "booking_conflict",
            showing=str(key),
            requested=sorted_seats(requested),
            conflicting=e.conflicting_seats,
        )
        raise
    except Exception:
        record_booking_attempt("error")
        raise
    finally:
        booking_latency.observe(time.perf_counter() - start)

    record_booking_attempt("success")
    return booking


async def list_bookings(
    db: AsyncSession,
    filters: BookingFilters,
    timeout: Optional[float] = None,
) -> list[Booking]:
    """List bookings matching every given filter, oldest first."""
    query = select(Booking)
    for column in ("movie_name", "event_name", "date", "time", "name"):
        value = getattr(filters, column)
        if value is not None:
            query = query.where(getattr(Booking, column) == value)
    if filters.active_only:
        query = query.where(Booking.status == STATUS_ACTIVE)

    async def _list() -> list[Booking]:
        result = await db.execute(query.order_by(Booking.id.asc()))
        record_db_operation("read")
        return list(result.scalars().all())

    return await bounded(_list(), "list_bookings", timeout)


async def delete_booking(
    db: AsyncSession,
    booking_id: int,
    timeout: Optional[float] = None,
) -> Booking:
    """
    Hard-delete a booking along with its seat claims and cancellation records.
    Unlike cancellation, nothing of the booking remains afterwards.
    """

    async def _delete() -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise BookingNotFoundError(booking_id)

        await db.execute(delete(SeatClaim).where(SeatClaim.booking_id == booking_id))
        await db.execute(delete(CancelledBooking).where(CancelledBooking.booking_id == booking_id))
        await db.execute(delete(Booking).where(Booking.id == booking_id))
        await db.commit()
        record_db_operation("write")
        return booking

    booking = await bounded(_delete(), "delete_booking", timeout)
    logger.info("booking_deleted", booking_id=booking_id, showing=str(booking.showing_key))
    return booking
