"""
Booking model representing a seat reservation for one showing.

Key design decisions:
- A showing is (show_title, date, time). show_title is movie_name if given,
  else event_name, fixed at admission; date and time are kept as the
  strings clients send
- `seats` is a SeatList: canonical JSON at rest, normalized again on read
- Status field allows cancellation without deleting records
- SeatClaim rows enforce seat uniqueness per showing at the storage level
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from booking_api.db.base import Base, TimestampMixin
from booking_api.db.types import SeatList
from booking_api.services.seats import ShowingKey

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True, index=True)
    movie_name = Column(String(255), nullable=True)
    event_name = Column(String(255), nullable=True)
    # Canonical showing title; NULL only on rows written before it existed
    show_title = Column(String(255), nullable=True)
    date = Column(String(32), nullable=False)
    time = Column(String(32), nullable=False)
    seats = Column(SeatList, nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)  # active, cancelled

    # Relationships
    claims = relationship("SeatClaim", back_populates="booking")
    cancellations = relationship("CancelledBooking", back_populates="booking")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'cancelled')", name="check_booking_status"),
        # Availability lookups filter on the showing plus status
        Index("ix_bookings_showing", "show_title", "date", "time", "status"),
    )

    @property
    def showing_key(self) -> ShowingKey:
        if self.show_title:
            return ShowingKey(self.show_title, self.date, self.time)
        return ShowingKey.build(self.movie_name, self.event_name, self.date, self.time)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, showing={self.showing_key}, status={self.status})>"


class SeatClaim(Base):
    """One row per seat held by an active booking."""

    __tablename__ = "seat_claims"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    show_title = Column(String(255), nullable=False)
    show_date = Column(String(32), nullable=False)
    show_time = Column(String(32), nullable=False)
    seat = Column(String(64), nullable=False)

    booking = relationship("Booking", back_populates="claims")

    __table_args__ = (
        # A seat can be held by at most one active booking per showing
        UniqueConstraint("show_title", "show_date", "show_time", "seat", name="uq_showing_seat"),
    )

    def __repr__(self) -> str:
        return f"<SeatClaim(booking={self.booking_id}, seat={self.seat})>"
