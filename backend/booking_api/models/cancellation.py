"""
Cancellation record: why a booking was cancelled and when.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

from booking_api.db.base import Base, TimestampMixin


class CancelledBooking(Base, TimestampMixin):
    __tablename__ = "cancelled_bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    reason = Column(Text, nullable=False)

    booking = relationship("Booking", back_populates="cancellations")

    def __repr__(self) -> str:
        return f"<CancelledBooking(id={self.id}, booking={self.booking_id})>"
