from booking_api.models.booking import Booking, SeatClaim, STATUS_ACTIVE, STATUS_CANCELLED
from booking_api.models.cancellation import CancelledBooking

__all__ = [
    "Booking", "SeatClaim", "CancelledBooking",
    "STATUS_ACTIVE", "STATUS_CANCELLED",
]
