from booking_api.schemas.booking import (
    BookingCreate, BookingResponse, BookingFilters, BookedSeatsResponse, BookingDeleteResponse,
)
from booking_api.schemas.cancellation import CancellationCreate, CancellationResponse

__all__ = [
    "BookingCreate", "BookingResponse", "BookingFilters", "BookedSeatsResponse", "BookingDeleteResponse",
    "CancellationCreate", "CancellationResponse",
]
