"""
Domain exceptions raised by the service layer.

Services never build HTTP responses themselves; each exception carries the
status code and payload that main.py turns into a JSON response.

    BookingError
      ValidationError        400  missing/malformed input, no storage touched
      SeatConflictError      409  requested seats overlap active bookings
      BookingNotFoundError   404  referenced booking does not exist
    StorageError             500  data-access failure (opaque to clients)
      StorageTimeoutError    503  storage call exceeded its deadline
"""

from typing import Any, Optional


class BookingError(Exception):
    status_code: int = 400

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class ValidationError(BookingError):
    status_code = 400


class SeatConflictError(BookingError):
    status_code = 409

    def __init__(self, conflicting_seats: list[str]):
        super().__init__(
            f"Seats already booked: {', '.join(conflicting_seats)}",
            conflicting_seats=conflicting_seats,
        )
        self.conflicting_seats = conflicting_seats


class BookingNotFoundError(BookingError):
    status_code = 404

    def __init__(self, booking_id: int):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class StorageError(Exception):
    status_code: int = 500
    public_detail: str = "Storage error"

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(message or f"Storage operation '{operation}' failed")
        self.operation = operation


class StorageTimeoutError(StorageError):
    status_code = 503
    public_detail = "Storage timed out"

    def __init__(self, operation: str, timeout: Optional[float]):
        super().__init__(operation, f"Storage operation '{operation}' exceeded {timeout}s")
        self.timeout = timeout
