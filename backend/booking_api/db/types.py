"""
Column types that define how domain values cross the storage boundary.
"""

import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

from booking_api.services.seats import normalize_seats, sorted_seats


class SeatList(TypeDecorator):
    """
    Seat set persisted as a JSON array in natural order.

    Reads go through the same normalizer as requests, so rows written by
    older clients as "A1, A2" or "{A1,A2}" load as canonical lists too.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(sorted_seats(normalize_seats(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return sorted_seats(normalize_seats(value))
