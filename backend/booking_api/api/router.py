"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from booking_api.api.routes import bookings, cancellations, seats

api_router = APIRouter()
api_router.include_router(bookings.router)
api_router.include_router(seats.router)
api_router.include_router(cancellations.router)
