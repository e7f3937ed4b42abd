"""
API v1 Router - aggregates the v1 booking endpoints.
"""

from fastapi import APIRouter

from hostel_booking.api.v1 import bookings, payments

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        502: {"description": "Payment Gateway Error"},
    }
)

router.include_router(bookings.router)
router.include_router(payments.router)
