"""
Booking lifecycle, pricing and refund policy.
"""

from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService
from hostel_booking.services.booking.booking_pricing_service import (
    PricingBreakdown,
    compute_pricing,
    price_for_hostel,
)
from hostel_booking.services.booking.booking_state_machine import (
    ALLOWED_TRANSITIONS,
    can_transition,
    validate_transition,
)
from hostel_booking.services.booking.refund_policy_service import (
    RefundQuote,
    RefundSnapshot,
    compute_refund,
    days_until_check_in,
    quote_refund,
    refund_percentage,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "BookingLifecycleService",
    "PricingBreakdown",
    "RefundQuote",
    "RefundSnapshot",
    "can_transition",
    "compute_pricing",
    "compute_refund",
    "days_until_check_in",
    "price_for_hostel",
    "quote_refund",
    "refund_percentage",
    "validate_transition",
]
