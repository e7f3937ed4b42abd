# hostel_booking/services/booking/booking_state_machine.py
"""
Booking status transition table.

Only the edges listed here are legal; everything else, including any
move out of a terminal status, is rejected.
"""

from typing import Dict, FrozenSet

from hostel_booking.core.exceptions import InvalidTransitionError
from hostel_booking.models.base.enums import BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.PAID,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.PAID: frozenset({
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.ACTIVE}),
    BookingStatus.ACTIVE: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}

# Column stamped when a booking enters each status.
TRANSITION_TIMESTAMPS: Dict[BookingStatus, str] = {
    BookingStatus.CONFIRMED: "confirmed_at",
    BookingStatus.REJECTED: "rejected_at",
    BookingStatus.PAID: "paid_at",
    BookingStatus.CHECKED_IN: "checked_in_at",
    BookingStatus.ACTIVE: "activated_at",
    BookingStatus.CHECKED_OUT: "checked_out_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.CANCELLED: "cancelled_at",
    BookingStatus.EXPIRED: "expired_at",
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(booking_reference: str, current: BookingStatus, target: BookingStatus) -> None:
    """
    Raise InvalidTransitionError unless current -> target is a legal edge.
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(booking_reference, current.value, target.value)
