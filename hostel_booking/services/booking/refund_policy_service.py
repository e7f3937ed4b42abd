# hostel_booking/services/booking/refund_policy_service.py
"""
Cancellation refund policy.

Policy tiers (days until check-in):
- More than 30 days: 90%
- 16 to 30 days: 70%
- 8 to 15 days: 50%
- 1 to 7 days: 20%
- On or after the check-in day: nothing

Amounts are integers in the smallest currency unit; the refund is the
floor of the paid amount times the tier percentage.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple

from hostel_booking.core.exceptions import ValidationError
from hostel_booking.utils.datetime_utils import days_until

# (minimum days until check-in, refund percent), highest tier first.
REFUND_TIERS: Tuple[Tuple[int, int], ...] = (
    (31, 90),
    (16, 70),
    (8, 50),
    (1, 20),
)


def refund_percentage(days_until_check_in: int) -> int:
    for min_days, percent in REFUND_TIERS:
        if days_until_check_in >= min_days:
            return percent
    return 0


def compute_refund(paid_amount: int, days_until_check_in: int) -> int:
    """
    Refund owed for a cancellation.

    Raises:
        ValidationError: If paid_amount is negative
    """
    if paid_amount < 0:
        raise ValidationError("paid_amount must not be negative", field="paid_amount")
    return paid_amount * refund_percentage(days_until_check_in) // 100


def days_until_check_in(check_in_date: date, now: datetime) -> int:
    """Days from `now` to check-in midnight, partial days rounded up."""
    return days_until(check_in_date, now)


@dataclass(frozen=True)
class RefundSnapshot:
    """Booking values a refund is computed from, captured once."""

    booking_reference: str
    paid_amount: int
    check_in_date: date
    taken_at: datetime


@dataclass(frozen=True)
class RefundQuote:
    booking_reference: str
    paid_amount: int
    days_until_check_in: int
    refund_percentage: int
    refund_amount: int

    @property
    def is_refundable(self) -> bool:
        return self.refund_amount > 0


def quote_refund(snapshot: RefundSnapshot) -> RefundQuote:
    """Compute the refund for a snapshot; concurrent booking edits cannot change it."""
    days = days_until_check_in(snapshot.check_in_date, snapshot.taken_at)
    percent = refund_percentage(days)
    return RefundQuote(
        booking_reference=snapshot.booking_reference,
        paid_amount=snapshot.paid_amount,
        days_until_check_in=days,
        refund_percentage=percent,
        refund_amount=compute_refund(snapshot.paid_amount, days),
    )
