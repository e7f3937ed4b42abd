"""
Booking request schemas.

Every lifecycle operation takes one of these commands. They carry the
acting user's identity explicitly; authenticating that identity is the
caller's job.
"""

from __future__ import annotations

from datetime import date as Date
from typing import Optional

from pydantic import Field, field_validator, model_validator

from hostel_booking.models.base.enums import ActorRole, RoomType
from hostel_booking.schemas.common.base import BaseCommand, BaseSchema

__all__ = [
    "EmergencyContact",
    "BookingCreateRequest",
    "CreateBookingCommand",
    "ConfirmBookingCommand",
    "RejectBookingCommand",
    "CancelBookingCommand",
    "CreatePaymentOrderCommand",
    "StayTransitionCommand",
    "ReasonRequest",
    "StayNotesRequest",
]

PHONE_PATTERN = r"^\+?[1-9]\d{9,14}$"


class EmergencyContact(BaseSchema):
    """Emergency contact given at booking time."""

    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(
        ...,
        pattern=PHONE_PATTERN,
        description="Contact phone number (with optional country code)",
    )
    relationship: str = Field(..., max_length=50)


class BookingCreateRequest(BaseCommand):
    """
    Booking details submitted by a student.

    The check-in date is checked against the service clock, not here,
    so that validation stays deterministic under an injected clock.
    """

    hostel_id: str = Field(..., min_length=1, max_length=36)
    room_type: RoomType
    check_in_date: Date
    check_out_date: Date
    duration_months: int = Field(..., ge=1, le=24, description="Billed stay length in months")
    food_selected: bool = False
    special_requests: Optional[str] = Field(None, max_length=500)
    emergency_contact: Optional[EmergencyContact] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "BookingCreateRequest":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class CreateBookingCommand(BookingCreateRequest):
    """Request to book a room type in a hostel on behalf of a student."""

    student_id: str = Field(..., min_length=1, max_length=36)


class ReasonRequest(BaseCommand):
    reason: str = Field(..., min_length=1, max_length=500)


class StayNotesRequest(BaseCommand):
    notes: Optional[str] = Field(None, max_length=500)


class _BookingActorCommand(BaseCommand):
    booking_reference: str = Field(..., min_length=1, max_length=20)
    actor_id: str = Field(..., min_length=1, max_length=36)
    actor_role: ActorRole

    @field_validator("booking_reference")
    @classmethod
    def normalize_reference(cls, v: str) -> str:
        return v.upper()


class ConfirmBookingCommand(_BookingActorCommand):
    """Owner accepts a pending booking."""

    actor_role: ActorRole = ActorRole.OWNER


class RejectBookingCommand(_BookingActorCommand):
    """Owner declines a pending booking."""

    actor_role: ActorRole = ActorRole.OWNER
    reason: str = Field(..., min_length=1, max_length=500)


class CancelBookingCommand(_BookingActorCommand):
    """Student, owner or admin withdraws a booking before check-in."""

    reason: str = Field(..., min_length=1, max_length=500)


class CreatePaymentOrderCommand(_BookingActorCommand):
    """Student asks for a gateway order covering the pending amount."""

    actor_role: ActorRole = ActorRole.STUDENT


class StayTransitionCommand(_BookingActorCommand):
    """Operational stamp during the stay (check-in, activate, check-out, complete)."""

    notes: Optional[str] = Field(None, max_length=500)
