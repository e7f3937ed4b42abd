"""
Base models package.

Provides base classes, mixins and enums for all database models.
"""

from hostel_booking.models.base.base_model import Base, BaseModel, TimestampModel, enum_column
from hostel_booking.models.base.enums import (
    CANCELLABLE_STATUSES,
    RESERVATION_HOLDING_STATUSES,
    TERMINAL_STATUSES,
    ActorRole,
    BookingStatus,
    FoodType,
    HostelStatus,
    MealPlan,
    PaymentMethod,
    RefundStatus,
    RoomType,
)
from hostel_booking.models.base.mixins import EmergencyContactMixin, VersionMixin

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "enum_column",
    "EmergencyContactMixin",
    "VersionMixin",
    "ActorRole",
    "BookingStatus",
    "FoodType",
    "HostelStatus",
    "MealPlan",
    "PaymentMethod",
    "RefundStatus",
    "RoomType",
    "CANCELLABLE_STATUSES",
    "RESERVATION_HOLDING_STATUSES",
    "TERMINAL_STATUSES",
]
