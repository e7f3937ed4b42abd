"""
Database enums for the booking engine.

Provides SQLAlchemy-compatible enum definitions that the Pydantic
schemas reuse for consistency.
"""

import enum


class ActorRole(str, enum.Enum):
    """Role of the user acting on a booking."""
    STUDENT = "student"
    OWNER = "owner"
    ADMIN = "admin"
    SYSTEM = "system"


class HostelStatus(str, enum.Enum):
    """Hostel listing status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"


class RoomType(str, enum.Enum):
    """Room type categorization."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUAD = "quad"


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAID = "paid"
    CHECKED_IN = "checked_in"
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    EXPIRED = "expired"


class RefundStatus(str, enum.Enum):
    """Refund processing status for a cancelled booking."""
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"


class PaymentMethod(str, enum.Enum):
    """Payment method enumeration."""
    ONLINE = "online"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"


class FoodType(str, enum.Enum):
    """Food preference offered by a hostel."""
    VEG = "veg"
    NON_VEG = "non_veg"
    BOTH = "both"


class MealPlan(str, enum.Enum):
    """Meal plan offered by a hostel."""
    BREAKFAST_ONLY = "breakfast_only"
    LUNCH_ONLY = "lunch_only"
    DINNER_ONLY = "dinner_only"
    BREAKFAST_DINNER = "breakfast_dinner"
    ALL_MEALS = "all_meals"


# Statuses in which a booking holds one unit of room inventory.
RESERVATION_HOLDING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.PAID,
    BookingStatus.CHECKED_IN,
    BookingStatus.ACTIVE,
})

TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
    BookingStatus.EXPIRED,
})

CANCELLABLE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.PAID,
})
