"""
Booking response schemas for API responses.
"""

from datetime import date as Date, datetime
from typing import Dict, List, Optional

from pydantic import Field, computed_field

from hostel_booking.models.base.enums import (
    ActorRole,
    BookingStatus,
    FoodType,
    MealPlan,
    RefundStatus,
    RoomType,
)
from hostel_booking.schemas.common.base import BaseResponseSchema, BaseSchema

__all__ = [
    "BookingResponse",
    "BookingPage",
    "BookingStatusHistoryResponse",
    "BookingStats",
    "PaymentOrderResponse",
]


class BookingResponse(BaseResponseSchema):
    """
    Standard booking response schema.

    Amounts are in the smallest currency unit.
    """

    booking_reference: str
    student_id: str
    hostel_id: str
    owner_id: str
    room_type: RoomType
    check_in_date: Date
    check_out_date: Date
    duration_months: int
    special_requests: Optional[str] = None

    monthly_rent: int
    security_deposit: int
    maintenance_charges: int
    food_monthly_cost: int
    total_amount: int
    paid_amount: int
    pending_amount: int

    food_selected: bool
    food_type: Optional[FoodType] = None
    meal_plan: Optional[MealPlan] = None

    status: BookingStatus
    payment_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[ActorRole] = None
    refund_amount: int = 0
    refund_status: RefundStatus = RefundStatus.NOT_APPLICABLE
    refund_id: Optional[str] = None

    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    version: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_fully_paid(self) -> bool:
        return self.pending_amount == 0


class BookingStatusHistoryResponse(BaseSchema):
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    changed_by: Optional[str] = None
    changed_by_role: Optional[ActorRole] = None
    reason: Optional[str] = None
    changed_at: datetime


class BookingPage(BaseSchema):
    """One page of bookings with pagination metadata."""

    bookings: List[BookingResponse]
    current_page: int
    total_pages: int
    total_bookings: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_prev(self) -> bool:
        return self.current_page > 1


class StatusBreakdown(BaseSchema):
    status: BookingStatus
    count: int
    total_amount: int
    paid_amount: int


class BookingStats(BaseSchema):
    """Booking counts and revenue, optionally scoped to one owner."""

    total_bookings: int
    active_bookings: int
    pending_bookings: int
    total_revenue: int
    average_booking_value: int
    status_breakdown: List[StatusBreakdown] = Field(default_factory=list)


class PaymentOrderResponse(BaseSchema):
    """Gateway order the client uses to collect payment."""

    order_id: str
    amount: int
    currency: str
    key_id: Optional[str] = None
    booking_reference: str
    notes: Dict[str, str] = Field(default_factory=dict)
