"""
Booking models for hostel stays.

This module defines the booking entity with its pricing snapshot,
payment and cancellation sub-records, per-transition timestamps, and
the status history written alongside every status change.
"""

from datetime import date as Date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_booking.models.base.base_model import TimestampModel, enum_column
from hostel_booking.models.base.enums import (
    RESERVATION_HOLDING_STATUSES,
    ActorRole,
    BookingStatus,
    FoodType,
    MealPlan,
    PaymentMethod,
    RefundStatus,
    RoomType,
)
from hostel_booking.models.base.mixins import EmergencyContactMixin, VersionMixin
from hostel_booking.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from hostel_booking.models.hostel.hostel import Hostel

__all__ = [
    "Booking",
    "BookingStatusHistory",
]

_HOLDING_VALUES = ", ".join(
    f"'{status.value}'" for status in sorted(RESERVATION_HOLDING_STATUSES, key=lambda s: s.value)
)
# One reservation-holding booking per student, enforced by the database.
_HOLDING_PREDICATE = text(f"status IN ({_HOLDING_VALUES})")


class Booking(EmergencyContactMixin, VersionMixin, TimestampModel):
    """
    Hostel booking and its lifecycle state.

    Attributes:
        booking_reference: Unique human-readable reference (e.g. RV2610180042)
        student_id: Student holding the booking
        hostel_id: Hostel being booked
        owner_id: Hostel owner at booking time
        room_type: Room type reserved
        check_in_date / check_out_date: Stay dates
        duration_months: Billed stay length in months
        monthly_rent .. food_monthly_cost: Tariff snapshot at booking time
        total_amount / paid_amount / pending_amount: Running balance
        status: Current lifecycle status
        payment_*: Payment sub-record
        cancellation_reason .. refund_id: Cancellation sub-record
    """

    __tablename__ = "bookings"

    booking_reference: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique human-readable booking reference",
    )

    # References
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    hostel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # Stay details
    room_type: Mapped[RoomType] = mapped_column(enum_column(RoomType), nullable=False)
    check_in_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    check_out_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False)
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing snapshot (smallest currency unit)
    monthly_rent: Mapped[int] = mapped_column(Integer, nullable=False)
    security_deposit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    maintenance_charges: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    food_monthly_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Food selection
    food_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    food_type: Mapped[Optional[FoodType]] = mapped_column(enum_column(FoodType), nullable=True)
    meal_plan: Mapped[Optional[MealPlan]] = mapped_column(enum_column(MealPlan), nullable=True)

    status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    # Payment sub-record
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        enum_column(PaymentMethod), nullable=True
    )
    payment_order_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    payment_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    payment_signature: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Cancellation sub-record
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[Optional[ActorRole]] = mapped_column(enum_column(ActorRole), nullable=True)
    cancelled_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    refund_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    refund_status: Mapped[RefundStatus] = mapped_column(
        enum_column(RefundStatus),
        nullable=False,
        default=RefundStatus.NOT_APPLICABLE,
    )
    refund_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Transition timestamps (naive UTC)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expired_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    refund_processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    hostel: Mapped["Hostel"] = relationship(back_populates="bookings")
    status_history: Mapped[List["BookingStatusHistory"]] = relationship(
        back_populates="booking",
        order_by="BookingStatusHistory.changed_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("duration_months >= 1", name="ck_bookings_duration_positive"),
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_dates_ordered"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint(
            "paid_amount >= 0 AND paid_amount <= total_amount",
            name="ck_bookings_paid_within_total",
        ),
        CheckConstraint(
            "pending_amount = total_amount - paid_amount",
            name="ck_bookings_pending_balance",
        ),
        CheckConstraint("refund_amount >= 0", name="ck_bookings_refund_non_negative"),
        Index(
            "uq_bookings_student_holding",
            "student_id",
            unique=True,
            sqlite_where=_HOLDING_PREDICATE,
            postgresql_where=_HOLDING_PREDICATE,
        ),
        Index("ix_bookings_hostel_status", "hostel_id", "status"),
        Index("ix_bookings_owner_status", "owner_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(reference={self.booking_reference}, status={self.status})>"


@event.listens_for(Booking, "before_insert")
@event.listens_for(Booking, "before_update")
def recompute_pending_amount(mapper, connection, target: Booking) -> None:
    """Keep the pending balance derived from total and paid amounts."""
    target.pending_amount = (target.total_amount or 0) - (target.paid_amount or 0)


class BookingStatusHistory(TimestampModel):
    """
    Audit trail of booking status changes.

    One row per transition, written in the same transaction as the
    status change itself.
    """

    __tablename__ = "booking_status_history"

    booking_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[Optional[BookingStatus]] = mapped_column(
        enum_column(BookingStatus), nullable=True
    )
    to_status: Mapped[BookingStatus] = mapped_column(enum_column(BookingStatus), nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    changed_by_role: Mapped[Optional[ActorRole]] = mapped_column(
        enum_column(ActorRole), nullable=True
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    booking: Mapped["Booking"] = relationship(back_populates="status_history")

    def __repr__(self) -> str:
        return f"<BookingStatusHistory({self.from_status} -> {self.to_status})>"
