# hostel_booking/repositories/booking/booking_repository.py
"""
Booking repository.

Status changes go through `transition`, a compare-and-swap on the
status the caller observed, so two concurrent writers can never both
move the same booking.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from hostel_booking.models.base.enums import (
    RESERVATION_HOLDING_STATUSES,
    ActorRole,
    BookingStatus,
    RoomType,
)
from hostel_booking.models.booking.booking import Booking, BookingStatusHistory
from hostel_booking.repositories.base.base_repository import BaseRepository
from hostel_booking.utils.datetime_utils import utc_now


class BookingRepository(BaseRepository[Booking]):
    """Persistence and queries for bookings and their status history."""

    def __init__(self, session: Session):
        super().__init__(Booking, session)

    # ==================== Lookups ====================

    def find_by_reference(self, booking_reference: str) -> Optional[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.booking_reference == booking_reference)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def find_holding_for_student(self, student_id: str) -> Optional[Booking]:
        """Booking of the student that currently holds a reservation, if any."""
        stmt = select(Booking).where(
            Booking.student_id == student_id,
            Booking.status.in_(RESERVATION_HOLDING_STATUSES),
        )
        return self.session.scalars(stmt).first()

    def count_holding(self, hostel_id: str, room_type: RoomType) -> int:
        """Number of bookings currently holding a reservation on a room type."""
        stmt = select(func.count(Booking.id)).where(
            Booking.hostel_id == hostel_id,
            Booking.room_type == room_type,
            Booking.status.in_(RESERVATION_HOLDING_STATUSES),
        )
        return self.session.scalar(stmt) or 0

    def find_expiry_candidates(
        self,
        pending_created_before: datetime,
        confirmed_before: datetime,
        paid_check_in_before: date,
        limit: int = 100,
    ) -> List[str]:
        """
        References of bookings whose confirmation or payment window elapsed,
        or whose check-in grace period passed without a check-in.
        """
        stmt = (
            select(Booking.booking_reference)
            .where(
                or_(
                    (Booking.status == BookingStatus.PENDING)
                    & (Booking.created_at < pending_created_before),
                    (Booking.status == BookingStatus.CONFIRMED)
                    & (Booking.confirmed_at < confirmed_before),
                    (Booking.status == BookingStatus.PAID)
                    & (Booking.check_in_date < paid_check_in_before),
                )
            )
            .order_by(Booking.created_at)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def stats_by_status(self, owner_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Count, total amount and paid amount per status."""
        stmt = select(
            Booking.status,
            func.count(Booking.id),
            func.coalesce(func.sum(Booking.total_amount), 0),
            func.coalesce(func.sum(Booking.paid_amount), 0),
        ).group_by(Booking.status)
        if owner_id is not None:
            stmt = stmt.where(Booking.owner_id == owner_id)

        return [
            {
                "status": status,
                "count": count,
                "total_amount": int(total),
                "paid_amount": int(paid),
            }
            for status, count, total, paid in self.session.execute(stmt)
        ]

    def revenue(self, owner_id: Optional[str], statuses: Iterable[BookingStatus]) -> Dict[str, int]:
        """Collected revenue and average booking value over the given statuses."""
        stmt = select(
            func.coalesce(func.sum(Booking.paid_amount), 0),
            func.coalesce(func.avg(Booking.total_amount), 0),
        ).where(Booking.status.in_(list(statuses)))
        if owner_id is not None:
            stmt = stmt.where(Booking.owner_id == owner_id)

        total, average = self.session.execute(stmt).one()
        return {"total_revenue": int(total), "average_booking_value": int(average)}

    # ==================== Conditional Updates ====================

    def transition(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        new_status: Optional[BookingStatus] = None,
        **values: Any,
    ) -> bool:
        """
        Update a booking only if it is still in `expected_status`.

        `new_status=None` updates fields without changing status (for
        example storing a payment order id). Returns True when the row
        was updated; False means another writer moved it first.
        """
        if new_status is not None:
            values["status"] = new_status
        if "paid_amount" in values:
            values["pending_amount"] = Booking.total_amount - values["paid_amount"]
        values["version"] = Booking.version + 1
        values.setdefault("updated_at", utc_now())

        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def update_refund(self, booking_id: str, expected_refund_status, **values: Any) -> bool:
        """Compare-and-swap on refund status for a cancelled booking."""
        values["version"] = Booking.version + 1
        values.setdefault("updated_at", utc_now())
        stmt = (
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.status == BookingStatus.CANCELLED,
                Booking.refund_status == expected_refund_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def refresh(self, booking: Booking) -> Booking:
        self.session.refresh(booking)
        return booking

    # ==================== History ====================

    def add_history(
        self,
        booking_id: str,
        from_status: Optional[BookingStatus],
        to_status: BookingStatus,
        changed_by: Optional[str],
        changed_by_role: Optional[ActorRole],
        reason: Optional[str] = None,
        changed_at: Optional[datetime] = None,
    ) -> BookingStatusHistory:
        entry = BookingStatusHistory(
            booking_id=booking_id,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            changed_by_role=changed_by_role,
            reason=reason,
            changed_at=changed_at or utc_now(),
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def history(self, booking_id: str) -> List[BookingStatusHistory]:
        stmt = (
            select(BookingStatusHistory)
            .where(BookingStatusHistory.booking_id == booking_id)
            .order_by(BookingStatusHistory.changed_at, BookingStatusHistory.created_at)
        )
        return list(self.session.scalars(stmt))
