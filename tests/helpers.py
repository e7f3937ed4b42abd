"""
Test doubles and small builders shared across test modules.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Tuple

from hostel_booking.models.base.enums import ActorRole, RoomType
from hostel_booking.models.hostel.hostel import RoomInventory
from hostel_booking.repositories.booking.booking_repository import BookingRepository
from hostel_booking.repositories.hostel.inventory_repository import InventoryRepository
from hostel_booking.schemas.booking import ConfirmBookingCommand, CreateBookingCommand, StayTransitionCommand
from hostel_booking.schemas.payment.payment_request import PaymentConfirmation
from hostel_booking.services.notification.notification_emitter import BookingEvent
from hostel_booking.services.payment.payment_verifier import expected_signature

NOW = datetime(2026, 10, 18, 9, 0, 0)
OWNER_ID = "owner-1"
GATEWAY_SECRET = "test_key_secret"
# 19 days 15 hours after NOW, which counts as 20 days until check-in.
CHECK_IN = date(2026, 11, 7)


class FixedClock:
    """Clock returning a settable naive-UTC time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self):
        self.events: List[Tuple[BookingEvent, Dict[str, Any]]] = []

    def notify(self, event: BookingEvent, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))

    @property
    def names(self) -> List[BookingEvent]:
        return [event for event, _ in self.events]


def booking_command(
    hostel_id: str,
    student_id: str = "student-1",
    check_in: date = CHECK_IN,
    duration_months: int = 6,
    room_type: RoomType = RoomType.DOUBLE,
    food_selected: bool = False,
) -> CreateBookingCommand:
    return CreateBookingCommand(
        student_id=student_id,
        hostel_id=hostel_id,
        room_type=room_type,
        check_in_date=check_in,
        check_out_date=check_in + timedelta(days=30 * duration_months),
        duration_months=duration_months,
        food_selected=food_selected,
    )


def confirm(service, booking_reference: str):
    return service.confirm(ConfirmBookingCommand(booking_reference=booking_reference, actor_id=OWNER_ID))


def inventory_of(session_factory, hostel_id: str, room_type: RoomType = RoomType.DOUBLE) -> RoomInventory:
    with session_factory() as session:
        return InventoryRepository(session).find(hostel_id, room_type)


def assert_inventory_consistent(session_factory, hostel_id: str, room_type: RoomType = RoomType.DOUBLE) -> None:
    """Reserved rooms must equal the bookings holding a reservation."""
    with session_factory() as session:
        record = InventoryRepository(session).find(hostel_id, room_type)
        holding = BookingRepository(session).count_holding(hostel_id, room_type)
        assert 0 <= record.available_rooms <= record.total_rooms
        assert record.total_rooms - record.available_rooms == holding


def signed_confirmation(order_id: str = "order_test_1", payment_id: str = "pay_test_1") -> PaymentConfirmation:
    return PaymentConfirmation(
        order_id=order_id,
        payment_id=payment_id,
        signature=expected_signature(order_id, payment_id, GATEWAY_SECRET),
    )


def stay_command(booking_reference: str, actor_id: str = OWNER_ID, actor_role: ActorRole = ActorRole.OWNER) -> StayTransitionCommand:
    return StayTransitionCommand(booking_reference=booking_reference, actor_id=actor_id, actor_role=actor_role)
