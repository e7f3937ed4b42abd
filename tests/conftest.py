"""
Shared fixtures: an in-memory database, a fixed clock, and fakes for
the payment gateway and notification emitter.
"""

from typing import Optional
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool

from hostel_booking.config.database import build_session_factory, create_db_engine, init_db
from hostel_booking.config.settings import Settings
from hostel_booking.models.base.enums import HostelStatus, RoomType
from hostel_booking.models.hostel.hostel import Hostel, RoomInventory
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService
from hostel_booking.services.payment.payment_gateway import (
    GatewayPayment,
    GatewayRefund,
    PaymentGateway,
    PaymentOrder,
)
from hostel_booking.services.payment.payment_verifier import PaymentVerifier

from tests.helpers import GATEWAY_SECRET, NOW, OWNER_ID, FixedClock, RecordingNotifier


@pytest.fixture
def config() -> Settings:
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET=GATEWAY_SECRET,
        CURRENCY="INR",
        PAYMENT_CAPTURE_CHECK=False,
        GATEWAY_MAX_RETRIES=3,
        GATEWAY_RETRY_BASE_DELAY=0.5,
        GATEWAY_RETRY_MAX_DELAY=8.0,
        BOOKING_CONFIRMATION_WINDOW_HOURS=48,
        BOOKING_PAYMENT_WINDOW_HOURS=72,
        CHECK_IN_GRACE_DAYS=3,
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway() -> MagicMock:
    gateway = MagicMock(spec=PaymentGateway)
    gateway.create_order.return_value = PaymentOrder(
        order_id="order_test_1",
        amount=50000,
        currency="INR",
        receipt="booking_test",
    )
    gateway.fetch_payment.return_value = GatewayPayment(
        payment_id="pay_test_1",
        status="captured",
        amount=50000,
        method="upi",
    )
    gateway.refund.return_value = GatewayRefund(
        refund_id="rfnd_test_1",
        payment_id="pay_test_1",
        amount=14000,
        status="processed",
    )
    return gateway


@pytest.fixture
def service(session_factory, gateway, notifier, config, clock) -> BookingLifecycleService:
    return BookingLifecycleService(
        session_factory,
        gateway=gateway,
        notifier=notifier,
        verifier=PaymentVerifier(GATEWAY_SECRET),
        config=config,
        clock=clock,
    )


@pytest.fixture
def make_hostel(session_factory):
    """Create an active, verified hostel with inventory for one room type."""

    def _make(
        monthly_rent: int = 8000,
        security_deposit: int = 2000,
        maintenance_charges: int = 0,
        food_available: bool = False,
        food_monthly_cost: int = 0,
        room_type: RoomType = RoomType.DOUBLE,
        total_rooms: int = 5,
        available_rooms: Optional[int] = None,
        status: HostelStatus = HostelStatus.ACTIVE,
        is_verified: bool = True,
        owner_id: str = OWNER_ID,
    ) -> str:
        with session_factory() as session:
            hostel = Hostel(
                name="Riverside Hostel",
                owner_id=owner_id,
                status=status,
                is_verified=is_verified,
                monthly_rent=monthly_rent,
                security_deposit=security_deposit,
                maintenance_charges=maintenance_charges,
                food_available=food_available,
                food_monthly_cost=food_monthly_cost,
            )
            session.add(hostel)
            session.flush()
            session.add(RoomInventory(
                hostel_id=hostel.id,
                room_type=room_type,
                total_rooms=total_rooms,
                available_rooms=total_rooms if available_rooms is None else available_rooms,
            ))
            session.commit()
            return hostel.id

    return _make


@pytest.fixture
def hostel_id(make_hostel) -> str:
    """Hostel pricing a six-month stay at 50000."""
    return make_hostel()
