import pytest

from hostel_booking.core.exceptions import (
    ConflictError,
    InsufficientInventoryError,
    InvalidReleaseError,
    NotFoundError,
    ValidationError,
)
from hostel_booking.models.base.enums import RoomType
from hostel_booking.services.inventory import InventoryLedger


@pytest.fixture
def ledger_session(session_factory):
    with session_factory() as session:
        yield session


def test_reserve_and_release_move_available_rooms(ledger_session, make_hostel):
    hostel_id = make_hostel(total_rooms=3)
    ledger = InventoryLedger(ledger_session)

    ledger.reserve(hostel_id, RoomType.DOUBLE)
    ledger.reserve(hostel_id, RoomType.DOUBLE)
    assert ledger.snapshot(hostel_id, RoomType.DOUBLE).available_rooms == 1

    ledger.release(hostel_id, RoomType.DOUBLE)
    snapshot = ledger.snapshot(hostel_id, RoomType.DOUBLE)
    assert snapshot.available_rooms == 2
    assert snapshot.reserved_rooms == 1


def test_reserve_beyond_availability_fails_without_change(ledger_session, make_hostel):
    hostel_id = make_hostel(total_rooms=2, available_rooms=1)
    ledger = InventoryLedger(ledger_session)

    with pytest.raises(InsufficientInventoryError):
        ledger.reserve(hostel_id, RoomType.DOUBLE, 2)

    assert ledger.snapshot(hostel_id, RoomType.DOUBLE).available_rooms == 1


def test_release_beyond_total_fails(ledger_session, make_hostel):
    hostel_id = make_hostel(total_rooms=2)
    ledger = InventoryLedger(ledger_session)

    with pytest.raises(InvalidReleaseError):
        ledger.release(hostel_id, RoomType.DOUBLE)

    assert ledger.snapshot(hostel_id, RoomType.DOUBLE).available_rooms == 2


def test_unknown_room_type_is_not_found(ledger_session, make_hostel):
    hostel_id = make_hostel(room_type=RoomType.DOUBLE)
    ledger = InventoryLedger(ledger_session)

    with pytest.raises(NotFoundError):
        ledger.reserve(hostel_id, RoomType.SINGLE)
    with pytest.raises(NotFoundError):
        ledger.release(hostel_id, RoomType.SINGLE)


@pytest.mark.parametrize("count", [0, -1])
def test_non_positive_counts_are_rejected(ledger_session, make_hostel, count):
    hostel_id = make_hostel()
    ledger = InventoryLedger(ledger_session)

    with pytest.raises(ValidationError):
        ledger.reserve(hostel_id, RoomType.DOUBLE, count)


def test_register_room_type(ledger_session, make_hostel):
    hostel_id = make_hostel(room_type=RoomType.DOUBLE)
    ledger = InventoryLedger(ledger_session)

    ledger.register_room_type(hostel_id, RoomType.SINGLE, 4, room_size="10x12")
    snapshot = ledger.snapshot(hostel_id, RoomType.SINGLE)
    assert snapshot.total_rooms == 4
    assert snapshot.available_rooms == 4

    with pytest.raises(ConflictError):
        ledger.register_room_type(hostel_id, RoomType.SINGLE, 2)


def test_adjust_total_rooms_keeps_reservations(ledger_session, make_hostel):
    hostel_id = make_hostel(total_rooms=5)
    ledger = InventoryLedger(ledger_session)
    ledger.reserve(hostel_id, RoomType.DOUBLE, 3)

    snapshot = ledger.adjust_total_rooms(hostel_id, RoomType.DOUBLE, 8)
    assert (snapshot.total_rooms, snapshot.available_rooms) == (8, 5)

    snapshot = ledger.adjust_total_rooms(hostel_id, RoomType.DOUBLE, 3)
    assert (snapshot.total_rooms, snapshot.available_rooms) == (3, 0)

    with pytest.raises(ConflictError):
        ledger.adjust_total_rooms(hostel_id, RoomType.DOUBLE, 2)
