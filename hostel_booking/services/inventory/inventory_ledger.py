# hostel_booking/services/inventory/inventory_ledger.py
"""
Inventory ledger: available room counts per hostel and room type.

The ledger works inside the caller's session so that a reservation and
the booking it backs commit or roll back together.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from hostel_booking.core.exceptions import (
    ConflictError,
    InsufficientInventoryError,
    InvalidReleaseError,
    NotFoundError,
    ValidationError,
)
from hostel_booking.models.base.enums import RoomType
from hostel_booking.models.hostel.hostel import RoomInventory
from hostel_booking.repositories.hostel.inventory_repository import InventoryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventorySnapshot:
    hostel_id: str
    room_type: RoomType
    total_rooms: int
    available_rooms: int
    version: int

    @property
    def reserved_rooms(self) -> int:
        return self.total_rooms - self.available_rooms


def _inventory_key(hostel_id: str, room_type: RoomType) -> str:
    return f"{hostel_id}:{room_type.value}"


class InventoryLedger:
    """
    Reserve and release rooms with atomic conditional updates.

    `available_rooms` stays within [0, total_rooms] under any interleaving
    of concurrent callers.
    """

    def __init__(self, session: Session):
        self.repository = InventoryRepository(session)

    @staticmethod
    def _require_count(n: int) -> None:
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValidationError("Room count must be a positive integer", field="n")

    def _require_record(self, hostel_id: str, room_type: RoomType) -> None:
        if not self.repository.exists(hostel_id, room_type):
            raise NotFoundError("RoomInventory", _inventory_key(hostel_id, room_type))

    def reserve(self, hostel_id: str, room_type: RoomType, n: int = 1) -> None:
        """
        Take `n` rooms.

        Raises:
            ValidationError: If n < 1
            InsufficientInventoryError: If fewer than n rooms are available
            NotFoundError: If the hostel has no inventory for the room type
        """
        self._require_count(n)
        if self.repository.decrement_if_available(hostel_id, room_type, n):
            logger.debug(
                f"Reserved {n} room(s)",
                extra={"hostel_id": hostel_id, "room_type": room_type.value},
            )
            return

        self._require_record(hostel_id, room_type)
        raise InsufficientInventoryError(hostel_id, room_type.value, n)

    def release(self, hostel_id: str, room_type: RoomType, n: int = 1) -> None:
        """
        Return `n` rooms.

        Raises:
            ValidationError: If n < 1
            InvalidReleaseError: If the release would exceed the total
            NotFoundError: If the hostel has no inventory for the room type
        """
        self._require_count(n)
        if self.repository.increment_within_total(hostel_id, room_type, n):
            logger.debug(
                f"Released {n} room(s)",
                extra={"hostel_id": hostel_id, "room_type": room_type.value},
            )
            return

        self._require_record(hostel_id, room_type)
        raise InvalidReleaseError(hostel_id, room_type.value, n)

    def snapshot(self, hostel_id: str, room_type: RoomType) -> InventorySnapshot:
        record = self.repository.find(hostel_id, room_type)
        if record is None:
            raise NotFoundError("RoomInventory", _inventory_key(hostel_id, room_type))
        return InventorySnapshot(
            hostel_id=record.hostel_id,
            room_type=record.room_type,
            total_rooms=record.total_rooms,
            available_rooms=record.available_rooms,
            version=record.version,
        )

    def register_room_type(
        self,
        hostel_id: str,
        room_type: RoomType,
        total_rooms: int,
        room_size: str = None,
    ) -> RoomInventory:
        """
        Add a room type to a hostel with every room available.

        Raises:
            ValidationError: If total_rooms is negative
            ConflictError: If the room type is already registered
        """
        if isinstance(total_rooms, bool) or not isinstance(total_rooms, int) or total_rooms < 0:
            raise ValidationError("total_rooms must be a non-negative integer", field="total_rooms")
        if self.repository.exists(hostel_id, room_type):
            raise ConflictError(
                f"Room type {room_type.value} already registered for hostel {hostel_id}",
                details={"hostel_id": hostel_id, "room_type": room_type.value},
            )

        record = RoomInventory(
            hostel_id=hostel_id,
            room_type=room_type,
            total_rooms=total_rooms,
            available_rooms=total_rooms,
            room_size=room_size,
        )
        return self.repository.add(record)

    def adjust_total_rooms(self, hostel_id: str, room_type: RoomType, new_total: int) -> InventorySnapshot:
        """
        Change the number of rooms of a type, keeping existing reservations.

        Raises:
            ValidationError: If new_total is negative
            ConflictError: If new_total is below the rooms currently reserved
            NotFoundError: If the room type is not registered
        """
        if isinstance(new_total, bool) or not isinstance(new_total, int) or new_total < 0:
            raise ValidationError("new_total must be a non-negative integer", field="new_total")

        if not self.repository.resize_if_covers_reserved(hostel_id, room_type, new_total):
            current = self.snapshot(hostel_id, room_type)
            raise ConflictError(
                f"Cannot reduce {room_type.value} rooms to {new_total}; "
                f"{current.reserved_rooms} are reserved",
                details={
                    "hostel_id": hostel_id,
                    "room_type": room_type.value,
                    "reserved_rooms": current.reserved_rooms,
                    "requested_total": new_total,
                },
            )

        logger.info(
            f"Room count changed to {new_total}",
            extra={"hostel_id": hostel_id, "room_type": room_type.value},
        )
        return self.snapshot(hostel_id, room_type)
