"""
Room inventory repository.

Every counter change is a single conditional UPDATE whose WHERE clause
carries the guard, so the database decides the outcome atomically and
concurrent callers racing for the last room see exactly one success.
Application code never reads a counter, decides, and writes it back.
"""

from typing import Optional

from sqlalchemy import and_, select, update
from sqlalchemy.orm import Session

from hostel_booking.models.base.enums import RoomType
from hostel_booking.models.hostel.hostel import RoomInventory
from hostel_booking.repositories.base.base_repository import BaseRepository


class InventoryRepository(BaseRepository[RoomInventory]):
    """Atomic counter operations over the room inventory table."""

    def __init__(self, session: Session):
        super().__init__(RoomInventory, session)

    def _key(self, hostel_id: str, room_type: RoomType):
        return and_(
            RoomInventory.hostel_id == hostel_id,
            RoomInventory.room_type == room_type,
        )

    def find(self, hostel_id: str, room_type: RoomType) -> Optional[RoomInventory]:
        """Read the current record, bypassing any stale identity-map copy."""
        stmt = (
            select(RoomInventory)
            .where(self._key(hostel_id, room_type))
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def exists(self, hostel_id: str, room_type: RoomType) -> bool:
        stmt = select(RoomInventory.id).where(self._key(hostel_id, room_type))
        return self.session.scalar(stmt) is not None

    def decrement_if_available(self, hostel_id: str, room_type: RoomType, count: int) -> bool:
        """
        Take `count` rooms if at least that many are available.

        Returns True when the row was updated.
        """
        stmt = (
            update(RoomInventory)
            .where(
                self._key(hostel_id, room_type),
                RoomInventory.available_rooms >= count,
            )
            .values(
                available_rooms=RoomInventory.available_rooms - count,
                version=RoomInventory.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def increment_within_total(self, hostel_id: str, room_type: RoomType, count: int) -> bool:
        """
        Return `count` rooms unless that would exceed the total.

        Returns True when the row was updated.
        """
        stmt = (
            update(RoomInventory)
            .where(
                self._key(hostel_id, room_type),
                RoomInventory.available_rooms + count <= RoomInventory.total_rooms,
            )
            .values(
                available_rooms=RoomInventory.available_rooms + count,
                version=RoomInventory.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def resize_if_covers_reserved(self, hostel_id: str, room_type: RoomType, new_total: int) -> bool:
        """
        Change the total room count, shifting availability by the same delta.

        Refused when the new total is smaller than the rooms currently reserved.
        """
        reserved = RoomInventory.total_rooms - RoomInventory.available_rooms
        stmt = (
            update(RoomInventory)
            .where(
                self._key(hostel_id, room_type),
                reserved <= new_total,
            )
            .values(
                available_rooms=new_total - reserved,
                total_rooms=new_total,
                version=RoomInventory.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
