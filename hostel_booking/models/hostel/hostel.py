"""
Hostel and room inventory models.

The inventory table is the authoritative ledger of total and available
rooms per hostel and room type. Its counters are only ever changed by
conditional UPDATE statements issued from the inventory repository.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_booking.models.base.base_model import TimestampModel, enum_column
from hostel_booking.models.base.enums import FoodType, HostelStatus, MealPlan, RoomType
from hostel_booking.models.base.mixins import VersionMixin

if TYPE_CHECKING:
    from hostel_booking.models.booking.booking import Booking

__all__ = ["Hostel", "RoomInventory"]


class Hostel(TimestampModel):
    """
    Hostel listing with its pricing and food plan.

    Pricing is hostel-wide; every room type shares the same tariff.
    Amounts are integers in the smallest currency unit.
    """

    __tablename__ = "hostels"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="User who owns the hostel",
    )
    status: Mapped[HostelStatus] = mapped_column(
        enum_column(HostelStatus),
        nullable=False,
        default=HostelStatus.UNDER_REVIEW,
        index=True,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Pricing
    monthly_rent: Mapped[int] = mapped_column(Integer, nullable=False)
    security_deposit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    maintenance_charges: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Food options
    food_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    food_type: Mapped[FoodType] = mapped_column(
        enum_column(FoodType), nullable=False, default=FoodType.VEG
    )
    meal_plan: Mapped[MealPlan] = mapped_column(
        enum_column(MealPlan), nullable=False, default=MealPlan.ALL_MEALS
    )
    food_monthly_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    inventory: Mapped[List["RoomInventory"]] = relationship(
        back_populates="hostel",
        cascade="all, delete-orphan",
    )
    bookings: Mapped[List["Booking"]] = relationship(back_populates="hostel")

    __table_args__ = (
        CheckConstraint("monthly_rent >= 0", name="ck_hostels_rent_non_negative"),
        CheckConstraint("security_deposit >= 0", name="ck_hostels_deposit_non_negative"),
        CheckConstraint("maintenance_charges >= 0", name="ck_hostels_maintenance_non_negative"),
        CheckConstraint("food_monthly_cost >= 0", name="ck_hostels_food_non_negative"),
    )

    @property
    def is_bookable(self) -> bool:
        """Only active, verified hostels accept bookings."""
        return self.status == HostelStatus.ACTIVE and self.is_verified

    def food_cost_for(self, food_selected: bool) -> int:
        """Monthly food cost charged for a booking."""
        return self.food_monthly_cost if food_selected and self.food_available else 0

    def __repr__(self) -> str:
        return f"<Hostel(id={self.id}, name={self.name!r}, status={self.status})>"


class RoomInventory(VersionMixin, TimestampModel):
    """
    Total and available room counts for one room type of one hostel.

    `total_rooms - available_rooms` is the number of bookings currently
    holding a reservation on this room type.
    """

    __tablename__ = "room_inventory"

    hostel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("hostels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_type: Mapped[RoomType] = mapped_column(enum_column(RoomType), nullable=False)
    total_rooms: Mapped[int] = mapped_column(Integer, nullable=False)
    available_rooms: Mapped[int] = mapped_column(Integer, nullable=False)
    room_size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    hostel: Mapped["Hostel"] = relationship(back_populates="inventory")

    __table_args__ = (
        UniqueConstraint("hostel_id", "room_type", name="uq_room_inventory_hostel_room_type"),
        CheckConstraint("total_rooms >= 0", name="ck_room_inventory_total_non_negative"),
        CheckConstraint(
            "available_rooms >= 0 AND available_rooms <= total_rooms",
            name="ck_room_inventory_available_within_total",
        ),
    )

    @property
    def reserved_rooms(self) -> int:
        return self.total_rooms - self.available_rooms

    def __repr__(self) -> str:
        return (
            f"<RoomInventory(hostel_id={self.hostel_id}, room_type={self.room_type}, "
            f"available={self.available_rooms}/{self.total_rooms})>"
        )
