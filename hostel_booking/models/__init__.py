# models/__init__.py
from hostel_booking.models.base import Base
from hostel_booking.models.booking import Booking, BookingStatusHistory
from hostel_booking.models.hostel import Hostel, RoomInventory

__all__ = [
    "Base",
    "Booking",
    "BookingStatusHistory",
    "Hostel",
    "RoomInventory",
]
