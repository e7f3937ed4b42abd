"""
Repository layer.

Repositories wrap a session owned by a UnitOfWork and never commit.
"""

from hostel_booking.repositories.base import BaseRepository
from hostel_booking.repositories.booking import BookingRepository
from hostel_booking.repositories.hostel import HostelRepository, InventoryRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "HostelRepository",
    "InventoryRepository",
]
