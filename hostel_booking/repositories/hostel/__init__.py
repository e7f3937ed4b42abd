from hostel_booking.repositories.hostel.hostel_repository import HostelRepository
from hostel_booking.repositories.hostel.inventory_repository import InventoryRepository

__all__ = ["HostelRepository", "InventoryRepository"]
