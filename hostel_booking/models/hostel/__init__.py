from hostel_booking.models.hostel.hostel import Hostel, RoomInventory

__all__ = ["Hostel", "RoomInventory"]
