from hostel_booking.models.booking.booking import Booking, BookingStatusHistory

__all__ = ["Booking", "BookingStatusHistory"]
