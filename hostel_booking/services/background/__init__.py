from hostel_booking.services.background.booking_expiry_service import (
    BookingExpiryService,
    ExpirySweeper,
    SweepConfig,
    SweepResult,
)

__all__ = ["BookingExpiryService", "ExpirySweeper", "SweepConfig", "SweepResult"]
