from hostel_booking.services.notification.notification_emitter import (
    BookingEvent,
    LoggingNotificationEmitter,
    NotificationEmitter,
    emit_safely,
)

__all__ = [
    "BookingEvent",
    "LoggingNotificationEmitter",
    "NotificationEmitter",
    "emit_safely",
]
