# hostel_booking/services/notification/notification_emitter.py
"""
Booking event notifications.

Delivery (email, SMS, push, sockets) lives outside the engine. The
engine hands committed events to a `NotificationEmitter`; a failing
emitter never undoes or fails a booking operation.
"""

import enum
import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class BookingEvent(str, enum.Enum):
    """Events emitted after a booking change commits."""
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_EXPIRED = "booking_expired"
    EXPIRED_WITH_PAYMENT = "expired_with_payment"
    PAYMENT_RECEIVED = "payment_received"
    REFUND_PROCESSED = "refund_processed"
    REFUND_FAILED = "refund_failed"
    CHECKED_IN = "checked_in"
    STAY_ACTIVATED = "stay_activated"
    CHECKED_OUT = "checked_out"
    STAY_COMPLETED = "stay_completed"


class NotificationEmitter(Protocol):
    def notify(self, event: BookingEvent, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationEmitter:
    """Emitter that records events in the application log."""

    def notify(self, event: BookingEvent, payload: Dict[str, Any]) -> None:
        logger.info(
            f"Booking event: {event.value}",
            extra={
                "booking_reference": payload.get("booking_reference"),
                "operation": event.value,
            },
        )


def emit_safely(emitter: NotificationEmitter, event: BookingEvent, payload: Dict[str, Any]) -> None:
    """Fire-and-forget delivery; emitter failures are logged and dropped."""
    try:
        emitter.notify(event, payload)
    except Exception as e:
        logger.error(
            f"Notification {event.value} failed: {str(e)}",
            exc_info=True,
            extra={"booking_reference": payload.get("booking_reference")},
        )
