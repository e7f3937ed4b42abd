from hostel_booking.schemas.booking.booking_request import (
    BookingCreateRequest,
    CancelBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    CreatePaymentOrderCommand,
    EmergencyContact,
    ReasonRequest,
    RejectBookingCommand,
    StayNotesRequest,
    StayTransitionCommand,
)
from hostel_booking.schemas.booking.booking_response import (
    BookingPage,
    BookingResponse,
    BookingStats,
    BookingStatusHistoryResponse,
    PaymentOrderResponse,
)

__all__ = [
    "BookingCreateRequest",
    "BookingPage",
    "BookingResponse",
    "BookingStats",
    "BookingStatusHistoryResponse",
    "CancelBookingCommand",
    "ConfirmBookingCommand",
    "CreateBookingCommand",
    "CreatePaymentOrderCommand",
    "EmergencyContact",
    "PaymentOrderResponse",
    "ReasonRequest",
    "RejectBookingCommand",
    "StayNotesRequest",
    "StayTransitionCommand",
]
