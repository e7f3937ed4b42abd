from hostel_booking.schemas.payment.payment_request import PaymentConfirmation

__all__ = ["PaymentConfirmation"]
