"""
Payment verification and gateway integration.
"""

from hostel_booking.services.payment.payment_gateway import (
    GatewayPayment,
    GatewayRefund,
    PaymentGateway,
    PaymentOrder,
    RazorpayGateway,
    call_with_retry,
)
from hostel_booking.services.payment.payment_verifier import (
    PaymentVerifier,
    VerifiedPayment,
    verify_signature,
)

__all__ = [
    "GatewayPayment",
    "GatewayRefund",
    "PaymentGateway",
    "PaymentOrder",
    "PaymentVerifier",
    "RazorpayGateway",
    "VerifiedPayment",
    "call_with_retry",
    "verify_signature",
]
