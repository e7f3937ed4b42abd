# hostel_booking/services/payment/payment_verifier.py
"""
Payment confirmation verification.

The gateway signs `"{order_id}|{payment_id}"` with the merchant secret
using HMAC-SHA256. A confirmation whose signature does not reproduce is
rejected before it can touch any booking.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from hostel_booking.core.exceptions import InvalidSignatureError, PaymentVerificationError
from hostel_booking.models.base.enums import PaymentMethod
from hostel_booking.schemas.payment.payment_request import PaymentConfirmation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedPayment:
    """A payment confirmation whose signature has been checked."""

    order_id: str
    payment_id: str
    signature: str
    payment_method: PaymentMethod = PaymentMethod.ONLINE


def expected_signature(order_id: str, payment_id: str, secret: str) -> str:
    payload = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> None:
    """
    Check a gateway signature in constant time.

    Raises:
        InvalidSignatureError: If the signature does not match
    """
    generated = expected_signature(order_id, payment_id, secret)
    # bytes, since compare_digest rejects non-ASCII str
    if not hmac.compare_digest(generated.encode(), (signature or "").encode("utf-8")):
        logger.warning(
            "Payment signature mismatch",
            extra={"order_id": order_id, "payment_id": payment_id},
        )
        raise InvalidSignatureError(order_id, payment_id)


class PaymentVerifier:
    """Verifies payment confirmations against the merchant secret."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret

    def verify(self, confirmation: PaymentConfirmation) -> VerifiedPayment:
        if not self._secret:
            raise PaymentVerificationError("Payment verification secret is not configured")

        verify_signature(
            confirmation.order_id,
            confirmation.payment_id,
            confirmation.signature,
            self._secret,
        )
        return VerifiedPayment(
            order_id=confirmation.order_id,
            payment_id=confirmation.payment_id,
            signature=confirmation.signature,
            payment_method=confirmation.payment_method,
        )
