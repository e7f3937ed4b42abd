"""
Payment confirmation schema.

A confirmation is what the client relays back from the gateway
checkout. It is untrusted until its signature has been verified.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field

from hostel_booking.models.base.enums import PaymentMethod
from hostel_booking.schemas.common.base import BaseCommand

__all__ = ["PaymentConfirmation"]


class PaymentConfirmation(BaseCommand):
    """
    Gateway checkout result submitted by the client.

    Accepts both plain field names and the gateway's `razorpay_*` names.
    """

    order_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("order_id", "razorpay_order_id"),
    )
    payment_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("payment_id", "razorpay_payment_id"),
    )
    signature: str = Field(
        ...,
        min_length=1,
        max_length=128,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )
    payment_method: PaymentMethod = PaymentMethod.ONLINE
