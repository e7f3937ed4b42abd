"""
Payment endpoints for a booking: gateway order, confirmation, refund.
"""

from fastapi import APIRouter, Depends

from hostel_booking.api.deps import Actor, get_booking_service, require_roles
from hostel_booking.core.exceptions import ForbiddenError
from hostel_booking.models.base.enums import ActorRole
from hostel_booking.schemas.booking import (
    BookingResponse,
    CreatePaymentOrderCommand,
    PaymentOrderResponse,
)
from hostel_booking.schemas.payment import PaymentConfirmation
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService

router = APIRouter(prefix="/bookings", tags=["payments"])


@router.post("/{booking_reference}/payment/create-order", response_model=PaymentOrderResponse)
def create_payment_order(
    booking_reference: str,
    actor: Actor = Depends(require_roles(ActorRole.STUDENT)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.create_payment_order(CreatePaymentOrderCommand(
        booking_reference=booking_reference,
        actor_id=actor.id,
        actor_role=actor.role,
    ))


@router.post("/{booking_reference}/payment/verify", response_model=BookingResponse)
def verify_payment(
    booking_reference: str,
    confirmation: PaymentConfirmation,
    actor: Actor = Depends(require_roles(ActorRole.STUDENT)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_reference, actor.id, actor.role)
    if booking.student_id != actor.id:
        raise ForbiddenError("Only the booking's student can pay for it", actor_id=actor.id, action="pay")
    return service.record_payment(booking_reference, confirmation)


@router.post("/{booking_reference}/refund", response_model=BookingResponse)
def process_refund(
    booking_reference: str,
    actor: Actor = Depends(require_roles(ActorRole.OWNER, ActorRole.ADMIN)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    service.get_booking(booking_reference, actor.id, actor.role)
    return service.process_refund(booking_reference)
