"""
Booking endpoints: creation, owner decisions, cancellation and stay.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from hostel_booking.api.deps import Actor, get_actor, get_booking_service, require_roles
from hostel_booking.models.base.enums import ActorRole, BookingStatus
from hostel_booking.schemas.booking import (
    BookingCreateRequest,
    BookingPage,
    BookingResponse,
    BookingStats,
    BookingStatusHistoryResponse,
    CancelBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    ReasonRequest,
    RejectBookingCommand,
    StayNotesRequest,
    StayTransitionCommand,
)
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService

router = APIRouter(prefix="/bookings", tags=["bookings"])

owner_or_admin = require_roles(ActorRole.OWNER, ActorRole.ADMIN)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreateRequest,
    actor: Actor = Depends(require_roles(ActorRole.STUDENT)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    command = CreateBookingCommand(student_id=actor.id, **payload.model_dump())
    return service.create_booking(command)


@router.get("/mine", response_model=BookingPage)
def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    actor: Actor = Depends(require_roles(ActorRole.STUDENT, ActorRole.OWNER)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    if actor.role == ActorRole.OWNER:
        return service.list_owner_bookings(actor.id, status_filter, page, limit)
    return service.list_student_bookings(actor.id, status_filter, page, limit)


@router.get("/stats", response_model=BookingStats)
def booking_stats(
    actor: Actor = Depends(owner_or_admin),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    owner_id = actor.id if actor.role == ActorRole.OWNER else None
    return service.booking_stats(owner_id)


@router.get("/{booking_reference}", response_model=BookingResponse)
def get_booking(
    booking_reference: str,
    actor: Actor = Depends(get_actor),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.get_booking(booking_reference, actor.id, actor.role)


@router.get("/{booking_reference}/history", response_model=List[BookingStatusHistoryResponse])
def get_booking_history(
    booking_reference: str,
    actor: Actor = Depends(get_actor),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    service.get_booking(booking_reference, actor.id, actor.role)
    return service.get_status_history(booking_reference)


@router.put("/{booking_reference}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_reference: str,
    actor: Actor = Depends(require_roles(ActorRole.OWNER)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.confirm(ConfirmBookingCommand(
        booking_reference=booking_reference,
        actor_id=actor.id,
        actor_role=actor.role,
    ))


@router.put("/{booking_reference}/reject", response_model=BookingResponse)
def reject_booking(
    booking_reference: str,
    payload: ReasonRequest,
    actor: Actor = Depends(require_roles(ActorRole.OWNER)),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.reject(RejectBookingCommand(
        booking_reference=booking_reference,
        actor_id=actor.id,
        actor_role=actor.role,
        reason=payload.reason,
    ))


@router.put("/{booking_reference}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_reference: str,
    payload: ReasonRequest,
    actor: Actor = Depends(get_actor),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.cancel(CancelBookingCommand(
        booking_reference=booking_reference,
        actor_id=actor.id,
        actor_role=actor.role,
        reason=payload.reason,
    ))


def _stay_command(booking_reference: str, actor: Actor, payload: Optional[StayNotesRequest]) -> StayTransitionCommand:
    return StayTransitionCommand(
        booking_reference=booking_reference,
        actor_id=actor.id,
        actor_role=actor.role,
        notes=payload.notes if payload else None,
    )


@router.put("/{booking_reference}/check-in", response_model=BookingResponse)
def check_in(
    booking_reference: str,
    payload: Optional[StayNotesRequest] = None,
    actor: Actor = Depends(owner_or_admin),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.check_in(_stay_command(booking_reference, actor, payload))


@router.put("/{booking_reference}/activate", response_model=BookingResponse)
def activate(
    booking_reference: str,
    payload: Optional[StayNotesRequest] = None,
    actor: Actor = Depends(owner_or_admin),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.activate(_stay_command(booking_reference, actor, payload))


@router.put("/{booking_reference}/check-out", response_model=BookingResponse)
def check_out(
    booking_reference: str,
    payload: Optional[StayNotesRequest] = None,
    actor: Actor = Depends(owner_or_admin),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.check_out(_stay_command(booking_reference, actor, payload))


@router.put("/{booking_reference}/complete", response_model=BookingResponse)
def complete(
    booking_reference: str,
    payload: Optional[StayNotesRequest] = None,
    actor: Actor = Depends(owner_or_admin),
    service: BookingLifecycleService = Depends(get_booking_service),
):
    return service.complete(_stay_command(booking_reference, actor, payload))
