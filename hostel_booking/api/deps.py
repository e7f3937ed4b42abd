"""
Request dependencies for the booking API.

Authentication happens upstream; the gateway in front of this service
forwards the caller's identity in the X-Actor-Id and X-Actor-Role
headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, Request

from hostel_booking.core.exceptions import ForbiddenError
from hostel_booking.models.base.enums import ActorRole
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole


def get_actor(
    x_actor_id: str = Header(..., min_length=1, max_length=36),
    x_actor_role: ActorRole = Header(...),
) -> Actor:
    return Actor(id=x_actor_id, role=x_actor_role)


def get_booking_service(request: Request) -> BookingLifecycleService:
    return request.app.state.booking_service


def require_roles(*roles: ActorRole):
    """Dependency factory rejecting actors outside `roles`."""
    def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise ForbiddenError(
                f"Role '{actor.role.value}' may not perform this action",
                actor_id=actor.id,
            )
        return actor
    return dependency
