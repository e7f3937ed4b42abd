# hostel_booking/services/booking/booking_lifecycle_service.py
"""
Booking lifecycle service.

Drives a booking from request to completion:

    pending -> confirmed -> paid -> checked_in -> active -> checked_out -> completed

with cancelled, rejected and expired as alternate terminals. Each
operation runs in one UnitOfWork, so a status change and the inventory
movement it implies commit together or not at all. Status changes are
compare-and-swap updates on the status that was read; a concurrent
writer that got there first turns into InvalidTransitionError.

Gateway calls happen outside any open transaction. Notifications are
sent only after the transaction has committed.
"""

import logging
import math
import time
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hostel_booking.config.settings import Settings, settings as default_settings
from hostel_booking.core.exceptions import (
    AlreadyPaidError,
    BaseAppException,
    ConflictError,
    DuplicateActiveBookingError,
    ExternalServiceError,
    ForbiddenError,
    HostelUnavailableError,
    InsufficientInventoryError,
    InvalidTransitionError,
    NotFoundError,
    PaymentVerificationError,
    RoomUnavailableError,
    TransactionError,
    ValidationError,
)
from hostel_booking.models.base.enums import (
    CANCELLABLE_STATUSES,
    RESERVATION_HOLDING_STATUSES,
    ActorRole,
    BookingStatus,
    RefundStatus,
)
from hostel_booking.models.booking.booking import Booking
from hostel_booking.repositories.booking.booking_repository import BookingRepository
from hostel_booking.repositories.hostel.hostel_repository import HostelRepository
from hostel_booking.schemas.booking.booking_request import (
    CancelBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    CreatePaymentOrderCommand,
    RejectBookingCommand,
    StayTransitionCommand,
)
from hostel_booking.schemas.booking.booking_response import (
    BookingPage,
    BookingResponse,
    BookingStats,
    BookingStatusHistoryResponse,
    PaymentOrderResponse,
)
from hostel_booking.schemas.payment.payment_request import PaymentConfirmation
from hostel_booking.services.booking.booking_pricing_service import price_for_hostel
from hostel_booking.services.booking.booking_reference import (
    ReferenceGenerator,
    generate_booking_reference,
)
from hostel_booking.services.booking.booking_state_machine import (
    TRANSITION_TIMESTAMPS,
    validate_transition,
)
from hostel_booking.services.booking.refund_policy_service import RefundSnapshot, quote_refund
from hostel_booking.services.common.unit_of_work import UnitOfWork
from hostel_booking.services.inventory.inventory_ledger import InventoryLedger
from hostel_booking.services.notification.notification_emitter import (
    BookingEvent,
    LoggingNotificationEmitter,
    NotificationEmitter,
    emit_safely,
)
from hostel_booking.services.payment.payment_gateway import PaymentGateway, RazorpayGateway
from hostel_booking.services.payment.payment_verifier import PaymentVerifier, VerifiedPayment
from hostel_booking.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

# Statuses whose payment has been collected, for revenue figures.
REVENUE_STATUSES = frozenset({
    BookingStatus.PAID,
    BookingStatus.CHECKED_IN,
    BookingStatus.ACTIVE,
    BookingStatus.CHECKED_OUT,
    BookingStatus.COMPLETED,
})

STAFF_ROLES = frozenset({ActorRole.OWNER, ActorRole.ADMIN})


def track_performance(operation_name: str):
    """Decorator to log operation outcome and duration."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except BaseAppException as e:
                duration = time.perf_counter() - start_time
                logger.warning(
                    f"Operation '{operation_name}' rejected after {duration:.3f}s: {e}",
                    extra={
                        "operation": operation_name,
                        "duration_seconds": duration,
                        "error_code": e.error_code.value,
                    },
                )
                raise
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(
                    f"Operation '{operation_name}' failed after {duration:.3f}s: {str(e)}",
                    extra={
                        "operation": operation_name,
                        "duration_seconds": duration,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                raise

            duration = time.perf_counter() - start_time
            logger.info(
                f"Operation '{operation_name}' completed in {duration:.3f}s",
                extra={"operation": operation_name, "duration_seconds": duration},
            )
            return result
        return wrapper
    return decorator


def _integrity_error(exc: BaseException) -> Optional[IntegrityError]:
    """The IntegrityError behind a flush or commit failure, if any."""
    if isinstance(exc, IntegrityError):
        return exc
    if isinstance(exc, TransactionError) and isinstance(exc.original_error, IntegrityError):
        return exc.original_error
    return None


def _event_payload(booking: Booking, **extra: Any) -> Dict[str, Any]:
    payload = {
        "booking_reference": booking.booking_reference,
        "student_id": booking.student_id,
        "owner_id": booking.owner_id,
        "hostel_id": booking.hostel_id,
        "status": booking.status.value,
    }
    payload.update(extra)
    return payload


class BookingLifecycleService:
    """
    Booking operations for students, hostel owners and admins.

    Every collaborator is injected; the defaults build the production
    ones from settings.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        gateway: Optional[PaymentGateway] = None,
        notifier: Optional[NotificationEmitter] = None,
        verifier: Optional[PaymentVerifier] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
        reference_generator: Optional[ReferenceGenerator] = None,
    ):
        self.session_factory = session_factory
        self.config = config or default_settings
        self.gateway = gateway or RazorpayGateway(config=self.config)
        self.notifier = notifier or LoggingNotificationEmitter()
        self.verifier = verifier or PaymentVerifier(self.config.RAZORPAY_KEY_SECRET)
        self.clock = clock
        self.reference_generator = reference_generator or (
            lambda now: generate_booking_reference(now, self.config.BOOKING_REFERENCE_PREFIX)
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _uow(self) -> UnitOfWork:
        return UnitOfWork(self.session_factory)

    @staticmethod
    def _load(uow: UnitOfWork, booking_reference: str) -> Booking:
        booking = uow.get_repo(BookingRepository).find_by_reference(booking_reference.upper())
        if booking is None:
            raise NotFoundError("Booking", booking_reference)
        return booking

    def _transition(
        self,
        uow: UnitOfWork,
        booking: Booking,
        target: BookingStatus,
        actor_id: Optional[str],
        actor_role: ActorRole,
        now: datetime,
        reason: Optional[str] = None,
        **values: Any,
    ) -> Booking:
        """
        Move a booking to `target`, releasing its room when it stops
        holding one, and record the change in the status history.
        """
        prior = booking.status
        validate_transition(booking.booking_reference, prior, target)

        values[TRANSITION_TIMESTAMPS[target]] = now
        bookings = uow.get_repo(BookingRepository)
        if not bookings.transition(booking.id, prior, target, updated_at=now, **values):
            current = bookings.refresh(booking).status
            raise InvalidTransitionError(
                booking.booking_reference,
                current.value,
                target.value,
                message=(
                    f"Booking {booking.booking_reference} changed concurrently "
                    f"(now '{current.value}')"
                ),
            )

        if prior in RESERVATION_HOLDING_STATUSES and target not in RESERVATION_HOLDING_STATUSES:
            InventoryLedger(uow.session).release(booking.hostel_id, booking.room_type)

        bookings.add_history(
            booking.id,
            from_status=prior,
            to_status=target,
            changed_by=actor_id,
            changed_by_role=actor_role,
            reason=reason,
            changed_at=now,
        )
        logger.info(
            f"Booking moved from {prior.value} to {target.value}",
            extra={"booking_reference": booking.booking_reference, "actor_id": actor_id},
        )
        return bookings.refresh(booking)

    @staticmethod
    def _require_owner(booking: Booking, actor_id: str, action: str) -> None:
        if booking.owner_id != actor_id:
            raise ForbiddenError(
                f"Only the hostel owner can {action} this booking",
                actor_id=actor_id,
                action=action,
            )

    @staticmethod
    def _require_staff(booking: Booking, actor_id: str, actor_role: ActorRole, action: str) -> None:
        if actor_role == ActorRole.ADMIN or booking.owner_id == actor_id:
            return
        raise ForbiddenError(
            f"Only the hostel owner or an admin can {action} this booking",
            actor_id=actor_id,
            action=action,
        )

    @staticmethod
    def _party_role(booking: Booking, actor_id: Optional[str], actor_role: Optional[ActorRole]) -> Optional[ActorRole]:
        """Role in which the actor relates to the booking, or None for outsiders."""
        if actor_id is not None and actor_id == booking.student_id:
            return ActorRole.STUDENT
        if actor_id is not None and actor_id == booking.owner_id:
            return ActorRole.OWNER
        if actor_role == ActorRole.ADMIN:
            return ActorRole.ADMIN
        return None

    def _is_stale(self, booking: Booking, now: datetime) -> bool:
        if booking.status == BookingStatus.PENDING:
            window = timedelta(hours=self.config.BOOKING_CONFIRMATION_WINDOW_HOURS)
            return booking.created_at < now - window
        if booking.status == BookingStatus.CONFIRMED:
            window = timedelta(hours=self.config.BOOKING_PAYMENT_WINDOW_HOURS)
            return booking.confirmed_at is not None and booking.confirmed_at < now - window
        if booking.status == BookingStatus.PAID:
            grace = timedelta(days=self.config.CHECK_IN_GRACE_DAYS)
            return booking.check_in_date + grace < now.date()
        return False

    def _expire(self, uow: UnitOfWork, booking: Booking, now: datetime) -> Booking:
        reason = f"Expired while {booking.status.value}"
        if booking.paid_amount > 0:
            # Staff settle these by hand; the history row marks them.
            reason += f"; payment of {booking.paid_amount} held without refund"
            logger.warning(
                "Paid booking expired without check-in",
                extra={"booking_reference": booking.booking_reference, "paid_amount": booking.paid_amount},
            )
        return self._transition(
            uow,
            booking,
            BookingStatus.EXPIRED,
            actor_id=None,
            actor_role=ActorRole.SYSTEM,
            now=now,
            reason=reason,
            refund_status=RefundStatus.NOT_APPLICABLE,
        )

    def _emit_expired(self, booking: Booking) -> None:
        emit_safely(self.notifier, BookingEvent.BOOKING_EXPIRED, _event_payload(booking))
        if booking.paid_amount > 0:
            emit_safely(
                self.notifier,
                BookingEvent.EXPIRED_WITH_PAYMENT,
                _event_payload(booking, paid_amount=booking.paid_amount),
            )

    # ------------------------------------------------------------------ #
    # Booking creation
    # ------------------------------------------------------------------ #

    @track_performance("create_booking")
    def create_booking(self, command: CreateBookingCommand) -> BookingResponse:
        """
        Reserve a room and record a pending booking.

        Raises:
            ValidationError: Past check-in, bad dates, or food not offered
            NotFoundError: Unknown hostel
            HostelUnavailableError: Hostel not active and verified
            DuplicateActiveBookingError: Student already holds a booking
            RoomUnavailableError: No room of the type is available
        """
        now = self.clock()
        if command.check_in_date < now.date():
            raise ValidationError("Check-in date cannot be in the past", field="check_in_date")
        if command.check_out_date <= command.check_in_date:
            raise ValidationError("Check-out date must be after check-in date", field="check_out_date")

        max_attempts = self.config.BOOKING_REFERENCE_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            reference = self.reference_generator(now)
            try:
                with self._uow() as uow:
                    booking = self._insert_booking(uow, command, reference, now)
                break
            except (IntegrityError, TransactionError) as e:
                integrity = _integrity_error(e)
                if integrity is None:
                    raise
                message = str(integrity.orig)
                if "booking_reference" in message:
                    logger.warning(
                        f"Booking reference collision on attempt {attempt}",
                        extra={"booking_reference": reference},
                    )
                    continue
                if "student_id" in message or "uq_bookings_student_holding" in message:
                    raise DuplicateActiveBookingError(command.student_id) from e
                raise TransactionError("Failed to create booking", integrity) from e
        else:
            raise TransactionError(
                f"Could not allocate a unique booking reference in {max_attempts} attempts"
            )

        response = BookingResponse.model_validate(booking)
        emit_safely(self.notifier, BookingEvent.BOOKING_CREATED, _event_payload(booking))
        return response

    def _insert_booking(
        self,
        uow: UnitOfWork,
        command: CreateBookingCommand,
        reference: str,
        now: datetime,
    ) -> Booking:
        hostel = uow.get_repo(HostelRepository).find_by_id(command.hostel_id)
        if hostel is None:
            raise NotFoundError("Hostel", command.hostel_id)
        if not hostel.is_bookable:
            raise HostelUnavailableError(hostel.id, hostel.status.value, hostel.is_verified)
        if command.food_selected and not hostel.food_available:
            raise ValidationError("This hostel does not offer a food plan", field="food_selected")

        bookings = uow.get_repo(BookingRepository)
        existing = bookings.find_holding_for_student(command.student_id)
        if existing is not None:
            raise DuplicateActiveBookingError(command.student_id, existing.booking_reference)

        try:
            InventoryLedger(uow.session).reserve(hostel.id, command.room_type)
        except (InsufficientInventoryError, NotFoundError) as e:
            raise RoomUnavailableError(hostel.id, command.room_type.value) from e

        pricing = price_for_hostel(hostel, command.duration_months, command.food_selected)
        contact = command.emergency_contact

        booking = Booking(
            booking_reference=reference,
            student_id=command.student_id,
            hostel_id=hostel.id,
            owner_id=hostel.owner_id,
            room_type=command.room_type,
            check_in_date=command.check_in_date,
            check_out_date=command.check_out_date,
            duration_months=command.duration_months,
            special_requests=command.special_requests,
            monthly_rent=pricing.monthly_rent,
            security_deposit=pricing.security_deposit,
            maintenance_charges=pricing.maintenance_charges,
            food_monthly_cost=pricing.food_monthly_cost,
            total_amount=pricing.total_amount,
            paid_amount=0,
            food_selected=command.food_selected,
            food_type=hostel.food_type if command.food_selected else None,
            meal_plan=hostel.meal_plan if command.food_selected else None,
            status=BookingStatus.PENDING,
            refund_status=RefundStatus.NOT_APPLICABLE,
            emergency_contact_name=contact.name if contact else None,
            emergency_contact_phone=contact.phone if contact else None,
            emergency_contact_relationship=contact.relationship if contact else None,
            created_at=now,
            updated_at=now,
        )
        bookings.add(booking)
        bookings.add_history(
            booking.id,
            from_status=None,
            to_status=BookingStatus.PENDING,
            changed_by=command.student_id,
            changed_by_role=ActorRole.STUDENT,
            changed_at=now,
        )
        logger.info(
            f"Booking {reference} created",
            extra={
                "booking_reference": reference,
                "hostel_id": hostel.id,
                "room_type": command.room_type.value,
                "actor_id": command.student_id,
            },
        )
        return booking

    # ------------------------------------------------------------------ #
    # Owner decisions
    # ------------------------------------------------------------------ #

    @track_performance("confirm_booking")
    def confirm(self, command: ConfirmBookingCommand) -> BookingResponse:
        now = self.clock()
        with self._uow() as uow:
            booking = self._load(uow, command.booking_reference)
            self._require_owner(booking, command.actor_id, "confirm")
            booking = self._transition(
                uow, booking, BookingStatus.CONFIRMED, command.actor_id, ActorRole.OWNER, now
            )

        emit_safely(self.notifier, BookingEvent.BOOKING_CONFIRMED, _event_payload(booking))
        return BookingResponse.model_validate(booking)

    @track_performance("reject_booking")
    def reject(self, command: RejectBookingCommand) -> BookingResponse:
        """Decline a pending booking and return its room to inventory."""
        now = self.clock()
        with self._uow() as uow:
            booking = self._load(uow, command.booking_reference)
            self._require_owner(booking, command.actor_id, "reject")
            booking = self._transition(
                uow,
                booking,
                BookingStatus.REJECTED,
                command.actor_id,
                ActorRole.OWNER,
                now,
                reason=command.reason,
                cancellation_reason=command.reason,
                cancelled_by=ActorRole.OWNER,
                cancelled_by_id=command.actor_id,
                refund_amount=0,
                refund_status=RefundStatus.NOT_APPLICABLE,
            )

        emit_safely(
            self.notifier,
            BookingEvent.BOOKING_REJECTED,
            _event_payload(booking, reason=command.reason),
        )
        return BookingResponse.model_validate(booking)

    # ------------------------------------------------------------------ #
    # Payment
    # ------------------------------------------------------------------ #

    @track_performance("create_payment_order")
    def create_payment_order(self, command: CreatePaymentOrderCommand) -> PaymentOrderResponse:
        """
        Open a gateway order for the pending amount of a confirmed booking.

        The gateway call runs between two short transactions; the order id
        is stored only if the booking is still confirmed.
        """
        with self._uow() as uow:
            booking = self._load(uow, command.booking_reference)
            if booking.student_id != command.actor_id:
                raise ForbiddenError(
                    "Only the booking's student can pay for it",
                    actor_id=command.actor_id,
                    action="pay",
                )
            if booking.status != BookingStatus.CONFIRMED:
                raise InvalidTransitionError(
                    booking.booking_reference,
                    booking.status.value,
                    BookingStatus.PAID.value,
                    message="Payment can only be made for confirmed bookings",
                )
            if booking.pending_amount <= 0:
                raise ConflictError(
                    "Booking has no pending amount",
                    details={"booking_reference": booking.booking_reference},
                )
            booking_id = booking.id
            reference = booking.booking_reference
            amount = booking.pending_amount
            notes = {
                "booking_reference": reference,
                "student_id": booking.student_id,
                "hostel_id": booking.hostel_id,
            }

        order = self.gateway.create_order(
            amount=amount,
            currency=self.config.CURRENCY,
            receipt=f"booking_{reference}",
            metadata=notes,
        )

        with self._uow() as uow:
            stored = uow.get_repo(BookingRepository).transition(
                booking_id,
                BookingStatus.CONFIRMED,
                payment_order_id=order.order_id,
                updated_at=self.clock(),
            )
            if not stored:
                current = self._load(uow, reference).status
                raise InvalidTransitionError(
                    reference,
                    current.value,
                    BookingStatus.PAID.value,
                    message=f"Booking {reference} changed while the payment order was created",
                )

        logger.info(
            f"Payment order {order.order_id} created",
            extra={"booking_reference": reference, "actor_id": command.actor_id},
        )
        return PaymentOrderResponse(
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            key_id=self.config.RAZORPAY_KEY_ID,
            booking_reference=reference,
            notes=notes,
        )

    @staticmethod
    def _already_recorded(booking: Booking, payment: VerifiedPayment) -> bool:
        """
        True when this exact payment is already on the booking.

        Raises AlreadyPaidError when a different payment is.
        """
        if booking.payment_id is None:
            return False
        if booking.payment_id == payment.payment_id:
            return True
        raise AlreadyPaidError(booking.booking_reference, booking.payment_id, payment.payment_id)

    @staticmethod
    def _check_payable(booking: Booking, payment: VerifiedPayment) -> None:
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError(booking.booking_reference, booking.status.value, BookingStatus.PAID.value)
        if booking.payment_order_id is not None and booking.payment_order_id != payment.order_id:
            raise PaymentVerificationError(
                "Payment order does not belong to this booking",
                details={
                    "booking_reference": booking.booking_reference,
                    "order_id": payment.order_id,
                },
            )

    @track_performance("record_payment")
    def record_payment(
        self,
        booking_reference: str,
        payment: Union[VerifiedPayment, PaymentConfirmation],
    ) -> BookingResponse:
        """
        Mark a confirmed booking as paid in full.

        Safe to call again with the same payment: a replay returns the
        booking unchanged.

        Raises:
            InvalidSignatureError: Raw confirmation fails verification
            PaymentVerificationError: Order mismatch or payment not captured
            AlreadyPaidError: Booking was paid by a different payment
            InvalidTransitionError: Booking is not confirmed
        """
        if isinstance(payment, PaymentConfirmation):
            payment = self.verifier.verify(payment)

        with self._uow() as uow:
            booking = self._load(uow, booking_reference)
            if self._already_recorded(booking, payment):
                logger.info(
                    f"Payment {payment.payment_id} already recorded",
                    extra={"booking_reference": booking.booking_reference},
                )
                return BookingResponse.model_validate(booking)
            self._check_payable(booking, payment)
            amount_due = booking.pending_amount

        if self.config.PAYMENT_CAPTURE_CHECK:
            captured = self.gateway.fetch_payment(payment.payment_id)
            if not captured.is_captured or captured.amount != amount_due:
                raise PaymentVerificationError(
                    "Payment has not been captured for the amount due",
                    details={
                        "payment_id": payment.payment_id,
                        "status": captured.status,
                        "amount": captured.amount,
                        "amount_due": amount_due,
                    },
                )

        now = self.clock()
        replayed = False
        try:
            with self._uow() as uow:
                booking = self._load(uow, booking_reference)
                if self._already_recorded(booking, payment):
                    replayed = True
                else:
                    self._check_payable(booking, payment)
                    try:
                        booking = self._transition(
                            uow,
                            booking,
                            BookingStatus.PAID,
                            booking.student_id,
                            ActorRole.STUDENT,
                            now,
                            paid_amount=booking.total_amount,
                            payment_method=payment.payment_method,
                            payment_order_id=payment.order_id,
                            payment_id=payment.payment_id,
                            payment_signature=payment.signature,
                        )
                    except InvalidTransitionError:
                        # A concurrent delivery of the same payment is a replay.
                        if not self._already_recorded(uow.get_repo(BookingRepository).refresh(booking), payment):
                            raise
                        replayed = True
        except (IntegrityError, TransactionError) as e:
            if _integrity_error(e) is None:
                raise
            raise PaymentVerificationError(
                "Payment is already recorded against another booking",
                details={"payment_id": payment.payment_id},
            ) from e

        if not replayed:
            emit_safely(
                self.notifier,
                BookingEvent.PAYMENT_RECEIVED,
                _event_payload(booking, payment_id=payment.payment_id, amount=booking.paid_amount),
            )
        return BookingResponse.model_validate(booking)

    # ------------------------------------------------------------------ #
    # Cancellation and refunds
    # ------------------------------------------------------------------ #

    @track_performance("cancel_booking")
    def cancel(self, command: CancelBookingCommand) -> BookingResponse:
        """
        Cancel a booking before check-in and return its room.

        A paid booking gets a refund quote from the cancellation policy;
        the refund itself is sent by `process_refund`.
        """
        now = self.clock()
        with self._uow() as uow:
            booking = self._load(uow, command.booking_reference)
            role = self._party_role(booking, command.actor_id, command.actor_role)
            if role is None:
                raise ForbiddenError(
                    "Not authorized to cancel this booking",
                    actor_id=command.actor_id,
                    action="cancel",
                )
            if booking.status not in CANCELLABLE_STATUSES:
                raise InvalidTransitionError(
                    booking.booking_reference,
                    booking.status.value,
                    BookingStatus.CANCELLED.value,
                )

            refund_amount = 0
            if booking.paid_amount > 0:
                quote = quote_refund(RefundSnapshot(
                    booking_reference=booking.booking_reference,
                    paid_amount=booking.paid_amount,
                    check_in_date=booking.check_in_date,
                    taken_at=now,
                ))
                refund_amount = quote.refund_amount

            booking = self._transition(
                uow,
                booking,
                BookingStatus.CANCELLED,
                command.actor_id,
                role,
                now,
                reason=command.reason,
                cancellation_reason=command.reason,
                cancelled_by=role,
                cancelled_by_id=command.actor_id,
                refund_amount=refund_amount,
                refund_status=RefundStatus.PENDING if refund_amount > 0 else RefundStatus.NOT_APPLICABLE,
            )

        emit_safely(
            self.notifier,
            BookingEvent.BOOKING_CANCELLED,
            _event_payload(booking, refund_amount=refund_amount, cancelled_by=role.value),
        )
        return BookingResponse.model_validate(booking)

    @track_performance("process_refund")
    def process_refund(self, booking_reference: str) -> BookingResponse:
        """
        Send the refund owed on a cancelled booking through the gateway.

        A gateway failure is recorded as a failed refund, which may be
        retried by calling this again, and the error is re-raised.
        """
        with self._uow() as uow:
            booking = self._load(uow, booking_reference)
            if booking.status != BookingStatus.CANCELLED or booking.refund_status not in (
                RefundStatus.PENDING,
                RefundStatus.FAILED,
            ):
                raise ConflictError(
                    f"Booking {booking.booking_reference} has no refund to process",
                    details={
                        "booking_reference": booking.booking_reference,
                        "status": booking.status.value,
                        "refund_status": booking.refund_status.value,
                    },
                )
            if booking.payment_id is None:
                raise ConflictError(
                    f"Booking {booking.booking_reference} has no recorded payment to refund",
                    details={"booking_reference": booking.booking_reference},
                )
            booking_id = booking.id
            reference = booking.booking_reference
            observed = booking.refund_status
            payment_id = booking.payment_id
            amount = booking.refund_amount

        try:
            refund = self.gateway.refund(
                payment_id,
                amount=amount,
                metadata={"booking_reference": reference},
            )
        except ExternalServiceError:
            with self._uow() as uow:
                uow.get_repo(BookingRepository).update_refund(
                    booking_id,
                    observed,
                    refund_status=RefundStatus.FAILED,
                    updated_at=self.clock(),
                )
                booking = self._load(uow, reference)
            emit_safely(self.notifier, BookingEvent.REFUND_FAILED, _event_payload(booking, amount=amount))
            raise

        now = self.clock()
        with self._uow() as uow:
            stored = uow.get_repo(BookingRepository).update_refund(
                booking_id,
                observed,
                refund_status=RefundStatus.PROCESSED,
                refund_id=refund.refund_id,
                refund_processed_at=now,
                updated_at=now,
            )
            booking = self._load(uow, reference)
            if not stored:
                raise ConflictError(
                    f"Refund for booking {reference} was processed concurrently",
                    details={"booking_reference": reference, "refund_id": refund.refund_id},
                )

        emit_safely(
            self.notifier,
            BookingEvent.REFUND_PROCESSED,
            _event_payload(booking, refund_id=refund.refund_id, amount=refund.amount),
        )
        return BookingResponse.model_validate(booking)

    # ------------------------------------------------------------------ #
    # Stay
    # ------------------------------------------------------------------ #

    def _stay_transition(
        self,
        command: StayTransitionCommand,
        target: BookingStatus,
        action: str,
        event: BookingEvent,
    ) -> BookingResponse:
        now = self.clock()
        with self._uow() as uow:
            booking = self._load(uow, command.booking_reference)
            self._require_staff(booking, command.actor_id, command.actor_role, action)
            role = ActorRole.ADMIN if command.actor_role == ActorRole.ADMIN else ActorRole.OWNER
            booking = self._transition(
                uow, booking, target, command.actor_id, role, now, reason=command.notes
            )

        emit_safely(self.notifier, event, _event_payload(booking))
        return BookingResponse.model_validate(booking)

    @track_performance("check_in")
    def check_in(self, command: StayTransitionCommand) -> BookingResponse:
        return self._stay_transition(command, BookingStatus.CHECKED_IN, "check in", BookingEvent.CHECKED_IN)

    @track_performance("activate")
    def activate(self, command: StayTransitionCommand) -> BookingResponse:
        return self._stay_transition(command, BookingStatus.ACTIVE, "activate", BookingEvent.STAY_ACTIVATED)

    @track_performance("check_out")
    def check_out(self, command: StayTransitionCommand) -> BookingResponse:
        """Record departure; the room goes back to inventory."""
        return self._stay_transition(command, BookingStatus.CHECKED_OUT, "check out", BookingEvent.CHECKED_OUT)

    @track_performance("complete")
    def complete(self, command: StayTransitionCommand) -> BookingResponse:
        return self._stay_transition(command, BookingStatus.COMPLETED, "complete", BookingEvent.STAY_COMPLETED)

    # ------------------------------------------------------------------ #
    # Expiry
    # ------------------------------------------------------------------ #

    @track_performance("expire_stale_bookings")
    def expire_stale_bookings(self, limit: int = 100) -> int:
        """
        Expire bookings whose confirmation or payment window has elapsed
        and paid bookings never checked into. Returns how many expired.
        """
        now = self.clock()
        with self._uow() as uow:
            references = uow.get_repo(BookingRepository).find_expiry_candidates(
                pending_created_before=now - timedelta(hours=self.config.BOOKING_CONFIRMATION_WINDOW_HOURS),
                confirmed_before=now - timedelta(hours=self.config.BOOKING_PAYMENT_WINDOW_HOURS),
                paid_check_in_before=now.date() - timedelta(days=self.config.CHECK_IN_GRACE_DAYS),
                limit=limit,
            )

        expired = 0
        for reference in references:
            try:
                with self._uow() as uow:
                    booking = self._load(uow, reference)
                    if not self._is_stale(booking, now):
                        continue
                    booking = self._expire(uow, booking, now)
            except InvalidTransitionError:
                logger.debug(
                    "Booking moved before it could expire",
                    extra={"booking_reference": reference},
                )
                continue
            expired += 1
            self._emit_expired(booking)

        if expired:
            logger.info(f"Expired {expired} stale booking(s)")
        return expired

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_booking(
        self,
        booking_reference: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[ActorRole] = None,
    ) -> BookingResponse:
        """
        Fetch a booking, expiring it first if its window has elapsed.

        When an actor is given, only the booking's student, the hostel
        owner and admins may read it.
        """
        now = self.clock()
        expired = False
        with self._uow() as uow:
            booking = self._load(uow, booking_reference)
            if actor_id is not None and self._party_role(booking, actor_id, actor_role) is None:
                raise ForbiddenError(
                    "Not authorized to view this booking",
                    actor_id=actor_id,
                    action="view",
                )
            if self._is_stale(booking, now):
                try:
                    booking = self._expire(uow, booking, now)
                    expired = True
                except InvalidTransitionError:
                    booking = uow.get_repo(BookingRepository).refresh(booking)

        if expired:
            self._emit_expired(booking)
        return BookingResponse.model_validate(booking)

    def get_status_history(self, booking_reference: str) -> List[BookingStatusHistoryResponse]:
        with self._uow() as uow:
            booking = self._load(uow, booking_reference)
            entries = uow.get_repo(BookingRepository).history(booking.id)
            return [BookingStatusHistoryResponse.model_validate(entry) for entry in entries]

    def _page(self, criteria: Dict[str, Any], page: int, limit: int) -> BookingPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        with self._uow() as uow:
            bookings = uow.get_repo(BookingRepository)
            rows = bookings.find_by_criteria(
                criteria, skip=(page - 1) * limit, limit=limit, order_by=["-created_at"]
            )
            total = bookings.count(criteria)
            items = [BookingResponse.model_validate(row) for row in rows]

        return BookingPage(
            bookings=items,
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_bookings=total,
        )

    def list_student_bookings(
        self,
        student_id: str,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookingPage:
        criteria: Dict[str, Any] = {"student_id": student_id}
        if status is not None:
            criteria["status"] = status
        return self._page(criteria, page, limit)

    def list_owner_bookings(
        self,
        owner_id: str,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookingPage:
        criteria: Dict[str, Any] = {"owner_id": owner_id}
        if status is not None:
            criteria["status"] = status
        return self._page(criteria, page, limit)

    def booking_stats(self, owner_id: Optional[str] = None) -> BookingStats:
        """Counts per status and collected revenue, for one owner or overall."""
        with self._uow() as uow:
            bookings = uow.get_repo(BookingRepository)
            breakdown = bookings.stats_by_status(owner_id)
            revenue = bookings.revenue(owner_id, REVENUE_STATUSES)

        counts = {row["status"]: row["count"] for row in breakdown}
        return BookingStats(
            total_bookings=sum(counts.values()),
            active_bookings=counts.get(BookingStatus.ACTIVE, 0),
            pending_bookings=counts.get(BookingStatus.PENDING, 0),
            total_revenue=revenue["total_revenue"],
            average_booking_value=revenue["average_booking_value"],
            status_breakdown=breakdown,
        )
