from datetime import date
from unittest.mock import MagicMock

import pytest

from hostel_booking.core.exceptions import (
    AlreadyPaidError,
    ConflictError,
    DuplicateActiveBookingError,
    ExternalServiceError,
    ForbiddenError,
    HostelUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    PaymentVerificationError,
    RoomUnavailableError,
    ValidationError,
)
from hostel_booking.models.base.enums import (
    ActorRole,
    BookingStatus,
    FoodType,
    HostelStatus,
    RefundStatus,
    RoomType,
)
from hostel_booking.repositories.booking import BookingRepository
from hostel_booking.schemas.booking import (
    CancelBookingCommand,
    ConfirmBookingCommand,
    CreatePaymentOrderCommand,
    RejectBookingCommand,
)
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService
from hostel_booking.services.notification.notification_emitter import BookingEvent
from hostel_booking.services.payment.payment_gateway import GatewayPayment
from hostel_booking.services.payment.payment_verifier import PaymentVerifier

from tests.helpers import (
    GATEWAY_SECRET,
    OWNER_ID,
    assert_inventory_consistent,
    booking_command,
    confirm,
    inventory_of,
    signed_confirmation,
    stay_command,
)


def _paid_booking(service, hostel_id, student_id="student-1"):
    booking = service.create_booking(booking_command(hostel_id, student_id=student_id))
    confirm(service, booking.booking_reference)
    return service.record_payment(booking.booking_reference, signed_confirmation())


def _cancel(service, reference, actor_id="student-1", actor_role=ActorRole.STUDENT, reason="Change of plans"):
    return service.cancel(CancelBookingCommand(
        booking_reference=reference,
        actor_id=actor_id,
        actor_role=actor_role,
        reason=reason,
    ))


class TestCreateBooking:
    def test_creates_pending_booking_and_reserves_room(self, service, hostel_id, session_factory, notifier):
        booking = service.create_booking(booking_command(hostel_id))

        assert booking.status == BookingStatus.PENDING
        assert booking.total_amount == 50000
        assert booking.paid_amount == 0
        assert booking.pending_amount == 50000
        assert booking.owner_id == OWNER_ID
        assert booking.booking_reference.startswith("RV")
        assert inventory_of(session_factory, hostel_id).available_rooms == 4
        assert notifier.names == [BookingEvent.BOOKING_CREATED]
        assert_inventory_consistent(session_factory, hostel_id)

    def test_records_initial_history(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        history = service.get_status_history(booking.booking_reference)

        assert [(h.from_status, h.to_status) for h in history] == [(None, BookingStatus.PENDING)]
        assert history[0].changed_by == "student-1"

    def test_food_plan_is_priced_and_snapshotted(self, service, make_hostel):
        hostel_id = make_hostel(food_available=True, food_monthly_cost=2000)

        booking = service.create_booking(booking_command(hostel_id, food_selected=True))

        assert booking.total_amount == 62000
        assert booking.food_monthly_cost == 2000
        assert booking.food_type == FoodType.VEG

    def test_food_not_offered_is_rejected(self, service, hostel_id, session_factory):
        with pytest.raises(ValidationError):
            service.create_booking(booking_command(hostel_id, food_selected=True))

        assert inventory_of(session_factory, hostel_id).available_rooms == 5

    def test_past_check_in_is_rejected(self, service, hostel_id):
        with pytest.raises(ValidationError):
            service.create_booking(booking_command(hostel_id, check_in=date(2026, 10, 17)))

    def test_unknown_hostel(self, service):
        with pytest.raises(NotFoundError):
            service.create_booking(booking_command("missing-hostel"))

    @pytest.mark.parametrize(
        "status, is_verified",
        [(HostelStatus.INACTIVE, True), (HostelStatus.ACTIVE, False)],
    )
    def test_unavailable_hostel(self, service, make_hostel, session_factory, status, is_verified):
        hostel_id = make_hostel(status=status, is_verified=is_verified)

        with pytest.raises(HostelUnavailableError):
            service.create_booking(booking_command(hostel_id))

        assert inventory_of(session_factory, hostel_id).available_rooms == 5

    def test_no_rooms_left(self, service, make_hostel):
        hostel_id = make_hostel(total_rooms=1, available_rooms=0)

        with pytest.raises(RoomUnavailableError):
            service.create_booking(booking_command(hostel_id))

    def test_room_type_without_inventory(self, service, hostel_id):
        with pytest.raises(RoomUnavailableError):
            service.create_booking(booking_command(hostel_id, room_type=RoomType.SINGLE))

    def test_student_with_active_booking_cannot_book_again(self, service, hostel_id, session_factory):
        first = service.create_booking(booking_command(hostel_id))

        with pytest.raises(DuplicateActiveBookingError) as exc_info:
            service.create_booking(booking_command(hostel_id))

        assert exc_info.value.details["existing_reference"] == first.booking_reference
        assert inventory_of(session_factory, hostel_id).available_rooms == 4

    def test_unique_index_backs_the_active_booking_check(self, service, make_hostel, session_factory, monkeypatch):
        first_hostel = make_hostel()
        second_hostel = make_hostel()
        service.create_booking(booking_command(first_hostel))
        # Stale read: another transaction has not committed yet.
        monkeypatch.setattr(BookingRepository, "find_holding_for_student", lambda self, student_id: None)

        with pytest.raises(DuplicateActiveBookingError):
            service.create_booking(booking_command(second_hostel))

        assert inventory_of(session_factory, second_hostel).available_rooms == 5
        assert_inventory_consistent(session_factory, first_hostel)

    def test_student_can_book_again_after_cancelling(self, service, hostel_id, session_factory):
        first = service.create_booking(booking_command(hostel_id))
        _cancel(service, first.booking_reference)

        second = service.create_booking(booking_command(hostel_id))

        assert second.status == BookingStatus.PENDING
        assert_inventory_consistent(session_factory, hostel_id)

    def test_reference_collision_is_retried(self, session_factory, gateway, notifier, config, clock, hostel_id):
        references = iter(["RV0000000001", "RV0000000001", "RV0000000002"])
        service = BookingLifecycleService(
            session_factory,
            gateway=gateway,
            notifier=notifier,
            verifier=PaymentVerifier(GATEWAY_SECRET),
            config=config,
            clock=clock,
            reference_generator=lambda now: next(references),
        )

        first = service.create_booking(booking_command(hostel_id, student_id="student-1"))
        second = service.create_booking(booking_command(hostel_id, student_id="student-2"))

        assert first.booking_reference == "RV0000000001"
        assert second.booking_reference == "RV0000000002"
        assert inventory_of(session_factory, hostel_id).available_rooms == 3
        assert_inventory_consistent(session_factory, hostel_id)

    def test_failing_notifier_does_not_fail_the_operation(self, session_factory, gateway, config, clock, hostel_id):
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("mail server down")
        service = BookingLifecycleService(
            session_factory,
            gateway=gateway,
            notifier=notifier,
            verifier=PaymentVerifier(GATEWAY_SECRET),
            config=config,
            clock=clock,
        )

        booking = service.create_booking(booking_command(hostel_id))

        assert booking.status == BookingStatus.PENDING
        notifier.notify.assert_called_once()


class TestOwnerDecisions:
    def test_confirm(self, service, hostel_id, clock):
        booking = service.create_booking(booking_command(hostel_id))

        confirmed = confirm(service, booking.booking_reference)

        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.confirmed_at == clock.now
        assert confirmed.version == booking.version + 1

    def test_confirm_accepts_lowercase_reference(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        confirmed = confirm(service, booking.booking_reference.lower())

        assert confirmed.booking_reference == booking.booking_reference

    def test_only_owner_can_confirm(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        with pytest.raises(ForbiddenError):
            service.confirm(ConfirmBookingCommand(booking_reference=booking.booking_reference, actor_id="owner-2"))

    def test_confirm_on_paid_booking_is_invalid(self, service, hostel_id):
        booking = _paid_booking(service, hostel_id)

        with pytest.raises(InvalidTransitionError):
            confirm(service, booking.booking_reference)

    def test_reject_releases_room(self, service, hostel_id, session_factory, notifier):
        booking = service.create_booking(booking_command(hostel_id))

        rejected = service.reject(RejectBookingCommand(
            booking_reference=booking.booking_reference,
            actor_id=OWNER_ID,
            reason="Hostel closed for renovation",
        ))

        assert rejected.status == BookingStatus.REJECTED
        assert rejected.cancellation_reason == "Hostel closed for renovation"
        assert rejected.cancelled_by == ActorRole.OWNER
        assert inventory_of(session_factory, hostel_id).available_rooms == 5
        assert notifier.names[-1] == BookingEvent.BOOKING_REJECTED
        assert_inventory_consistent(session_factory, hostel_id)

    def test_confirmed_booking_cannot_be_rejected(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)

        with pytest.raises(InvalidTransitionError):
            service.reject(RejectBookingCommand(
                booking_reference=booking.booking_reference,
                actor_id=OWNER_ID,
                reason="Too late",
            ))


class TestPayment:
    def test_payment_order_covers_pending_amount(self, service, hostel_id, gateway):
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)

        order = service.create_payment_order(CreatePaymentOrderCommand(
            booking_reference=booking.booking_reference,
            actor_id="student-1",
        ))

        assert order.order_id == "order_test_1"
        assert order.key_id == "rzp_test_key"
        gateway.create_order.assert_called_once()
        kwargs = gateway.create_order.call_args.kwargs
        assert kwargs["amount"] == 50000
        assert kwargs["currency"] == "INR"
        assert kwargs["receipt"] == f"booking_{booking.booking_reference}"
        assert service.get_booking(booking.booking_reference).payment_order_id == "order_test_1"

    def test_payment_order_requires_confirmed_booking(self, service, hostel_id, gateway):
        booking = service.create_booking(booking_command(hostel_id))

        with pytest.raises(InvalidTransitionError):
            service.create_payment_order(CreatePaymentOrderCommand(
                booking_reference=booking.booking_reference,
                actor_id="student-1",
            ))
        gateway.create_order.assert_not_called()

    def test_payment_order_only_for_own_booking(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)

        with pytest.raises(ForbiddenError):
            service.create_payment_order(CreatePaymentOrderCommand(
                booking_reference=booking.booking_reference,
                actor_id="student-2",
            ))

    def test_full_payment_marks_booking_paid(self, service, hostel_id, notifier, session_factory):
        booking = _paid_booking(service, hostel_id)

        assert booking.status == BookingStatus.PAID
        assert booking.total_amount == 50000
        assert booking.paid_amount == 50000
        assert booking.pending_amount == 0
        assert booking.is_fully_paid
        assert booking.payment_id == "pay_test_1"
        assert notifier.names.count(BookingEvent.PAYMENT_RECEIVED) == 1
        assert_inventory_consistent(session_factory, hostel_id)

    def test_replayed_payment_is_a_no_op(self, service, hostel_id, notifier):
        paid = _paid_booking(service, hostel_id)

        replay = service.record_payment(paid.booking_reference, signed_confirmation())

        assert replay.status == BookingStatus.PAID
        assert replay.paid_amount == 50000
        assert replay.version == paid.version
        assert notifier.names.count(BookingEvent.PAYMENT_RECEIVED) == 1

    def test_different_payment_on_paid_booking(self, service, hostel_id):
        paid = _paid_booking(service, hostel_id)

        with pytest.raises(AlreadyPaidError):
            service.record_payment(
                paid.booking_reference,
                signed_confirmation(order_id="order_test_1", payment_id="pay_other"),
            )

    def test_payment_for_another_order_is_rejected(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)
        service.create_payment_order(CreatePaymentOrderCommand(
            booking_reference=booking.booking_reference,
            actor_id="student-1",
        ))

        with pytest.raises(PaymentVerificationError):
            service.record_payment(booking.booking_reference, signed_confirmation(order_id="order_other"))

        assert service.get_booking(booking.booking_reference).status == BookingStatus.CONFIRMED

    def test_payment_on_pending_booking_is_invalid(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        with pytest.raises(InvalidTransitionError):
            service.record_payment(booking.booking_reference, signed_confirmation())

    def test_uncaptured_payment_is_rejected_when_capture_check_enabled(
        self, session_factory, gateway, notifier, config, clock, hostel_id
    ):
        service = BookingLifecycleService(
            session_factory,
            gateway=gateway,
            notifier=notifier,
            verifier=PaymentVerifier(GATEWAY_SECRET),
            config=config.model_copy(update={"PAYMENT_CAPTURE_CHECK": True}),
            clock=clock,
        )
        gateway.fetch_payment.return_value = GatewayPayment(
            payment_id="pay_test_1", status="authorized", amount=50000,
        )
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)

        with pytest.raises(PaymentVerificationError):
            service.record_payment(booking.booking_reference, signed_confirmation())

        gateway.fetch_payment.assert_called_once_with("pay_test_1")
        assert service.get_booking(booking.booking_reference).status == BookingStatus.CONFIRMED


class TestCancellation:
    def test_cancel_twenty_days_out_refunds_seventy_percent(self, service, make_hostel, session_factory):
        hostel_id = make_hostel(monthly_rent=3000, security_deposit=2000)
        paid = _paid_booking(service, hostel_id)
        assert paid.paid_amount == 20000
        available_before = inventory_of(session_factory, hostel_id).available_rooms

        cancelled = _cancel(service, paid.booking_reference)

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.refund_amount == 14000
        assert cancelled.refund_status == RefundStatus.PENDING
        assert cancelled.cancelled_by == ActorRole.STUDENT
        assert inventory_of(session_factory, hostel_id).available_rooms == available_before + 1
        assert_inventory_consistent(session_factory, hostel_id)

    def test_unpaid_cancellation_has_no_refund(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        cancelled = _cancel(service, booking.booking_reference)

        assert cancelled.refund_amount == 0
        assert cancelled.refund_status == RefundStatus.NOT_APPLICABLE

    def test_owner_and_admin_may_cancel(self, service, hostel_id):
        first = service.create_booking(booking_command(hostel_id, student_id="student-1"))
        second = service.create_booking(booking_command(hostel_id, student_id="student-2"))

        by_owner = _cancel(service, first.booking_reference, actor_id=OWNER_ID, actor_role=ActorRole.OWNER)
        by_admin = _cancel(service, second.booking_reference, actor_id="admin-1", actor_role=ActorRole.ADMIN)

        assert by_owner.cancelled_by == ActorRole.OWNER
        assert by_admin.cancelled_by == ActorRole.ADMIN

    def test_outsider_cannot_cancel(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))

        with pytest.raises(ForbiddenError):
            _cancel(service, booking.booking_reference, actor_id="student-2")

    def test_cancel_on_completed_booking_is_invalid(self, service, hostel_id):
        booking = _paid_booking(service, hostel_id)
        reference = booking.booking_reference
        service.check_in(stay_command(reference))
        service.activate(stay_command(reference))
        service.check_out(stay_command(reference))
        service.complete(stay_command(reference))

        with pytest.raises(InvalidTransitionError):
            _cancel(service, reference)

    def test_cancel_twice_is_invalid(self, service, hostel_id, session_factory):
        booking = service.create_booking(booking_command(hostel_id))
        _cancel(service, booking.booking_reference)

        with pytest.raises(InvalidTransitionError):
            _cancel(service, booking.booking_reference)

        assert inventory_of(session_factory, hostel_id).available_rooms == 5


class TestRefunds:
    def _cancelled_paid_booking(self, service, make_hostel):
        hostel_id = make_hostel(monthly_rent=3000, security_deposit=2000)
        paid = _paid_booking(service, hostel_id)
        return _cancel(service, paid.booking_reference)

    def test_process_refund(self, service, make_hostel, gateway, notifier):
        cancelled = self._cancelled_paid_booking(service, make_hostel)

        refunded = service.process_refund(cancelled.booking_reference)

        assert refunded.refund_status == RefundStatus.PROCESSED
        assert refunded.refund_id == "rfnd_test_1"
        gateway.refund.assert_called_once_with(
            "pay_test_1",
            amount=14000,
            metadata={"booking_reference": cancelled.booking_reference},
        )
        assert notifier.names[-1] == BookingEvent.REFUND_PROCESSED

    def test_gateway_failure_marks_refund_failed_and_can_be_retried(self, service, make_hostel, gateway, notifier):
        cancelled = self._cancelled_paid_booking(service, make_hostel)
        gateway.refund.side_effect = ExternalServiceError("razorpay", attempts=4)

        with pytest.raises(ExternalServiceError):
            service.process_refund(cancelled.booking_reference)

        failed = service.get_booking(cancelled.booking_reference)
        assert failed.refund_status == RefundStatus.FAILED
        assert notifier.names[-1] == BookingEvent.REFUND_FAILED

        gateway.refund.side_effect = None
        assert service.process_refund(cancelled.booking_reference).refund_status == RefundStatus.PROCESSED

    def test_processed_refund_is_not_sent_twice(self, service, make_hostel, gateway):
        cancelled = self._cancelled_paid_booking(service, make_hostel)
        service.process_refund(cancelled.booking_reference)

        with pytest.raises(ConflictError):
            service.process_refund(cancelled.booking_reference)

        assert gateway.refund.call_count == 1

    def test_booking_without_refund(self, service, hostel_id, gateway):
        booking = service.create_booking(booking_command(hostel_id))
        _cancel(service, booking.booking_reference)

        with pytest.raises(ConflictError):
            service.process_refund(booking.booking_reference)

        gateway.refund.assert_not_called()


class TestStay:
    def test_full_stay_releases_room_at_check_out(self, service, hostel_id, session_factory, notifier):
        reference = _paid_booking(service, hostel_id).booking_reference

        assert service.check_in(stay_command(reference)).status == BookingStatus.CHECKED_IN
        assert service.activate(stay_command(reference)).status == BookingStatus.ACTIVE
        assert inventory_of(session_factory, hostel_id).available_rooms == 4

        checked_out = service.check_out(stay_command(reference))
        assert checked_out.status == BookingStatus.CHECKED_OUT
        assert inventory_of(session_factory, hostel_id).available_rooms == 5

        completed = service.complete(stay_command(reference))
        assert completed.status == BookingStatus.COMPLETED
        assert completed.completed_at is not None
        assert notifier.names[-4:] == [
            BookingEvent.CHECKED_IN,
            BookingEvent.STAY_ACTIVATED,
            BookingEvent.CHECKED_OUT,
            BookingEvent.STAY_COMPLETED,
        ]
        assert_inventory_consistent(session_factory, hostel_id)

    def test_admin_may_check_in(self, service, hostel_id):
        reference = _paid_booking(service, hostel_id).booking_reference

        checked_in = service.check_in(stay_command(reference, actor_id="admin-1", actor_role=ActorRole.ADMIN))

        assert checked_in.status == BookingStatus.CHECKED_IN

    def test_student_cannot_check_in(self, service, hostel_id):
        reference = _paid_booking(service, hostel_id).booking_reference

        with pytest.raises(ForbiddenError):
            service.check_in(stay_command(reference, actor_id="student-1", actor_role=ActorRole.STUDENT))

    def test_check_in_requires_payment(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))
        confirm(service, booking.booking_reference)

        with pytest.raises(InvalidTransitionError):
            service.check_in(stay_command(booking.booking_reference))

    def test_history_follows_the_lifecycle(self, service, hostel_id):
        reference = _paid_booking(service, hostel_id).booking_reference
        service.check_in(stay_command(reference))

        history = service.get_status_history(reference)

        assert [h.to_status for h in history] == [
            BookingStatus.PENDING,
            BookingStatus.CONFIRMED,
            BookingStatus.PAID,
            BookingStatus.CHECKED_IN,
        ]


class TestQueries:
    def test_get_booking_checks_access(self, service, hostel_id):
        booking = service.create_booking(booking_command(hostel_id))
        reference = booking.booking_reference

        assert service.get_booking(reference, "student-1", ActorRole.STUDENT).booking_reference == reference
        assert service.get_booking(reference, OWNER_ID, ActorRole.OWNER).booking_reference == reference
        assert service.get_booking(reference, "admin-1", ActorRole.ADMIN).booking_reference == reference
        with pytest.raises(ForbiddenError):
            service.get_booking(reference, "student-2", ActorRole.STUDENT)

    def test_unknown_reference(self, service):
        with pytest.raises(NotFoundError):
            service.get_booking("RV0000000000")

    def test_student_bookings_are_paginated(self, service, hostel_id):
        for _ in range(3):
            booking = service.create_booking(booking_command(hostel_id))
            _cancel(service, booking.booking_reference)

        page = service.list_student_bookings("student-1", page=1, limit=2)

        assert page.total_bookings == 3
        assert page.total_pages == 2
        assert len(page.bookings) == 2
        assert page.has_next
        assert not page.has_prev

    def test_owner_bookings_filtered_by_status(self, service, hostel_id):
        service.create_booking(booking_command(hostel_id, student_id="student-1"))
        second = service.create_booking(booking_command(hostel_id, student_id="student-2"))
        confirm(service, second.booking_reference)

        page = service.list_owner_bookings(OWNER_ID, status=BookingStatus.CONFIRMED)

        assert [b.booking_reference for b in page.bookings] == [second.booking_reference]

    def test_booking_stats(self, service, hostel_id):
        _paid_booking(service, hostel_id, student_id="student-1")
        service.create_booking(booking_command(hostel_id, student_id="student-2"))

        stats = service.booking_stats(OWNER_ID)

        assert stats.total_bookings == 2
        assert stats.pending_bookings == 1
        assert stats.total_revenue == 50000
        assert stats.average_booking_value == 50000
        assert {row.status for row in stats.status_breakdown} == {BookingStatus.PAID, BookingStatus.PENDING}
