# hostel_booking/services/payment/payment_gateway.py
"""
Payment gateway adapter.

The booking engine talks to the gateway through the `PaymentGateway`
protocol. `RazorpayGateway` implements it on the razorpay SDK; every
remote call goes through `call_with_retry`, which retries transient
failures with bounded exponential backoff and surfaces exhaustion as
ExternalServiceError. Gateway calls must never run while a database
transaction is open.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Type, TypeVar

from hostel_booking.config.settings import Settings, settings as default_settings
from hostel_booking.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

GATEWAY_SERVICE_NAME = "razorpay"


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"
    notes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayPayment:
    payment_id: str
    status: str
    amount: int
    method: Optional[str] = None
    order_id: Optional[str] = None

    @property
    def is_captured(self) -> bool:
        return self.status == "captured"


@dataclass(frozen=True)
class GatewayRefund:
    refund_id: str
    payment_id: str
    amount: int
    status: str


class PaymentGateway(Protocol):
    """Operations the booking engine needs from a payment gateway."""

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentOrder:
        ...

    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        ...

    def refund(
        self,
        payment_id: str,
        amount: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> GatewayRefund:
        ...


def call_with_retry(
    func: Callable[[], T],
    *,
    service_name: str,
    operation: str,
    max_retries: int,
    base_delay: float,
    max_delay: float,
    retry_on: Tuple[Type[BaseException], ...],
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `func`, retrying up to `max_retries` times on `retry_on` errors.

    The delay doubles after each failed attempt, starting at `base_delay`
    and capped at `max_delay`. Exceptions outside `retry_on` propagate
    unchanged on the first occurrence.

    Raises:
        ExternalServiceError: When every attempt failed
    """
    attempt = 0
    while True:
        try:
            return func()
        except retry_on as e:
            attempt += 1
            if attempt > max_retries:
                logger.error(
                    f"{service_name} {operation} failed after {attempt} attempts: {e}",
                    extra={"operation": operation},
                )
                raise ExternalServiceError(
                    service_name,
                    f"{service_name} {operation} failed: {e}",
                    attempts=attempt,
                    details={"operation": operation},
                ) from e

            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            logger.warning(
                f"{service_name} {operation} failed (attempt {attempt}), "
                f"retrying in {delay}s: {e}",
                extra={"operation": operation},
            )
            sleep(delay)


class RazorpayGateway:
    """
    `PaymentGateway` backed by the razorpay SDK.

    The SDK is imported when the client is first needed, so the engine
    runs without it installed as long as no gateway call is made.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        config: Optional[Settings] = None,
        client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or default_settings
        self.key_id = key_id or self.config.RAZORPAY_KEY_ID
        self._key_secret = key_secret or self.config.RAZORPAY_KEY_SECRET
        self._client = client
        self._sleep = sleep

    @property
    def client(self):
        if self._client is None:
            if not self.key_id or not self._key_secret:
                raise ExternalServiceError(
                    GATEWAY_SERVICE_NAME, "Razorpay credentials are not configured"
                )
            import razorpay

            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def _call(self, operation: str, func: Callable[[], T]) -> T:
        import razorpay.errors

        try:
            return call_with_retry(
                func,
                service_name=GATEWAY_SERVICE_NAME,
                operation=operation,
                max_retries=self.config.GATEWAY_MAX_RETRIES,
                base_delay=self.config.GATEWAY_RETRY_BASE_DELAY,
                max_delay=self.config.GATEWAY_RETRY_MAX_DELAY,
                retry_on=(razorpay.errors.ServerError, razorpay.errors.GatewayError, OSError),
                sleep=self._sleep,
            )
        except razorpay.errors.BadRequestError as e:
            # Rejected requests do not succeed on retry.
            logger.error(f"Razorpay rejected {operation}: {e}", extra={"operation": operation})
            raise ExternalServiceError(
                GATEWAY_SERVICE_NAME,
                f"Razorpay rejected {operation}: {e}",
                attempts=1,
                details={"operation": operation},
            ) from e

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentOrder:
        data = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": dict(metadata or {}),
        }
        order = self._call("create_order", lambda: self.client.order.create(data=data))
        return PaymentOrder(
            order_id=order["id"],
            amount=int(order["amount"]),
            currency=order.get("currency", currency),
            receipt=order.get("receipt", receipt),
            status=order.get("status", "created"),
            notes=dict(order.get("notes") or {}),
        )

    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        payment = self._call("fetch_payment", lambda: self.client.payment.fetch(payment_id))
        return GatewayPayment(
            payment_id=payment["id"],
            status=payment["status"],
            amount=int(payment["amount"]),
            method=payment.get("method"),
            order_id=payment.get("order_id"),
        )

    def refund(
        self,
        payment_id: str,
        amount: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> GatewayRefund:
        data: Dict[str, Any] = {"notes": dict(metadata or {})}
        if amount is not None:
            data["amount"] = amount
        refund = self._call("refund", lambda: self.client.payment.refund(payment_id, data))
        return GatewayRefund(
            refund_id=refund["id"],
            payment_id=refund.get("payment_id", payment_id),
            amount=int(refund["amount"]),
            status=refund.get("status", "processed"),
        )
