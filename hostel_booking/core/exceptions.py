"""
Custom Exceptions for the Hostel Booking Engine

This module defines the exception hierarchy raised by the booking,
inventory and payment services. Every exception carries an error code
and the HTTP status the API layer renders it with.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"

    # Booking and inventory errors
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    INVALID_RELEASE = "INVALID_RELEASE"
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    HOSTEL_UNAVAILABLE = "HOSTEL_UNAVAILABLE"
    DUPLICATE_ACTIVE_BOOKING = "DUPLICATE_ACTIVE_BOOKING"

    # Payment errors
    ALREADY_PAID = "ALREADY_PAID"
    PAYMENT_VERIFICATION_FAILED = "PAYMENT_VERIFICATION_FAILED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Boundary Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input is malformed or out of range"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if field_errors:
            details["field_errors"] = field_errors
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 422)
        self.field = field


class NotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ForbiddenError(BaseAppException):
    """Exception raised when the acting user lacks rights on a resource"""

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        actor_id: Optional[str] = None,
        action: Optional[str] = None,
    ):
        details = {"actor_id": actor_id, "action": action}
        super().__init__(message, ErrorCode.FORBIDDEN, details, 403)


# ========================================
# Conflict Exceptions
# ========================================

class ConflictError(BaseAppException):
    """Exception raised when an operation conflicts with current state"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details, 409)


class InvalidTransitionError(ConflictError):
    """Exception raised when a booking cannot move to the requested status"""

    def __init__(
        self,
        booking_reference: str,
        current_status: str,
        target_status: str,
        message: Optional[str] = None,
    ):
        if not message:
            message = (
                f"Booking {booking_reference} cannot move from "
                f"'{current_status}' to '{target_status}'"
            )
        details = {
            "booking_reference": booking_reference,
            "current_status": current_status,
            "target_status": target_status,
        }
        super().__init__(message, ErrorCode.INVALID_TRANSITION, details)
        self.current_status = current_status
        self.target_status = target_status


class InsufficientInventoryError(ConflictError):
    """Exception raised when fewer rooms are available than requested"""

    def __init__(self, hostel_id: str, room_type: str, requested: int = 1):
        message = f"Not enough {room_type} rooms available in hostel {hostel_id}"
        details = {"hostel_id": hostel_id, "room_type": room_type, "requested": requested}
        super().__init__(message, ErrorCode.INSUFFICIENT_INVENTORY, details)


class InvalidReleaseError(ConflictError):
    """Exception raised when a release would push availability above the total"""

    def __init__(self, hostel_id: str, room_type: str, count: int = 1):
        message = (
            f"Releasing {count} {room_type} room(s) in hostel {hostel_id} "
            f"would exceed the total room count"
        )
        details = {"hostel_id": hostel_id, "room_type": room_type, "count": count}
        super().__init__(message, ErrorCode.INVALID_RELEASE, details)


class RoomUnavailableError(ConflictError):
    """Exception raised when no room of the requested type can be booked"""

    def __init__(self, hostel_id: str, room_type: str):
        message = f"No {room_type} rooms available"
        details = {"hostel_id": hostel_id, "room_type": room_type}
        super().__init__(message, ErrorCode.ROOM_UNAVAILABLE, details)


class HostelUnavailableError(ConflictError):
    """Exception raised when a hostel is not active and verified"""

    def __init__(self, hostel_id: str, status: Optional[str] = None, is_verified: Optional[bool] = None):
        message = "Hostel is not available for booking"
        details = {"hostel_id": hostel_id, "status": status, "is_verified": is_verified}
        super().__init__(message, ErrorCode.HOSTEL_UNAVAILABLE, details)


class DuplicateActiveBookingError(ConflictError):
    """Exception raised when a student already holds an active booking"""

    def __init__(self, student_id: str, existing_reference: Optional[str] = None):
        message = "Student already has an active booking"
        details = {"student_id": student_id, "existing_reference": existing_reference}
        super().__init__(message, ErrorCode.DUPLICATE_ACTIVE_BOOKING, details)


class AlreadyPaidError(ConflictError):
    """Exception raised when a different payment arrives for a paid booking"""

    def __init__(self, booking_reference: str, recorded_payment_id: Optional[str], payment_id: str):
        message = f"Booking {booking_reference} is already paid by another payment"
        details = {
            "booking_reference": booking_reference,
            "recorded_payment_id": recorded_payment_id,
            "payment_id": payment_id,
        }
        super().__init__(message, ErrorCode.ALREADY_PAID, details)


# ========================================
# Payment Exceptions
# ========================================

class PaymentVerificationError(BaseAppException):
    """Exception raised when a payment confirmation cannot be trusted"""

    def __init__(
        self,
        message: str = "Payment verification failed",
        error_code: ErrorCode = ErrorCode.PAYMENT_VERIFICATION_FAILED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details, 400)


class InvalidSignatureError(PaymentVerificationError):
    """Exception raised when a payment signature does not match"""

    def __init__(self, order_id: str, payment_id: str):
        super().__init__(
            "Invalid payment signature",
            ErrorCode.INVALID_SIGNATURE,
            {"order_id": order_id, "payment_id": payment_id},
        )


# ========================================
# Infrastructure Exceptions
# ========================================

class ExternalServiceError(BaseAppException):
    """Exception raised when a remote dependency fails or is unreachable"""

    def __init__(
        self,
        service_name: str,
        message: Optional[str] = None,
        attempts: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = message or f"{service_name} is unavailable"
        details = dict(details or {})
        details.update({"service": service_name, "attempts": attempts})
        super().__init__(message, ErrorCode.EXTERNAL_SERVICE_ERROR, details, 502)
        self.service_name = service_name
        self.attempts = attempts


class TransactionError(BaseAppException):
    """Exception raised when a database transaction fails to commit"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {"error_type": type(original_error).__name__} if original_error else {}
        super().__init__(message, ErrorCode.TRANSACTION_FAILED, details, 500)
        self.original_error = original_error
