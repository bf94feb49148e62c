"""
Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer renders it with. Services raise these; the exception handler in
``villa_booking.main`` turns them into ``{"error": {"code", "message", "request_id"}}``.
"""

from typing import Any


class BookingError(Exception):
    code = "booking_error"
    status_code = 400
    default_message = "Booking request failed"

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# Calendar / validation

class ConflictError(BookingError):
    code = "calendar_conflict"
    status_code = 409
    default_message = "Villa is not available for the selected dates"


class InvalidRangeError(BookingError):
    code = "invalid_range"
    status_code = 422
    default_message = "Check-out must be after check-in"


class MinStayViolationError(BookingError):
    code = "min_stay_violation"
    status_code = 422
    default_message = "Stay is shorter than the minimum nights required"


class CapacityExceededError(BookingError):
    code = "capacity_exceeded"
    status_code = 422
    default_message = "Too many guests for this villa"


class VillaUnavailableError(BookingError):
    code = "villa_unavailable"
    status_code = 409
    default_message = "Villa is not open for booking"


# Payment gateway

class PaymentGatewayError(BookingError):
    code = "payment_error"
    status_code = 502
    default_message = "Payment provider error"


class PaymentAuthorizationError(PaymentGatewayError):
    code = "payment_authorization_failed"
    status_code = 402
    default_message = "Payment authorization was declined"


class PaymentCaptureError(PaymentGatewayError):
    code = "payment_capture_failed"
    status_code = 402
    default_message = "Payment capture failed"


class PaymentVoidError(PaymentGatewayError):
    code = "payment_void_failed"
    default_message = "Payment authorization could not be voided"


class PaymentRefundError(PaymentGatewayError):
    code = "payment_refund_failed"
    default_message = "Refund could not be issued"


# State machine / access

class InvalidStateError(BookingError):
    code = "invalid_state"
    status_code = 409
    default_message = "Booking is not in a state that allows this operation"


class HoldExpiredError(InvalidStateError):
    code = "hold_expired"
    default_message = "Hold has expired"


class NotFoundError(BookingError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class ForbiddenError(BookingError):
    code = "forbidden"
    status_code = 403
    default_message = "Not allowed to act on this resource"


class InternalError(BookingError):
    code = "internal_error"
    status_code = 500
    default_message = "Unexpected failure, please retry"


class LockTimeoutError(InternalError):
    code = "lock_timeout"
    status_code = 503
    default_message = "Calendar is busy, please retry"
