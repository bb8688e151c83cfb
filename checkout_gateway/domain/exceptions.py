"""Domain-specific exceptions"""

from datetime import datetime, timezone
from typing import Any, Dict


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class CheckoutError(DomainException):
    """
    Classified checkout failure.

    Every error that reaches a caller carries a plain-language message, optional
    details (usually the gateway's raw response text), a stable code and the
    time it was raised.
    """

    code = "checkout_error"
    retryable = False

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "retryable": self.retryable,
        }


class InvalidPackageError(CheckoutError):
    """Package or payer data cannot be priced or submitted"""

    code = "invalid_package"


class CheckoutInProgressError(CheckoutError):
    """Submission refused because the session is mid-flight or already redirected"""

    code = "checkout_in_progress"


class RateLimitedError(CheckoutError):
    """Gateway throttled the payment initiation; retry after cooldown"""

    code = "rate_limited"
    retryable = True


class GatewayUnavailableError(CheckoutError):
    """Gateway timed out, returned 5xx or could not be reached"""

    code = "gateway_unavailable"
    retryable = True


class PaymentRejectedError(CheckoutError):
    """Gateway refused the payment details"""

    code = "payment_rejected"


class MalformedGatewayResponseError(CheckoutError):
    """Gateway answered 2xx without the fields needed to redirect"""

    code = "malformed_gateway_response"


class UnknownGatewayError(CheckoutError):
    """Gateway failure that matched no known pattern"""

    code = "unknown_gateway_error"
    retryable = True
