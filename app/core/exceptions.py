"""
Domain errors raised by the service layer.

Routers translate these into the standard error envelope through
``app.utils.response_utils.handle_domain_error``.
"""
from typing import Any, Dict, Optional

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details


class ValidationError(DomainError):
    error_code = "VALIDATION_ERROR"


class InvalidDateError(ValidationError):
    error_code = "INVALID_DATE"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class StateConflictError(DomainError):
    error_code = "STATE_CONFLICT"


class AlreadyPendingError(StateConflictError):
    error_code = "ALREADY_PENDING"


class InvalidStateError(StateConflictError):
    error_code = "INVALID_STATE"


class OverpaymentError(DomainError):
    error_code = "OVERPAYMENT"


class OverrefundError(DomainError):
    error_code = "OVERREFUND"


class RateLimitedError(DomainError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMITED"


class ExpiredError(DomainError):
    error_code = "CODE_EXPIRED"


class AttemptsExceededError(DomainError):
    error_code = "ATTEMPTS_EXCEEDED"


class InvalidCodeError(DomainError):
    error_code = "INVALID_CODE"


class InvalidTokenError(DomainError):
    error_code = "INVALID_TOKEN"


class AuthExpiredError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "TOKEN_EXPIRED"


class DeliveryError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "DELIVERY_FAILED"
