"""Domain exceptions for the account lifecycle and billing engine.

Each error carries a human-readable message, a stable code and the HTTP
status the API layer answers with.
"""

from typing import Any, Dict


class PowerlinkError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class ValidationError(PowerlinkError):
    """Malformed input (bad account number, missing applicant fields, etc.)."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code, 400)


class NotFoundError(PowerlinkError):
    """Entity absent from storage."""

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code, 404)


class ConflictError(PowerlinkError):
    """Duplicate entity, double assignment or an illegal state change."""

    def __init__(self, message: str, code: str = "conflict"):
        super().__init__(message, code, 409)


class TransientStorageError(PowerlinkError):
    """Underlying store unavailable; the caller should retry later."""

    def __init__(
        self,
        message: str = "The service is temporarily unavailable. Please try again later.",
        code: str = "storage_unavailable",
    ):
        super().__init__(message, code, 503)


class AuthenticationError(PowerlinkError):
    """Credentials rejected."""

    def __init__(self, message: str = "Invalid credentials", code: str = "authentication_failed"):
        super().__init__(message, code, 401)


class AccountNumberNotFoundError(NotFoundError):
    """Account number is not part of the provisioned pool."""

    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__(
            f"Account number {account_number} does not exist in the pool",
            "account_number_not_found",
        )


class AlreadyAssignedError(ConflictError):
    """Account number is already assigned to a consumer."""

    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__(
            f"Account number {account_number} is already assigned",
            "account_number_already_assigned",
        )


class InvalidTransitionError(ConflictError):
    """Application is not in a state that allows the requested change."""

    def __init__(self, application_id: str, current_status: str):
        self.application_id = application_id
        self.current_status = current_status
        super().__init__(
            f"Application {application_id} is already {current_status} and cannot be decided again",
            "invalid_transition",
        )


class MeterReadingAnomalyError(ValidationError):
    """Meter value went backwards."""

    def __init__(self, message: str):
        super().__init__(message, "meter_reading_anomaly")


def error_response(error: PowerlinkError) -> Dict[str, Any]:
    """Create a standardized error response body."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "PowerlinkError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TransientStorageError",
    "AuthenticationError",
    "AccountNumberNotFoundError",
    "AlreadyAssignedError",
    "InvalidTransitionError",
    "MeterReadingAnomalyError",
    "error_response",
]
