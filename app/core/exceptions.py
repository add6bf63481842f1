"""Domain errors raised by the safety engine.

The HTTP layer maps each class to a status code through ``status_code``;
anything that is not a ``DomainError`` is reported as an internal error.
"""

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Bad coordinates, missing fields, invalid enums, expiry not in future."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ConflictError(DomainError):
    """A domain rule forbids the operation for this kind of entity."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class StateError(DomainError):
    """Mutation attempted on an alert that is no longer ACTIVE."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "INVALID_STATE"


class PermissionDeniedError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class TransientSourceError(DomainError):
    """One sensor read or one message enqueue failed; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "TRANSIENT_FAILURE"

    def __init__(self, message: str, source_id: str = ""):
        super().__init__(message)
        self.source_id = source_id
