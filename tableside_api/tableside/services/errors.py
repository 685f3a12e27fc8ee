from __future__ import annotations

from typing import Any, Optional


class ServiceError(Exception):
    """
    Base class for domain errors raised by services.

    The API layer maps these to the standard error envelope using
    `status_code` and `error_type`.
    """

    status_code: int = 400
    error_type: str = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class DomainValidationError(ServiceError):
    """Request is well-formed but breaks a business rule."""
    status_code = 400
    error_type = "validation_error"


class PermissionDeniedError(ServiceError):
    """Caller may not perform this action."""
    status_code = 403
    error_type = "permission_denied"


class NotFoundError(ServiceError):
    """Referenced entity does not exist in this restaurant."""
    status_code = 404
    error_type = "not_found"


class ConflictError(ServiceError):
    """Action conflicts with current state (duplicates, invalid transitions)."""
    status_code = 409
    error_type = "conflict"
