"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class SchedulingConflictException(ConflictException):
    """Requested slot overlaps existing appointments of the practitioner."""

    def __init__(self, conflicting_ids: list[int], message: str | None = None):
        """Initialize with the ids of the overlapping appointments."""
        self.conflicting_ids = list(conflicting_ids)
        ids = ", ".join(f"#{appointment_id}" for appointment_id in self.conflicting_ids)
        super().__init__(
            message or f"Requested slot conflicts with appointment(s) {ids}",
            details={"conflicting_appointment_ids": self.conflicting_ids},
        )


class InvalidStateTransitionException(ConflictException):
    """Appointment status change not allowed from the current state."""

    def __init__(self, current: str, requested: str, message: str | None = None):
        """Initialize with current and requested states."""
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot change appointment status from '{current}' to '{requested}'",
            details={"current_status": current, "requested_status": requested},
        )
