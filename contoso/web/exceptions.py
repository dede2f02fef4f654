"""
Registrar service exceptions

This module defines the exception classes raised by route handlers.
Each one carries the HTTP status it maps to and renders itself as JSON.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all service errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize AppException.

        Args:
            message: Human-readable error message
            status_code: HTTP status code to return
            details: Additional error details (optional)
            extra: Additional top-level body members (optional)
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        self.extra = extra or {}

    def to_dict(self) -> dict:
        """Convert exception to dict for JSON response."""
        result = {
            "error": self.message,
        }
        if self.details:
            result["details"] = self.details
        result.update(self.extra)
        return result


class RecordNotFoundError(AppException):
    """Exception raised when a record does not exist."""

    def __init__(
        self,
        entity: str,
        record_id: int,
        details: Optional[str] = None,
    ):
        super().__init__(
            message=f"{entity.capitalize()} not found: {record_id}",
            status_code=404,
            details=details,
        )
        self.entity = entity
        self.record_id = record_id


class RecordGoneError(AppException):
    """
    Exception raised when a record was deleted by another user while the
    caller was working on it. Terminal: the caller should go back to the list.
    """

    def __init__(
        self,
        entity: str,
        record_id: int,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or f"The {entity} was deleted by another user.",
            status_code=410,
        )
        self.entity = entity
        self.record_id = record_id


class EditConflictError(AppException):
    """
    Exception raised when an edit lost a version race.

    The body carries the per-field report, the current stored values and
    the record to resubmit.
    """

    def __init__(
        self,
        entity: str,
        record_id: int,
        field_errors: Dict[str, str],
        advisories: list,
        current: Dict[str, Any],
        retry: Dict[str, Any],
    ):
        super().__init__(
            message=f"{entity.capitalize()} {record_id} was modified by another user",
            status_code=409,
            extra={
                "field_errors": field_errors,
                "advisories": advisories,
                "current": current,
                "retry": retry,
            },
        )


class DeleteConflictError(AppException):
    """Exception raised when a delete lost a version race."""

    def __init__(
        self,
        entity: str,
        record_id: int,
        message: str,
        current: Dict[str, Any],
    ):
        super().__init__(
            message=message,
            status_code=409,
            extra={"current": current},
        )
        self.entity = entity
        self.record_id = record_id


class ValidationError(AppException):
    """Exception raised for request validation errors."""

    def __init__(
        self,
        message: str = "Validation error",
        details: Optional[Any] = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            details=details,
        )


class ServiceUnavailableError(AppException):
    """
    Exception raised when the backing store cannot serve the request.
    Carries no field-level detail.
    """

    def __init__(
        self,
        message: str = "The service is temporarily unavailable. Try again later.",
    ):
        super().__init__(
            message=message,
            status_code=503,
        )
