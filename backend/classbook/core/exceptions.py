# backend/classbook/core/exceptions.py
"""
Domain-specific exceptions for the Classbook engine.

Every exception carries an ``ErrorKind`` tag so callers can branch on the
kind of failure without isinstance chains. The transport layer converts them
with ``to_http_exception()``.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class ErrorKind(str, Enum):
    """Tag carried by every domain exception."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_TRANSITION = "invalid_transition"
    STORE_UNAVAILABLE = "store_unavailable"
    INTERNAL = "internal"


# Exhaustive kind -> HTTP status table used by to_http_exception().
HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: HTTP_422_UNPROCESSABLE,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        """Only store outages are worth retrying without changing the input."""
        return self.kind is ErrorKind.STORE_UNAVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "kind": self.kind.value,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the kind table."""
        return HTTPException(
            status_code=HTTP_STATUS_BY_KIND[self.kind],
            detail=self.to_dict(),
        )


class ValidationException(DomainException):
    """Raised when input is malformed, missing or out of range."""

    kind = ErrorKind.VALIDATION


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    kind = ErrorKind.CONFLICT


class InvalidTransitionException(DomainException):
    """Raised when a booking status change is not allowed by the lifecycle table."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=(
                f"Cannot change booking status from '{current_status}' to '{requested_status}'"
            ),
            code="BOOKING_INVALID_TRANSITION",
            details={
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class StoreUnavailableException(DomainException):
    """Raised when the store times out or the connection fails. Safe to retry."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Store temporarily unavailable. Please retry.",
            code="STORE_UNAVAILABLE",
            details=details or {},
        )

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


class ServiceException(DomainException):
    """Raised when a service operation fails unexpectedly."""

    kind = ErrorKind.INTERNAL


# Specific business exceptions


class InstructorConflictException(ConflictException):
    """Raised when a class would overlap another class."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Class schedule overlaps with an existing class",
            code="CLASS_OVERLAP",
            details=details or {},
        )


class DuplicateBookingException(ConflictException):
    """Raised when a member already holds an active booking for the class."""

    def __init__(self, class_id: str, member_id: str):
        super().__init__(
            message="Member already has a booking for this class",
            code="BOOKING_DUPLICATE",
            details={"class_id": class_id, "member_id": member_id},
        )


class CapacityExceededException(ConflictException):
    """Raised when a class has no seats left."""

    def __init__(self, class_id: str, max_capacity: int):
        super().__init__(
            message="Class is at maximum capacity",
            code="BOOKING_CLASS_FULL",
            details={"class_id": class_id, "max_capacity": max_capacity},
        )


class ClassHasBookingsException(ConflictException):
    """Raised when deleting a class that still has bookings."""

    def __init__(self, class_id: str, booking_count: int):
        super().__init__(
            message="Cannot delete a class with active bookings",
            code="CLASS_HAS_BOOKINGS",
            details={"class_id": class_id, "booking_count": booking_count},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as query failures or constraint violations.
    """


_TRANSIENT_ERROR_SNIPPETS = (
    "database is locked",
    "statement timeout",
    "canceling statement due to",
    "lock timeout",
    "could not connect",
    "connection refused",
    "server closed the connection",
    "queuepool",
)


def is_transient_store_error(exc: BaseException) -> bool:
    """
    Check if an exception looks like a store timeout or connection failure.

    Pool exhaustion, lock waits that hit the busy/statement timeout and dropped
    connections all land here.
    """
    error_str = str(exc).lower()
    if any(snippet in error_str for snippet in _TRANSIENT_ERROR_SNIPPETS):
        return True
    return "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
