# backend/mentorbook/core/exceptions.py
"""
Domain-specific exceptions for the booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every booking-creation precondition has its own exception so callers
can tell the failures apart by type or by ``code``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

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

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "NOT_FOUND", details=details)


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller's identity is missing or malformed."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "FORBIDDEN", details=details)


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class ServiceUnavailableException(DomainException):
    """Raised when the store cannot be reached or the pool is exhausted."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Service temporarily overloaded. Please retry.") -> None:
        super().__init__(message, code="SERVICE_UNAVAILABLE")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"message": self.message, "code": self.code, "details": self.details},
            headers={"Retry-After": "2"},
        )


class StoreTimeoutException(DomainException):
    """Raised when a store call exceeds its deadline."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, message: str = "The data store did not respond in time") -> None:
        super().__init__(message, code="STORE_TIMEOUT")


# Booking lifecycle


class NotAPartyException(ForbiddenException):
    """Raised when the actor is neither the mentor nor the mentee of a booking."""

    def __init__(self, booking_id: str, actor_id: str):
        super().__init__(
            message="You are not a participant in this booking",
            code="NOT_A_PARTY",
            details={"booking_id": booking_id, "actor_id": actor_id},
        )


class RoleNotAllowedException(ForbiddenException):
    """Raised when the actor's side of the booking may not perform a transition."""

    def __init__(self, role: str, current_status: str, requested_status: str):
        super().__init__(
            message=f"A {role} cannot move a booking from {current_status} to {requested_status}",
            code="ROLE_NOT_ALLOWED",
            details={
                "role": role,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class InvalidTransitionException(ConflictException):
    """Raised when the requested status is not reachable from the current one."""

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot transition booking from {current_status} to {requested_status}",
            code="INVALID_TRANSITION",
            details={"current_status": current_status, "requested_status": requested_status},
        )
        self.current_status = current_status
        self.requested_status = requested_status


# Booking creation preconditions


class OfferingUnavailableException(BusinessRuleException):
    """Raised when the offering exists but is not accepting bookings."""

    def __init__(self, offering_id: str, offering_status: str):
        super().__init__(
            message="This offering is not currently accepting bookings",
            code="OFFERING_UNAVAILABLE",
            details={"offering_id": offering_id, "status": offering_status},
        )


class InsufficientNoticeException(BusinessRuleException):
    """Raised when booking doesn't meet minimum advance notice."""

    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=f"Bookings must be made at least {required_hours} hours in advance",
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": provided_hours,
            },
        )


class TooFarInAdvanceException(BusinessRuleException):
    """Raised when the requested start is beyond the offering's booking horizon."""

    def __init__(self, advance_booking_days: int, latest_allowed: datetime):
        super().__init__(
            message=f"Bookings can be made at most {advance_booking_days} days in advance",
            code="TOO_FAR_IN_ADVANCE",
            details={
                "advance_booking_days": advance_booking_days,
                "latest_allowed": latest_allowed.isoformat(),
            },
        )


class OutsideAvailabilityException(BusinessRuleException):
    """Raised when the requested start is not inside any availability window."""

    def __init__(self, mentor_id: str, scheduled_at: datetime):
        super().__init__(
            message="The mentor is not available at the requested time",
            code="OUTSIDE_AVAILABILITY",
            details={"mentor_id": mentor_id, "scheduled_at": scheduled_at.isoformat()},
        )


class SlotConflictException(ConflictException):
    """Raised when a booking's buffered interval overlaps another active booking."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="SLOT_CONFLICT",
            details=details or {},
        )


class DailyLimitReachedException(BusinessRuleException):
    """Raised when the mentor already has the maximum bookings on that day."""

    def __init__(self, max_bookings_per_day: int, day: str):
        super().__init__(
            message=f"The mentor has reached the limit of {max_bookings_per_day} bookings on {day}",
            code="DAILY_LIMIT_REACHED",
            details={"max_bookings_per_day": max_bookings_per_day, "date": day},
        )


# Feedback


class DuplicateFeedbackException(ConflictException):
    """Raised when a user has already left feedback for the same item."""

    def __init__(self, feedback_type: str, reference_id: str):
        super().__init__(
            message="You have already provided feedback for this item",
            code="DUPLICATE_FEEDBACK",
            details={"feedback_type": feedback_type, "reference_id": reference_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def is_db_pool_exhaustion(exc: BaseException) -> bool:
    """
    Check if an exception indicates DB connection pool exhaustion.

    This is a common failure mode under high load when all database
    connections are in use and new requests time out waiting.
    """
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )


def is_db_statement_timeout(exc: BaseException) -> bool:
    """Check if an exception is a server-side statement or lock timeout."""
    error_str = str(exc).lower()
    return (
        "statement timeout" in error_str
        or "canceling statement due to" in error_str
        or "database is locked" in error_str
    )


def translate_store_error(exc: BaseException) -> Optional[DomainException]:
    """
    Map a low-level store failure to Unavailable or Timeout.

    Returns None when the error is neither, in which case the caller
    re-raises the original.
    """
    if is_db_statement_timeout(exc):
        return StoreTimeoutException()
    if is_db_pool_exhaustion(exc):
        return ServiceUnavailableException()
    error_str = str(exc).lower()
    if "could not connect" in error_str or "connection refused" in error_str:
        return ServiceUnavailableException("The data store is unreachable. Please retry.")
    return None
