# backend/mentorbook/core/enums.py
"""
Core enums for the mentorship booking service.

Status values are stored as their lowercase string value so the database
rows read the same as the API payloads.
"""

from enum import Enum


class RoleName(str, Enum):
    """Platform roles a user account can hold."""

    ADMIN = "admin"
    MENTOR = "mentor"
    MENTEE = "mentee"


class ActorRole(str, Enum):
    """
    The side an actor plays on a specific booking.

    Resolved from the booking record itself, never from the account role:
    a mentor who books another mentor's session is the mentee on that booking.
    SYSTEM is used by the payment callback.
    """

    MENTOR = "mentor"
    MENTEE = "mentee"
    SYSTEM = "system"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


TERMINAL_BOOKING_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)

# Bookings in these statuses hold their buffered interval on the mentor's calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class CancelledBy(str, Enum):
    MENTOR = "mentor"
    MENTEE = "mentee"


class OfferingStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class FeedbackType(str, Enum):
    """What a feedback entry is attached to."""

    BOOKING = "booking"
    ARTICLE = "article"
    EVENT = "event"


class FeedbackStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class GatewayPaymentStatus(str, Enum):
    """Order status values reported by the payment gateway callback."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
