# backend/mentorbook/models/booking.py
"""
Booking model for the mentorship marketplace.

A booking is a self-contained commitment between a mentor and a mentee.
Duration and buffers are snapshotted from the offering at creation time,
and the buffered interval the booking occupies on the mentor's calendar
is persisted as ``blocked_start``/``blocked_end`` so conflict checks and
the PostgreSQL exclusion constraint work on plain columns.

Status changes are validated by the booking state machine before any of
the mutators below is called; the mutators only record the change.
"""

from datetime import datetime, timedelta
import logging
from typing import Optional, Tuple

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import (
    TERMINAL_BOOKING_STATUSES,
    ActorRole,
    BookingStatus,
    CancelledBy,
    PaymentStatus,
)
from ..database import Base
from .types import TimestampMixin, UTCDateTime

logger = logging.getLogger(__name__)


def buffered_interval(
    scheduled_at: datetime,
    duration_minutes: int,
    buffer_before_minutes: int,
    buffer_after_minutes: int,
) -> Tuple[datetime, datetime]:
    """Half-open interval a session blocks: [start - before, start + duration + after)."""
    start = scheduled_at - timedelta(minutes=buffer_before_minutes)
    end = scheduled_at + timedelta(minutes=duration_minutes + buffer_after_minutes)
    return start, end


class Booking(TimestampMixin, Base):
    """Session booking between a mentee and a mentor."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    mentee_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    offering_id = Column(String(26), ForeignKey("offerings.id"), nullable=False)

    # Schedule snapshot
    scheduled_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    buffer_before_minutes = Column(Integer, nullable=False, default=0)
    buffer_after_minutes = Column(Integer, nullable=False, default=0)
    blocked_start = Column(UTCDateTime, nullable=False)
    blocked_end = Column(UTCDateTime, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_order_id = Column(String(100), nullable=True, unique=True)

    meeting_link = Column(Text, nullable=True)
    mentor_notes = Column(Text, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(10), nullable=True)

    mentee_rating = Column(SmallInteger, nullable=True)
    mentee_feedback = Column(Text, nullable=True)

    confirmed_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    offering = relationship("Offering")
    mentor = relationship("User", foreign_keys=[mentor_id])
    mentee = relationship("User", foreign_keys=[mentee_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed')", name="ck_bookings_payment_status"
        ),
        CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('mentor', 'mentee')",
            name="ck_bookings_cancelled_by",
        ),
        CheckConstraint("mentor_id <> mentee_id", name="check_booking_distinct_parties"),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint(
            "mentee_rating IS NULL OR (mentee_rating BETWEEN 1 AND 5)",
            name="check_mentee_rating_range",
        ),
        CheckConstraint("blocked_start < blocked_end", name="check_blocked_interval_order"),
        Index("ix_bookings_mentor_blocked", "mentor_id", "blocked_start", "blocked_end"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: mentor={self.mentor_id}, mentee={self.mentee_id}, "
            f"at={self.scheduled_at}, status={self.status}>"
        )

    @property
    def current_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_BOOKING_STATUSES

    def party_role(self, user_id: str) -> Optional[ActorRole]:
        """Which side of this booking the user is on, if any."""
        if user_id == self.mentor_id:
            return ActorRole.MENTOR
        if user_id == self.mentee_id:
            return ActorRole.MENTEE
        return None

    def confirm(self, at: datetime) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = at
        logger.info(f"Booking {self.id} confirmed")

    def complete(self, at: datetime) -> None:
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = at
        logger.info(f"Booking {self.id} marked as completed")

    def cancel(self, cancelled_by: CancelledBy, reason: Optional[str], at: datetime) -> None:
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_by = cancelled_by.value
        self.cancellation_reason = reason
        self.cancelled_at = at
        logger.info(f"Booking {self.id} cancelled by {cancelled_by.value}")

    def mark_no_show(self) -> None:
        self.status = BookingStatus.NO_SHOW.value
        logger.info(f"Booking {self.id} marked as no-show")
