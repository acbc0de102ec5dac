# backend/mentorbook/models/offering.py
"""
Bookable session offerings published by mentors.

Bookings copy duration and buffers at creation time, so editing an
offering never changes existing bookings.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import OfferingStatus
from ..database import Base
from .types import TimestampMixin

DEFAULT_DURATION_MINUTES = 30
DEFAULT_BUFFER_MINUTES = 5
DEFAULT_MAX_BOOKINGS_PER_DAY = 5
DEFAULT_ADVANCE_BOOKING_DAYS = 30
DEFAULT_MIN_NOTICE_HOURS = 24


class Offering(TimestampMixin, Base):
    __tablename__ = "offerings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency = Column(String(3), nullable=False, default="INR")

    duration_minutes = Column(Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    buffer_before_minutes = Column(Integer, nullable=False, default=DEFAULT_BUFFER_MINUTES)
    buffer_after_minutes = Column(Integer, nullable=False, default=DEFAULT_BUFFER_MINUTES)
    max_bookings_per_day = Column(Integer, nullable=False, default=DEFAULT_MAX_BOOKINGS_PER_DAY)
    advance_booking_days = Column(Integer, nullable=False, default=DEFAULT_ADVANCE_BOOKING_DAYS)
    min_notice_hours = Column(Integer, nullable=False, default=DEFAULT_MIN_NOTICE_HOURS)

    cancellation_policy = Column(Text, nullable=True)
    preparation_notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=OfferingStatus.DRAFT.value, index=True)
    featured = Column(Boolean, nullable=False, default=False)

    mentor = relationship("User")

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'active', 'paused', 'archived')", name="ck_offerings_status"
        ),
        CheckConstraint("price >= 0", name="check_offering_price_non_negative"),
        CheckConstraint("duration_minutes > 0", name="check_offering_duration_positive"),
        CheckConstraint(
            "buffer_before_minutes >= 0 AND buffer_after_minutes >= 0",
            name="check_offering_buffers_non_negative",
        ),
        CheckConstraint("max_bookings_per_day > 0", name="check_offering_daily_cap_positive"),
        CheckConstraint("advance_booking_days > 0", name="check_offering_horizon_positive"),
        CheckConstraint("min_notice_hours >= 0", name="check_offering_notice_non_negative"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == OfferingStatus.ACTIVE.value

    @property
    def is_free(self) -> bool:
        return Decimal(self.price or 0) == 0

    def __repr__(self) -> str:
        return f"<Offering {self.id}: mentor={self.mentor_id}, status={self.status}>"
