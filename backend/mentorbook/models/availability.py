# backend/mentorbook/models/availability.py
"""
Recurring weekly availability windows.

``day_of_week`` uses 0 for Sunday through 6 for Saturday. Times are
wall-clock times in the slot's own IANA ``timezone``.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Time
import ulid

from ..database import Base
from .types import TimestampMixin


class AvailabilitySlot(TimestampMixin, Base):
    __tablename__ = "availability_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_slot_day_of_week"),
        CheckConstraint("start_time < end_time", name="check_slot_time_order"),
        Index("ix_availability_slots_mentor_day", "mentor_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilitySlot {self.id}: mentor={self.mentor_id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time} {self.timezone}>"
        )
