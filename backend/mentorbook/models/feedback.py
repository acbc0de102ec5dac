# backend/mentorbook/models/feedback.py
"""
Feedback left by users on bookings, articles and events.

One feedback row per (user, feedback_type, reference_id): the unique
constraint is the only arbiter of duplicates.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import FeedbackStatus
from ..database import Base
from .types import TimestampMixin, UTCDateTime

FEEDBACK_UNIQUE_CONSTRAINT = "uq_feedback_user_reference"


class Feedback(TimestampMixin, Base):
    __tablename__ = "feedback"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    feedback_type = Column(String(20), nullable=False)
    reference_id = Column(String(26), nullable=False)
    rating = Column(SmallInteger, nullable=False)
    comment = Column(Text, nullable=True)

    mentor_response = Column(Text, nullable=True)
    mentor_response_at = Column(UTCDateTime, nullable=True)
    responded_by = Column(String(26), ForeignKey("users.id"), nullable=True)

    status = Column(String(20), nullable=False, default=FeedbackStatus.ACTIVE.value)

    author = relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint(
            "user_id", "feedback_type", "reference_id", name=FEEDBACK_UNIQUE_CONSTRAINT
        ),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_feedback_rating_range"),
        CheckConstraint(
            "feedback_type IN ('booking', 'article', 'event')", name="ck_feedback_type"
        ),
        CheckConstraint("status IN ('active', 'archived')", name="ck_feedback_status"),
        Index("ix_feedback_reference", "feedback_type", "reference_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Feedback {self.id}: user={self.user_id}, "
            f"{self.feedback_type}:{self.reference_id}, rating={self.rating}>"
        )
