# backend/mentorbook/models/content.py
"""
Content items that feedback can reference besides bookings.

Only the columns needed to resolve an item's owner are modelled here.
"""

from sqlalchemy import Column, ForeignKey, String
import ulid

from ..database import Base
from .types import TimestampMixin, UTCDateTime


class Post(TimestampMixin, Base):
    """An article written by a mentor."""

    __tablename__ = "posts"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    author_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)


class MentorEvent(TimestampMixin, Base):
    __tablename__ = "mentor_events"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    created_by = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    starts_at = Column(UTCDateTime, nullable=True)
