# backend/mentorbook/models/__init__.py
"""
SQLAlchemy models for the booking service.

Importing this package registers every table on ``Base.metadata``.
"""

from .availability import AvailabilitySlot
from .booking import Booking
from .content import MentorEvent, Post
from .feedback import Feedback
from .offering import Offering
from .user import MenteeProfile, MentorProfile, User

__all__ = [
    "AvailabilitySlot",
    "Booking",
    "Feedback",
    "MenteeProfile",
    "MentorEvent",
    "MentorProfile",
    "Offering",
    "Post",
    "User",
]
