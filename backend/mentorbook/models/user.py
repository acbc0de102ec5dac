# backend/mentorbook/models/user.py
"""
User accounts and the two public profile shapes.

A user may hold both a mentor and a mentee profile: mentors can book
sessions with other mentors.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import RoleName
from ..database import Base
from .types import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.MENTEE.value)
    timezone = Column(String(64), nullable=False, default="UTC")

    mentor_profile = relationship("MentorProfile", back_populates="user", uselist=False)
    mentee_profile = relationship("MenteeProfile", back_populates="user", uselist=False)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'mentor', 'mentee')", name="ck_users_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<User {self.id}: role={self.role}>"


class MentorProfile(TimestampMixin, Base):
    __tablename__ = "mentor_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    headline = Column(String(255), nullable=True)
    profile_url = Column(Text, nullable=True)

    user = relationship("User", back_populates="mentor_profile")


class MenteeProfile(TimestampMixin, Base):
    __tablename__ = "mentee_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    profile_url = Column(Text, nullable=True)

    user = relationship("User", back_populates="mentee_profile")
