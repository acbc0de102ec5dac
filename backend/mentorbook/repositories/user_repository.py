# backend/mentorbook/repositories/user_repository.py
"""Data access for users and their mentor/mentee profiles."""

import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..models.user import MenteeProfile, MentorProfile, User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_mentor_profiles(self, user_ids: Iterable[str]) -> List[MentorProfile]:
        ids = list(user_ids)
        if not ids:
            return []
        return self._execute_query(
            self.db.query(MentorProfile).filter(MentorProfile.user_id.in_(ids))
        )

    def get_mentee_profiles(self, user_ids: Iterable[str]) -> List[MenteeProfile]:
        ids = list(user_ids)
        if not ids:
            return []
        return self._execute_query(
            self.db.query(MenteeProfile).filter(MenteeProfile.user_id.in_(ids))
        )
