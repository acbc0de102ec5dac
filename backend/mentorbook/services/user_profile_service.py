# backend/mentorbook/services/user_profile_service.py
"""
Single lookup for the public profile of any user.

A user can hold a mentor profile, a mentee profile or both; callers say
which one they prefer and fall back to the other. Results are memoized per
service instance so each id is resolved once per request.
"""

from dataclasses import dataclass
import logging
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import ActorRole
from ..database import with_db_retry
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserProfile:
    """Public profile of a user, in its mentor or mentee variant."""

    user_id: str
    kind: ActorRole
    name: str
    profile_url: Optional[str] = None


class UserProfileService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self._cache: Dict[Tuple[str, ActorRole], Optional[UserProfile]] = {}

    def resolve(self, user_id: str, prefer: ActorRole = ActorRole.MENTEE) -> Optional[UserProfile]:
        """Profile for one user; None when the user has neither profile."""
        return self.resolve_many([user_id], prefer).get(user_id)

    def resolve_many(
        self, user_ids: Iterable[str], prefer: ActorRole = ActorRole.MENTEE
    ) -> Dict[str, Optional[UserProfile]]:
        """Batch variant of ``resolve``; one query per profile table for unseen ids."""
        ids = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        missing = [user_id for user_id in ids if (user_id, prefer) not in self._cache]
        if missing:
            mentors = {
                profile.user_id: UserProfile(
                    profile.user_id, ActorRole.MENTOR, profile.name, profile.profile_url
                )
                for profile in with_db_retry(
                    "get_mentor_profiles", lambda: self.user_repository.get_mentor_profiles(missing)
                )
            }
            mentees = {
                profile.user_id: UserProfile(
                    profile.user_id, ActorRole.MENTEE, profile.name, profile.profile_url
                )
                for profile in with_db_retry(
                    "get_mentee_profiles", lambda: self.user_repository.get_mentee_profiles(missing)
                )
            }
            first, second = (mentors, mentees) if prefer == ActorRole.MENTOR else (mentees, mentors)
            for user_id in missing:
                self._cache[(user_id, prefer)] = first.get(user_id) or second.get(user_id)
        return {user_id: self._cache[(user_id, prefer)] for user_id in ids}

    def is_admin(self, user_id: str) -> bool:
        user = with_db_retry("get_user", lambda: self.user_repository.get_by_id(user_id))
        return bool(user and user.is_admin)
