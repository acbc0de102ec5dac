# backend/mentorbook/repositories/content_repository.py
"""Lookups for articles and events that feedback can reference."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.content import MentorEvent, Post
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PostRepository(BaseRepository[Post]):
    def __init__(self, db: Session):
        super().__init__(db, Post)

    def get_owner_id(self, post_id: str) -> Optional[str]:
        post = self.get_by_id(post_id)
        return post.author_id if post else None

    def list_ids_by_author(self, author_id: str) -> List[str]:
        query = self.db.query(Post.id).filter(Post.author_id == author_id)
        return [row[0] for row in self._execute_query(query)]


class MentorEventRepository(BaseRepository[MentorEvent]):
    def __init__(self, db: Session):
        super().__init__(db, MentorEvent)

    def get_owner_id(self, event_id: str) -> Optional[str]:
        mentor_event = self.get_by_id(event_id)
        return mentor_event.created_by if mentor_event else None

    def list_ids_by_creator(self, creator_id: str) -> List[str]:
        query = self.db.query(MentorEvent.id).filter(MentorEvent.created_by == creator_id)
        return [row[0] for row in self._execute_query(query)]
