# backend/mentorbook/repositories/feedback_repository.py
"""
Repositories for the feedback system.

Follows repository pattern: no business logic, DB-only operations.
"""

from datetime import datetime
import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import FeedbackStatus, FeedbackType
from ..core.exceptions import RepositoryException
from ..models.feedback import Feedback
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class FeedbackRepository(BaseRepository[Feedback]):
    """Data access for `Feedback`."""

    def __init__(self, db: Session):
        super().__init__(db, Feedback)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Feedback:
        """Insert feedback; the unique constraint violation surfaces as IntegrityError."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def list_for_reference(
        self,
        feedback_type: Optional[FeedbackType] = None,
        reference_id: Optional[str] = None,
        status: FeedbackStatus = FeedbackStatus.ACTIVE,
        limit: int = 100,
    ) -> List[Feedback]:
        query = self._build_query().filter(Feedback.status == status.value)
        if feedback_type is not None:
            query = query.filter(Feedback.feedback_type == feedback_type.value)
        if reference_id:
            query = query.filter(Feedback.reference_id == reference_id)
        return self._execute_query(query.order_by(Feedback.created_at.desc()).limit(limit))

    def list_for_references(
        self,
        booking_ids: Iterable[str],
        article_ids: Iterable[str],
        event_ids: Iterable[str],
    ) -> List[Feedback]:
        """Active feedback attached to any of the given items."""
        clauses = []
        for feedback_type, ids in (
            (FeedbackType.BOOKING, list(booking_ids)),
            (FeedbackType.ARTICLE, list(article_ids)),
            (FeedbackType.EVENT, list(event_ids)),
        ):
            if ids:
                clauses.append(
                    and_(
                        Feedback.feedback_type == feedback_type.value,
                        Feedback.reference_id.in_(ids),
                    )
                )
        if not clauses:
            return []
        query = self._build_query().filter(
            Feedback.status == FeedbackStatus.ACTIVE.value, or_(*clauses)
        )
        return self._execute_query(query.order_by(Feedback.created_at.desc()))

    def booking_ids_with_feedback(self, booking_ids: Iterable[str]) -> set[str]:
        ids = list(booking_ids)
        if not ids:
            return set()
        query = self.db.query(Feedback.reference_id).filter(
            Feedback.feedback_type == FeedbackType.BOOKING.value,
            Feedback.reference_id.in_(ids),
        )
        return {row[0] for row in self._execute_query(query)}

    def set_response_if_absent(
        self, feedback_id: str, response: str, responded_by: str, responded_at: datetime
    ) -> bool:
        """
        Store a mentor response unless one is already present.

        A single conditional UPDATE, so two concurrent first responses
        cannot both win. Returns False when a response already existed.
        """
        try:
            updated = (
                self.db.query(Feedback)
                .filter(Feedback.id == feedback_id, Feedback.mentor_response.is_(None))
                .update(
                    {
                        Feedback.mentor_response: response,
                        Feedback.mentor_response_at: responded_at,
                        Feedback.responded_by: responded_by,
                    },
                    synchronize_session="fetch",
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving response for feedback {feedback_id}: {str(e)}")
            raise RepositoryException(f"Failed to save response: {str(e)}") from e
