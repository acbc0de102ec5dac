# backend/mentorbook/services/feedback_service.py
"""
Feedback Service for the mentorship marketplace.

Users leave one rated feedback entry per booking, article or event. The
storage-level unique constraint decides duplicates: the insert is attempted
and a violation is reported as DuplicateFeedbackException, so two
concurrent submissions can never both succeed.

The owner of the referenced content (booking mentor, article author,
event creator) or an admin may respond once.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import ActorRole, FeedbackStatus, FeedbackType
from ..core.exceptions import (
    DuplicateFeedbackException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..database import with_db_retry
from ..models.booking import Booking
from ..models.feedback import FEEDBACK_UNIQUE_CONSTRAINT, Feedback
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .notification_service import NotificationService
from .user_profile_service import UserProfile, UserProfileService

logger = logging.getLogger(__name__)

LEGACY_ID_PREFIX = "legacy-"


@dataclass
class FeedbackView:
    """A feedback row, or a rating stored on a booking, ready for display."""

    id: str
    user_id: str
    feedback_type: str
    reference_id: str
    rating: int
    comment: Optional[str]
    status: str
    created_at: Optional[datetime]
    mentor_response: Optional[str] = None
    mentor_response_at: Optional[datetime] = None
    responded_by: Optional[str] = None
    is_legacy: bool = False
    author: Optional[UserProfile] = None

    @classmethod
    def from_feedback(cls, feedback: Feedback) -> "FeedbackView":
        return cls(
            id=feedback.id,
            user_id=feedback.user_id,
            feedback_type=feedback.feedback_type,
            reference_id=feedback.reference_id,
            rating=feedback.rating,
            comment=feedback.comment,
            status=feedback.status,
            created_at=feedback.created_at,
            mentor_response=feedback.mentor_response,
            mentor_response_at=feedback.mentor_response_at,
            responded_by=feedback.responded_by,
        )

    @classmethod
    def from_legacy_booking(cls, booking: Booking) -> "FeedbackView":
        return cls(
            id=f"{LEGACY_ID_PREFIX}{booking.id}",
            user_id=booking.mentee_id,
            feedback_type=FeedbackType.BOOKING.value,
            reference_id=booking.id,
            rating=booking.mentee_rating,
            comment=booking.mentee_feedback,
            status=FeedbackStatus.ACTIVE.value,
            created_at=booking.completed_at or booking.updated_at,
            is_legacy=True,
        )


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _validate_rating(rating: object) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationException(
            "Rating must be between 1 and 5", code="INVALID_RATING", details={"rating": rating}
        )
    return rating


class FeedbackService(BaseService):
    """Business logic for feedback on bookings, articles and events."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        user_profile_service: Optional[UserProfileService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_feedback_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.post_repository = RepositoryFactory.create_post_repository(db)
        self.event_repository = RepositoryFactory.create_mentor_event_repository(db)
        self.notification_service = notification_service or NotificationService()
        self.user_profile_service = user_profile_service or UserProfileService(db)

    def _parse_type(self, feedback_type: str) -> FeedbackType:
        try:
            return FeedbackType(feedback_type)
        except ValueError:
            raise ValidationException(
                "Invalid feedback type",
                code="INVALID_FEEDBACK_TYPE",
                details={"allowed": [item.value for item in FeedbackType]},
            ) from None

    def resolve_owner_id(self, feedback_type: FeedbackType, reference_id: str) -> Optional[str]:
        """Owner of the referenced item, or None when the item does not exist."""
        if feedback_type == FeedbackType.BOOKING:
            booking = with_db_retry(
                "get_booking", lambda: self.booking_repository.get_by_id(reference_id)
            )
            return booking.mentor_id if booking else None
        if feedback_type == FeedbackType.ARTICLE:
            return with_db_retry(
                "get_post_owner", lambda: self.post_repository.get_owner_id(reference_id)
            )
        return with_db_retry(
            "get_event_owner", lambda: self.event_repository.get_owner_id(reference_id)
        )

    def _get_feedback(self, feedback_id: str) -> Feedback:
        feedback = with_db_retry("get_feedback", lambda: self.repository.get_by_id(feedback_id))
        if not feedback:
            raise NotFoundException("Feedback not found", details={"feedback_id": feedback_id})
        return feedback

    @BaseService.measure_operation("create_feedback")
    def create_feedback(
        self,
        user_id: str,
        feedback_type: str,
        reference_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Feedback:
        """
        Submit feedback on an item.

        Raises:
            ValidationException: Unknown type, missing reference, rating out of range
            NotFoundException: The referenced item does not exist
            DuplicateFeedbackException: The user already left feedback on it
        """
        parsed_type = self._parse_type(feedback_type)
        if not reference_id:
            raise ValidationException("reference_id is required", code="MISSING_REFERENCE")
        rating = _validate_rating(rating)

        owner_id = self.resolve_owner_id(parsed_type, reference_id)
        if owner_id is None:
            raise NotFoundException(
                "Reference item not found",
                details={"feedback_type": parsed_type.value, "reference_id": reference_id},
            )

        self.log_operation(
            "create_feedback",
            user_id=user_id,
            feedback_type=parsed_type.value,
            reference_id=reference_id,
        )
        try:
            with self.transaction():
                feedback = self.repository.create(
                    user_id=user_id,
                    feedback_type=parsed_type.value,
                    reference_id=reference_id,
                    rating=rating,
                    comment=_clean_text(comment),
                    status=FeedbackStatus.ACTIVE.value,
                )
        except IntegrityError as exc:
            if FEEDBACK_UNIQUE_CONSTRAINT in str(exc) or "unique" in str(exc).lower():
                raise DuplicateFeedbackException(parsed_type.value, reference_id) from exc
            raise ValidationException(
                "Feedback references an unknown user", code="INVALID_REFERENCE"
            ) from exc

        self.notification_service.feedback_submitted(feedback, owner_id)
        return feedback

    @BaseService.measure_operation("respond_to_feedback")
    def respond_to_feedback(self, feedback_id: str, actor_id: str, response: str) -> Feedback:
        """
        Attach the content owner's response. Only one response is accepted.

        Raises:
            NotFoundException: Unknown feedback
            ForbiddenException: Actor neither owns the content nor is an admin
            ValidationException: Empty response, archived feedback, or already answered
        """
        feedback = self._get_feedback(feedback_id)
        owner_id = self.resolve_owner_id(FeedbackType(feedback.feedback_type), feedback.reference_id)
        if actor_id != owner_id and not self.user_profile_service.is_admin(actor_id):
            raise ForbiddenException(
                "You can only respond to feedback on your own content",
                details={"feedback_id": feedback_id},
            )

        text = _clean_text(response)
        if text is None:
            raise ValidationException("Response cannot be empty", code="EMPTY_RESPONSE")
        if feedback.status == FeedbackStatus.ARCHIVED.value:
            raise ValidationException(
                "Cannot respond to archived feedback", code="FEEDBACK_ARCHIVED"
            )

        with self.transaction():
            stored = self.repository.set_response_if_absent(
                feedback.id, text, responded_by=actor_id, responded_at=self.now()
            )
            if not stored:
                raise ValidationException(
                    "Response already submitted for this feedback",
                    code="RESPONSE_ALREADY_SUBMITTED",
                )

        self.db.refresh(feedback)
        self.notification_service.feedback_responded(feedback)
        return feedback

    @BaseService.measure_operation("update_feedback")
    def update_feedback(
        self,
        feedback_id: str,
        actor_id: str,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Feedback:
        """Let the author change their own rating and/or comment; a blank comment clears it."""
        feedback = self._get_feedback(feedback_id)
        if feedback.user_id != actor_id:
            raise ForbiddenException(
                "You can only update your own feedback", details={"feedback_id": feedback_id}
            )
        if feedback.status == FeedbackStatus.ARCHIVED.value:
            raise ValidationException("Cannot edit archived feedback", code="FEEDBACK_ARCHIVED")

        with self.transaction():
            if rating is not None:
                feedback.rating = _validate_rating(rating)
            if comment is not None:
                feedback.comment = _clean_text(comment)
            self.repository.flush()
        return feedback

    @BaseService.measure_operation("archive_feedback")
    def archive_feedback(self, feedback_id: str, actor_id: str) -> Feedback:
        """Soft-delete feedback; allowed for its author or an admin."""
        feedback = self._get_feedback(feedback_id)
        if feedback.user_id != actor_id and not self.user_profile_service.is_admin(actor_id):
            raise ForbiddenException(
                "You can only delete your own feedback", details={"feedback_id": feedback_id}
            )
        if feedback.status == FeedbackStatus.ARCHIVED.value:
            return feedback

        with self.transaction():
            feedback.status = FeedbackStatus.ARCHIVED.value
            self.repository.flush()
        self.logger.info(f"Feedback {feedback_id} archived by {actor_id}")
        return feedback

    @BaseService.measure_operation("list_feedback")
    def list_feedback(
        self,
        feedback_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        status: FeedbackStatus = FeedbackStatus.ACTIVE,
    ) -> List[FeedbackView]:
        """Feedback (active by default), optionally narrowed to one item, newest first."""
        parsed_type = self._parse_type(feedback_type) if feedback_type else None
        rows = with_db_retry(
            "list_feedback",
            lambda: self.repository.list_for_reference(parsed_type, reference_id, status),
        )
        return self._with_authors([FeedbackView.from_feedback(row) for row in rows])

    @BaseService.measure_operation("list_feedback_for_mentor")
    def list_feedback_for_mentor(self, mentor_id: str, actor_id: str) -> List[FeedbackView]:
        """
        The mentor's feedback inbox.

        Active feedback on anything the mentor owns, plus ratings stored
        directly on completed bookings that have no feedback row.
        """
        if actor_id != mentor_id and not self.user_profile_service.is_admin(actor_id):
            raise ForbiddenException("You can only view feedback on your own content")

        def _load() -> List[FeedbackView]:
            booking_ids = self.booking_repository.list_ids_for_mentor(mentor_id)
            rows = self.repository.list_for_references(
                booking_ids,
                self.post_repository.list_ids_by_author(mentor_id),
                self.event_repository.list_ids_by_creator(mentor_id),
            )
            views = [FeedbackView.from_feedback(row) for row in rows]

            rated = self.booking_repository.list_rated_completed_for_mentor(mentor_id)
            covered = self.repository.booking_ids_with_feedback(booking.id for booking in rated)
            views.extend(
                FeedbackView.from_legacy_booking(booking)
                for booking in rated
                if booking.id not in covered
            )
            return views

        views = with_db_retry("list_feedback_for_mentor", _load)
        views.sort(
            key=lambda view: view.created_at.timestamp() if view.created_at else 0.0, reverse=True
        )
        return self._with_authors(views)

    def _with_authors(self, views: List[FeedbackView]) -> List[FeedbackView]:
        profiles = self.user_profile_service.resolve_many(
            (view.user_id for view in views), prefer=ActorRole.MENTEE
        )
        for view in views:
            view.author = profiles.get(view.user_id)
        return views
