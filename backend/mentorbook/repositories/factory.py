# backend/mentorbook/repositories/factory.py
"""
Repository Factory for the booking service.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_repository import BookingRepository
    from .content_repository import MentorEventRepository, PostRepository
    from .feedback_repository import FeedbackRepository
    from .offering_repository import OfferingRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_offering_repository(db: Session) -> "OfferingRepository":
        from .offering_repository import OfferingRepository

        return OfferingRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_feedback_repository(db: Session) -> "FeedbackRepository":
        from .feedback_repository import FeedbackRepository

        return FeedbackRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_post_repository(db: Session) -> "PostRepository":
        from .content_repository import PostRepository

        return PostRepository(db)

    @staticmethod
    def create_mentor_event_repository(db: Session) -> "MentorEventRepository":
        from .content_repository import MentorEventRepository

        return MentorEventRepository(db)
