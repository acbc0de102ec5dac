# backend/mentorbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.feedback_service import FeedbackService
from ...services.notification_service import NotificationService
from ...services.offering_service import OfferingService
from ...services.user_profile_service import UserProfileService
from .database import get_db


def get_notification_service() -> NotificationService:
    """Notification service bound to the process-wide event publisher."""
    return NotificationService()


def get_user_profile_service(db: Session = Depends(get_db)) -> UserProfileService:
    return UserProfileService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    """
    Get conflict checker service instance.

    Args:
        db: Database session

    Returns:
        ConflictChecker instance
    """
    return ConflictChecker(db)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    user_profile_service: UserProfileService = Depends(get_user_profile_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        notification_service: Fire-and-forget event dispatch
        conflict_checker: Creation preconditions
        user_profile_service: Profile resolution for responses

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        notification_service=notification_service,
        conflict_checker=conflict_checker,
        user_profile_service=user_profile_service,
    )


def get_feedback_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    user_profile_service: UserProfileService = Depends(get_user_profile_service),
) -> FeedbackService:
    return FeedbackService(
        db,
        notification_service=notification_service,
        user_profile_service=user_profile_service,
    )


def get_availability_service(
    db: Session = Depends(get_db),
    user_profile_service: UserProfileService = Depends(get_user_profile_service),
) -> AvailabilityService:
    return AvailabilityService(db, user_profile_service=user_profile_service)


def get_offering_service(db: Session = Depends(get_db)) -> OfferingService:
    return OfferingService(db)
