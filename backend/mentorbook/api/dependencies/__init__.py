# backend/mentorbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import ACTOR_HEADER, get_actor_id
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_feedback_service,
    get_notification_service,
    get_offering_service,
    get_user_profile_service,
)

__all__ = [
    # Auth
    "ACTOR_HEADER",
    "get_actor_id",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_feedback_service",
    "get_notification_service",
    "get_offering_service",
    "get_user_profile_service",
]
