# backend/mentorbook/repositories/__init__.py
"""
Repository Pattern Implementation for the booking service.

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from mentorbook.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    overlapping = repository.find_overlapping(mentor_id, start, end)
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "RepositoryFactory"]
