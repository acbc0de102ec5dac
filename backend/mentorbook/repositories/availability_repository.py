# backend/mentorbook/repositories/availability_repository.py
"""
Availability Repository for the booking service.

Weekly availability is replaced wholesale; there is no per-slot update.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilitySlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilitySlot]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilitySlot)

    def get_slots(self, mentor_id: str) -> List[AvailabilitySlot]:
        """All of a mentor's slots ordered by day, then start time."""
        query = (
            self._build_query()
            .filter(AvailabilitySlot.mentor_id == mentor_id)
            .order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time)
        )
        return self._execute_query(query)

    def replace_slots(self, mentor_id: str, slots: List[Dict[str, Any]]) -> List[AvailabilitySlot]:
        """Delete every slot of the mentor and insert ``slots`` in their place."""
        try:
            deleted = (
                self.db.query(AvailabilitySlot)
                .filter(AvailabilitySlot.mentor_id == mentor_id)
                .delete(synchronize_session=False)
            )
            created = [AvailabilitySlot(mentor_id=mentor_id, **data) for data in slots]
            self.db.add_all(created)
            self.db.flush()
            self.logger.debug(
                "Replaced availability for mentor %s: %d removed, %d added",
                mentor_id,
                deleted,
                len(created),
            )
            return created
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing availability for {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to replace availability: {str(e)}") from e
