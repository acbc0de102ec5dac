# backend/mentorbook/services/availability_service.py
"""
Availability Service for the booking service.

Mentors publish a weekly schedule of windows; saving replaces the whole
schedule in one transaction. Existing bookings are not affected.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, ValidationException
from ..core.timezone_utils import is_valid_timezone
from ..database import with_db_retry
from ..models.availability import AvailabilitySlot
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import AvailabilitySlotInput
from .base import BaseService, Clock
from .user_profile_service import UserProfileService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        user_profile_service: Optional[UserProfileService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_availability_repository(db)
        self.user_profile_service = user_profile_service or UserProfileService(db)

    @BaseService.measure_operation("get_slots")
    def get_slots(self, mentor_id: str) -> List[AvailabilitySlot]:
        """Slots ordered by day of week, then start time."""
        return with_db_retry("get_slots", lambda: self.repository.get_slots(mentor_id))

    @BaseService.measure_operation("replace_slots")
    def replace_slots(
        self,
        mentor_id: str,
        actor_id: str,
        slots: List[AvailabilitySlotInput],
        timezone: str = "UTC",
    ) -> List[AvailabilitySlot]:
        """
        Replace every slot of a mentor.

        Raises:
            ForbiddenException: Actor is not the mentor (or an admin)
            ValidationException: Bad day index, empty/inverted window, unknown timezone
        """
        if actor_id != mentor_id and not self.user_profile_service.is_admin(actor_id):
            raise ForbiddenException("You can only manage your own availability")

        rows = []
        for index, slot in enumerate(slots):
            slot_timezone = slot.timezone or timezone
            if not 0 <= slot.day_of_week <= 6:
                raise ValidationException(
                    "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
                    code="INVALID_DAY_OF_WEEK",
                    details={"index": index, "day_of_week": slot.day_of_week},
                )
            if slot.start_time >= slot.end_time:
                raise ValidationException(
                    "start_time must be before end_time",
                    code="INVALID_TIME_RANGE",
                    details={"index": index},
                )
            if not is_valid_timezone(slot_timezone):
                raise ValidationException(
                    f"Unknown timezone: {slot_timezone}",
                    code="INVALID_TIMEZONE",
                    details={"index": index},
                )
            rows.append(
                {
                    "day_of_week": slot.day_of_week,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "timezone": slot_timezone,
                }
            )

        self.log_operation("replace_slots", mentor_id=mentor_id, slot_count=len(rows))
        with self.transaction():
            self.repository.replace_slots(mentor_id, rows)
        return with_db_retry("get_slots", lambda: self.repository.get_slots(mentor_id))
