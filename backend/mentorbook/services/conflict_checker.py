# backend/mentorbook/services/conflict_checker.py
"""
Conflict Checker Service for the booking service.

Runs the booking-creation preconditions that depend on time and on the
mentor's calendar, in a fixed order:

1. minimum notice
2. advance booking horizon
3. weekly availability (in each slot's own timezone)
4. buffered slot conflicts with pending/confirmed bookings
5. the offering's daily booking cap (on the slot's local calendar day)

Each failed check raises its own exception so callers can tell them apart.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    DailyLimitReachedException,
    InsufficientNoticeException,
    OutsideAvailabilityException,
    SlotConflictException,
    TooFarInAdvanceException,
)
from ..core.timezone_utils import day_of_week_index, local_day_bounds_utc, to_local
from ..models.availability import AvailabilitySlot
from ..models.booking import buffered_interval
from ..models.offering import Offering
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingWindow:
    """Where an accepted request sits on the mentor's calendar."""

    scheduled_at: datetime
    blocked_start: datetime
    blocked_end: datetime
    slot: AvailabilitySlot
    local_date: date


class ConflictChecker(BaseService):
    """Validates a requested start time against an offering's booking rules."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)

    @BaseService.measure_operation("validate_new_booking")
    def validate_new_booking(
        self,
        offering: Offering,
        scheduled_at: datetime,
        now: Optional[datetime] = None,
    ) -> BookingWindow:
        """
        Run every time/calendar precondition for a new booking.

        Args:
            offering: The offering being booked (already checked to be active)
            scheduled_at: Requested UTC start
            now: Reference instant; defaults to the service clock

        Returns:
            The booking window to persist

        Raises:
            InsufficientNoticeException, TooFarInAdvanceException,
            OutsideAvailabilityException, SlotConflictException,
            DailyLimitReachedException
        """
        now = now or self.now()
        self.check_notice(offering, scheduled_at, now)
        self.check_advance_window(offering, scheduled_at, now)
        slot = self.find_matching_slot(offering.mentor_id, scheduled_at)

        blocked_start, blocked_end = buffered_interval(
            scheduled_at,
            offering.duration_minutes,
            offering.buffer_before_minutes,
            offering.buffer_after_minutes,
        )
        self.check_slot_conflict(offering.mentor_id, blocked_start, blocked_end)

        local_date = to_local(scheduled_at, slot.timezone).date()
        self.check_daily_limit(offering, local_date, slot.timezone)

        return BookingWindow(
            scheduled_at=scheduled_at,
            blocked_start=blocked_start,
            blocked_end=blocked_end,
            slot=slot,
            local_date=local_date,
        )

    def check_notice(self, offering: Offering, scheduled_at: datetime, now: datetime) -> None:
        earliest = now + timedelta(hours=offering.min_notice_hours)
        if scheduled_at < earliest:
            provided_hours = round((scheduled_at - now).total_seconds() / 3600, 2)
            raise InsufficientNoticeException(offering.min_notice_hours, provided_hours)

    def check_advance_window(
        self, offering: Offering, scheduled_at: datetime, now: datetime
    ) -> None:
        latest = now + timedelta(days=offering.advance_booking_days)
        if scheduled_at > latest:
            raise TooFarInAdvanceException(offering.advance_booking_days, latest)

    def find_matching_slot(self, mentor_id: str, scheduled_at: datetime) -> AvailabilitySlot:
        """
        First slot whose local weekday and [start_time, end_time) contain the start.

        Only the start instant has to fall inside the window.
        """
        slots: List[AvailabilitySlot] = self.availability_repository.get_slots(mentor_id)
        for slot in slots:
            try:
                local = to_local(scheduled_at, slot.timezone)
            except ValueError:
                self.logger.warning(
                    f"Skipping availability slot {slot.id} with unknown timezone {slot.timezone}"
                )
                continue
            if day_of_week_index(local.date()) != slot.day_of_week:
                continue
            if slot.start_time <= local.time() < slot.end_time:
                return slot
        raise OutsideAvailabilityException(mentor_id, scheduled_at)

    def check_slot_conflict(
        self,
        mentor_id: str,
        blocked_start: datetime,
        blocked_end: datetime,
    ) -> None:
        conflicts = self.booking_repository.find_overlapping(mentor_id, blocked_start, blocked_end)
        if conflicts:
            self.logger.info(
                f"Slot conflict for mentor {mentor_id}: {len(conflicts)} overlapping booking(s)"
            )
            raise SlotConflictException(
                details={
                    "mentor_id": mentor_id,
                    "requested_start": blocked_start.isoformat(),
                    "requested_end": blocked_end.isoformat(),
                }
            )

    def check_daily_limit(self, offering: Offering, local_date: date, timezone_name: str) -> None:
        day_start, day_end = local_day_bounds_utc(local_date, timezone_name)
        existing = self.booking_repository.count_active_between(
            offering.mentor_id, day_start, day_end
        )
        if existing >= offering.max_bookings_per_day:
            raise DailyLimitReachedException(offering.max_bookings_per_day, local_date.isoformat())
