# backend/mentorbook/repositories/booking_repository.py
"""
Booking Repository for the booking service.

Data access for bookings: row locks for status changes, buffered interval
overlap queries, daily counts and the per-user listings.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, cast

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import ACTIVE_BOOKING_STATUSES, ActorRole, BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_BOOKING_STATUSES]


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_by_id(self, id: str, for_update: bool = False) -> Optional[Booking]:
        """Fetch a booking; ``for_update`` takes a row lock on PostgreSQL."""
        try:
            query = self.db.query(Booking).filter(Booking.id == id)
            if for_update:
                query = query.with_for_update()
            return cast(Optional[Booking], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve booking: {str(e)}") from e

    def lock_mentor_calendar(self, mentor_id: str) -> None:
        """
        Serialize booking creation per mentor for the rest of the transaction.

        Locks the mentor's user row on PostgreSQL; SQLite already serializes
        writers, and the FOR UPDATE clause is dropped there.
        """
        try:
            self.db.query(User.id).filter(User.id == mentor_id).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking calendar for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock mentor calendar: {str(e)}") from e

    def find_overlapping(
        self,
        mentor_id: str,
        blocked_start: datetime,
        blocked_end: datetime,
    ) -> List[Booking]:
        """
        Active bookings whose buffered interval overlaps [blocked_start, blocked_end).

        Two half-open intervals overlap iff a1 < b2 and b1 < a2, so touching
        intervals do not conflict.
        """
        query = self.db.query(Booking).filter(
            Booking.mentor_id == mentor_id,
            Booking.status.in_(_ACTIVE_STATUS_VALUES),
            Booking.blocked_start < blocked_end,
            blocked_start < Booking.blocked_end,
        )
        return self._execute_query(query.order_by(Booking.blocked_start))

    def count_active_between(self, mentor_id: str, start_utc: datetime, end_utc: datetime) -> int:
        """Count the mentor's active bookings whose start falls in [start_utc, end_utc)."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.mentor_id == mentor_id,
                    Booking.status.in_(_ACTIVE_STATUS_VALUES),
                    Booking.scheduled_at >= start_utc,
                    Booking.scheduled_at < end_utc,
                )
                .count()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}") from e

    def list_for_user(
        self,
        user_id: str,
        as_role: Optional[ActorRole] = None,
        status: Optional[BookingStatus] = None,
        limit: int = 100,
    ) -> List[Booking]:
        """Bookings where the user is a party, newest first."""
        query = self.db.query(Booking)
        if as_role == ActorRole.MENTOR:
            query = query.filter(Booking.mentor_id == user_id)
        elif as_role == ActorRole.MENTEE:
            query = query.filter(Booking.mentee_id == user_id)
        else:
            query = query.filter(or_(Booking.mentor_id == user_id, Booking.mentee_id == user_id))
        if status is not None:
            query = query.filter(Booking.status == status.value)
        return self._execute_query(query.order_by(Booking.scheduled_at.desc()).limit(limit))

    def list_rated_completed_for_mentor(self, mentor_id: str) -> List[Booking]:
        """Completed bookings carrying a rating stored on the booking itself."""
        query = self.db.query(Booking).filter(
            and_(
                Booking.mentor_id == mentor_id,
                Booking.status == BookingStatus.COMPLETED.value,
                Booking.mentee_rating.isnot(None),
            )
        )
        return self._execute_query(query.order_by(Booking.completed_at.desc()))

    def list_ids_for_mentor(self, mentor_id: str) -> List[str]:
        try:
            rows = self.db.query(Booking.id).filter(Booking.mentor_id == mentor_id).all()
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing booking ids for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}") from e
