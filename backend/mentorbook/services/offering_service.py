# backend/mentorbook/services/offering_service.py
"""
Offering Service for the booking service.

Mentors create and edit their offerings; admins may edit any offering.
Bookings snapshot duration and buffers, so edits never reach existing
bookings.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import OfferingStatus, RoleName
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..database import with_db_retry
from ..models.offering import Offering
from ..repositories.factory import RepositoryFactory
from ..schemas.offering import OfferingCreate, OfferingUpdate
from .base import BaseService, Clock

logger = logging.getLogger(__name__)


class OfferingService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_offering_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("get_offering")
    def get_offering(self, offering_id: str) -> Offering:
        offering = with_db_retry("get_offering", lambda: self.repository.get_by_id(offering_id))
        if not offering:
            raise NotFoundException("Offering not found", details={"offering_id": offering_id})
        return offering

    @BaseService.measure_operation("list_offerings")
    def list_offerings(
        self,
        mentor_id: Optional[str] = None,
        status: Optional[OfferingStatus] = None,
    ) -> List[Offering]:
        return with_db_retry(
            "list_offerings", lambda: self.repository.list_offerings(mentor_id, status)
        )

    @BaseService.measure_operation("create_offering")
    def create_offering(self, actor_id: str, data: OfferingCreate) -> Offering:
        """Publish a new offering owned by the acting mentor."""
        user = with_db_retry("get_user", lambda: self.user_repository.get_by_id(actor_id))
        if not user:
            raise NotFoundException("User not found", details={"user_id": actor_id})
        if user.role not in (RoleName.MENTOR.value, RoleName.ADMIN.value):
            raise ForbiddenException("Only mentors can create offerings")

        values = data.model_dump()
        values["status"] = data.status.value
        self.log_operation("create_offering", mentor_id=actor_id, title=data.title)
        with self.transaction():
            offering = self.repository.create(mentor_id=actor_id, **values)
        return offering

    @BaseService.measure_operation("update_offering")
    def update_offering(self, offering_id: str, actor_id: str, changes: OfferingUpdate) -> Offering:
        """
        Apply a partial update.

        Raises:
            NotFoundException: Unknown offering
            ForbiddenException: Actor is neither the owner nor an admin
            ValidationException: Nothing to change, or a required field set to null
        """
        offering = self.get_offering(offering_id)
        if offering.mentor_id != actor_id:
            actor = with_db_retry("get_user", lambda: self.user_repository.get_by_id(actor_id))
            if not actor or not actor.is_admin:
                raise ForbiddenException(
                    "You can only edit your own offerings", details={"offering_id": offering_id}
                )

        values = changes.model_dump(exclude_unset=True)
        if not values:
            raise ValidationException("No changes supplied", code="EMPTY_UPDATE")
        nullable = {"description", "category", "cancellation_policy", "preparation_notes"}
        for field, value in values.items():
            if value is None and field not in nullable:
                raise ValidationException(f"{field} cannot be null", details={"field": field})
        if isinstance(values.get("status"), OfferingStatus):
            values["status"] = values["status"].value

        self.log_operation("update_offering", offering_id=offering_id, fields=sorted(values))
        with self.transaction():
            for field, value in values.items():
                setattr(offering, field, value)
            self.repository.flush()
        return offering
