# backend/mentorbook/repositories/offering_repository.py
"""Data access for mentor offerings."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import OfferingStatus
from ..models.offering import Offering
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class OfferingRepository(BaseRepository[Offering]):
    def __init__(self, db: Session):
        super().__init__(db, Offering)

    def list_offerings(
        self,
        mentor_id: Optional[str] = None,
        status: Optional[OfferingStatus] = None,
        limit: int = 100,
    ) -> List[Offering]:
        query = self._build_query()
        if mentor_id:
            query = query.filter(Offering.mentor_id == mentor_id)
        if status is not None:
            query = query.filter(Offering.status == status.value)
        return self._execute_query(
            query.order_by(Offering.featured.desc(), Offering.created_at.desc()).limit(limit)
        )
