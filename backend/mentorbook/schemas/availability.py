# backend/mentorbook/schemas/availability.py
"""Weekly availability schemas."""

from datetime import time
from typing import List, Optional

from pydantic import Field

from .base import ResponseModel, StrictRequestModel


class AvailabilitySlotInput(StrictRequestModel):
    day_of_week: int = Field(..., description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time
    timezone: Optional[str] = Field(None, description="Overrides the request-level timezone")


class AvailabilityReplaceRequest(StrictRequestModel):
    slots: List[AvailabilitySlotInput] = Field(default_factory=list)
    timezone: str = "UTC"


class AvailabilitySlotResponse(ResponseModel):
    id: str
    mentor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    timezone: str


class AvailabilityResponse(ResponseModel):
    mentor_id: str
    slots: List[AvailabilitySlotResponse]
