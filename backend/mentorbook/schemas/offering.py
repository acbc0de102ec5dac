# backend/mentorbook/schemas/offering.py
"""Offering catalog schemas."""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..core.enums import OfferingStatus
from ..models.offering import (
    DEFAULT_ADVANCE_BOOKING_DAYS,
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_MAX_BOOKINGS_PER_DAY,
    DEFAULT_MIN_NOTICE_HOURS,
)
from .base import ResponseModel, StrictRequestModel


class OfferingCreate(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    duration_minutes: int = Field(DEFAULT_DURATION_MINUTES, gt=0, le=24 * 60)
    buffer_before_minutes: int = Field(DEFAULT_BUFFER_MINUTES, ge=0, le=240)
    buffer_after_minutes: int = Field(DEFAULT_BUFFER_MINUTES, ge=0, le=240)
    max_bookings_per_day: int = Field(DEFAULT_MAX_BOOKINGS_PER_DAY, gt=0)
    advance_booking_days: int = Field(DEFAULT_ADVANCE_BOOKING_DAYS, gt=0, le=365)
    min_notice_hours: int = Field(DEFAULT_MIN_NOTICE_HOURS, ge=0)
    cancellation_policy: Optional[str] = None
    preparation_notes: Optional[str] = None
    status: OfferingStatus = OfferingStatus.DRAFT
    featured: bool = False


class OfferingUpdate(StrictRequestModel):
    """Every field optional; only the ones sent are changed."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    buffer_before_minutes: Optional[int] = Field(None, ge=0, le=240)
    buffer_after_minutes: Optional[int] = Field(None, ge=0, le=240)
    max_bookings_per_day: Optional[int] = Field(None, gt=0)
    advance_booking_days: Optional[int] = Field(None, gt=0, le=365)
    min_notice_hours: Optional[int] = Field(None, ge=0)
    cancellation_policy: Optional[str] = None
    preparation_notes: Optional[str] = None
    status: Optional[OfferingStatus] = None
    featured: Optional[bool] = None


class OfferingResponse(ResponseModel):
    id: str
    mentor_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: Decimal
    currency: str
    duration_minutes: int
    buffer_before_minutes: int
    buffer_after_minutes: int
    max_bookings_per_day: int
    advance_booking_days: int
    min_notice_hours: int
    cancellation_policy: Optional[str] = None
    preparation_notes: Optional[str] = None
    status: OfferingStatus
    featured: bool


class OfferingListResponse(ResponseModel):
    offerings: List[OfferingResponse]
    total: int
