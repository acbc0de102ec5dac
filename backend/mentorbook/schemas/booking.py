# backend/mentorbook/schemas/booking.py
"""
Booking schemas.

Ratings are deliberately not range-constrained here: the booking service
owns that rule and reports it as a domain validation error.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import AwareDatetime, Field

from ..core.enums import ActorRole, BookingStatus
from .base import ResponseModel, StrictRequestModel

if TYPE_CHECKING:
    from ..services.booking_service import BookingView
    from ..services.user_profile_service import UserProfile


class BookingCreate(StrictRequestModel):
    offering_id: str = Field(..., min_length=1, max_length=26)
    scheduled_at: AwareDatetime = Field(..., description="Session start with timezone offset")


class BookingUpdate(StrictRequestModel):
    """
    Partial booking update.

    Only fields present in the request are applied; a status change and
    field edits in one request succeed or fail together.
    """

    status: Optional[BookingStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=1000)
    meeting_link: Optional[str] = Field(None, max_length=2048)
    mentor_notes: Optional[str] = Field(None, max_length=5000)
    mentee_rating: Optional[int] = None
    mentee_feedback: Optional[str] = Field(None, max_length=5000)


class ProfileSummary(ResponseModel):
    user_id: str
    kind: ActorRole
    name: str
    profile_url: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: Optional["UserProfile"]) -> Optional["ProfileSummary"]:
        if profile is None:
            return None
        return cls(
            user_id=profile.user_id,
            kind=profile.kind,
            name=profile.name,
            profile_url=profile.profile_url,
        )


class BookingResponse(ResponseModel):
    """
    Booking as seen by one of its parties.

    ``mentor_notes`` is only set for the mentor; routes serialize with
    ``exclude_unset`` so the key is absent from mentee responses.
    """

    id: str
    mentor_id: str
    mentee_id: str
    offering_id: str
    scheduled_at: datetime
    duration_minutes: int
    buffer_before_minutes: int
    buffer_after_minutes: int
    status: BookingStatus
    payment_status: str
    meeting_link: Optional[str] = None
    mentor_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    mentee_rating: Optional[int] = None
    mentee_feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    viewer_role: Optional[ActorRole] = None
    mentor: Optional[ProfileSummary] = None
    mentee: Optional[ProfileSummary] = None

    @classmethod
    def from_view(cls, view: "BookingView") -> "BookingResponse":
        booking = view.booking
        data: Dict[str, Any] = {
            "id": booking.id,
            "mentor_id": booking.mentor_id,
            "mentee_id": booking.mentee_id,
            "offering_id": booking.offering_id,
            "scheduled_at": booking.scheduled_at,
            "duration_minutes": booking.duration_minutes,
            "buffer_before_minutes": booking.buffer_before_minutes,
            "buffer_after_minutes": booking.buffer_after_minutes,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "meeting_link": booking.meeting_link,
            "cancellation_reason": booking.cancellation_reason,
            "cancelled_by": booking.cancelled_by,
            "mentee_rating": booking.mentee_rating,
            "mentee_feedback": booking.mentee_feedback,
            "created_at": booking.created_at,
            "updated_at": booking.updated_at,
            "viewer_role": view.viewer_role,
            "mentor": ProfileSummary.from_profile(view.mentor),
            "mentee": ProfileSummary.from_profile(view.mentee),
        }
        if view.viewer_role == ActorRole.MENTOR:
            data["mentor_notes"] = booking.mentor_notes
        return cls(**data)


class BookingListResponse(ResponseModel):
    bookings: List[BookingResponse]
    total: int
