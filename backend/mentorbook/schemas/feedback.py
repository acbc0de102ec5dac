# backend/mentorbook/schemas/feedback.py
"""Feedback request/response schemas."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from pydantic import Field

from .base import ResponseModel, StrictRequestModel
from .booking import ProfileSummary

if TYPE_CHECKING:
    from ..services.feedback_service import FeedbackView


class FeedbackCreate(StrictRequestModel):
    feedback_type: str = Field(..., description="booking, article or event")
    reference_id: str = Field(..., max_length=26)
    rating: int
    comment: Optional[str] = Field(None, max_length=5000)


class FeedbackUpdate(StrictRequestModel):
    """
    Patch a feedback entry.

    ``mentor_response`` is for the owner of the referenced content;
    ``rating``/``comment`` are for the feedback's author.
    """

    mentor_response: Optional[str] = Field(None, max_length=5000)
    rating: Optional[int] = None
    comment: Optional[str] = Field(None, max_length=5000)


class FeedbackResponse(ResponseModel):
    id: str
    user_id: str
    feedback_type: str
    reference_id: str
    rating: int
    comment: Optional[str] = None
    mentor_response: Optional[str] = None
    mentor_response_at: Optional[datetime] = None
    responded_by: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    is_legacy: bool = False
    author: Optional[ProfileSummary] = None

    @classmethod
    def from_view(cls, view: "FeedbackView") -> "FeedbackResponse":
        return cls(
            id=view.id,
            user_id=view.user_id,
            feedback_type=view.feedback_type,
            reference_id=view.reference_id,
            rating=view.rating,
            comment=view.comment,
            mentor_response=view.mentor_response,
            mentor_response_at=view.mentor_response_at,
            responded_by=view.responded_by,
            status=view.status,
            created_at=view.created_at,
            is_legacy=view.is_legacy,
            author=ProfileSummary.from_profile(view.author),
        )


class FeedbackListResponse(ResponseModel):
    feedback: List[FeedbackResponse]
    total: int
