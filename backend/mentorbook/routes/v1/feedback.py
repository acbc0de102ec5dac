# backend/mentorbook/routes/v1/feedback.py
"""
Feedback routes - API v1

Versioned feedback endpoints under /api/v1/feedback.
All business logic delegated to FeedbackService.

Endpoints:
    POST /                 → Leave feedback on a booking, article or event
    GET /                  → Active feedback, by item or for one mentor's content
    PATCH /{feedback_id}   → Owner response, or the author editing their entry
    DELETE /{feedback_id}  → Archive (author or admin)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_actor_id, get_feedback_service
from ...core.exceptions import DomainException, ValidationException
from ...schemas.feedback import (
    FeedbackCreate,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackUpdate,
)
from ...services.feedback_service import FeedbackService, FeedbackView

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Referenced item not found"},
        409: {"description": "Feedback already submitted for this item"},
    },
)
async def create_feedback(
    payload: FeedbackCreate = Body(...),
    actor_id: str = Depends(get_actor_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    """One feedback entry per user and item."""
    try:
        feedback = await asyncio.to_thread(
            service.create_feedback,
            actor_id,
            payload.feedback_type,
            payload.reference_id,
            payload.rating,
            payload.comment,
        )
        return FeedbackResponse.from_view(FeedbackView.from_feedback(feedback))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=FeedbackListResponse)
async def list_feedback(
    feedback_type: Optional[str] = Query(None, description="booking, article or event"),
    reference_id: Optional[str] = Query(None),
    mentor_id: Optional[str] = Query(
        None, description="Everything left on this mentor's content, including legacy ratings"
    ),
    actor_id: str = Depends(get_actor_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackListResponse:
    try:
        if mentor_id:
            views = await asyncio.to_thread(service.list_feedback_for_mentor, mentor_id, actor_id)
        else:
            views = await asyncio.to_thread(service.list_feedback, feedback_type, reference_id)
        items = [FeedbackResponse.from_view(view) for view in views]
        return FeedbackListResponse(feedback=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{feedback_id}",
    response_model=FeedbackResponse,
    responses={403: {"description": "Not allowed"}, 404: {"description": "Feedback not found"}},
)
async def update_feedback(
    feedback_id: str = Path(..., description="Feedback ULID", pattern=ULID_PATH_PATTERN),
    payload: FeedbackUpdate = Body(...),
    actor_id: str = Depends(get_actor_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    """
    Respond to or edit a feedback entry.

    ``mentor_response`` goes to the content owner's one-time response;
    ``rating``/``comment`` edit the author's own entry. The two cannot be
    combined in one request since they belong to different users.
    """
    provided = payload.model_fields_set
    try:
        if not provided:
            raise ValidationException("No changes supplied", code="EMPTY_UPDATE")
        if "mentor_response" in provided and provided & {"rating", "comment"}:
            raise ValidationException(
                "mentor_response cannot be combined with rating or comment",
                code="MIXED_UPDATE",
            )
        if "mentor_response" in provided:
            feedback = await asyncio.to_thread(
                service.respond_to_feedback, feedback_id, actor_id, payload.mentor_response or ""
            )
        else:
            feedback = await asyncio.to_thread(
                service.update_feedback,
                feedback_id,
                actor_id,
                payload.rating,
                payload.comment,
            )
        return FeedbackResponse.from_view(FeedbackView.from_feedback(feedback))
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{feedback_id}", response_model=FeedbackResponse)
async def archive_feedback(
    feedback_id: str = Path(..., description="Feedback ULID", pattern=ULID_PATH_PATTERN),
    actor_id: str = Depends(get_actor_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    try:
        feedback = await asyncio.to_thread(service.archive_feedback, feedback_id, actor_id)
        return FeedbackResponse.from_view(FeedbackView.from_feedback(feedback))
    except DomainException as e:
        handle_domain_exception(e)
