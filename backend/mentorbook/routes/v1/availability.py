# backend/mentorbook/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints under /api/v1/availability:
    GET /   → A mentor's weekly windows (``mentor_id`` query, defaults to the caller)
    PUT /   → Replace the caller's weekly windows
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import get_actor_id, get_availability_service
from ...core.exceptions import DomainException
from ...schemas.availability import (
    AvailabilityReplaceRequest,
    AvailabilityResponse,
    AvailabilitySlotResponse,
)
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    mentor_id: Optional[str] = Query(None),
    actor_id: str = Depends(get_actor_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    target = mentor_id or actor_id
    try:
        slots = await asyncio.to_thread(service.get_slots, target)
        return AvailabilityResponse(
            mentor_id=target,
            slots=[AvailabilitySlotResponse.model_validate(slot) for slot in slots],
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.put("", response_model=AvailabilityResponse)
async def replace_availability(
    payload: AvailabilityReplaceRequest = Body(...),
    mentor_id: Optional[str] = Query(None, description="Admins may manage another mentor"),
    actor_id: str = Depends(get_actor_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Replace every window at once. Existing bookings are left untouched."""
    target = mentor_id or actor_id
    try:
        slots = await asyncio.to_thread(
            service.replace_slots, target, actor_id, payload.slots, payload.timezone
        )
        return AvailabilityResponse(
            mentor_id=target,
            slots=[AvailabilitySlotResponse.model_validate(slot) for slot in slots],
        )
    except DomainException as e:
        handle_domain_exception(e)
