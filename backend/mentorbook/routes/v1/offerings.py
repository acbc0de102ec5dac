# backend/mentorbook/routes/v1/offerings.py
"""
Offering routes - API v1

Endpoints under /api/v1/offerings:
    GET /                 → Catalog, optionally by mentor and status
    GET /{offering_id}    → One offering
    POST /                → Publish an offering (mentors)
    PATCH /{offering_id}  → Edit an offering (owner or admin)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_actor_id, get_offering_service
from ...core.enums import OfferingStatus
from ...core.exceptions import DomainException
from ...schemas.offering import (
    OfferingCreate,
    OfferingListResponse,
    OfferingResponse,
    OfferingUpdate,
)
from ...services.offering_service import OfferingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["offerings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=OfferingListResponse)
async def list_offerings(
    mentor_id: Optional[str] = Query(None),
    status_filter: Optional[OfferingStatus] = Query(None, alias="status"),
    service: OfferingService = Depends(get_offering_service),
) -> OfferingListResponse:
    try:
        offerings = await asyncio.to_thread(service.list_offerings, mentor_id, status_filter)
        items = [OfferingResponse.model_validate(offering) for offering in offerings]
        return OfferingListResponse(offerings=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{offering_id}", response_model=OfferingResponse)
async def get_offering(
    offering_id: str = Path(..., description="Offering ULID", pattern=ULID_PATH_PATTERN),
    service: OfferingService = Depends(get_offering_service),
) -> OfferingResponse:
    try:
        offering = await asyncio.to_thread(service.get_offering, offering_id)
        return OfferingResponse.model_validate(offering)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("", response_model=OfferingResponse, status_code=status.HTTP_201_CREATED)
async def create_offering(
    payload: OfferingCreate = Body(...),
    actor_id: str = Depends(get_actor_id),
    service: OfferingService = Depends(get_offering_service),
) -> OfferingResponse:
    try:
        offering = await asyncio.to_thread(service.create_offering, actor_id, payload)
        return OfferingResponse.model_validate(offering)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{offering_id}", response_model=OfferingResponse)
async def update_offering(
    offering_id: str = Path(..., description="Offering ULID", pattern=ULID_PATH_PATTERN),
    payload: OfferingUpdate = Body(...),
    actor_id: str = Depends(get_actor_id),
    service: OfferingService = Depends(get_offering_service),
) -> OfferingResponse:
    """Partial edit; bookings already made keep their copied duration and buffers."""
    try:
        offering = await asyncio.to_thread(service.update_offering, offering_id, actor_id, payload)
        return OfferingResponse.model_validate(offering)
    except DomainException as e:
        handle_domain_exception(e)
