# backend/mentorbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST /                → Book a session (the caller is the mentee)
    GET /                 → Bookings where the caller is a party
    GET /{booking_id}     → Booking detail (parties only)
    PATCH /{booking_id}   → Status change and/or field edits
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_actor_id, get_booking_service
from ...core.enums import ActorRole, BookingStatus
from ...core.exceptions import DomainException
from ...schemas.booking import BookingCreate, BookingListResponse, BookingResponse, BookingUpdate
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=BookingResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Offering not found"},
        409: {"description": "Time slot not available"},
        422: {"description": "Business rule violation (notice, horizon, availability, limit)"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    actor_id: str = Depends(get_actor_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Book a session on an offering.

    The booking starts out pending; it is confirmed by the mentor or by a
    successful payment callback.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking,
            actor_id,
            booking_data.offering_id,
            booking_data.scheduled_at,
        )
        view = await asyncio.to_thread(booking_service.get_booking, booking.id, actor_id)
        return BookingResponse.from_view(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingListResponse, response_model_exclude_unset=True)
async def list_bookings(
    as_role: Optional[ActorRole] = Query(
        None, description="Only bookings where the caller is the mentor or the mentee"
    ),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    actor_id: str = Depends(get_actor_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    try:
        views = await asyncio.to_thread(
            booking_service.list_bookings, actor_id, as_role, status_filter
        )
        bookings = [BookingResponse.from_view(view) for view in views]
        return BookingListResponse(bookings=bookings, total=len(bookings))
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    response_model_exclude_unset=True,
    responses={403: {"description": "Caller is not a party"}, 404: {"description": "Not found"}},
)
async def get_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    actor_id: str = Depends(get_actor_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Full booking details; mentor notes are only shown to the mentor."""
    try:
        view = await asyncio.to_thread(booking_service.get_booking, booking_id, actor_id)
        return BookingResponse.from_view(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    response_model_exclude_unset=True,
    responses={
        403: {"description": "Caller may not make this change"},
        404: {"description": "Booking not found"},
        409: {"description": "Status not reachable from the current one"},
    },
)
async def update_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    update_data: BookingUpdate = Body(...),
    actor_id: str = Depends(get_actor_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Change status and/or booking fields; the whole request applies or nothing does."""
    try:
        await asyncio.to_thread(booking_service.update_booking, booking_id, actor_id, update_data)
        view = await asyncio.to_thread(booking_service.get_booking, booking_id, actor_id)
        return BookingResponse.from_view(view)
    except DomainException as e:
        handle_domain_exception(e)
