# backend/mentorbook/routes/v1/payments.py
"""
Payment routes - API v1

Endpoints under /api/v1/payments:
    POST /webhook → Payment gateway callback
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...schemas.payment import PaymentWebhookPayload, PaymentWebhookResponse
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/webhook", response_model=PaymentWebhookResponse)
async def handle_payment_webhook(
    payload: PaymentWebhookPayload = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaymentWebhookResponse:
    """
    Record a gateway payment result.

    Replayed callbacks are acknowledged without changing anything, so the
    gateway's retries are safe.

    Note:
        This endpoint has no actor header; the gateway is the caller
    """
    logger.info(
        f"Payment callback for order {payload.order_id}: {payload.payment_status or 'no status'}"
    )
    try:
        booking = await asyncio.to_thread(
            booking_service.apply_payment_update, payload.order_id, payload.payment_status
        )
        return PaymentWebhookResponse(
            success=True,
            booking_id=booking.id,
            payment_status=booking.payment_status,
            status=booking.status,
        )
    except DomainException as e:
        handle_domain_exception(e)
