# backend/mentorbook/schemas/payment.py
"""Payment gateway callback payloads."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import ResponseModel


class PaymentWebhookPayload(BaseModel):
    """Gateway callback body; unknown keys are ignored since the gateway adds fields freely."""

    model_config = ConfigDict(extra="ignore")

    order_id: str = Field(..., min_length=1)
    payment_status: Optional[str] = None
    order_amount: Optional[float] = None
    payment_message: Optional[str] = None


class PaymentWebhookResponse(ResponseModel):
    success: bool
    booking_id: str
    payment_status: str
    status: str
