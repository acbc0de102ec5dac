"""Booking and feedback domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking is successfully created."""

    booking_id: str
    mentor_id: str
    mentee_id: str
    offering_id: str
    scheduled_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingStatusChanged:
    """Fired after every committed status transition."""

    booking_id: str
    mentor_id: str
    mentee_id: str
    from_status: str
    to_status: str
    actor_role: str  # 'mentor', 'mentee' or 'system'
    changed_at: datetime
    cancellation_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PaymentStatusChanged:
    booking_id: str
    mentee_id: str
    payment_status: str
    order_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FeedbackSubmitted:
    feedback_id: str
    author_id: str
    owner_id: str
    feedback_type: str
    reference_id: str
    rating: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FeedbackResponded:
    feedback_id: str
    author_id: str
    responded_by: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
