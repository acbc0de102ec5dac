"""Domain events published after booking and feedback changes commit."""

from mentorbook.events.booking_events import (
    BookingCreated,
    BookingStatusChanged,
    FeedbackResponded,
    FeedbackSubmitted,
    PaymentStatusChanged,
)
from mentorbook.events.publisher import EventListener, EventPublisher

__all__ = [
    "BookingCreated",
    "BookingStatusChanged",
    "EventListener",
    "EventPublisher",
    "FeedbackResponded",
    "FeedbackSubmitted",
    "PaymentStatusChanged",
]
