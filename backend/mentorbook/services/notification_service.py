# backend/mentorbook/services/notification_service.py
"""
Notification dispatch for booking and feedback changes.

Dispatch is fire-and-forget and happens after the change has committed:
a failure here is logged and counted, never raised, so it can neither
roll back nor fail the operation that triggered it. Delivery itself
(email, push) is done by listeners registered on the event publisher.
"""

from datetime import datetime
import logging
from typing import Any, Callable, Dict, Optional

from ..core.config import settings
from ..core.enums import ActorRole
from ..events import (
    BookingCreated,
    BookingStatusChanged,
    EventPublisher,
    FeedbackResponded,
    FeedbackSubmitted,
    PaymentStatusChanged,
)
from ..events.publisher import Event
from ..models.booking import Booking
from ..models.feedback import Feedback
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


def log_delivery(event_type: str, payload: Dict[str, Any]) -> None:
    """Default listener: record the notification in the application log."""
    logger.info(f"Notification queued: {event_type}", extra={"event_type": event_type, **payload})


_default_publisher: Optional[EventPublisher] = None


def get_event_publisher() -> EventPublisher:
    """Process-wide publisher with the logging listener attached."""
    global _default_publisher
    if _default_publisher is None:
        _default_publisher = EventPublisher()
        _default_publisher.register(log_delivery)
    return _default_publisher


class NotificationService:
    """Builds notification events and hands them to the publisher."""

    def __init__(self, publisher: Optional[EventPublisher] = None, enabled: Optional[bool] = None):
        self.publisher = publisher or get_event_publisher()
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def booking_created(self, booking: Booking) -> bool:
        return self._dispatch(
            "booking_created",
            lambda: BookingCreated(
                booking_id=booking.id,
                mentor_id=booking.mentor_id,
                mentee_id=booking.mentee_id,
                offering_id=booking.offering_id,
                scheduled_at=booking.scheduled_at,
            ),
        )

    def booking_status_changed(
        self,
        booking: Booking,
        from_status: str,
        actor_role: ActorRole,
        changed_at: datetime,
    ) -> bool:
        return self._dispatch(
            "booking_status_changed",
            lambda: BookingStatusChanged(
                booking_id=booking.id,
                mentor_id=booking.mentor_id,
                mentee_id=booking.mentee_id,
                from_status=from_status,
                to_status=booking.status,
                actor_role=actor_role.value,
                changed_at=changed_at,
                cancellation_reason=booking.cancellation_reason,
            ),
        )

    def payment_status_changed(self, booking: Booking, order_id: str) -> bool:
        return self._dispatch(
            "payment_status_changed",
            lambda: PaymentStatusChanged(
                booking_id=booking.id,
                mentee_id=booking.mentee_id,
                payment_status=booking.payment_status,
                order_id=order_id,
            ),
        )

    def feedback_submitted(self, feedback: Feedback, owner_id: str) -> bool:
        return self._dispatch(
            "feedback_submitted",
            lambda: FeedbackSubmitted(
                feedback_id=feedback.id,
                author_id=feedback.user_id,
                owner_id=owner_id,
                feedback_type=feedback.feedback_type,
                reference_id=feedback.reference_id,
                rating=feedback.rating,
            ),
        )

    def feedback_responded(self, feedback: Feedback) -> bool:
        return self._dispatch(
            "feedback_responded",
            lambda: FeedbackResponded(
                feedback_id=feedback.id,
                author_id=feedback.user_id,
                responded_by=feedback.responded_by,
            ),
        )

    def _dispatch(self, event_type: str, build: Callable[[], Event]) -> bool:
        """Publish an event; returns False when anything went wrong."""
        if not self.enabled:
            return False
        try:
            failures = self.publisher.publish(build())
        except Exception:
            logger.exception(f"Notification dispatch failed for {event_type}")
            prometheus_metrics.record_notification(event_type, "error")
            return False
        status = "error" if failures else "success"
        prometheus_metrics.record_notification(event_type, status)
        return failures == 0
