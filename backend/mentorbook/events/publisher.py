"""In-process event publisher with a listener registry."""
from datetime import datetime
import logging
from typing import Any, Callable, Dict, List, Protocol, Sequence

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


EventListener = Callable[[str, Dict[str, Any]], None]


class EventPublisher:
    """
    Fans domain events out to registered listeners.

    Listener failures are logged and never propagate to the publisher's
    caller.
    """

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def register(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unregister(self, listener: EventListener) -> None:
        self._listeners = [existing for existing in self._listeners if existing is not listener]

    def listeners(self) -> Sequence[EventListener]:
        return tuple(self._listeners)

    def publish(self, event: Event) -> int:
        """
        Deliver an event to every listener.

        Returns:
            Number of listeners that raised
        """
        event_type = type(event).__name__
        payload = event.to_dict()

        # Convert datetime objects to ISO strings for JSON-friendly payloads
        for key, value in payload.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()

        failures = 0
        for listener in list(self._listeners):
            try:
                listener(event_type, payload)
            except Exception:
                failures += 1
                logger.exception("Event listener error for %s: %s", event_type, listener)
        logger.debug("event=%s listeners=%d failures=%d", event_type, len(self._listeners), failures)
        return failures
