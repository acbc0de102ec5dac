"""
Payment order identifiers.

Orders sent to the gateway are named ``{prefix}_{bookingId}_{epochMillis}``;
the callback only carries that order id, so it is the sole link back to
the booking.
"""

from __future__ import annotations

from datetime import datetime
import re

from mentorbook.core.config import settings
from mentorbook.core.exceptions import ValidationException
from mentorbook.core.timezone_utils import ensure_utc


def _order_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}_(.+?)_\d+$")


def build_payment_order_id(booking_id: str, at: datetime, prefix: str | None = None) -> str:
    epoch_ms = int(ensure_utc(at).timestamp() * 1000)
    return f"{prefix or settings.payment_order_prefix}_{booking_id}_{epoch_ms}"


def parse_payment_order_id(order_id: str, prefix: str | None = None) -> str:
    """
    Extract the booking id from a gateway order id.

    Raises:
        ValidationException: The order id does not follow the naming scheme
    """
    match = _order_pattern(prefix or settings.payment_order_prefix).match(order_id or "")
    if not match:
        raise ValidationException(
            "Invalid order ID format",
            code="INVALID_ORDER_ID",
            details={"order_id": order_id},
        )
    return match.group(1)
