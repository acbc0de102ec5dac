"""
Booking status transition table.

Every status change, including the one triggered by the payment callback,
is checked against ``BOOKING_TRANSITIONS``. Terminal statuses have no
outgoing edges.
"""

from __future__ import annotations

from typing import Mapping

from mentorbook.core.enums import ActorRole, BookingStatus
from mentorbook.core.exceptions import InvalidTransitionException, RoleNotAllowedException

BOOKING_TRANSITIONS: Mapping[BookingStatus, Mapping[BookingStatus, frozenset[ActorRole]]] = {
    BookingStatus.PENDING: {
        BookingStatus.CONFIRMED: frozenset({ActorRole.MENTOR, ActorRole.SYSTEM}),
        BookingStatus.CANCELLED: frozenset({ActorRole.MENTOR, ActorRole.MENTEE}),
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.COMPLETED: frozenset({ActorRole.MENTOR}),
        BookingStatus.CANCELLED: frozenset({ActorRole.MENTOR, ActorRole.MENTEE}),
        BookingStatus.NO_SHOW: frozenset({ActorRole.MENTOR}),
    },
    BookingStatus.COMPLETED: {},
    BookingStatus.CANCELLED: {},
    BookingStatus.NO_SHOW: {},
}


def is_edge(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, {})


def allowed_roles(current: BookingStatus, target: BookingStatus) -> frozenset[ActorRole]:
    return BOOKING_TRANSITIONS.get(current, {}).get(target, frozenset())


def validate_transition(current: BookingStatus, target: BookingStatus, role: ActorRole) -> None:
    """
    Validate that ``role`` may move a booking from ``current`` to ``target``.

    The edge is checked before the role so a terminal booking always
    reports InvalidTransition, whoever asks.

    Raises:
        InvalidTransitionException: The edge is not in the table
        RoleNotAllowedException: The edge exists but not for this role
    """
    if not is_edge(current, target):
        raise InvalidTransitionException(current.value, target.value)
    if role not in allowed_roles(current, target):
        raise RoleNotAllowedException(role.value, current.value, target.value)
