# backend/mentorbook/api/dependencies/auth.py
"""
Caller identity.

Authentication happens upstream; the gateway forwards the authenticated
user's id in ``X-Actor-Id``. Every operation receives that id explicitly
and derives roles from the records it touches.
"""

from typing import Optional

from fastapi import Header

from ...core.exceptions import UnauthorizedException
from ...core.ulid_helper import is_valid_ulid

ACTOR_HEADER = "X-Actor-Id"


def get_actor_id(x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER)) -> str:
    """Return the acting user's id, or fail with 401 when it is missing or malformed."""
    if not x_actor_id:
        raise UnauthorizedException(
            f"{ACTOR_HEADER} header is required", code="MISSING_ACTOR"
        ).to_http_exception()
    actor_id = x_actor_id.strip()
    if not is_valid_ulid(actor_id):
        raise UnauthorizedException(
            f"{ACTOR_HEADER} must be a ULID", code="INVALID_ACTOR"
        ).to_http_exception()
    return actor_id
