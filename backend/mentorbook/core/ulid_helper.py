"""ULID checks for ids that arrive from callers."""

from typing import Optional

import ulid


def is_valid_ulid(value: Optional[str]) -> bool:
    """True when ``value`` parses as a 26-character ULID."""
    if not value:
        return False
    try:
        ulid.ULID.from_str(value)
    except (ValueError, TypeError):
        return False
    return True
