"""Shared helpers for API routes."""

from typing import Optional


def parse_int_param(value: Optional[str]) -> Optional[int]:
    """Parse a query parameter leniently; anything unparsable becomes None."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
