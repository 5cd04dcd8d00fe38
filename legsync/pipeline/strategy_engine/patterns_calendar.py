"""Calendar and diagonal spread patterns (2-leg, different expirations)."""

from typing import List, Optional

from .types import Bucket, Strategy


def match_calendar(legs: List[Bucket]) -> Optional[Strategy]:
    """Identify calendar-family strategies from 2 buckets with different expirations.

    Requires the same option_type and opposite directions.
    """
    if len(legs) != 2:
        return None

    a, b = legs
    if a.option_type != b.option_type:
        return None
    if a.expiration == b.expiration:
        return None
    if a.direction == b.direction:
        return None

    if a.strike == b.strike:
        return Strategy.CALENDAR

    return Strategy.DIAGONAL
