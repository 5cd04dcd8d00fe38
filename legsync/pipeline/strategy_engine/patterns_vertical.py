"""Vertical spread patterns (2-leg, same expiry, same option type)."""

from typing import List, Optional

from .types import Bucket, Strategy


def match_vertical(legs: List[Bucket]) -> Optional[Strategy]:
    """Identify a vertical spread from exactly 2 option buckets.

    Preconditions (checked here):
    - Exactly 2 buckets
    - Same expiration
    - Same option_type
    - Different strikes
    - Opposite directions
    - Equal sizes (ratio spreads fall through to Custom)
    """
    if len(legs) != 2:
        return None

    a, b = legs
    if a.option_type != b.option_type:
        return None
    if a.expiration != b.expiration:
        return None
    if a.strike == b.strike:
        return None
    if a.direction == b.direction:
        return None
    if a.size != b.size:
        return None

    # Sort by strike: low, high
    if a.strike > b.strike:
        a, b = b, a
    low, high = a, b

    if low.option_type == "P":
        if low.direction == "long":
            return Strategy.BULL_PUT_SPREAD   # credit: short higher put, long lower put
        return Strategy.BEAR_PUT_SPREAD       # debit: long higher put, short lower put

    if low.direction == "long":
        return Strategy.BULL_CALL_SPREAD      # debit: long lower call, short higher call
    return Strategy.BEAR_CALL_SPREAD          # credit: short lower call, long higher call
