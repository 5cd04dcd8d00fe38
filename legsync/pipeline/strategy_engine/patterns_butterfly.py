"""Same-type butterflies (3 strikes, 1 / -2 / 1 ratio, equal wings)."""

from typing import List, Optional

from .types import Bucket, Strategy


def match_butterfly(legs: List[Bucket], tolerance: float = 0.0001) -> Optional[Strategy]:
    """Identify a call or put butterfly from 3 same-type, same-expiry buckets.

    Long butterflies (long wings, short body) and short butterflies (the
    inverse) both match; the risk calculator decides debit vs credit.
    """
    if len(legs) != 3:
        return None
    if len({leg.option_type for leg in legs}) != 1:
        return None
    if len({leg.expiration for leg in legs}) != 1:
        return None

    low, mid, high = sorted(legs, key=lambda l: l.strike)
    if not (low.strike < mid.strike < high.strike):
        return None
    if low.quantity != high.quantity:
        return None
    if mid.quantity != -(low.quantity + high.quantity):
        return None
    if abs((mid.strike - low.strike) - (high.strike - mid.strike)) > tolerance:
        return None

    return Strategy.CALL_BUTTERFLY if low.option_type == "C" else Strategy.PUT_BUTTERFLY
