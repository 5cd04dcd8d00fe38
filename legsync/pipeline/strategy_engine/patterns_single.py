"""Single-leg strategy patterns."""

from typing import Optional

from .types import Bucket, Strategy


def match_single(bucket: Bucket) -> Optional[Strategy]:
    """Identify a single-leg strategy. Naked shorts are not auto-classified."""
    if bucket.direction != "long":
        return None
    if bucket.option_type == "C":
        return Strategy.LONG_CALL
    if bucket.option_type == "P":
        return Strategy.LONG_PUT
    return None
