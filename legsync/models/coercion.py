"""
Numeric decoding boundary for loosely-typed broker payloads.

Everything downstream of this module works with ``Optional[float]``: a value
that cannot be decoded is ``None``, never ``0.0``.
"""

import math
import re
from typing import Any, Optional

from legsync.config import Settings, settings as default_settings

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

# Wrapper keys tried, in order, for one level of {value: ...} style nesting
_WRAPPER_KEYS = ("value", "amount", "val")


def _from_scalar(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        match = _NUMBER_PATTERN.search(value.replace(",", ""))
        if not match:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None
    return None


def to_number(value: Any) -> Optional[float]:
    """Decode a plain number, a numeric string, or a ``{value|amount|val}`` wrapper."""
    number = _from_scalar(value)
    if number is not None:
        return number
    if isinstance(value, dict):
        for key in _WRAPPER_KEYS:
            number = _from_scalar(value.get(key))
            if number is not None:
                return number
    return None


def to_int(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None:
        return None
    return int(number)


def normalize_average_cost(
    avg_cost: Optional[float],
    market_price: Optional[float],
    config: Optional[Settings] = None,
) -> Optional[float]:
    """Undo the broker's occasional x100 scaling of average cost.

    Detected per leg: either the avg/market ratio sits inside the configured
    window, or there is no usable market price and the cost is implausibly
    large for a per-contract option premium.
    """
    cfg = config or default_settings
    if avg_cost is None or not math.isfinite(avg_cost):
        return None
    if market_price is not None and market_price > 0:
        ratio = avg_cost / market_price
        if cfg.cost_ratio_min < ratio < cfg.cost_ratio_max:
            return avg_cost / 100
    elif avg_cost > cfg.cost_absolute_max:
        return avg_cost / 100
    return avg_cost
