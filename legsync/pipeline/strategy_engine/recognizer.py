"""Main strategy recognition dispatcher."""

from functools import reduce
from math import gcd
from typing import List, Optional

from legsync.config import Settings, settings as default_settings
from legsync.errors import EmptyLegGroupError
from legsync.models.legs import OptionLeg
from .adapters import legs_to_buckets
from .constants import STRATEGIES
from .patterns_butterfly import match_butterfly
from .patterns_calendar import match_calendar
from .patterns_multi import match_multi
from .patterns_single import match_single
from .patterns_vertical import match_vertical
from .types import Bucket, Direction, Strategy, StrategyClassification


def classify(legs: List[OptionLeg], config: Optional[Settings] = None) -> StrategyClassification:
    """Classify the strategy formed by a group of legs on one underlying.

    Algorithm:
    1. Net legs into (expiry, strike, type) buckets; offsetting legs cancel
    2. Single bucket: long call / long put (naked shorts fall through)
    3. Two buckets: vertical (same expiry) or calendar/diagonal (different expiry)
    4. Four buckets: iron condor / iron butterfly
    5. Three buckets: call / put butterfly
    6. Fall back to Custom, inheriting the bias of a dominant long bucket

    Never raises for a non-empty list of legs.
    """
    if not legs:
        raise EmptyLegGroupError("classify() requires at least one leg")

    cfg = config or default_settings
    buckets = legs_to_buckets(legs)
    strategy = _match(buckets, cfg)

    if strategy is None:
        strategy = Strategy.CUSTOM
        direction = _custom_direction(buckets)
    else:
        direction = STRATEGIES[strategy].direction

    return StrategyClassification(
        strategy=strategy,
        direction=direction,
        contracts=contracts_per_unit(buckets),
        leg_count=len(buckets),
        legs_label=legs_label(legs),
    )


def _match(buckets: List[Bucket], cfg: Settings) -> Optional[Strategy]:
    if len(buckets) == 1:
        return match_single(buckets[0])

    if len(buckets) == 2:
        expirations = {b.expiration for b in buckets}
        if len(expirations) == 1:
            return match_vertical(buckets)
        return match_calendar(buckets)

    if len(buckets) == 3:
        return match_butterfly(buckets, tolerance=cfg.strike_tolerance)

    if len(buckets) == 4:
        return match_multi(buckets)

    return None


def _custom_direction(buckets: List[Bucket]) -> Direction:
    """Neutral unless one long bucket outweighs all short exposure combined."""
    longs = [b for b in buckets if b.direction == "long"]
    short_size = sum(b.size for b in buckets if b.direction == "short")
    if len(longs) == 1 and longs[0].size > short_size:
        return Direction.BULLISH if longs[0].option_type == "C" else Direction.BEARISH
    return Direction.NEUTRAL


def contracts_per_unit(buckets: List[Bucket]) -> int:
    """Greatest common divisor of bucket sizes (1 for an empty list)."""
    sizes = [b.size for b in buckets]
    if not sizes:
        return 1
    return reduce(gcd, sizes) or 1


def legs_label(legs: List[OptionLeg]) -> str:
    """Human-readable strike/type list sorted by strike, e.g. '290C / 320C'."""
    ordered = sorted(legs, key=lambda leg: (leg.strike, leg.option_type.value, leg.expiry))
    return " / ".join(leg.label for leg in ordered)
