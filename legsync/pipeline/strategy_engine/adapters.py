"""Adapters that bridge OptionLeg records to the strategy engine's Bucket type."""

from collections import defaultdict
from typing import Iterable, List

from legsync.models.legs import OptionLeg
from .types import Bucket


def legs_to_buckets(legs: Iterable[OptionLeg]) -> List[Bucket]:
    """Net a list of legs into per-contract Buckets.

    Legs sharing the same structural identity are merged:
    (expiration, option_type, strike)

    Offsetting legs cancel; buckets whose net quantity is zero are dropped.
    Output is sorted by (expiration, option_type, strike).
    """
    groups: dict[tuple, int] = defaultdict(int)

    for leg in legs:
        key = (leg.expiry, leg.option_type.value, round(float(leg.strike), 4))
        groups[key] += leg.quantity

    buckets = []
    for (exp, opt_type, strike), qty in sorted(groups.items()):
        if qty == 0:
            continue
        buckets.append(Bucket(
            option_type=opt_type,
            strike=strike,
            expiration=exp,
            quantity=qty,
        ))

    return buckets
