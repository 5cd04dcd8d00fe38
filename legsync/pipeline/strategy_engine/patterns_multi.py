"""Four-leg patterns: Iron Condor, Iron Butterfly."""

from typing import List, Optional

from .types import Bucket, Strategy


def iron_wings(puts: List[Bucket], calls: List[Bucket]) -> Optional[str]:
    """Name the wing pattern of strike-sorted put and call pairs.

    "credit": long wings, short body (iron condor).
    "debit": the whole structure inverted (reverse iron condor).
    None: any other side assignment or strike ordering.
    """
    low_put, high_put = puts
    low_call, high_call = calls
    if not (low_put.strike < high_put.strike <= low_call.strike < high_call.strike):
        return None

    sides = (low_put.direction, high_put.direction, low_call.direction, high_call.direction)
    if sides == ("long", "short", "short", "long"):
        return "credit"
    if sides == ("short", "long", "long", "short"):
        return "debit"
    return None


def match_multi(legs: List[Bucket]) -> Optional[Strategy]:
    """Identify 4-leg put+call strategies sharing one expiration.

    Any equal-size 2 put + 2 call group is an Iron Condor; the regular wing
    patterns with coinciding body strikes are an Iron Butterfly.
    """
    if len(legs) != 4:
        return None
    if len({leg.expiration for leg in legs}) != 1:
        return None
    if len({leg.size for leg in legs}) != 1:
        return None

    puts = sorted((leg for leg in legs if leg.option_type == "P"), key=lambda b: b.strike)
    calls = sorted((leg for leg in legs if leg.option_type == "C"), key=lambda b: b.strike)

    if len(puts) != 2 or len(calls) != 2:
        return None

    # Iron Butterfly: the two body strikes coincide
    if iron_wings(puts, calls) is not None and puts[1].strike == calls[0].strike:
        return Strategy.IRON_BUTTERFLY

    return Strategy.IRON_CONDOR
