"""
Leg Grouper — partitions legs that did not match a known trade into
synthetic position groups.

Pass 1 uses execution-level order hints (legs filled under one order_ref or
order_id belong together). Pass 2 buckets whatever is left by ticker, keeping
a lone same-type cross-expiry pair together as a diagonal, and otherwise
splitting by expiry.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Set, Tuple

from legsync.models.legs import ExecutionRow, OptionLeg
from legsync.pipeline.leg_arena import LegArena

logger = logging.getLogger(__name__)


@dataclass
class OrderHint:
    """Contracts touched by one broker order, collected from its executions."""
    key: str
    ticker: Optional[str] = None
    conids: Set[int] = field(default_factory=set)
    symbols: Set[str] = field(default_factory=set)
    latest_ts: float = 0.0

    @property
    def size(self) -> int:
        return max(len(self.conids), len(self.symbols))

    def touches(self, leg: OptionLeg) -> bool:
        if leg.conid is not None and leg.conid in self.conids:
            return True
        return leg.symbol in self.symbols


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def build_order_hints(executions: Sequence[ExecutionRow]) -> List[OrderHint]:
    """Collect order hints and rank them: larger first, then most recent, then key.

    The key is the final tie-break so two equally sized, equally recent orders
    always resolve the same way.
    """
    hints: Dict[str, OrderHint] = {}
    for execution in executions:
        if not execution.order_key:
            continue
        if execution.conid is None and not execution.option_symbol:
            continue
        hint = hints.get(execution.order_key)
        if hint is None:
            hint = OrderHint(key=execution.order_key, ticker=execution.ticker or None)
            hints[execution.order_key] = hint
        if execution.conid is not None:
            hint.conids.add(execution.conid)
        if execution.option_symbol:
            hint.symbols.add(execution.option_symbol)
        hint.latest_ts = max(hint.latest_ts, _timestamp(execution.trade_time))
        if not hint.ticker and execution.ticker:
            hint.ticker = execution.ticker

    return sorted(hints.values(), key=lambda h: (-h.size, -h.latest_ts, h.key))


def group_by_order_hints(arena: LegArena, executions: Sequence[ExecutionRow]) -> List[Tuple[int, ...]]:
    """Pass 1: claim available legs for each ranked order hint.

    A hint claims its legs only when at least two are still available and they
    share exactly one ticker. Claimed legs are never offered to a later hint.
    """
    groups: List[Tuple[int, ...]] = []
    for hint in build_order_hints(executions):
        candidates = [i for i in arena.available if hint.touches(arena.leg(i))]
        if len(candidates) < 2:
            continue
        tickers = {arena.leg(i).ticker for i in candidates}
        if len(tickers) != 1:
            logger.debug(f"Order hint {hint.key} spans tickers {sorted(tickers)}; skipped")
            continue
        ordered = sorted(candidates, key=lambda i: arena.leg(i).sort_key())
        groups.append(arena.assign(f"order:{hint.key}", ordered))
    return groups


def _is_diagonal_pair(a: OptionLeg, b: OptionLeg) -> bool:
    return (
        a.option_type == b.option_type
        and a.expiry != b.expiry
        and a.quantity * b.quantity < 0
    )


def group_leftovers(arena: LegArena) -> List[Tuple[int, ...]]:
    """Pass 2: bucket remaining legs by ticker, then by expiry."""
    by_ticker: Dict[str, List[int]] = defaultdict(list)
    for index in arena.available:
        by_ticker[arena.leg(index).ticker].append(index)

    groups: List[Tuple[int, ...]] = []
    for ticker in sorted(by_ticker):
        indices = sorted(by_ticker[ticker], key=lambda i: (arena.leg(i).sort_key(), i))

        if len(indices) == 2 and _is_diagonal_pair(arena.leg(indices[0]), arena.leg(indices[1])):
            groups.append(arena.assign(f"diagonal:{ticker}", indices))
            continue

        by_expiry: Dict[object, List[int]] = defaultdict(list)
        for index in indices:
            by_expiry[arena.leg(index).expiry].append(index)
        for expiry in sorted(by_expiry):
            groups.append(arena.assign(f"bucket:{ticker}:{expiry.isoformat()}", by_expiry[expiry]))

    return groups
