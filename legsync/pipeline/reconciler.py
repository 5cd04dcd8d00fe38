"""
Position Reconciler — matches a live leg snapshot against known trades and
synthesizes positions for whatever is left.

Public API:
    reconcile(legs, known_trades, executions, as_of) -> ReconciliationResult   (pure)

Algorithm:
1. Known trades, in caller order: a trade matches only when every one of its
   required canonical symbols is carried by a still-available leg. Matched
   legs move into that trade's assignment. Partial matches are skipped.
2. Remaining legs are grouped by execution order hints (leg_grouper pass 1).
3. Whatever is still unassigned is bucketed by ticker / expiry (pass 2).
4. Every group from 2-3 is classified and priced into a derived position.

Leg ownership is tracked in a LegArena; the result is checked for
conservation (each leg in exactly one position) before it is returned.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from legsync.config import Settings, settings as default_settings
from legsync.models.legs import ExecutionRow, OptionLeg
from legsync.pipeline.leg_arena import LegArena
from legsync.pipeline.leg_grouper import group_by_order_hints, group_leftovers
from legsync.pipeline.risk_metrics import RiskProfile, compute_risk_profile
from legsync.pipeline.strategy_engine import (
    CREDIT_STRATEGIES,
    Direction,
    Strategy,
    StrategyClassification,
    classify,
)
from legsync.schemas import KnownTrade, TradeRecord

logger = logging.getLogger(__name__)


class Provenance(str, Enum):
    MATCHED = "matched-to-known-trade"
    DERIVED = "derived-from-legs"


@dataclass(frozen=True)
class ReconciledPosition:
    """One trade-shaped position produced by a reconciliation pass."""
    ticker: str
    expiry: Optional[date]
    classification: StrategyClassification
    risk: RiskProfile
    symbols: Tuple[str, ...]
    legs: Tuple[OptionLeg, ...]
    provenance: Provenance
    contracts: int
    unrealized_pl: float
    realized_pl: float
    cost_basis: Optional[float]
    strike_long: Optional[float]
    strike_short: Optional[float]
    entry_price_long: Optional[float]
    entry_price_short: Optional[float]
    entry_date: Optional[date] = None
    urgency: Optional[int] = None
    known_trade_id: Optional[int] = None
    legs_label: str = ""
    status: str = "OPEN"

    @property
    def strategy(self) -> Strategy:
        return self.classification.strategy

    @property
    def direction(self) -> Direction:
        return self.classification.direction

    def to_trade(self) -> TradeRecord:
        return TradeRecord(
            ticker=self.ticker,
            strategy=self.strategy.value,
            legs=self.legs_label,
            direction=self.direction.value,
            entry_date=self.entry_date,
            expiry_date=self.expiry,
            status=self.status,
            cost_basis=self.cost_basis,
            max_risk=self.risk.max_risk,
            max_profit=self.risk.max_profit,
            max_profit_unbounded=self.risk.max_profit_unbounded,
            breakeven=self.risk.breakeven,
            breakevens=list(self.risk.breakevens),
            strike_long=self.strike_long,
            strike_short=self.strike_short,
            close_price_long=self.entry_price_long,
            close_price_short=self.entry_price_short,
            contracts=self.contracts,
            unrealized_pl=self.unrealized_pl,
            realized_pl=self.realized_pl,
            urgency=self.urgency,
            provenance=self.provenance.value,
            known_trade_id=self.known_trade_id,
            ib_symbols=list(self.symbols),
            notes="; ".join(self.risk.notes),
        )


@dataclass
class ReconciliationResult:
    matched: List[ReconciledPosition] = field(default_factory=list)
    derived: List[ReconciledPosition] = field(default_factory=list)
    unmatched_legs: int = 0

    @property
    def positions(self) -> List[ReconciledPosition]:
        return self.matched + self.derived


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sort_unique_symbols(symbols: Iterable[str]) -> Tuple[str, ...]:
    return tuple(sorted({s for s in symbols if s}))


def compute_urgency(expiry: Optional[date], as_of: Optional[date]) -> Optional[int]:
    """1 (far) .. 5 (expiring within 3 days); 3 when expiry is unknown."""
    if as_of is None:
        return None
    if expiry is None:
        return 3
    dte = (expiry - as_of).days
    if dte <= 3:
        return 5
    if dte <= 7:
        return 4
    if dte <= 21:
        return 3
    if dte <= 60:
        return 2
    return 1


def derive_entry_date(
    legs: Sequence[OptionLeg],
    executions: Sequence[ExecutionRow],
    fallback: Optional[date],
) -> Optional[date]:
    """Earliest execution touching the group's contracts or tickers."""
    conids = {leg.conid for leg in legs if leg.conid is not None}
    tickers = {leg.ticker for leg in legs}
    times = [
        e.trade_time for e in executions
        if e.trade_time is not None and (
            (e.conid is not None and e.conid in conids) or e.ticker in tickers
        )
    ]
    if times:
        return min(t.date() for t in times)
    return fallback


def _mean(values: List[Optional[float]]) -> Optional[float]:
    clean = [v for v in values if v is not None]
    if not clean:
        return None
    return round(sum(clean) / len(clean), 4)


def _live_pl(legs: Sequence[OptionLeg]) -> Tuple[float, float]:
    unrealized = round(sum(leg.unrealized_pl or 0.0 for leg in legs), 2)
    realized = round(sum(leg.realized_pl or 0.0 for leg in legs), 2)
    return unrealized, realized


def _earliest_expiry(legs: Sequence[OptionLeg]) -> Optional[date]:
    return min((leg.expiry for leg in legs), default=None)


# ---------------------------------------------------------------------------
# Position builders
# ---------------------------------------------------------------------------

def _strategy_from_text(value: str) -> Strategy:
    try:
        return Strategy(value)
    except ValueError:
        return Strategy.CUSTOM


def _direction_from_text(value: str) -> Direction:
    try:
        return Direction(value)
    except ValueError:
        return Direction.NEUTRAL


def build_matched_position(
    trade: KnownTrade,
    legs: Sequence[OptionLeg],
    executions: Sequence[ExecutionRow] = (),
    as_of: Optional[date] = None,
    config: Optional[Settings] = None,
) -> ReconciledPosition:
    """Known-trade economics with live P/L, quantity and expiry."""
    live = classify(list(legs), config)
    strategy = _strategy_from_text(trade.strategy)
    classification = StrategyClassification(
        strategy=strategy,
        direction=_direction_from_text(trade.direction),
        contracts=live.contracts,
        leg_count=live.leg_count,
        legs_label=trade.legs or live.legs_label,
    )

    is_credit = strategy in CREDIT_STRATEGIES
    cost = trade.cost_basis
    risk = RiskProfile(
        net_debit=None if cost is None else (0.0 if is_credit else cost),
        net_credit=None if cost is None else (cost if is_credit else 0.0),
        max_risk=trade.max_risk,
        max_profit=trade.max_profit,
        max_profit_unbounded=(
            strategy in (Strategy.LONG_CALL, Strategy.LONG_PUT) and trade.max_profit is None
        ),
        breakevens=(trade.breakeven,) if trade.breakeven is not None else (),
    )

    unrealized, realized = _live_pl(legs)
    expiry = _earliest_expiry(legs)
    entry_date = trade.entry_date or derive_entry_date(legs, executions, as_of)

    return ReconciledPosition(
        ticker=trade.ticker.upper() or legs[0].ticker,
        expiry=expiry,
        classification=classification,
        risk=risk,
        symbols=sort_unique_symbols(leg.symbol for leg in legs),
        legs=tuple(legs),
        provenance=Provenance.MATCHED,
        contracts=live.contracts,
        unrealized_pl=unrealized,
        realized_pl=realized,
        cost_basis=trade.cost_basis,
        strike_long=trade.strike_long,
        strike_short=trade.strike_short,
        entry_price_long=trade.close_price_long,
        entry_price_short=trade.close_price_short,
        entry_date=entry_date,
        urgency=compute_urgency(expiry, as_of),
        known_trade_id=trade.id,
        legs_label=classification.legs_label,
    )


def build_derived_position(
    legs: Sequence[OptionLeg],
    executions: Sequence[ExecutionRow] = (),
    as_of: Optional[date] = None,
    config: Optional[Settings] = None,
) -> ReconciledPosition:
    """Classify and price a leg group that no known trade claimed."""
    cfg = config or default_settings
    group = list(legs)
    classification = classify(group, cfg)
    risk = compute_risk_profile(classification, group, cfg)
    strategy = classification.strategy

    if strategy in CREDIT_STRATEGIES:
        cost_basis = risk.net_credit
    else:
        cost_basis = risk.max_risk

    iron = strategy in (Strategy.IRON_CONDOR, Strategy.IRON_BUTTERFLY)
    long_strikes = sorted(leg.strike for leg in group if leg.is_long)
    short_strikes = sorted(leg.strike for leg in group if leg.is_short)

    entry_long = _mean([leg.avg_cost for leg in group if leg.is_long])
    entry_short = _mean([leg.avg_cost for leg in group if leg.is_short])

    unrealized, realized = _live_pl(group)
    expiry = _earliest_expiry(group)

    return ReconciledPosition(
        ticker=group[0].ticker,
        expiry=expiry,
        classification=classification,
        risk=risk,
        symbols=sort_unique_symbols(leg.symbol for leg in group),
        legs=tuple(group),
        provenance=Provenance.DERIVED,
        contracts=classification.contracts,
        unrealized_pl=unrealized,
        realized_pl=realized,
        cost_basis=cost_basis,
        strike_long=None if iron or not long_strikes else long_strikes[0],
        strike_short=None if iron or not short_strikes else short_strikes[-1],
        entry_price_long=entry_long,
        entry_price_short=entry_short,
        entry_date=derive_entry_date(group, executions, as_of),
        urgency=compute_urgency(expiry, as_of),
        legs_label=classification.legs_label,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _coerce_known_trade(trade: Union[KnownTrade, dict]) -> Optional[KnownTrade]:
    if isinstance(trade, KnownTrade):
        return trade
    try:
        return KnownTrade.model_validate(trade)
    except ValidationError as e:
        logger.debug(f"Known trade skipped: {e.error_count()} validation errors")
        return None


def reconcile(
    legs: Sequence[OptionLeg],
    known_trades: Sequence[Union[KnownTrade, dict]] = (),
    executions: Sequence[ExecutionRow] = (),
    as_of: Optional[date] = None,
    config: Optional[Settings] = None,
) -> ReconciliationResult:
    """Partition a leg snapshot into matched and derived positions."""
    arena = LegArena(legs)
    result = ReconciliationResult()

    # --- Step 1: exact required-symbol matches ----------------------------
    for position, raw_trade in enumerate(known_trades):
        trade = _coerce_known_trade(raw_trade)
        if trade is None:
            continue
        required = trade.symbol_set
        if not required:
            continue
        found = arena.find_available_by_symbol(required)
        if len(found) != len(required):
            logger.debug(
                f"Known trade {trade.id} ({trade.ticker}) skipped: "
                f"{len(found)}/{len(required)} required legs present"
            )
            continue
        owner = f"trade:{position}:{trade.id}"
        indices = arena.assign(owner, sorted(found.values()))
        result.matched.append(
            build_matched_position(trade, arena.legs_for(indices), executions, as_of, config)
        )

    result.unmatched_legs = len(arena.available)

    # --- Steps 2 & 3: order hints, then ticker / expiry buckets -----------
    groups = group_by_order_hints(arena, executions)
    groups.extend(group_leftovers(arena))

    # --- Step 4: classify and price each derived group --------------------
    for indices in groups:
        result.derived.append(
            build_derived_position(arena.legs_for(indices), executions, as_of, config)
        )

    arena.verify_conservation()

    logger.info(
        f"Reconciled {len(arena)} legs: {len(result.matched)} matched, "
        f"{len(result.derived)} derived from {result.unmatched_legs} unmatched legs"
    )
    return result
