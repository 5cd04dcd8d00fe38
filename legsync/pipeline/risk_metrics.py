"""
Risk Metrics Calculator — net entry flow, max risk, max profit and breakevens
for a classified leg group.

Pure functions. Internal arithmetic is unrounded; the RiskProfile is rounded
once when it is built (dollars to 2dp, breakevens to 4dp). Bounded risk and
profit figures are clamped to [0, width], so max_risk + max_profit always
equals the structural width even for a mis-signed entry flow. Breakevens are
offset by the same non-negative debit or credit.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from legsync.config import Settings, settings as default_settings
from legsync.errors import EmptyLegGroupError
from legsync.models.legs import OptionLeg
from legsync.pipeline.strategy_engine import (
    Bucket,
    Strategy,
    StrategyClassification,
    iron_wings,
    legs_to_buckets,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntryFlows:
    """Net cash paid (debit) or received (credit) to open the group.

    Both are None when the legs do not carry enough data to tell.
    """
    debit: Optional[float]
    credit: Optional[float]

    @property
    def known(self) -> bool:
        return self.debit is not None and self.credit is not None

    @property
    def net(self) -> Optional[float]:
        """Signed net debit: positive paid, negative received."""
        if not self.known:
            return None
        return self.debit - self.credit


@dataclass(frozen=True)
class RiskProfile:
    net_debit: Optional[float]
    net_credit: Optional[float]
    max_risk: Optional[float]
    max_profit: Optional[float]
    max_profit_unbounded: bool = False
    breakevens: Tuple[float, ...] = ()
    width: Optional[float] = None
    notes: Tuple[str, ...] = ()

    @property
    def breakeven(self) -> Optional[float]:
        """The lower (or only) breakeven."""
        return self.breakevens[0] if self.breakevens else None


@dataclass
class _Metrics:
    """Unrounded calculator output."""
    max_risk: Optional[float] = None
    max_profit: Optional[float] = None
    unbounded: bool = False
    breakevens: List[float] = field(default_factory=list)
    width: Optional[float] = None
    notes: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Entry flow inference
# ---------------------------------------------------------------------------

def _leg_market_value(leg: OptionLeg, multiplier: float) -> Optional[float]:
    if leg.market_value is not None:
        return leg.market_value
    if leg.market_price is not None:
        return leg.market_price * multiplier * leg.quantity
    return None


def infer_entry_flows(legs: List[OptionLeg], config: Optional[Settings] = None) -> EntryFlows:
    """Back out the opening cash flow of a leg group.

    Preferred: every leg has a market value and unrealized P/L, so the entry
    flow is sum(market_value - unrealized). Fallback: every leg has an entry
    price, long legs are cost and short legs are proceeds. Otherwise unknown.
    """
    cfg = config or default_settings
    m = cfg.contract_multiplier

    if not legs:
        return EntryFlows(debit=None, credit=None)

    market_values = [_leg_market_value(leg, m) for leg in legs]
    if all(mv is not None and leg.unrealized_pl is not None
           for mv, leg in zip(market_values, legs)):
        net = sum(mv - leg.unrealized_pl for mv, leg in zip(market_values, legs))
        return EntryFlows(debit=max(net, 0.0), credit=max(-net, 0.0))

    if all(leg.avg_cost is not None for leg in legs):
        long_cost = sum(leg.avg_cost * m * leg.contracts for leg in legs if leg.is_long)
        short_credit = sum(leg.avg_cost * m * leg.contracts for leg in legs if leg.is_short)
        return EntryFlows(
            debit=max(long_cost - short_credit, 0.0),
            credit=max(short_credit - long_cost, 0.0),
        )

    logger.debug(f"Entry flow unknown for {len(legs)} legs: missing market and cost data")
    return EntryFlows(debit=None, credit=None)


# ---------------------------------------------------------------------------
# Per-strategy calculators
# ---------------------------------------------------------------------------

def _clamp(value: float, width: float) -> float:
    return min(max(value, 0.0), width)


def _split(buckets: List[Bucket], option_type: str) -> List[Bucket]:
    return sorted((b for b in buckets if b.option_type == option_type), key=lambda b: b.strike)


def _long_option(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    metrics = _Metrics(unbounded=True)
    if not flows.known:
        return metrics
    leg = buckets[0]
    debit = flows.debit
    metrics.max_risk = debit
    if leg.option_type == "C":
        metrics.breakevens.append(leg.strike + debit / per_point)
    else:
        metrics.breakevens.append(leg.strike - debit / per_point)
    return metrics


def _debit_vertical(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    low, high = sorted(buckets, key=lambda b: b.strike)
    metrics = _Metrics(width=(high.strike - low.strike) * per_point)
    if not flows.known:
        return metrics
    debit = flows.debit
    metrics.max_risk = _clamp(debit, metrics.width)
    metrics.max_profit = metrics.width - metrics.max_risk
    if low.option_type == "C":
        metrics.breakevens.append(low.strike + debit / per_point)
    else:
        metrics.breakevens.append(high.strike - debit / per_point)
    return metrics


def _credit_vertical(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    low, high = sorted(buckets, key=lambda b: b.strike)
    metrics = _Metrics(width=(high.strike - low.strike) * per_point)
    if not flows.known:
        return metrics
    credit = flows.credit
    metrics.max_profit = _clamp(credit, metrics.width)
    metrics.max_risk = metrics.width - metrics.max_profit
    if low.option_type == "P":
        metrics.breakevens.append(high.strike - credit / per_point)
    else:
        metrics.breakevens.append(low.strike + credit / per_point)
    return metrics


def _irregular_iron(puts: List[Bucket], flows: EntryFlows, per_point: float, metrics: _Metrics) -> _Metrics:
    """2 puts + 2 calls outside the regular wing patterns: priced as a credit condor."""
    credit = flows.credit
    metrics.max_profit = _clamp(credit, metrics.width)
    metrics.max_risk = metrics.width - metrics.max_profit
    if credit > 0:
        short_puts = [b for b in puts if b.direction == "short"]
        anchor = short_puts[0] if len(short_puts) == 1 else puts[-1]
        metrics.breakevens.append(anchor.strike - credit / per_point)
    metrics.notes.append("irregular wings: upper breakeven not derived")
    return metrics


def _iron(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    puts = _split(buckets, "P")
    calls = _split(buckets, "C")
    low_put, high_put = puts
    low_call, high_call = calls
    put_wing = high_put.strike - low_put.strike
    call_wing = high_call.strike - low_call.strike
    metrics = _Metrics(width=min(put_wing, call_wing) * per_point)
    if not flows.known:
        return metrics

    wings = iron_wings(puts, calls)
    if wings is None:
        return _irregular_iron(puts, flows, per_point, metrics)

    if wings == "credit":
        value = flows.credit
        metrics.max_profit = _clamp(value, metrics.width)
        metrics.max_risk = metrics.width - metrics.max_profit
    else:
        value = flows.debit
        metrics.max_risk = _clamp(value, metrics.width)
        metrics.max_profit = metrics.width - metrics.max_risk

    # Body strikes: the short strikes of a condor, the long strikes of a reverse condor
    metrics.breakevens.append(high_put.strike - value / per_point)
    if abs(put_wing - call_wing) < 1e-9:
        metrics.breakevens.append(low_call.strike + value / per_point)
    else:
        metrics.notes.append("asymmetric wings: upper breakeven not derived")
    return metrics


def _butterfly(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    low, body, high = sorted(buckets, key=lambda b: b.strike)
    width = min(body.strike - low.strike, high.strike - body.strike) * per_point
    metrics = _Metrics(width=width)
    if not flows.known or width <= 0:
        return metrics

    if flows.debit > 0:
        value = flows.debit
        metrics.max_risk = _clamp(value, width)
        metrics.max_profit = width - metrics.max_risk
    else:
        value = flows.credit
        metrics.max_profit = _clamp(value, width)
        metrics.max_risk = width - metrics.max_profit

    # Lower and upper breakevens
    metrics.breakevens.append(low.strike + value / per_point)
    metrics.breakevens.append(high.strike - value / per_point)
    return metrics


def _custom(buckets: List[Bucket], flows: EntryFlows, per_point: float) -> _Metrics:
    metrics = _Metrics()
    if not flows.known:
        return metrics
    metrics.max_risk = max(flows.debit, flows.credit)
    metrics.max_profit = flows.credit if flows.credit > 0 else None
    return metrics


_Calculator = Callable[[List[Bucket], EntryFlows, float], _Metrics]

CALCULATORS: Dict[Strategy, _Calculator] = {
    Strategy.LONG_CALL: _long_option,
    Strategy.LONG_PUT: _long_option,
    Strategy.BULL_CALL_SPREAD: _debit_vertical,
    Strategy.BEAR_PUT_SPREAD: _debit_vertical,
    Strategy.BULL_PUT_SPREAD: _credit_vertical,
    Strategy.BEAR_CALL_SPREAD: _credit_vertical,
    Strategy.IRON_CONDOR: _iron,
    Strategy.IRON_BUTTERFLY: _iron,
    Strategy.CALL_BUTTERFLY: _butterfly,
    Strategy.PUT_BUTTERFLY: _butterfly,
    Strategy.DIAGONAL: _custom,
    Strategy.CALENDAR: _custom,
    Strategy.CUSTOM: _custom,
}

_missing = set(Strategy) - set(CALCULATORS)
if _missing:
    raise RuntimeError(f"No risk calculator registered for: {sorted(s.value for s in _missing)}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _money(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(max(value, 0.0), 2)


def compute_risk_profile(
    classification: StrategyClassification,
    legs: List[OptionLeg],
    config: Optional[Settings] = None,
) -> RiskProfile:
    """Compute the RiskProfile for a classified group of legs."""
    if not legs:
        raise EmptyLegGroupError("compute_risk_profile() requires at least one leg")

    cfg = config or default_settings
    flows = infer_entry_flows(legs, cfg)
    buckets = legs_to_buckets(legs)
    per_point = cfg.contract_multiplier * classification.contracts

    calculator = CALCULATORS[classification.strategy]
    metrics = calculator(buckets, flows, per_point)

    notes = list(metrics.notes)
    if not flows.known:
        notes.append("entry flow unknown: risk figures unavailable")

    return RiskProfile(
        net_debit=_money(flows.debit),
        net_credit=_money(flows.credit),
        max_risk=_money(metrics.max_risk),
        max_profit=None if metrics.unbounded else _money(metrics.max_profit),
        max_profit_unbounded=metrics.unbounded,
        breakevens=tuple(round(be, 4) for be in metrics.breakevens),
        width=_money(metrics.width),
        notes=tuple(notes),
    )
