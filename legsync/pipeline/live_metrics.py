"""
Live Position Metrics — mark-to-market value, live P/L and a risk level for
a reconciled position, from option marks and the underlying price.

Public API:
    build_live_snapshot(position, option_quotes) -> LiveSnapshot   (pure)
    assess_risk(position, price, as_of) -> RiskSnapshot            (pure)

Quotes are keyed by canonical option symbol. A position missing any leg
mark reports no value and no P/L rather than a partial figure.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Mapping, Optional, Tuple

from legsync.config import Settings, settings as default_settings
from legsync.models.coercion import to_number
from legsync.pipeline.reconciler import ReconciledPosition
from legsync.pipeline.strategy_engine import CREDIT_STRATEGIES, Strategy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiveLeg:
    symbol: str
    strike: float
    option_type: str
    expiry: date
    side: str                 # LONG / SHORT
    quantity: int
    mark: Optional[float]


@dataclass(frozen=True)
class LiveSnapshot:
    legs: Tuple[LiveLeg, ...] = ()
    has_all_quotes: bool = False
    mark_value: Optional[float] = None
    live_pl: Optional[float] = None
    profit_capture_pct: Optional[float] = None
    risk_consumed_pct: Optional[float] = None


@dataclass(frozen=True)
class RiskSnapshot:
    """Risk level 1 (safe) .. 5 (critical); 3 with label "UNKNOWN" when data is missing."""
    level: int
    label: str
    detail: str


@dataclass(frozen=True)
class CondorZone:
    lower_wing: float
    lower_short: float
    upper_short: float
    upper_wing: float
    lower_breakeven: float
    upper_breakeven: float
    credit_per_share: float
    width: float


# ---------------------------------------------------------------------------
# Live snapshot
# ---------------------------------------------------------------------------

def _entry_cashflow_from_legs(position: ReconciledPosition, multiplier: float) -> Optional[float]:
    """Premium received minus premium paid, from per-leg entry prices."""
    if not position.legs or any(leg.avg_cost is None for leg in position.legs):
        return None
    return -sum(leg.avg_cost * multiplier * leg.quantity for leg in position.legs)


def _entry_cashflow_from_record(position: ReconciledPosition) -> Optional[float]:
    if position.strategy in CREDIT_STRATEGIES:
        if position.risk.max_profit is not None:
            return position.risk.max_profit
        return position.cost_basis
    if position.cost_basis is None:
        return None
    return -position.cost_basis


def build_live_snapshot(
    position: ReconciledPosition,
    option_quotes: Mapping[str, float],
    config: Optional[Settings] = None,
) -> LiveSnapshot:
    """Value a position's legs at their current marks.

    live_pl = mark value + entry cash flow. Profit capture is reported only
    for a gain against a positive max profit; risk consumed only for a loss
    against a positive max risk.
    """
    cfg = config or default_settings
    m = cfg.contract_multiplier

    legs: List[LiveLeg] = []
    mark_value = 0.0
    has_all_quotes = bool(position.legs)
    for leg in sorted(position.legs, key=lambda item: item.sort_key()):
        mark = to_number(option_quotes.get(leg.symbol))
        if mark is None:
            has_all_quotes = False
        else:
            mark_value += mark * m * leg.quantity
        legs.append(LiveLeg(
            symbol=leg.symbol,
            strike=leg.strike,
            option_type=leg.option_type.value,
            expiry=leg.expiry,
            side="LONG" if leg.is_long else "SHORT",
            quantity=leg.quantity,
            mark=mark,
        ))

    if not has_all_quotes:
        logger.debug(f"{position.ticker} {position.legs_label}: missing leg marks, no live value")
        return LiveSnapshot(legs=tuple(legs))

    entry = _entry_cashflow_from_legs(position, m)
    if entry is None:
        entry = _entry_cashflow_from_record(position)
    if entry is None:
        return LiveSnapshot(legs=tuple(legs), has_all_quotes=True, mark_value=round(mark_value, 2))

    live_pl = round(mark_value + entry, 2)
    max_profit = position.risk.max_profit
    max_risk = position.risk.max_risk

    profit_capture = None
    if live_pl > 0 and max_profit is not None and max_profit > 0:
        profit_capture = round(live_pl / max_profit * 100, 1)
    risk_consumed = None
    if live_pl < 0 and max_risk is not None and max_risk > 0:
        risk_consumed = round(abs(live_pl) / max_risk * 100, 1)

    return LiveSnapshot(
        legs=tuple(legs),
        has_all_quotes=True,
        mark_value=round(mark_value, 2),
        live_pl=live_pl,
        profit_capture_pct=profit_capture,
        risk_consumed_pct=risk_consumed,
    )


# ---------------------------------------------------------------------------
# Risk level
# ---------------------------------------------------------------------------

def condor_zone(position: ReconciledPosition, config: Optional[Settings] = None) -> Optional[CondorZone]:
    """Price zones of a regular iron condor: wings, short strikes and breakevens.

    The credit per share comes from max profit, else from the recorded lower
    breakeven, else 20% of the narrower wing.
    """
    if position.strategy != Strategy.IRON_CONDOR:
        return None
    cfg = config or default_settings

    puts = sorted({leg.strike for leg in position.legs if leg.option_type.value == "P"})
    calls = sorted({leg.strike for leg in position.legs if leg.option_type.value == "C"})
    if len(puts) < 2 or len(calls) < 2:
        return None

    lower_wing, lower_short = puts[0], puts[-1]
    upper_short, upper_wing = calls[0], calls[-1]
    if not (lower_wing < lower_short < upper_short < upper_wing):
        return None
    width = min(lower_short - lower_wing, upper_wing - upper_short)

    candidates = []
    if position.risk.max_profit is not None:
        candidates.append(position.risk.max_profit / (cfg.contract_multiplier * max(position.contracts, 1)))
    if position.risk.breakeven is not None:
        candidates.append(lower_short - position.risk.breakeven)
    credit = next((c for c in candidates if 0 < c < width), round(width * 0.2, 4))

    return CondorZone(
        lower_wing=lower_wing,
        lower_short=lower_short,
        upper_short=upper_short,
        upper_wing=upper_wing,
        lower_breakeven=round(lower_short - credit, 4),
        upper_breakeven=round(upper_short + credit, 4),
        credit_per_share=credit,
        width=width,
    )


def classify_condor_zone(price: float, zone: CondorZone) -> str:
    if price <= zone.lower_wing:
        return "max_loss_low"
    if price < zone.lower_breakeven:
        return "recover_low"
    if price < zone.lower_short:
        return "profit_low"
    if price <= zone.upper_short:
        return "max_profit_core"
    if price <= zone.upper_breakeven:
        return "profit_high"
    if price < zone.upper_wing:
        return "recover_high"
    return "max_loss_high"


def _condor_risk(price: float, zone: CondorZone, dte: int) -> RiskSnapshot:
    area = classify_condor_zone(price, zone)
    if area == "max_profit_core":
        return RiskSnapshot(1, "SAFE", "Price is inside the max-profit core between short strikes.")
    if area in ("profit_low", "profit_high"):
        return RiskSnapshot(1 if dte > 3 else 2, "SAFE",
                            "Price is inside the breakeven range but outside the max-profit core.")
    if area in ("recover_low", "recover_high"):
        if dte > 5:
            return RiskSnapshot(3, "CAUTION", "Price is outside breakeven and needs recovery before expiry.")
        return RiskSnapshot(4, "AT RISK", "Price is outside breakeven and needs recovery before expiry.")
    return RiskSnapshot(5, "CRITICAL", "Price is in the max-loss wing zone.")


def assess_risk(
    position: ReconciledPosition,
    price: Optional[float],
    as_of: date,
    config: Optional[Settings] = None,
) -> RiskSnapshot:
    """Risk level from where the underlying sits against breakeven, and days to expiry."""
    if not price or position.expiry is None:
        return RiskSnapshot(3, "UNKNOWN", "Risk status needs the underlying price and expiry.")

    dte = max((position.expiry - as_of).days, 0)

    zone = condor_zone(position, config)
    if zone is not None:
        return _condor_risk(price, zone, dte)

    breakeven = position.risk.breakeven
    if breakeven is None:
        return RiskSnapshot(3, "UNKNOWN", "Breakeven is not set for this position.")

    distance = abs((breakeven - price) / price * 100)
    if price >= breakeven:
        return RiskSnapshot(1, "SAFE", "Underlying is above breakeven.")
    if distance < 3 and dte > 5:
        return RiskSnapshot(2, "NEAR", "Underlying is slightly below breakeven with time cushion.")
    if distance < 5 and dte > 3:
        return RiskSnapshot(3, "CAUTION", "Below breakeven with moderate time pressure.")
    if distance < 10 and dte > 2:
        return RiskSnapshot(4, "AT RISK", "Far below breakeven and close to expiry.")
    return RiskSnapshot(5, "CRITICAL", "Deep below breakeven with severe time pressure.")
