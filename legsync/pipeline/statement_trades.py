"""
Statement Trade Grouping — turns manually parsed statement executions into
trade records.

Executions are grouped by (ticker, expiry, trade date), in first-seen order.
Each group is classified; its status is OPEN while the group's net quantity
is non-zero, otherwise WIN or LOSS from the realized P/L summary. Open
position rows for the group's contracts supply the live fields.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from legsync.config import Settings, settings as default_settings
from legsync.models.coercion import to_number
from legsync.models.legs import OptionLeg
from legsync.models.leg_normalizer import normalize_statement_row, parse_trade_time
from legsync.models.symbols import normalize_symbol_text
from legsync.pipeline.reconciler import Provenance, sort_unique_symbols
from legsync.pipeline.strategy_engine import classify
from legsync.schemas import TradeRecord

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, date, Optional[date]]


@dataclass(frozen=True)
class StatementFill:
    """One statement execution: the traded leg plus its fill details."""
    leg: OptionLeg
    price: float
    commission: float
    trade_date: Optional[date]


def normalize_statement_fill(
    row: Dict[str, Any], config: Optional[Settings] = None
) -> Optional[StatementFill]:
    leg = normalize_statement_row(row, config)
    if leg is None:
        return None
    traded = parse_trade_time(row.get("timestamp") or row.get("trade_time"))
    return StatementFill(
        leg=leg,
        price=to_number(row.get("price")) or 0.0,
        commission=to_number(row.get("commission")) or 0.0,
        trade_date=traded.date() if traded else None,
    )


def group_statement_fills(fills: Sequence[StatementFill]) -> Dict[GroupKey, List[StatementFill]]:
    groups: Dict[GroupKey, List[StatementFill]] = {}
    for fill in fills:
        key = (fill.leg.ticker, fill.leg.expiry, fill.trade_date)
        groups.setdefault(key, []).append(fill)
    return groups


def _build_trade(
    fills: List[StatementFill],
    open_legs: List[OptionLeg],
    realized: Mapping[str, float],
    as_of: date,
    cfg: Settings,
) -> TradeRecord:
    m = cfg.contract_multiplier
    legs = [fill.leg for fill in fills]
    classification = classify(legs, cfg)
    contracts = classification.contracts
    symbols = sort_unique_symbols(leg.symbol for leg in legs)

    entry_date = min((f.trade_date for f in fills if f.trade_date), default=as_of)
    is_open = sum(leg.quantity for leg in legs) != 0

    gross_cost = sum(abs(f.leg.quantity * f.price * m) for f in fills)
    commissions = round(sum(abs(f.commission) for f in fills), 2)

    realized_pl = None
    if not is_open:
        realized_pl = next((realized[s] for s in symbols if s in realized), 0.0)

    relevant = [leg for leg in open_legs if leg.symbol in symbols]
    long_leg = next((leg for leg in relevant if leg.is_long), None)
    short_leg = next((leg for leg in relevant if leg.is_short), None)

    unrealized_pl = None
    if is_open:
        unrealized_pl = round(sum(leg.unrealized_pl or 0.0 for leg in relevant), 2)

    if relevant:
        cost_basis = abs(sum((leg.avg_cost or 0.0) * m * leg.quantity for leg in relevant))
    else:
        cost_basis = gross_cost
    cost_basis = round(cost_basis, 2)

    strike_long = long_leg.strike if long_leg else None
    strike_short = short_leg.strike if short_leg else None
    max_profit = None
    breakeven = None
    if strike_long is not None and strike_short is not None:
        max_profit = round(max(0.0, abs(strike_short - strike_long) * m * contracts - cost_basis), 2)
        breakeven = round(strike_long + cost_basis / (m * contracts), 4)

    pl = realized_pl if realized_pl is not None else unrealized_pl
    return_pct = None if pl is None else round(pl / (cost_basis or 1) * 100, 2)

    if is_open:
        status = "OPEN"
    else:
        status = "WIN" if realized_pl >= 0 else "LOSS"

    return TradeRecord(
        ticker=legs[0].ticker,
        strategy=classification.strategy.value,
        legs=classification.legs_label,
        direction=classification.direction.value,
        entry_date=entry_date,
        expiry_date=legs[0].expiry,
        status=status,
        cost_basis=cost_basis,
        max_risk=cost_basis,
        max_profit=max_profit,
        breakeven=breakeven,
        breakevens=[] if breakeven is None else [breakeven],
        strike_long=strike_long,
        strike_short=strike_short,
        close_price_long=long_leg.market_price if long_leg else None,
        close_price_short=short_leg.market_price if short_leg else None,
        contracts=contracts,
        unrealized_pl=unrealized_pl,
        realized_pl=realized_pl,
        commissions=commissions,
        return_pct=return_pct,
        provenance=Provenance.DERIVED.value,
        ib_symbols=list(symbols),
        notes="Imported from statement",
    )


def group_statement_trades(
    executions: Sequence[Dict[str, Any]],
    open_positions: Sequence[Dict[str, Any]] = (),
    realized_by_symbol: Optional[Mapping[str, Any]] = None,
    as_of: Optional[date] = None,
    config: Optional[Settings] = None,
) -> List[TradeRecord]:
    """Group statement executions into trade records.

    Args:
        executions: statement execution rows (symbol, quantity or side,
            price, commission, timestamp).
        open_positions: statement open-position rows (symbol, quantity,
            avg_price, close_price).
        realized_by_symbol: total realized P/L per option symbol, any
            recognizable symbol spelling.
        as_of: entry date for groups whose fills carry no timestamp.
    """
    cfg = config or default_settings
    as_of = as_of or date.today()

    fills = []
    for row in executions or []:
        fill = normalize_statement_fill(row, cfg)
        if fill is None:
            logger.debug(f"Dropping statement execution: {row!r}")
            continue
        fills.append(fill)

    open_legs = [
        leg for leg in (normalize_statement_row(row, cfg) for row in open_positions or [])
        if leg is not None
    ]

    realized: Dict[str, float] = {}
    for symbol, value in (realized_by_symbol or {}).items():
        amount = to_number(value)
        if amount is not None:
            realized[normalize_symbol_text(symbol)] = amount

    trades = [
        _build_trade(group, open_legs, realized, as_of, cfg)
        for group in group_statement_fills(fills).values()
    ]
    logger.info(f"Grouped {len(fills)} statement executions into {len(trades)} trades")
    return trades
