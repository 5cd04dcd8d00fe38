"""Live model service — turns one broker snapshot into the reconciled live view."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError

from legsync.config import Settings, settings as default_settings
from legsync.models.coercion import to_number
from legsync.models.legs import ExecutionRow, OptionLeg, StockRow
from legsync.models.leg_normalizer import normalize_execution_row, split_snapshot_rows
from legsync.pipeline.account_summary import (
    AccountSummary,
    extract_underlying_prices,
    normalize_account_summary,
)
from legsync.pipeline.live_metrics import LiveSnapshot, RiskSnapshot, assess_risk, build_live_snapshot
from legsync.pipeline.reconciler import ReconciledPosition, reconcile
from legsync.schemas import KnownTrade


@dataclass(frozen=True)
class PositionMetrics:
    """Live valuation and risk level of one position, index-aligned with LiveModel.positions."""
    snapshot: LiveSnapshot
    risk: RiskSnapshot


@dataclass
class LiveModel:
    account_summary: AccountSummary
    positions: List[ReconciledPosition] = field(default_factory=list)
    stocks: List[StockRow] = field(default_factory=list)
    option_quotes: Dict[str, float] = field(default_factory=dict)
    underlying_prices: Dict[str, float] = field(default_factory=dict)
    executions: List[ExecutionRow] = field(default_factory=list)
    metrics: List[PositionMetrics] = field(default_factory=list)
    meta: Dict[str, int] = field(default_factory=dict)


def snapshot_date(snapshot: Dict[str, Any]) -> Optional[date]:
    """Date of the snapshot from fetched_at, falling back to created_at."""
    for key in ("fetched_at", "created_at"):
        value = snapshot.get(key)
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
            except ValueError:
                logger.debug(f"Unparseable snapshot {key}: {value!r}")
    return None


def load_known_trades(raw_trades: Sequence[Union[KnownTrade, dict]]) -> List[KnownTrade]:
    """Validate known trades, keeping only OPEN ones. Invalid records are skipped."""
    trades: List[KnownTrade] = []
    for raw in raw_trades or []:
        if isinstance(raw, KnownTrade):
            trade = raw
        else:
            try:
                trade = KnownTrade.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping known trade that failed validation: {e.error_count()} errors")
                continue
        if trade.status.upper() != "OPEN":
            continue
        trades.append(trade)
    return trades


def build_option_quotes(legs: Sequence[OptionLeg]) -> Dict[str, float]:
    quotes: Dict[str, float] = {}
    for leg in legs:
        if leg.market_price is None:
            continue
        quotes[leg.symbol] = round(leg.market_price, 4)
    return dict(sorted(quotes.items()))


def build_underlying_prices(
    summary: Optional[Dict[str, Any]], stocks: Sequence[StockRow]
) -> Dict[str, float]:
    """Summary-carried underlying prices, overridden by live stock marks."""
    prices = extract_underlying_prices(summary)
    for stock in stocks:
        price = to_number(stock.market_price)
        if price is not None and price > 0:
            prices[stock.ticker] = round(price, 4)
    return dict(sorted(prices.items()))


def build_position_metrics(
    positions: Sequence[ReconciledPosition],
    option_quotes: Dict[str, float],
    underlying_prices: Dict[str, float],
    as_of: date,
    config: Optional[Settings] = None,
) -> List[PositionMetrics]:
    return [
        PositionMetrics(
            snapshot=build_live_snapshot(position, option_quotes, config),
            risk=assess_risk(position, underlying_prices.get(position.ticker), as_of, config),
        )
        for position in positions
    ]


def build_live_model(
    snapshot: Dict[str, Any],
    known_trades: Sequence[Union[KnownTrade, dict]] = (),
    as_of: Optional[date] = None,
    config: Optional[Settings] = None,
) -> LiveModel:
    """Normalize, reconcile and summarize one broker snapshot."""
    cfg = config or default_settings
    snapshot = snapshot or {}
    as_of = as_of or snapshot_date(snapshot) or date.today()

    rows = split_snapshot_rows(snapshot.get("positions") or [], cfg)
    executions = [
        e for e in (normalize_execution_row(row) for row in snapshot.get("trades") or [])
        if e is not None
    ]
    logger.info(
        f"Snapshot {as_of}: {len(rows.legs)} option legs, {len(rows.stocks)} stocks, "
        f"{len(executions)} executions, {rows.dropped} rows dropped"
    )

    trades = load_known_trades(known_trades)
    result = reconcile(rows.legs, trades, executions, as_of, cfg)
    derived = sorted(result.derived, key=lambda p: p.ticker)

    summary = snapshot.get("summary")
    positions = result.matched + derived
    option_quotes = build_option_quotes(rows.legs)
    underlying_prices = build_underlying_prices(summary, rows.stocks)
    model = LiveModel(
        account_summary=normalize_account_summary(summary),
        positions=positions,
        stocks=sorted(rows.stocks, key=lambda s: s.ticker),
        option_quotes=option_quotes,
        underlying_prices=underlying_prices,
        executions=executions,
        metrics=build_position_metrics(positions, option_quotes, underlying_prices, as_of, cfg),
        meta={
            "matched": len(result.matched),
            "derived": len(derived),
            "unmatched_legs": result.unmatched_legs,
            "dropped_rows": rows.dropped,
        },
    )
    logger.info(
        f"Live model ready: {model.meta['matched']} matched, {model.meta['derived']} derived positions"
    )
    return model
