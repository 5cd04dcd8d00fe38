"""
Leg Normalizer — converts broker position rows, broker execution rows and
manually parsed statement rows into the canonical record types.

All functions are pure. A row that is neither a recognizable option contract
nor a simple equity holding normalizes to ``None`` and is dropped by callers.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from legsync.config import Settings, settings as default_settings
from legsync.models.coercion import normalize_average_cost, to_int, to_number
from legsync.models.legs import ExecutionRow, OptionLeg, OptionType, StockRow
from legsync.models.symbols import parse_option_symbol

logger = logging.getLogger(__name__)

_STOCK_TICKER = re.compile(r"^[A-Z.]{1,10}$")


@dataclass
class NormalizedRows:
    """Output of split_snapshot_rows(): legs and stocks + count of dropped rows."""
    legs: List[OptionLeg] = field(default_factory=list)
    stocks: List[StockRow] = field(default_factory=list)
    dropped: int = 0


def _row_text(row: Dict[str, Any]) -> str:
    return f"{row.get('symbol') or ''} {row.get('contract') or ''}".upper()


def infer_stock_ticker(row: Dict[str, Any]) -> Optional[str]:
    candidate = str(row.get("symbol") or row.get("contract") or "").strip().upper()
    if not candidate:
        return None
    first = candidate.split()[0]
    if not _STOCK_TICKER.match(first):
        return None
    return first


def _option_leg_from_row(
    row: Dict[str, Any], config: Settings
) -> Optional[OptionLeg]:
    parsed = parse_option_symbol(_row_text(row))
    if not parsed:
        return None

    quantity = to_int(row.get("quantity"))
    if not quantity:
        logger.debug(f"Dropping option row {parsed.symbol}: no usable quantity")
        return None

    market_price = to_number(row.get("market_price"))
    avg_cost = normalize_average_cost(to_number(row.get("average_cost")), market_price, config)

    return OptionLeg(
        ticker=parsed.ticker,
        expiry=parsed.expiry,
        strike=parsed.strike,
        option_type=OptionType(parsed.option_type),
        quantity=quantity,
        avg_cost=avg_cost,
        market_price=market_price,
        market_value=to_number(row.get("market_value")),
        unrealized_pl=to_number(row.get("unrealized_pl")),
        realized_pl=to_number(row.get("realized_pl")),
        conid=to_int(row.get("conid")),
    )


def _stock_row_from_row(row: Dict[str, Any]) -> Optional[StockRow]:
    ticker = infer_stock_ticker(row)
    if not ticker:
        return None
    shares = to_number(row.get("quantity"))
    if not shares:
        return None

    market_price = to_number(row.get("market_price"))
    cost_price = to_number(row.get("average_cost")) or 0.0
    close_price = market_price if market_price is not None else cost_price
    unrealized = to_number(row.get("unrealized_pl")) or 0.0

    return StockRow(
        ticker=ticker,
        shares=shares,
        cost_price=round(cost_price, 4),
        close_price=round(close_price, 4),
        cost_basis=round(cost_price * shares, 2),
        unrealized_pl=round(unrealized, 2),
        market_price=market_price,
    )


def normalize_position_row(
    row: Dict[str, Any],
    config: Optional[Settings] = None,
) -> Optional[Union[OptionLeg, StockRow]]:
    """Broker position row -> OptionLeg, StockRow, or None."""
    if not isinstance(row, dict):
        return None
    cfg = config or default_settings
    if parse_option_symbol(_row_text(row)):
        # An unusable option row must not fall through to the stock branch
        return _option_leg_from_row(row, cfg)
    return _stock_row_from_row(row)


def split_snapshot_rows(
    rows: Iterable[Dict[str, Any]],
    config: Optional[Settings] = None,
) -> NormalizedRows:
    result = NormalizedRows()
    for row in rows or []:
        normalized = normalize_position_row(row, config)
        if isinstance(normalized, OptionLeg):
            result.legs.append(normalized)
        elif isinstance(normalized, StockRow):
            result.stocks.append(normalized)
        else:
            result.dropped += 1
    return result


def parse_trade_time(value: Any) -> Optional[datetime]:
    """Accepts IBKR ``YYYYMMDD-HH:MM:SS`` and ISO-8601 timestamps."""
    if not value:
        return None
    text = str(value).strip()
    try:
        return datetime.strptime(text, "%Y%m%d-%H:%M:%S")
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def extract_order_key(row: Dict[str, Any]) -> Optional[str]:
    """Order grouping key for an execution: order_ref wins over order_id."""
    raw = row.get("raw") if isinstance(row.get("raw"), dict) else {}

    order_ref = row.get("order_ref") or raw.get("order_ref")
    if isinstance(order_ref, str) and order_ref.strip():
        return f"ref:{order_ref.strip()}"

    for source in (row, raw):
        for key in ("order_id", "orderId"):
            order_id = source.get(key)
            if order_id is not None and str(order_id).strip():
                return f"oid:{str(order_id).strip()}"
    return None


def normalize_execution_row(row: Dict[str, Any]) -> Optional[ExecutionRow]:
    """Broker execution row -> ExecutionRow, or None when there is no symbol."""
    if not isinstance(row, dict):
        return None
    symbol = str(row.get("symbol") or "").strip().upper()
    if not symbol:
        return None

    parsed = parse_option_symbol(symbol)
    side = str(row.get("side") or "").strip().upper() or None
    if side in ("B", "BOT"):
        side = "BUY"
    elif side in ("S", "SLD"):
        side = "SELL"

    trade_id = row.get("trade_id")
    return ExecutionRow(
        trade_id=str(trade_id) if trade_id is not None else None,
        symbol=symbol,
        ticker=parsed.ticker if parsed else symbol.split()[0],
        side=side,
        quantity=to_number(row.get("quantity")),
        price=to_number(row.get("price")),
        commission=to_number(row.get("commission")),
        trade_time=parse_trade_time(row.get("trade_time")),
        conid=to_int(row.get("conid")),
        order_key=extract_order_key(row),
        option_symbol=parsed.symbol if parsed else None,
    )


def normalize_statement_row(
    row: Dict[str, Any],
    config: Optional[Settings] = None,
) -> Optional[OptionLeg]:
    """Manually parsed statement row (open position or execution) -> OptionLeg.

    Statement rows carry per-share prices; market value and unrealized P/L are
    derived from the close price when the row does not state them.
    """
    if not isinstance(row, dict):
        return None
    cfg = config or default_settings
    parsed = parse_option_symbol(row.get("symbol"))
    if not parsed:
        return None

    quantity = to_int(row.get("quantity"))
    if not quantity:
        return None
    if str(row.get("side") or "").upper() == "SELL" and quantity > 0:
        quantity = -quantity

    avg_price = to_number(row.get("avg_price"))
    if avg_price is None:
        avg_price = to_number(row.get("price"))
    close_price = to_number(row.get("close_price"))

    market_value = to_number(row.get("market_value"))
    if market_value is None and close_price is not None:
        market_value = close_price * cfg.contract_multiplier * quantity

    unrealized = to_number(row.get("unrealized_pl"))
    if unrealized is None and close_price is not None and avg_price is not None:
        unrealized = (close_price - avg_price) * cfg.contract_multiplier * quantity

    return OptionLeg(
        ticker=parsed.ticker,
        expiry=parsed.expiry,
        strike=parsed.strike,
        option_type=OptionType(parsed.option_type),
        quantity=quantity,
        avg_cost=normalize_average_cost(avg_price, close_price, cfg),
        market_price=close_price,
        market_value=market_value,
        unrealized_pl=unrealized,
        realized_pl=to_number(row.get("realized_pl")),
        conid=to_int(row.get("conid")),
    )
