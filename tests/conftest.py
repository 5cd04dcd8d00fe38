"""
Shared pytest fixtures and factory helpers for legsync tests.

Factories build either normalized records (make_leg) or the raw broker
payload dicts the normalizer consumes (make_position_row, make_execution_row,
make_known_trade).
"""

import pytest
from datetime import date

from legsync.config import Settings
from legsync.models.legs import OptionLeg, OptionType


EXPIRY = date(2026, 2, 27)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config():
    """Default settings, independent of whatever the environment sets."""
    return Settings()


@pytest.fixture
def as_of():
    return date(2026, 1, 20)


# ---------------------------------------------------------------------------
# Record factory helpers
# ---------------------------------------------------------------------------

def make_leg(
    strike=160.0,
    option_type="P",
    quantity=1,
    *,
    ticker="CRM",
    expiry=EXPIRY,
    avg_cost=None,
    market_price=None,
    market_value=None,
    unrealized_pl=None,
    realized_pl=None,
    conid=None,
):
    """Build a normalized OptionLeg. Quantity is signed (negative = short)."""
    return OptionLeg(
        ticker=ticker,
        expiry=expiry,
        strike=float(strike),
        option_type=OptionType(option_type),
        quantity=quantity,
        avg_cost=avg_cost,
        market_price=market_price,
        market_value=market_value,
        unrealized_pl=unrealized_pl,
        realized_pl=realized_pl,
        conid=conid,
    )


# ---------------------------------------------------------------------------
# Raw payload factory helpers
# ---------------------------------------------------------------------------

def make_position_row(
    *,
    symbol="CRM",
    contract="CRM 27FEB26 160 P",
    conid=None,
    quantity=1,
    market_price=1.25,
    market_value=None,
    average_cost=1.50,
    unrealized_pl=None,
    realized_pl=0.0,
    currency="USD",
):
    """Build a broker position row as the snapshot feed delivers it."""
    if market_value is None and isinstance(market_price, (int, float)) and isinstance(quantity, (int, float)):
        market_value = market_price * 100 * quantity
    return {
        "symbol": symbol,
        "contract": contract,
        "conid": conid,
        "quantity": quantity,
        "market_price": market_price,
        "market_value": market_value,
        "average_cost": average_cost,
        "unrealized_pl": unrealized_pl,
        "realized_pl": realized_pl,
        "currency": currency,
    }


def make_execution_row(
    *,
    trade_id="T-001",
    symbol="CRM 260227P00160000",
    side="BOT",
    quantity=1,
    price=1.50,
    commission=0.65,
    trade_time="20260115-10:30:00",
    conid=None,
    order_ref=None,
    order_id=None,
    raw=None,
):
    """Build a broker execution row."""
    row = {
        "trade_id": trade_id,
        "symbol": symbol,
        "side": side,
        "quantity": quantity,
        "price": price,
        "commission": commission,
        "trade_time": trade_time,
        "conid": conid,
    }
    if order_ref is not None:
        row["order_ref"] = order_ref
    if order_id is not None:
        row["order_id"] = order_id
    if raw is not None:
        row["raw"] = raw
    return row


def make_known_trade(
    *,
    id=1,
    ticker="CRM",
    strategy="Iron Condor",
    direction="Neutral",
    legs="160P / 165P / 205C / 210C",
    ib_symbols=None,
    status="OPEN",
    cost_basis=141.80,
    max_risk=358.20,
    max_profit=141.80,
    breakeven=161.42,
    strike_long=None,
    strike_short=None,
    close_price_long=None,
    close_price_short=None,
    contracts=1,
    entry_date="2026-01-10",
    expiry_date="2026-02-27",
):
    """Build a persisted known-trade dict as the journal stores it."""
    if ib_symbols is None:
        ib_symbols = [
            "CRM 27FEB26 160 P",
            "CRM 27FEB26 165 P",
            "CRM 27FEB26 205 C",
            "CRM 27FEB26 210 C",
        ]
    return {
        "id": id,
        "ticker": ticker,
        "strategy": strategy,
        "direction": direction,
        "legs": legs,
        "ib_symbols": ib_symbols,
        "status": status,
        "cost_basis": cost_basis,
        "max_risk": max_risk,
        "max_profit": max_profit,
        "breakeven": breakeven,
        "strike_long": strike_long,
        "strike_short": strike_short,
        "close_price_long": close_price_long,
        "close_price_short": close_price_short,
        "contracts": contracts,
        "entry_date": entry_date,
        "expiry_date": expiry_date,
    }


def crm_condor_legs(**overrides):
    """Canonical CRM iron condor: long 160P / short 165P / short 205C / long 210C, 141.80 credit."""
    return [
        make_leg(160, "P", 1, avg_cost=0.50, **overrides),
        make_leg(165, "P", -1, avg_cost=1.20, **overrides),
        make_leg(205, "C", -1, avg_cost=1.30, **overrides),
        make_leg(210, "C", 1, avg_cost=0.582, **overrides),
    ]
