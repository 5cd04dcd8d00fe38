"""
Account Summary Normalizer — tolerant extraction of scalar account metrics
from the broker's free-form summary object.

Each metric tries an ordered list of key spellings: exact key first, then a
case/punctuation-insensitive lookup. An unresolvable metric is None.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from legsync.models.coercion import to_number

UNDERLYING_PRICES_KEY = "__underlying_prices"

SUMMARY_KEYS: Dict[str, Sequence[str]] = {
    "net_liquidation": ("netLiquidation", "NetLiquidation", "net_liquidation"),
    "cash": ("totalCashValue", "TotalCashValue", "cash", "cashBalance"),
    "buying_power": ("buyingPower", "BuyingPower"),
    "maintenance_margin": ("maintMarginReq", "MaintMarginReq", "maintenanceMargin"),
    "excess_liquidity": ("excessLiquidity", "ExcessLiquidity"),
    "gross_position_value": ("grossPositionValue", "GrossPositionValue"),
    "leverage": ("leverage", "Leverage"),
    "cushion": ("cushion", "Cushion"),
}

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class AccountSummary:
    net_liquidation: Optional[float] = None
    cash: Optional[float] = None
    buying_power: Optional[float] = None
    maintenance_margin: Optional[float] = None
    excess_liquidity: Optional[float] = None
    margin_debt: Optional[float] = None
    gross_position_value: Optional[float] = None
    leverage: Optional[float] = None
    cushion: Optional[float] = None


def normalize_summary_key(key: str) -> str:
    return _NON_ALNUM.sub("", str(key).lower())


def build_summary_lookup(summary: Mapping[str, Any]) -> Dict[str, float]:
    lookup: Dict[str, float] = {}
    for key, raw in summary.items():
        number = to_number(raw)
        if number is None:
            continue
        lookup.setdefault(normalize_summary_key(key), number)
    return lookup


def pick_summary(
    summary: Mapping[str, Any],
    lookup: Mapping[str, float],
    keys: Sequence[str],
) -> Optional[float]:
    for key in keys:
        value = to_number(summary.get(key))
        if value is not None:
            return value
        normalized = lookup.get(normalize_summary_key(key))
        if normalized is not None:
            return normalized
    return None


def derive_margin_debt(cash: Optional[float]) -> Optional[float]:
    if cash is None:
        return None
    return abs(cash) if cash < 0 else 0.0


def normalize_account_summary(summary: Optional[Mapping[str, Any]]) -> AccountSummary:
    """Resolve every AccountSummary field from a loosely keyed summary blob."""
    if not isinstance(summary, Mapping):
        return AccountSummary()

    lookup = build_summary_lookup(summary)
    values = {field: pick_summary(summary, lookup, keys) for field, keys in SUMMARY_KEYS.items()}
    return AccountSummary(margin_debt=derive_margin_debt(values["cash"]), **values)


def extract_underlying_prices(summary: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Ticker -> price map carried under the summary's ``__underlying_prices`` key."""
    if not isinstance(summary, Mapping):
        return {}
    raw = summary.get(UNDERLYING_PRICES_KEY)
    if not isinstance(raw, Mapping):
        return {}
    prices: Dict[str, float] = {}
    for ticker_raw, value in raw.items():
        ticker = str(ticker_raw).strip().upper()
        if not ticker:
            continue
        number = to_number(value)
        if number is None:
            continue
        prices[ticker] = round(number, 4)
    return prices
