"""Canonical leg, stock and execution records produced by the leg normalizer."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from legsync.models.symbols import canonical_symbol, clean_strike


class OptionType(str, Enum):
    CALL = "C"
    PUT = "P"


@dataclass(frozen=True)
class OptionLeg:
    """One option contract held or traded. Quantity is signed (negative = short)."""
    ticker: str
    expiry: date
    strike: float
    option_type: OptionType
    quantity: int
    avg_cost: Optional[float] = None       # per-share premium, unit-corrected
    market_price: Optional[float] = None   # per-share mark
    market_value: Optional[float] = None   # signed, quantity-scaled
    unrealized_pl: Optional[float] = None
    realized_pl: Optional[float] = None
    conid: Optional[int] = None

    @property
    def symbol(self) -> str:
        return canonical_symbol(self.ticker, self.expiry, self.strike, self.option_type.value)

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0

    @property
    def contracts(self) -> int:
        return abs(self.quantity)

    @property
    def label(self) -> str:
        return f"{clean_strike(self.strike)}{self.option_type.value}"

    def sort_key(self):
        return (self.ticker, self.expiry, self.option_type.value, self.strike)


@dataclass(frozen=True)
class StockRow:
    """A simple equity holding from the broker snapshot."""
    ticker: str
    shares: float
    cost_price: float
    close_price: float
    cost_basis: float
    unrealized_pl: float
    market_price: Optional[float] = None


@dataclass(frozen=True)
class ExecutionRow:
    """One fill from the broker's recent executions feed."""
    trade_id: Optional[str]
    symbol: str
    ticker: str
    side: Optional[str]  # BUY / SELL
    quantity: Optional[float]
    price: Optional[float]
    commission: Optional[float]
    trade_time: Optional[datetime]
    conid: Optional[int]
    order_key: Optional[str]  # "ref:<order_ref>" or "oid:<order_id>"
    option_symbol: Optional[str] = None  # canonical, when the symbol is an option
