"""Data types for the strategy engine."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from legsync.models.symbols import clean_strike


class Strategy(str, Enum):
    LONG_CALL = "Long Call"
    LONG_PUT = "Long Put"
    BULL_CALL_SPREAD = "Bull Call Spread"
    BEAR_PUT_SPREAD = "Bear Put Spread"
    BULL_PUT_SPREAD = "Bull Put Spread"
    BEAR_CALL_SPREAD = "Bear Call Spread"
    IRON_CONDOR = "Iron Condor"
    IRON_BUTTERFLY = "Iron Butterfly"
    CALL_BUTTERFLY = "Call Butterfly"
    PUT_BUTTERFLY = "Put Butterfly"
    DIAGONAL = "Diagonal"
    CALENDAR = "Calendar"
    CUSTOM = "Custom"


class Direction(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


@dataclass(frozen=True)
class Bucket:
    """Net position in one (expiry, strike, type) contract after offsetting legs cancel."""
    option_type: str        # "C" or "P"
    strike: float
    expiration: date
    quantity: int           # Signed, never zero

    @property
    def direction(self) -> str:
        return "long" if self.quantity > 0 else "short"

    @property
    def size(self) -> int:
        return abs(self.quantity)

    @property
    def label(self) -> str:
        return f"{clean_strike(self.strike)}{self.option_type}"


@dataclass(frozen=True)
class StrategyDef:
    """Registry entry defining a strategy's metadata."""
    strategy: Strategy
    direction: Direction
    credit_debit: Optional[str]  # "credit", "debit", None when it depends on prices
    category: str                # "single", "vertical", "calendar", "multi", "butterfly", "custom"


@dataclass(frozen=True)
class StrategyClassification:
    """Result of strategy recognition for one leg group."""
    strategy: Strategy
    direction: Direction
    contracts: int          # Common multiplier across bucket quantities
    leg_count: int          # Buckets surviving netting
    legs_label: str         # e.g. "160P / 165P / 205C / 210C"

    @property
    def name(self) -> str:
        return self.strategy.value
