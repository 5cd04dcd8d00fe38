"""Pydantic models for the trade records legsync reads and emits."""

from datetime import date
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from legsync.models.symbols import normalize_symbol_text


class KnownTrade(BaseModel):
    """A previously recorded open trade, as persisted by the journal."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None
    ticker: str = ""
    strategy: str = "Custom"
    direction: str = "Neutral"
    legs: str = ""
    required_symbols: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_symbols", "ib_symbols"),
    )
    status: str = "OPEN"
    cost_basis: Optional[float] = None
    max_risk: Optional[float] = None
    max_profit: Optional[float] = None
    breakeven: Optional[float] = None
    strike_long: Optional[float] = None
    strike_short: Optional[float] = None
    close_price_long: Optional[float] = None
    close_price_short: Optional[float] = None
    contracts: Optional[int] = None
    entry_date: Optional[date] = None
    expiry_date: Optional[date] = None

    @field_validator("required_symbols", mode="before")
    @classmethod
    def _coerce_symbols(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [s for s in value if s is not None]

    @property
    def symbol_set(self) -> frozenset:
        return frozenset(normalize_symbol_text(s) for s in self.required_symbols if s and str(s).strip())


class TradeRecord(BaseModel):
    """Trade-shaped output of one reconciled position."""
    ticker: str
    strategy: str
    legs: str
    direction: str
    entry_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: str = "OPEN"
    position_type: str = "option"
    cost_basis: Optional[float] = None
    max_risk: Optional[float] = None
    max_profit: Optional[float] = None
    max_profit_unbounded: bool = False
    breakeven: Optional[float] = None
    breakevens: List[float] = Field(default_factory=list)
    strike_long: Optional[float] = None
    strike_short: Optional[float] = None
    close_price_long: Optional[float] = None
    close_price_short: Optional[float] = None
    contracts: int = 1
    unrealized_pl: Optional[float] = None
    realized_pl: Optional[float] = None
    urgency: Optional[int] = None
    commissions: Optional[float] = None
    return_pct: Optional[float] = None
    source: str = "import"
    provenance: str
    known_trade_id: Optional[int] = None
    ib_symbols: List[str] = Field(default_factory=list)
    notes: str = ""
