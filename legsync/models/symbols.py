"""
Canonical option symbols.

The canonical form is ``"TICKER DDMONYY STRIKE T"`` (e.g. ``"CRM 27FEB26 160 P"``),
the same shape brokerage statements print. It is derived only from
(ticker, expiry, strike, type), so an OCC-style feed symbol and a statement
symbol for the same contract produce the same key.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN",
          "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

# "CRM 260227P00160000", "AAPL  250321C00170000", "OPT CRM 260227P00160000"
_OCC_PATTERN = re.compile(r"([A-Z.]+)\s+(\d{6})([CP])(\d{8})")
# "CRM 27FEB26 160 P"
_STATEMENT_PATTERN = re.compile(r"([A-Z.]+)\s+(\d{2})([A-Z]{3})(\d{2})\s+(\d+(?:\.\d+)?)\s+([CP])\b")


@dataclass(frozen=True)
class ParsedSymbol:
    ticker: str
    expiry: date
    strike: float
    option_type: str  # "C" or "P"

    @property
    def symbol(self) -> str:
        return canonical_symbol(self.ticker, self.expiry, self.strike, self.option_type)


def clean_strike(strike: float) -> str:
    """Render a strike without trailing zeros: 160.0 -> '160', 72.50 -> '72.5'."""
    rounded = round(float(strike), 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.4f}".rstrip("0").rstrip(".")


def expiry_code(expiry: date) -> str:
    return f"{expiry.day:02d}{MONTHS[expiry.month - 1]}{expiry.year % 100:02d}"


def canonical_symbol(ticker: str, expiry: date, strike: float, option_type: str) -> str:
    return f"{ticker.strip().upper()} {expiry_code(expiry)} {clean_strike(strike)} {option_type.upper()[0]}"


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_occ(text: str) -> Optional[ParsedSymbol]:
    match = _OCC_PATTERN.search(text)
    if not match:
        return None
    ticker, yymmdd, cp, strike_raw = match.groups()
    expiry = _safe_date(2000 + int(yymmdd[:2]), int(yymmdd[2:4]), int(yymmdd[4:6]))
    if expiry is None:
        return None
    return ParsedSymbol(ticker=ticker, expiry=expiry, strike=int(strike_raw) / 1000, option_type=cp)


def _parse_statement(text: str) -> Optional[ParsedSymbol]:
    match = _STATEMENT_PATTERN.search(text)
    if not match:
        return None
    ticker, dd, mon, yy, strike_raw, cp = match.groups()
    if mon not in MONTHS:
        return None
    expiry = _safe_date(2000 + int(yy), MONTHS.index(mon) + 1, int(dd))
    if expiry is None:
        return None
    return ParsedSymbol(ticker=ticker, expiry=expiry, strike=float(strike_raw), option_type=cp)


def parse_option_symbol(text: Optional[str]) -> Optional[ParsedSymbol]:
    """Parse either the OCC-style or the statement-style option symbol."""
    if not text:
        return None
    upper = " ".join(str(text).upper().split())
    return _parse_occ(upper) or _parse_statement(upper)


def normalize_symbol_text(symbol: str) -> str:
    """Canonicalize a stored symbol; unparseable text is only upper-cased and trimmed."""
    parsed = parse_option_symbol(symbol)
    if parsed:
        return parsed.symbol
    return " ".join(str(symbol).upper().split())
