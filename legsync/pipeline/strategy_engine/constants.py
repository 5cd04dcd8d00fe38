"""Strategy registry — single source of truth for all strategy metadata."""

from .types import Direction, Strategy, StrategyDef

STRATEGIES: dict[Strategy, StrategyDef] = {
    # -- Single leg --
    Strategy.LONG_CALL:        StrategyDef(Strategy.LONG_CALL,        Direction.BULLISH, "debit",  "single"),
    Strategy.LONG_PUT:         StrategyDef(Strategy.LONG_PUT,         Direction.BEARISH, "debit",  "single"),
    # -- Verticals --
    Strategy.BULL_CALL_SPREAD: StrategyDef(Strategy.BULL_CALL_SPREAD, Direction.BULLISH, "debit",  "vertical"),
    Strategy.BEAR_PUT_SPREAD:  StrategyDef(Strategy.BEAR_PUT_SPREAD,  Direction.BEARISH, "debit",  "vertical"),
    Strategy.BULL_PUT_SPREAD:  StrategyDef(Strategy.BULL_PUT_SPREAD,  Direction.BULLISH, "credit", "vertical"),
    Strategy.BEAR_CALL_SPREAD: StrategyDef(Strategy.BEAR_CALL_SPREAD, Direction.BEARISH, "credit", "vertical"),
    # -- Cross-expiry --
    Strategy.DIAGONAL:         StrategyDef(Strategy.DIAGONAL,         Direction.NEUTRAL, None,     "calendar"),
    Strategy.CALENDAR:         StrategyDef(Strategy.CALENDAR,         Direction.NEUTRAL, None,     "calendar"),
    # -- Four leg --
    Strategy.IRON_CONDOR:      StrategyDef(Strategy.IRON_CONDOR,      Direction.NEUTRAL, "credit", "multi"),
    Strategy.IRON_BUTTERFLY:   StrategyDef(Strategy.IRON_BUTTERFLY,   Direction.NEUTRAL, "credit", "multi"),
    # -- Butterflies (debit or credit depending on which side holds the wings) --
    Strategy.CALL_BUTTERFLY:   StrategyDef(Strategy.CALL_BUTTERFLY,   Direction.NEUTRAL, None,     "butterfly"),
    Strategy.PUT_BUTTERFLY:    StrategyDef(Strategy.PUT_BUTTERFLY,    Direction.NEUTRAL, None,     "butterfly"),
    # -- Fallback --
    Strategy.CUSTOM:           StrategyDef(Strategy.CUSTOM,           Direction.NEUTRAL, None,     "custom"),
}

# Strategies whose cost basis is reported as the credit received
CREDIT_STRATEGIES = frozenset(
    name for name, defn in STRATEGIES.items() if defn.credit_debit == "credit"
)

# Strategies for which max_risk + max_profit must equal the structural width
BOUNDED_WIDTH_CATEGORIES = frozenset({"vertical", "multi", "butterfly"})
