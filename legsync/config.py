"""Runtime settings for legsync, read from the environment (and a .env file if present)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Numeric knobs used by the normalizer and the risk calculator."""
    contract_multiplier: float = 100.0
    # avg_cost / market_price ratio window that flags a x100 unit error
    cost_ratio_min: float = 20.0
    cost_ratio_max: float = 200.0
    # avg_cost above this with no usable market price is assumed x100
    cost_absolute_max: float = 1000.0
    strike_tolerance: float = 0.0001

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            contract_multiplier=_env_float("LEGSYNC_CONTRACT_MULTIPLIER", 100.0),
            cost_ratio_min=_env_float("LEGSYNC_COST_RATIO_MIN", 20.0),
            cost_ratio_max=_env_float("LEGSYNC_COST_RATIO_MAX", 200.0),
            cost_absolute_max=_env_float("LEGSYNC_COST_ABSOLUTE_MAX", 1000.0),
            strike_tolerance=_env_float("LEGSYNC_STRIKE_TOLERANCE", 0.0001),
        )


settings = Settings.from_env()
