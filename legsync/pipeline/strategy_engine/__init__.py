"""Strategy Engine — leg-shape based strategy recognition.

Public API:
    classify(legs) -> StrategyClassification
    legs_to_buckets(legs) -> List[Bucket]
"""

from .recognizer import classify, contracts_per_unit, legs_label
from .adapters import legs_to_buckets
from .patterns_multi import iron_wings
from .types import Bucket, Direction, Strategy, StrategyClassification, StrategyDef
from .constants import STRATEGIES, CREDIT_STRATEGIES, BOUNDED_WIDTH_CATEGORIES

__all__ = [
    "classify", "contracts_per_unit", "iron_wings", "legs_label", "legs_to_buckets",
    "Bucket", "Direction", "Strategy", "StrategyClassification", "StrategyDef",
    "STRATEGIES", "CREDIT_STRATEGIES", "BOUNDED_WIDTH_CATEGORIES",
]
