"""
Leg arena — index-based ownership of snapshot legs during reconciliation.

Every leg starts in the available pool. A pass moves indices out of the pool
into exactly one named assignment; a leg can never be moved twice. At the end
``verify_conservation()`` checks that every leg landed in exactly one
assignment.
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from legsync.errors import ReconciliationError
from legsync.models.legs import OptionLeg


class LegArena:
    """Immutable leg storage plus the available -> assigned bookkeeping."""

    def __init__(self, legs: Sequence[OptionLeg]):
        self._legs: Tuple[OptionLeg, ...] = tuple(legs)
        self._available: List[int] = list(range(len(self._legs)))
        self._assignments: Dict[str, Tuple[int, ...]] = {}

    def __len__(self) -> int:
        return len(self._legs)

    def leg(self, index: int) -> OptionLeg:
        return self._legs[index]

    def legs_for(self, indices: Iterable[int]) -> List[OptionLeg]:
        return [self._legs[i] for i in indices]

    @property
    def available(self) -> Tuple[int, ...]:
        """Indices not yet assigned, in original snapshot order."""
        return tuple(self._available)

    @property
    def assignments(self) -> Dict[str, Tuple[int, ...]]:
        return dict(self._assignments)

    def find_available_by_symbol(self, symbols: Iterable[str]) -> Dict[str, int]:
        """Map each requested canonical symbol to the first available leg carrying it."""
        wanted = set(symbols)
        found: Dict[str, int] = {}
        for index in self._available:
            symbol = self._legs[index].symbol
            if symbol in wanted and symbol not in found:
                found[symbol] = index
        return found

    def assign(self, owner: str, indices: Iterable[int]) -> Tuple[int, ...]:
        """Move indices from the available pool into ``owner``'s assignment."""
        if owner in self._assignments:
            raise ReconciliationError(f"Assignment '{owner}' already exists")
        moving = tuple(dict.fromkeys(indices))
        pool = set(self._available)
        taken = [i for i in moving if i not in pool]
        if taken:
            raise ReconciliationError(f"Legs {taken} are not available for '{owner}'")
        self._available = [i for i in self._available if i not in set(moving)]
        self._assignments[owner] = moving
        return moving

    def verify_conservation(self) -> None:
        seen: Dict[int, str] = {}
        for owner, indices in self._assignments.items():
            for index in indices:
                if index in seen:
                    raise ReconciliationError(
                        f"Leg {index} assigned to both '{seen[index]}' and '{owner}'"
                    )
                seen[index] = owner
        missing = sorted(set(range(len(self._legs))) - set(seen))
        if missing:
            raise ReconciliationError(f"Legs {missing} were never assigned")
