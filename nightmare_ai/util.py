from __future__ import annotations

from typing import Dict, Iterable, Optional, TypeVar

K = TypeVar("K")


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def argmax_ordered(values: Dict[K, float], order: Iterable[K]) -> Optional[K]:
    """Key with the largest value; earlier keys in `order` win ties."""
    best: Optional[K] = None
    best_value = float("-inf")
    for key in order:
        if key in values and values[key] > best_value:
            best = key
            best_value = values[key]
    return best
