"""
Player modeling for the nightmare AI director.

This module derives statistical profiles from observed gameplay.

Key principles:
- Profiles are recomputed only from bounded histories
- Too little data keeps the previous profile, it never zeroes it
- "Dominant" selections break ties by declaration order

Design:
- Movement: position history, sector visits, heatmap
- Analyzer: reactor/fear profiles, action prediction, patterns
"""

from .movement import MovementTracker
from .analyzer import (
    BehaviorAnalyzer,
    PREDICTION_TABLE,
    REACTOR_FORMULAS,
    detect_patterns,
    normalize_scores,
)

__all__ = [
    "MovementTracker",
    "BehaviorAnalyzer",
    "PREDICTION_TABLE",
    "REACTOR_FORMULAS",
    "detect_patterns",
    "normalize_scores",
]
