"""
Decision layer for the nightmare AI director.

This module decides when and how to scare the player. It never creates
world content itself; it invokes the two world effects and lowers the
player's sanity.

Design:
- Director: mood/tension drift, fire decision, event construction
- Effectiveness: post-scare sanity scoring and weighted kind choice
- Recommender: ranked advisory scares from the fear profile
"""

from .director import Director, CREATURE_TYPES, MOOD_RULES
from .effectiveness import ScareEffectiveness
from .recommender import FEAR_TO_SCARE, rank_recommendations, top_fears

__all__ = [
    "Director",
    "CREATURE_TYPES",
    "MOOD_RULES",
    "ScareEffectiveness",
    "FEAR_TO_SCARE",
    "rank_recommendations",
    "top_fears",
]
