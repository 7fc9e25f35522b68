"""
Scare recommendation ranking.

Turns the fear profile and the current situation into a short list of
suggested scares, best first. Recommendations are advisory: nothing
here fires a scare or touches the world.
"""
from __future__ import annotations

import math
import random
from typing import Dict, List, Mapping, Optional

from ..types import (
    FearKind,
    ObservationContext,
    ScareKind,
    ScareRecommendation,
    Vector2D,
)
from ..util import clamp
from ..world import MAX_SANITY

MIN_INTENSITY = 0.3
MAX_INTENSITY = 1.0

# Scare that exploits each fear; UNKNOWN is resolved with the rng
FEAR_TO_SCARE: Dict[FearKind, ScareKind] = {
    FearKind.DARKNESS: ScareKind.ENVIRONMENT_CHANGE,
    FearKind.CREATURES: ScareKind.CREATURE_APPEARANCE,
    FearKind.SUDDEN_NOISES: ScareKind.SUDDEN_NOISE,
    FearKind.ISOLATION: ScareKind.WHISPER,
    FearKind.CHASING: ScareKind.CREATURE_APPEARANCE,
    FearKind.GORE: ScareKind.HALLUCINATION,
    FearKind.CLAUSTROPHOBIA: ScareKind.ENVIRONMENT_CHANGE,
    FearKind.OPEN_SPACES: ScareKind.CREATURE_APPEARANCE,
}


def top_fears(fear_profile: Mapping[FearKind, float], n: int) -> List[FearKind]:
    """The n strongest fear kinds; lower declaration order wins ties."""
    order = {kind: i for i, kind in enumerate(FearKind)}
    ranked = sorted(
        (k for k in fear_profile if k in order),
        key=lambda k: (-fear_profile[k], order[k]),
    )
    return ranked[:n]


def scare_for_fear(fear: FearKind, rng: random.Random) -> ScareKind:
    scare = FEAR_TO_SCARE.get(fear)
    if scare is None:
        return rng.choice(list(ScareKind))
    return scare


def rank_recommendations(
    fear_profile: Mapping[FearKind, float],
    context: ObservationContext,
    position: Vector2D,
    rng: Optional[random.Random] = None,
    limit: int = 3,
) -> List[ScareRecommendation]:
    """
    Build recommendations for the top `limit` fears, sorted by priority.

    intensity = clamp(p * (1 + (1 - sanity/100)), 0.3, 1.0)
    priority  = p * (0.5 + (1 - exp(-t/60)) * 0.5)
    delay     = 30s if t < 30s, else 10s
    """
    rng = rng or random.Random()
    t = max(0.0, context.time_since_last_scare)
    sanity_factor = 1.0 + (1.0 - context.current_sanity / MAX_SANITY)
    time_factor = 1.0 - math.exp(-t / 60.0)
    delay = 30.0 if t < 30.0 else 10.0

    recommendations = []
    for fear in top_fears(fear_profile, limit):
        p = fear_profile[fear]
        recommendations.append(
            ScareRecommendation(
                scare_kind=scare_for_fear(fear, rng),
                fear_target=fear,
                intensity=clamp(p * sanity_factor, MIN_INTENSITY, MAX_INTENSITY),
                position=position,
                delay=delay,
                priority=p * (0.5 + time_factor * 0.5),
            )
        )

    recommendations.sort(key=lambda r: r.priority, reverse=True)
    return recommendations
