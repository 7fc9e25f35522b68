"""
The director: decides when to scare the player, and how.

Owns the drift scalars (mood, tension), the fired-scare history and the
effectiveness aggregate. Two clocks drive it: tick() every frame for
tension drift, and run_cycle() on its own slower cadence for the fire
decision. All randomness comes from one seeded random.Random, so a
seeded director replays identically.
"""
from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional

from ..config import DirectorConfig
from ..types import (
    FearKind,
    ObservationContext,
    ScareEvent,
    ScareKind,
    ScareRecommendation,
    Vector2D,
)
from ..world import PlayerState, World
from .effectiveness import ScareEffectiveness
from .recommender import rank_recommendations

if TYPE_CHECKING:
    from ..analysis.analyzer import BehaviorAnalyzer
    from ..observer import Observer

logger = logging.getLogger(__name__)

CREATURE_TYPES = ("shadow", "spider", "phantom", "doppelganger", "wendigo", "faceless")

MIN_DURATION = 2.0
MAX_DURATION = 6.0

MoodRule = Callable[["Director"], float]


def constant_mood(director: "Director") -> float:
    return director.mood


def effectiveness_mood(director: "Director") -> float:
    """Weak scares push the director toward harsher ones."""
    mean = director.effectiveness.mean()
    if mean is None:
        return director.mood
    return director.mood * 0.7 + (1.0 - mean) * 0.3


MOOD_RULES: Dict[str, MoodRule] = {
    "constant": constant_mood,
    "effectiveness": effectiveness_mood,
}


class Director:
    """
    Scare orchestration over a player model.

    Example:
        >>> director = Director(player, world, config=ConfigPresets.deterministic_test())
        >>> director.tick(0.016)
        >>> event = director.run_cycle()   # ScareEvent or None
    """

    def __init__(
        self,
        player: PlayerState,
        world: Optional[World] = None,
        config: Optional[DirectorConfig] = None,
        observer: Optional["Observer"] = None,
        analyzer: Optional["BehaviorAnalyzer"] = None,
        rng: Optional[random.Random] = None,
        mood_rule: Optional[MoodRule] = None,
    ):
        self.config = config or DirectorConfig()
        self.player = player
        self.world = world or World()
        self.observer = observer
        self.analyzer = analyzer
        self.rng = rng or random.Random(self.config.prng_seed)
        self.mood_rule = mood_rule or MOOD_RULES[self.config.mood_rule]

        self.mood = self.config.initial_mood
        self.tension = self.config.initial_tension
        self.history: List[ScareEvent] = []
        self.effectiveness = ScareEffectiveness(
            window=self.config.effectiveness_window,
            floor=self.config.effectiveness_floor,
            retain=self.config.fear_ema_retain,
            sanity_scale=self.config.sanity_strength_scale,
        )
        self.recommendations: List[ScareRecommendation] = []

        # Simulation time, advanced by tick()
        self.clock = 0.0
        self._last_fire_at: Optional[float] = None

        self._fire_listeners: List[Callable[[ScareEvent], None]] = []
        self.on_error: Optional[Callable[[str, Exception], None]] = None

    # ------------------------------------------------------------------
    # Drift
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        self.clock += dt
        self.tension = min(1.0, self.tension + self.config.tension_rate * max(0.0, dt))

    def time_since_last_scare(self) -> float:
        if self.observer is not None:
            return self.observer.context.time_since_last_scare
        if self._last_fire_at is None:
            return math.inf
        return self.clock - self._last_fire_at

    # ------------------------------------------------------------------
    # Fire decision
    # ------------------------------------------------------------------

    def fire_chance(self) -> float:
        """
        Probability of firing on this cycle.

        tension * 0.1, plus 0.3 before the first scare; afterwards +0.1
        past 30s since the last scare and a further +0.2 past 60s.
        """
        chance = self.tension * 0.1
        if not self.history:
            return chance + 0.3

        since = self.time_since_last_scare()
        if since > 30.0:
            chance += 0.1
        if since > 60.0:
            chance += 0.2
        return chance

    def should_fire(self, draw: Optional[float] = None) -> bool:
        if draw is None:
            draw = self.rng.random()
        return draw < self.fire_chance()

    def reactivity(self) -> float:
        if self.analyzer is None:
            return 0.5
        return self.analyzer.reactivity_to_scares()

    def build_event(self) -> ScareEvent:
        """Choose a kind, intensity, duration and position for the next scare."""
        kind = self.effectiveness.choose(self.rng)

        intensity = self.mood * (0.7 + self.rng.random() * 0.3)
        if self.reactivity() < self.config.low_reactivity_threshold:
            intensity *= self.config.low_reactivity_boost
        intensity = min(1.0, intensity)

        duration = self.rng.uniform(MIN_DURATION, MAX_DURATION)
        position = self.player.position
        creature_type = None

        if kind == ScareKind.CREATURE_APPEARANCE:
            creature_type = self.rng.choice(CREATURE_TYPES)
            angle = self.rng.uniform(0.0, 2 * math.pi)
            radius = self.rng.uniform(self.config.spawn_radius_min, self.config.spawn_radius_max)
            position = position + Vector2D(math.cos(angle) * radius, math.sin(angle) * radius)

        return ScareEvent(
            kind=kind,
            intensity=intensity,
            position=position,
            duration=duration,
            creature_type=creature_type,
        )

    def fire(self, event: ScareEvent) -> None:
        """
        Execute a scare.

        Applies at most one world effect, costs the player sanity, resets
        the time since the last scare and queues an effectiveness check.
        """
        self.history.append(event)

        if event.kind == ScareKind.CREATURE_APPEARANCE:
            self._world_call(
                "spawn_creature",
                self.world.spawn_creature,
                event.creature_type or CREATURE_TYPES[0],
                event.position,
            )
        elif event.kind == ScareKind.ENVIRONMENT_CHANGE:
            self._world_call(
                "modify_environment",
                self.world.modify_environment,
                event.position,
                event.intensity,
            )

        self.player.reduce_sanity(event.intensity * self.config.sanity_cost_per_intensity)
        self.effectiveness.record_fire(event.kind, self.player.sanity, self.clock)

        self._last_fire_at = self.clock
        if self.observer is not None:
            self.observer.reset_scare_timer()
        self.tension = max(0.0, self.tension - self.config.tension_release)

        logger.info(
            f"Fired {event.kind.value} intensity={event.intensity:.2f} "
            f"at ({event.position.x:.1f}, {event.position.y:.1f})"
        )

        for listener in list(self._fire_listeners):
            try:
                listener(event)
            except Exception as e:
                self._report_error("fire_listener", e)

    def _world_call(self, name: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            self._report_error(name, e)

    def _report_error(self, where: str, error: Exception) -> None:
        logger.warning(f"Director {where} failed: {error}")
        if self.on_error:
            self.on_error(where, error)

    def add_fire_listener(self, listener: Callable[[ScareEvent], None]) -> None:
        self._fire_listeners.append(listener)

    # ------------------------------------------------------------------
    # Cadence
    # ------------------------------------------------------------------

    def update_mood(self) -> float:
        self.mood = max(0.0, min(1.0, self.mood_rule(self)))
        return self.mood

    def run_cycle(self) -> Optional[ScareEvent]:
        """
        One director decision.

        Settles due effectiveness checks, updates mood, and possibly
        fires a scare.

        Returns:
            The fired event, or None
        """
        self.effectiveness.settle(self.clock, self.player.sanity)
        self.update_mood()

        if not self.should_fire():
            return None

        event = self.build_event()
        self.fire(event)
        return event

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def recommend(
        self,
        fear_profile: Mapping[FearKind, float],
        context: ObservationContext,
        player_position: Vector2D,
    ) -> List[ScareRecommendation]:
        """Replace the recommendation list with a fresh ranking."""
        self.recommendations = rank_recommendations(
            fear_profile,
            context,
            player_position,
            rng=self.rng,
            limit=self.config.max_recommendations,
        )
        return self.recommendations

    def best_recommendation(self) -> Optional[ScareRecommendation]:
        return self.recommendations[0] if self.recommendations else None

    def stats(self) -> Dict:
        return {
            "mood": self.mood,
            "tension": self.tension,
            "scares_fired": len(self.history),
            "fire_chance": self.fire_chance(),
            "effectiveness": self.effectiveness.to_dict(),
            "pending_evaluations": self.effectiveness.pending(),
            "recommendations": len(self.recommendations),
        }
