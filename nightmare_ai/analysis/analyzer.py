"""
Behavior analyzer: turns observed histories into player profiles.

Produces, once per analysis cycle:
- Reactor profile (behavioral archetype scores, min-max normalized)
- Fear profile (EMA of recent fear responses per fear kind)
- Predicted next-action distribution (table lookup by dominant archetype)
- Interaction analysis and weighted behavior patterns

The analyzer only reads the observer's histories; it owns the profiles.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from ..config import DirectorConfig
from ..types import (
    ActionKind,
    BehaviorPattern,
    FearKind,
    InteractionAnalysis,
    MovementAnalysis,
    ReactorType,
)
from ..util import argmax_ordered
from .movement import MovementTracker

if TYPE_CHECKING:
    from ..observer import Observer

logger = logging.getLogger(__name__)

NEUTRAL = 0.5

# Raw archetype scores as signed action-count combinations (divided by total)
REACTOR_FORMULAS: Dict[ReactorType, Callable[[Counter], float]] = {
    ReactorType.CAUTIOUS: lambda c: c[ActionKind.HIDE] + c[ActionKind.RETREAT] - c[ActionKind.ATTACK],
    ReactorType.BOLD: lambda c: c[ActionKind.ATTACK] + c[ActionKind.INVESTIGATE] - c[ActionKind.HIDE],
    ReactorType.PANIC: lambda c: c[ActionKind.RUN] + c[ActionKind.FREEZE],
    ReactorType.METHODICAL: lambda c: c[ActionKind.INVESTIGATE] + c[ActionKind.INTERACT],
    ReactorType.RECKLESS: lambda c: c[ActionKind.RUN] + c[ActionKind.ATTACK] - c[ActionKind.HIDE],
    ReactorType.HESITANT: lambda c: c[ActionKind.FREEZE] - c[ActionKind.INTERACT],
}

# Next-action distribution per dominant archetype
PREDICTION_TABLE: Dict[ReactorType, Dict[ActionKind, float]] = {
    ReactorType.CAUTIOUS: {
        ActionKind.HIDE: 0.4,
        ActionKind.RETREAT: 0.3,
        ActionKind.MOVE: 0.2,
        ActionKind.INVESTIGATE: 0.1,
    },
    ReactorType.BOLD: {
        ActionKind.INVESTIGATE: 0.4,
        ActionKind.ATTACK: 0.3,
        ActionKind.MOVE: 0.2,
        ActionKind.INTERACT: 0.1,
    },
    ReactorType.PANIC: {
        ActionKind.RUN: 0.5,
        ActionKind.FREEZE: 0.3,
        ActionKind.RETREAT: 0.2,
    },
    ReactorType.METHODICAL: {
        ActionKind.INVESTIGATE: 0.4,
        ActionKind.INTERACT: 0.3,
        ActionKind.MOVE: 0.2,
        ActionKind.HIDE: 0.1,
    },
    ReactorType.RECKLESS: {
        ActionKind.RUN: 0.4,
        ActionKind.ATTACK: 0.3,
        ActionKind.MOVE: 0.2,
        ActionKind.INVESTIGATE: 0.1,
    },
    ReactorType.HESITANT: {
        ActionKind.FREEZE: 0.4,
        ActionKind.MOVE: 0.3,
        ActionKind.RETREAT: 0.2,
        ActionKind.HIDE: 0.1,
    },
}

PATTERN_DESCRIPTIONS = {
    "explorer": "Covers a lot of ground and rarely retraces steps",
    "cautious": "Moves slowly and changes direction often",
    "determined": "Moves fast along straight paths",
    "indecisive": "Circles a small area repeatedly",
    "interactive": "Interacts with the environment frequently",
    "passive": "Rarely interacts with the environment",
    "fearless": "Barely reacts to scares",
    "easily_scared": "Reacts strongly to scares",
    "startles_easily": "Strongly affected by sudden noises",
    "monster_phobia": "Strongly affected by creatures",
}


def normalize_scores(raw: Dict[ReactorType, float]) -> Dict[ReactorType, float]:
    """
    Min-max normalize archetype scores into [0, 1].

    If every score is equal the range is degenerate and each value is 0.5.
    """
    lo = min(raw.values())
    hi = max(raw.values())
    if hi == lo:
        return {r: NEUTRAL for r in raw}
    span = hi - lo
    return {r: (v - lo) / span for r, v in raw.items()}


def detect_patterns(
    movement: MovementAnalysis,
    interaction: InteractionAnalysis,
    action_count: int,
) -> List[BehaviorPattern]:
    """Apply the threshold rules; returns patterns in rule order."""
    found: List[BehaviorPattern] = []

    def emit(name: str, weight: float) -> None:
        found.append(BehaviorPattern(name, PATTERN_DESCRIPTIONS[name], weight))

    area = movement.explored_area
    rep = movement.path_repetition
    speed = movement.average_speed
    turns = movement.direction_changes

    if area > 500 and rep < 2:
        emit("explorer", 0.8 - rep / 10)
    if speed < 1.5 and turns > 30:
        emit("cautious", 0.9 - speed / 3)
    if speed > 2 and turns < 15:
        emit("determined", 0.7 + speed / 5)
    if area < 200 and rep > 3:
        emit("indecisive", 0.6 + rep / 5)

    rate = interaction.interaction_rate
    if rate > 0.3:
        emit("interactive", 0.7 + rate)
    if action_count > 0 and rate < 0.1:
        emit("passive", 0.6 + (0.1 - rate))

    responses = interaction.response_to_scares
    if responses:
        mean = sum(responses.values()) / len(responses)
        if mean < 0.3:
            emit("fearless", 0.8 - mean)
        elif mean > 0.7:
            emit("easily_scared", 0.7 + mean)

        noise = responses.get(FearKind.SUDDEN_NOISES)
        if noise is not None and noise > 0.8:
            emit("startles_easily", 0.7 + noise)
        creatures = responses.get(FearKind.CREATURES)
        if creatures is not None and creatures > 0.8:
            emit("monster_phobia", 0.7 + creatures)

    return found


class BehaviorAnalyzer:
    """
    Player model built from the observer's histories.

    Example:
        >>> analyzer = BehaviorAnalyzer(movement)
        >>> analyzer.analyze(observer)
        >>> analyzer.dominant_fear()
        <FearKind.DARKNESS: 'darkness'>
    """

    def __init__(
        self,
        movement: MovementTracker,
        config: Optional[DirectorConfig] = None,
    ):
        self.config = config or DirectorConfig()
        self.movement = movement

        self.reactor_profile: Dict[ReactorType, float] = {r: NEUTRAL for r in ReactorType}
        self.fear_profile: Dict[FearKind, float] = {k: NEUTRAL for k in FearKind}
        self.interaction = InteractionAnalysis()
        self.patterns: List[BehaviorPattern] = []

        # Per-kind response count already folded into the fear profile
        self._consumed: Dict[FearKind, int] = {}
        self.cycles = 0

    def analyze(self, observer: "Observer") -> None:
        """Run one full analysis cycle over the observer's current histories."""
        actions = list(observer.actions)

        self.update_reactor_profile(actions)
        self.update_fear_profile(observer.fear_responses, observer.fear_counts)

        movement = self.movement.compute()
        self.interaction = self.compute_interaction(observer)
        self.merge_patterns(detect_patterns(movement, self.interaction, len(actions)))

        self.cycles += 1
        logger.debug(
            f"Analysis cycle {self.cycles}: reactor={self.dominant_reactor().value} "
            f"fear={self.dominant_fear().value} patterns={len(self.patterns)}"
        )

    def update_reactor_profile(self, actions: List) -> bool:
        """
        Recompute the reactor profile from the whole action window.

        Returns:
            False if there were too few records (profile left unchanged)
        """
        total = len(actions)
        if total < self.config.min_actions_for_reactor:
            return False

        counts = Counter(a.kind for a in actions)
        raw = {r: formula(counts) / total for r, formula in REACTOR_FORMULAS.items()}
        self.reactor_profile = normalize_scores(raw)
        return True

    def update_fear_profile(self, responses: Dict, counts: Dict[FearKind, int]) -> List[FearKind]:
        """
        Fold new fear responses into the profile.

        Only kinds whose lifetime response count grew since the last call
        are touched; every other kind keeps its exact value.

        Returns:
            Fear kinds that were updated
        """
        retain = self.config.fear_ema_retain
        fresh = self.config.fear_ema_new
        updated = []

        for kind in FearKind:
            seen = counts.get(kind, 0)
            window = responses.get(kind)
            if seen <= self._consumed.get(kind, 0) or not window:
                continue

            mean = sum(r.strength for r in window) / len(window)
            self.fear_profile[kind] = self.fear_profile[kind] * retain + mean * fresh
            self._consumed[kind] = seen
            updated.append(kind)

        return updated

    def compute_interaction(self, observer: "Observer") -> InteractionAnalysis:
        actions = observer.actions
        total = len(actions)
        interactions = sum(1 for a in actions if a.kind == ActionKind.INTERACT)

        minutes = observer.observed_seconds / 60.0
        return InteractionAnalysis(
            interaction_rate=interactions / total if total else 0.0,
            preferred_interactions=dict(observer.interaction_types),
            response_to_scares=self.scare_responses(observer.fear_responses),
            health_loss_rate=observer.damage_total / minutes if minutes > 0 else 0.0,
            sanity_loss_rate=observer.sanity_loss_total / minutes if minutes > 0 else 0.0,
        )

    @staticmethod
    def scare_responses(responses: Dict) -> Dict[FearKind, float]:
        """Mean response strength per fear kind, for kinds with data."""
        out: Dict[FearKind, float] = {}
        for kind in FearKind:
            window = responses.get(kind)
            if window:
                out[kind] = sum(r.strength for r in window) / len(window)
        return out

    def merge_patterns(self, detected: List[BehaviorPattern]) -> List[BehaviorPattern]:
        """
        Replace the pattern list with this cycle's detections.

        A name detected again is merged with its previous weight by
        averaging; names not detected this cycle are dropped.
        """
        previous = {p.name: p.weight for p in self.patterns}
        merged: Dict[str, BehaviorPattern] = {}

        for pattern in detected:
            if pattern.name in merged:
                old = merged[pattern.name].weight
            else:
                old = previous.get(pattern.name)
            weight = pattern.weight if old is None else (old + pattern.weight) / 2
            merged[pattern.name] = BehaviorPattern(pattern.name, pattern.description, weight)

        self.patterns = sorted(merged.values(), key=lambda p: p.weight, reverse=True)
        return self.patterns

    def top_patterns(self, n: int) -> List[BehaviorPattern]:
        if n <= 0:
            return []
        return list(self.patterns[:n])

    def dominant_fear(self) -> FearKind:
        return argmax_ordered(self.fear_profile, list(FearKind))

    def dominant_reactor(self) -> ReactorType:
        return argmax_ordered(self.reactor_profile, list(ReactorType))

    def predict_actions(self) -> Dict[ActionKind, float]:
        """Next-action distribution for the dominant archetype."""
        return dict(PREDICTION_TABLE[self.dominant_reactor()])

    def reactivity_to_scares(self) -> float:
        """Mean scare response across fear kinds with data (0.5 if none)."""
        responses = self.interaction.response_to_scares
        if not responses:
            return NEUTRAL
        return sum(responses.values()) / len(responses)
