"""
Event ingestion: builds the player's action and fear histories.

The observer is the only writer of the histories and of the rolling
ObservationContext. It is driven from the frame thread only; producers
on other threads go through the EventBus.
"""
from __future__ import annotations

import logging
from collections import Counter, deque
from typing import TYPE_CHECKING, Any, Deque, Dict, Optional

from .analysis.analyzer import BehaviorAnalyzer
from .analysis.movement import MovementTracker
from .config import DirectorConfig
from .core.timers import IntervalTimer
from .environment.event_bus import EventBus
from .environment.event_schema import (
    EVENT_CLASSES,
    PlayerActed,
    PlayerDamaged,
    PlayerInteracted,
    PlayerMoved,
    PlayerSanityChanged,
    ScareTriggered,
)
from .types import (
    ActionKind,
    ActionRecord,
    FearKind,
    FearResponse,
    ObservationContext,
    ScareKind,
    Vector2D,
)
from .world import PlayerState

if TYPE_CHECKING:
    from .decision.director import Director

logger = logging.getLogger(__name__)

SCARE_TO_FEAR: Dict[ScareKind, FearKind] = {
    ScareKind.AMBIENT_SOUND: FearKind.ISOLATION,
    ScareKind.SUDDEN_NOISE: FearKind.SUDDEN_NOISES,
    ScareKind.CREATURE_APPEARANCE: FearKind.CREATURES,
    ScareKind.ENVIRONMENT_CHANGE: FearKind.UNKNOWN,
    ScareKind.HALLUCINATION: FearKind.ISOLATION,
    ScareKind.WHISPER: FearKind.ISOLATION,
}


def fear_from_source(source: Optional[str]) -> FearKind:
    """Map a sanity-change source to a fear kind ("creature" -> CREATURES)."""
    if source is None:
        return FearKind.UNKNOWN
    if str(source).lower() == "creature":
        return FearKind.CREATURES
    return FearKind.parse(source)


def fear_from_scare(scare_kind: Any) -> FearKind:
    """Map a scare kind (enum or raw string) to its fear; unknown kinds map to UNKNOWN."""
    if not isinstance(scare_kind, ScareKind):
        try:
            scare_kind = ScareKind(str(scare_kind).lower())
        except ValueError:
            return FearKind.UNKNOWN
    return SCARE_TO_FEAR.get(scare_kind, FearKind.UNKNOWN)


class Observer:
    """
    Records typed gameplay events into bounded histories.

    Attributes:
        actions: Action records, oldest evicted first
        fear_responses: Bounded window of responses per fear kind
        fear_counts: Lifetime response count per fear kind
        context: Rolling observation context
    """

    def __init__(
        self,
        player: PlayerState,
        movement: Optional[MovementTracker] = None,
        config: Optional[DirectorConfig] = None,
        analyzer: Optional[BehaviorAnalyzer] = None,
        director: Optional["Director"] = None,
    ):
        self.config = config or DirectorConfig()
        self.player = player
        self.movement = movement or MovementTracker(
            sector_size=self.config.sector_size,
            max_positions=self.config.position_history_size,
            world_size=self.config.world_size,
            heatmap_resolution=self.config.heatmap_resolution,
        )
        self.analyzer = analyzer
        self.director = director

        self.actions: Deque[ActionRecord] = deque(maxlen=self.config.action_history_size)
        self.fear_responses: Dict[FearKind, Deque[FearResponse]] = {}
        self.fear_counts: Dict[FearKind, int] = {}
        self.interaction_types: Counter = Counter()

        self.context = ObservationContext(current_sanity=player.sanity)
        self.damage_total = 0.0
        self.sanity_loss_total = 0.0
        self.observed_seconds = 0.0

        self.analysis_timer = IntervalTimer(self.config.analysis_interval, name="analysis")

        self._handlers = {
            PlayerMoved: self._on_moved,
            PlayerDamaged: self._on_damaged,
            PlayerSanityChanged: self._on_sanity_changed,
            PlayerInteracted: self._on_interacted,
            ScareTriggered: self._on_scare,
            PlayerActed: self._on_acted,
        }

    def subscribe(self, bus: EventBus) -> None:
        """Register record() for every gameplay event type."""
        for cls in EVENT_CLASSES:
            bus.subscribe(cls, self.record)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def record(self, event: Any) -> bool:
        """
        Ingest one typed event.

        Anything that is not a known event type is ignored.

        Returns:
            True if the event was recorded
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug(f"Ignored unsupported event: {type(event).__name__}")
            return False
        try:
            handler(event)
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            # Typed events built by hand skip boundary validation
            logger.debug(f"Rejected malformed {type(event).__name__}: {e}")
            return False
        return True

    def record_action(
        self,
        kind: ActionKind,
        position: Vector2D,
        direction: Optional[Vector2D] = None,
        timestamp: Optional[float] = None,
        **context: Any,
    ) -> ActionRecord:
        record = ActionRecord(
            kind=kind,
            position=position,
            direction=direction or Vector2D(),
            context=context,
        )
        if timestamp is not None:
            record.timestamp = timestamp
        self.actions.append(record)
        return record

    def record_fear(self, kind: FearKind, strength: float, sanity_loss: float = 0.0) -> FearResponse:
        response = FearResponse(kind, strength, sanity_loss)
        window = self.fear_responses.get(kind)
        if window is None:
            window = self.fear_responses[kind] = deque(maxlen=self.config.fear_history_size)
        window.append(response)
        self.fear_counts[kind] = self.fear_counts.get(kind, 0) + 1
        return response

    def _on_moved(self, event: PlayerMoved) -> None:
        kind = ActionKind.RUN if event.speed > self.config.run_speed_threshold else ActionKind.MOVE
        self.record_action(
            kind,
            event.position,
            direction=event.position - event.old_position,
            timestamp=event.timestamp,
            speed=event.speed,
        )
        self.movement.record_position(event.position)

    def _on_damaged(self, event: PlayerDamaged) -> None:
        amount = max(0.0, float(event.amount))
        self.record_action(
            ActionKind.FREEZE,
            self.player.position,
            timestamp=event.timestamp,
            source=event.source,
            amount=event.amount,
        )
        self.damage_total += amount

    def _on_sanity_changed(self, event: PlayerSanityChanged) -> None:
        if event.new_value >= event.old_value:
            return
        loss = event.old_value - event.new_value
        strength = min(1.0, loss / self.config.sanity_strength_scale)
        self.record_fear(fear_from_source(event.source), strength, loss)
        self.sanity_loss_total += loss

    def _on_interacted(self, event: PlayerInteracted) -> None:
        interaction_type = event.interaction_type
        if interaction_type is not None and not isinstance(interaction_type, str):
            raise TypeError(f"interaction_type must be a string, got {type(interaction_type).__name__}")
        self.record_action(
            ActionKind.INTERACT,
            self.player.position,
            timestamp=event.timestamp,
            target=event.target,
        )
        if interaction_type:
            self.interaction_types[interaction_type] += 1

    def _on_scare(self, event: ScareTriggered) -> None:
        self.record_fear(
            fear_from_scare(event.scare_kind),
            float(event.intensity),
            self.context.recent_sanity_loss,
        )
        self.reset_scare_timer()

    def _on_acted(self, event: PlayerActed) -> None:
        action = ActionKind.parse(event.action)
        if action is None:
            raise ValueError(f"Unknown action: {event.action!r}")
        position = event.position if event.position is not None else self.player.position
        self.record_action(action, position, timestamp=event.timestamp)

    # ------------------------------------------------------------------
    # Clocks
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        """Refresh sanity from the live player and advance the scare clock."""
        previous = self.context.current_sanity
        self.context.current_sanity = self.player.sanity
        self.context.recent_sanity_loss = max(0.0, previous - self.player.sanity)
        self.context.time_since_last_scare += dt
        self.observed_seconds += dt

    def update_environment(
        self,
        light_level: Optional[float] = None,
        open_space: Optional[float] = None,
        nearby_exits: Optional[int] = None,
        nearby_creatures: Optional[int] = None,
    ) -> None:
        """Apply environmental hints from the host; None leaves a field as is."""
        if light_level is not None:
            self.context.light_level = max(0.0, min(1.0, float(light_level)))
        if open_space is not None:
            self.context.open_space = max(0.0, min(1.0, float(open_space)))
        if nearby_exits is not None:
            self.context.nearby_exits = max(0, int(nearby_exits))
        if nearby_creatures is not None:
            self.context.nearby_creatures = max(0, int(nearby_creatures))

    def reset_scare_timer(self) -> None:
        self.context.time_since_last_scare = 0.0

    def maybe_analyze(self, now: float) -> bool:
        """Run analyze_cycle() if the analysis interval has elapsed."""
        if not self.analysis_timer.due(now):
            return False
        self.analyze_cycle()
        return True

    def analyze_cycle(self) -> None:
        """Re-profile the player, then refresh the director's recommendations."""
        if self.analyzer is None:
            return
        self.analyzer.analyze(self)
        if self.director is not None:
            self.director.recommend(
                self.analyzer.fear_profile,
                self.context,
                self.player.position,
            )

    def stats(self) -> Dict[str, Any]:
        return {
            "actions": len(self.actions),
            "fear_responses": {k.value: len(v) for k, v in self.fear_responses.items()},
            "positions": len(self.movement.positions),
            "time_since_last_scare": self.context.time_since_last_scare,
            "observed_seconds": self.observed_seconds,
        }
