from __future__ import annotations

import logging
import random
import time
import uuid
from typing import Any, Dict, List, Optional

import numpy as np

from .analysis.analyzer import BehaviorAnalyzer
from .analysis.movement import MovementTracker
from .config import DirectorConfig, load_config
from .core.queues import DropEvent
from .core.timers import IntervalTimer
from .decision.director import Director
from .environment.event_bus import EventBus
from .environment.event_schema import ScareTriggered
from .logging_config import log_event, summarize_for_log
from .metrics import MetricsCollector
from .observer import Observer
from .types import (
    ActionKind,
    BehaviorPattern,
    FearKind,
    MovementAnalysis,
    ReactorType,
    ScareEvent,
    ScareRecommendation,
)
from .world import PlayerState, World

logger = logging.getLogger(__name__)


class NightmareEngine:
    """
    Adaptive scare director for one player session.

    Wires the event bus, observer, movement tracker, behavior analyzer
    and director together and runs them off a single simulation clock.

    Example:
        >>> engine = NightmareEngine(player=PlayerState(), world=MyWorld())
        >>> engine.publish({"type": "player_moved", "position": {"x": 3, "y": 4}})
        >>> engine.tick(1 / 60)
        >>> engine.get_dominant_fear()
    """

    def __init__(
        self,
        player: Optional[PlayerState] = None,
        world: Optional[World] = None,
        config: Optional[DirectorConfig] = None,
        session_id: Optional[str] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or load_config()
        self.player = player or PlayerState()
        self.world = world or World()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.metrics = metrics or MetricsCollector()

        self.bus = EventBus(
            maxsize=self.config.event_queue_size,
            on_drop=self._on_drop,
            on_listener_error=self._on_listener_error,
        )

        self.movement = MovementTracker(
            sector_size=self.config.sector_size,
            max_positions=self.config.position_history_size,
            world_size=self.config.world_size,
            heatmap_resolution=self.config.heatmap_resolution,
        )
        self.analyzer = BehaviorAnalyzer(self.movement, self.config)
        self.observer = Observer(
            self.player,
            movement=self.movement,
            config=self.config,
            analyzer=self.analyzer,
        )
        self.director = Director(
            self.player,
            world=self.world,
            config=self.config,
            observer=self.observer,
            analyzer=self.analyzer,
            rng=random.Random(self.config.prng_seed),
        )
        self.observer.director = self.director
        self.director.on_error = self._on_director_error

        self.observer.subscribe(self.bus)
        if self.config.publish_fired_scares:
            self.director.add_fire_listener(self._publish_fired)

        self.director_timer = IntervalTimer(self.config.director_interval, name="director")

        self.now = 0.0
        self.tick_count = 0
        self._last_wall: Optional[float] = None

        log_event(
            logger,
            "engine_started",
            f"Nightmare engine started (session {self.session_id}, mood rule {self.config.mood_rule})",
            subsystem="engine",
            session_id=self.session_id,
            seed=self.config.prng_seed,
        )

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def publish(self, event: Any) -> bool:
        """Queue a typed event or event dict. Safe from any thread."""
        if self.bus.publish(event):
            self.metrics.increment("accepted", subsystem="events")
            return True
        self.metrics.increment("rejected", subsystem="events")
        return False

    def update_environment(self, **hints: Any) -> None:
        """Forward light/open-space/exit/creature hints to the observer."""
        self.observer.update_environment(**hints)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def tick(self, dt: Optional[float] = None) -> Optional[ScareEvent]:
        """
        Advance the simulation by `dt` seconds.

        Order: drain events, observer clock, director drift, analysis
        cycle (if due), director cycle (if due). If `dt` is omitted it is
        measured from the previous call with time.monotonic().

        Returns:
            The scare fired this tick, if any
        """
        if dt is None:
            wall = time.monotonic()
            dt = 0.0 if self._last_wall is None else wall - self._last_wall
            self._last_wall = wall
        dt = max(0.0, float(dt))

        self.tick_count += 1
        self.now += dt

        delivered = self.bus.dispatch_pending()
        if delivered:
            self.metrics.increment("delivered", delivered, subsystem="events")

        self.observer.tick(dt)
        self.director.tick(dt)

        if self.observer.analysis_timer.due(self.now):
            self._run_analysis()

        fired = None
        if self.director_timer.due(self.now):
            fired = self.director.run_cycle()
            if fired is not None:
                self.metrics.increment("scares_fired", subsystem="director")
                log_event(
                    logger,
                    "scare_fired",
                    f"Scare {fired.kind.value} at intensity {fired.intensity:.2f}",
                    subsystem="director",
                    session_id=self.session_id,
                    tick=self.tick_count,
                    **fired.to_dict(),
                )
        return fired

    def _run_analysis(self) -> None:
        with self.metrics.time_operation("analysis_cycle") as timer:
            self.observer.analyze_cycle()

        self.metrics.increment("cycles", subsystem="analysis")
        self.metrics.increment(
            "generated", len(self.director.recommendations), subsystem="recommendations"
        )
        log_event(
            logger,
            "analysis_cycle",
            f"Analysis: fear={self.analyzer.dominant_fear().value} "
            f"reactor={self.analyzer.dominant_reactor().value}",
            level=logging.DEBUG,
            subsystem="analysis",
            session_id=self.session_id,
            tick=self.tick_count,
            latency_ms=timer.elapsed_ms,
            fear_profile=summarize_for_log(self.analyzer.fear_profile),
            patterns=[p.name for p in self.analyzer.patterns],
        )

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _publish_fired(self, event: ScareEvent) -> None:
        self.bus.publish(ScareTriggered(scare_kind=event.kind, intensity=event.intensity))

    def _on_drop(self, drop: DropEvent) -> None:
        self.metrics.increment("dropped", subsystem="events")
        log_event(
            logger,
            "event_dropped",
            f"Event queue full, dropped {drop.item_type}",
            level=logging.DEBUG,
            subsystem="events",
            session_id=self.session_id,
            tick=self.tick_count,
            **drop.to_dict(),
        )

    def _on_listener_error(self, error: Exception) -> None:
        self.metrics.record_error("events", type(error).__name__)

    def _on_director_error(self, where: str, error: Exception) -> None:
        self.metrics.record_error("director", where)
        log_event(
            logger,
            "director_error",
            f"Director callback {where} raised {type(error).__name__}: {error}",
            level=logging.WARNING,
            subsystem="director",
            session_id=self.session_id,
            tick=self.tick_count,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_dominant_fear(self) -> FearKind:
        return self.analyzer.dominant_fear()

    def get_player_fear_profile(self) -> Dict[FearKind, float]:
        return dict(self.analyzer.fear_profile)

    def get_player_reactor_profile(self) -> Dict[ReactorType, float]:
        return dict(self.analyzer.reactor_profile)

    def get_top_patterns(self, n: int = 3) -> List[BehaviorPattern]:
        return self.analyzer.top_patterns(n)

    def get_scare_recommendation(self) -> Optional[ScareRecommendation]:
        """Best current recommendation, or None before any ranking."""
        return self.director.best_recommendation()

    def get_predicted_actions(self) -> Dict[ActionKind, float]:
        return self.analyzer.predict_actions()

    def get_movement_analysis(self) -> MovementAnalysis:
        return self.movement.analysis

    def get_heatmap(self) -> np.ndarray:
        return self.movement.heatmap()

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the session for dashboards and debugging."""
        recommendation = self.get_scare_recommendation()
        return {
            "session_id": self.session_id,
            "tick": self.tick_count,
            "sim_time": round(self.now, 3),
            "player": {
                "position": self.player.position.to_dict(),
                "sanity": self.player.sanity,
                "health": self.player.health,
            },
            "context": self.observer.context.to_dict(),
            "observer": self.observer.stats(),
            "director": self.director.stats(),
            "dominant_fear": self.get_dominant_fear().value,
            "dominant_reactor": self.analyzer.dominant_reactor().value,
            "fear_profile": summarize_for_log(self.analyzer.fear_profile),
            "reactor_profile": summarize_for_log(self.analyzer.reactor_profile),
            "patterns": [p.name for p in self.analyzer.patterns],
            "recommendation": recommendation.to_dict() if recommendation else None,
            "events": self.bus.stats(),
            "metrics": self.metrics.summary(),
        }
