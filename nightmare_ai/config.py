"""
Configuration for the director and its analysis pipeline.

All tunables live in one dataclass with safe defaults, so a game can
retune pacing from a YAML/JSON file without touching code. Values are
clamped to sane ranges on construction rather than rejected.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "NIGHTMARE_AI_CONFIG"

MOOD_RULE_NAMES = ("constant", "effectiveness")


@dataclass
class DirectorConfig:
    """
    Tunables for ingestion, analysis and scare orchestration.

    Attributes:
        action_history_size: Action records kept (oldest evicted)
        fear_history_size: Fear responses kept per fear kind
        position_history_size: Positions kept for movement analysis
        sector_size: Grid cell size for the visit map, in world units
        world_size: World extent covered by the heatmap
        heatmap_resolution: Heatmap cells per side
        analysis_interval: Seconds between analysis cycles
        director_interval: Seconds between director fire decisions
        min_actions_for_reactor: Records needed to recompute the reactor profile
        fear_ema_retain: Weight of the old value in the fear-profile EMA
        run_speed_threshold: Move speed above which a move counts as running
        sanity_strength_scale: Sanity drop that maps to fear strength 1.0
        initial_mood: Starting director mood (0 calm .. 1 aggressive)
        initial_tension: Starting tension
        tension_rate: Tension added per simulated second
        tension_release: Tension removed when a scare fires
        mood_rule: Name of the mood update rule ("constant" or "effectiveness")
        low_reactivity_threshold: Reactivity below which scares are amplified
        low_reactivity_boost: Intensity multiplier for unreactive players
        spawn_radius_min: Closest creature spawn distance from the player
        spawn_radius_max: Farthest creature spawn distance from the player
        sanity_cost_per_intensity: Sanity removed per unit of fired intensity
        effectiveness_window: Seconds after a scare before judging its effect
        effectiveness_floor: Minimum selection weight per scare kind
        max_recommendations: Fear kinds ranked per recommendation pass
        event_queue_size: Capacity of the inbound event queue
        publish_fired_scares: Re-publish fired scares onto the event bus
        prng_seed: Seed for deterministic decisions (None = random)
    """
    # Histories
    action_history_size: int = 1000
    fear_history_size: int = 20
    position_history_size: int = 1000

    # Spatial analytics
    sector_size: float = 5.0
    world_size: float = 256.0
    heatmap_resolution: int = 50

    # Clocks
    analysis_interval: float = 5.0
    director_interval: float = 0.5

    # Analysis
    min_actions_for_reactor: int = 10
    fear_ema_retain: float = 0.7
    run_speed_threshold: float = 1.5
    sanity_strength_scale: float = 20.0

    # Director drift
    initial_mood: float = 0.3
    initial_tension: float = 0.1
    tension_rate: float = 0.02
    tension_release: float = 0.0
    mood_rule: str = "constant"

    # Scare construction
    low_reactivity_threshold: float = 0.3
    low_reactivity_boost: float = 1.5
    spawn_radius_min: float = 10.0
    spawn_radius_max: float = 30.0
    sanity_cost_per_intensity: float = 5.0

    # Effectiveness / recommendations
    effectiveness_window: float = 10.0
    effectiveness_floor: float = 0.1
    max_recommendations: int = 3

    # Plumbing
    event_queue_size: int = 4096
    publish_fired_scares: bool = True
    prng_seed: Optional[int] = None

    def __post_init__(self):
        """Clamp all parameters to safe ranges."""
        self.action_history_size = max(1, int(self.action_history_size))
        self.fear_history_size = max(1, int(self.fear_history_size))
        self.position_history_size = max(2, int(self.position_history_size))
        self.sector_size = max(0.1, float(self.sector_size))
        self.world_size = max(1.0, float(self.world_size))
        self.heatmap_resolution = max(1, min(1024, int(self.heatmap_resolution)))
        self.analysis_interval = max(0.0, float(self.analysis_interval))
        self.director_interval = max(0.0, float(self.director_interval))
        self.min_actions_for_reactor = max(1, int(self.min_actions_for_reactor))
        self.fear_ema_retain = max(0.0, min(1.0, float(self.fear_ema_retain)))
        self.sanity_strength_scale = max(0.01, float(self.sanity_strength_scale))
        self.initial_mood = max(0.0, min(1.0, float(self.initial_mood)))
        self.initial_tension = max(0.0, min(1.0, float(self.initial_tension)))
        self.tension_rate = max(0.0, min(1.0, float(self.tension_rate)))
        self.tension_release = max(0.0, min(1.0, float(self.tension_release)))
        if self.mood_rule not in MOOD_RULE_NAMES:
            logger.warning(f"Unknown mood_rule {self.mood_rule!r}, using 'constant'")
            self.mood_rule = "constant"
        self.low_reactivity_threshold = max(0.0, min(1.0, float(self.low_reactivity_threshold)))
        self.low_reactivity_boost = max(1.0, min(5.0, float(self.low_reactivity_boost)))
        self.spawn_radius_min = max(0.0, float(self.spawn_radius_min))
        self.spawn_radius_max = max(self.spawn_radius_min, float(self.spawn_radius_max))
        self.sanity_cost_per_intensity = max(0.0, float(self.sanity_cost_per_intensity))
        self.effectiveness_window = max(0.0, float(self.effectiveness_window))
        self.effectiveness_floor = max(0.001, min(1.0, float(self.effectiveness_floor)))
        self.max_recommendations = max(1, int(self.max_recommendations))
        self.event_queue_size = max(1, int(self.event_queue_size))

    @property
    def fear_ema_new(self) -> float:
        """Weight of the fresh observation in the fear-profile EMA."""
        return 1.0 - self.fear_ema_retain

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DirectorConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, path: str) -> None:
        """Save config to a JSON or YAML file (by extension)."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["DirectorConfig"]:
        """Load config from JSON or YAML. Returns None if missing or unreadable."""
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()

            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)

            if not isinstance(data, dict):
                logger.warning(f"Config at {path} is not a mapping")
                return None

            return cls.from_dict(data)

        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return None


class ConfigPresets:
    """Pre-tuned pacing presets."""

    @staticmethod
    def gentle() -> DirectorConfig:
        """Slow build-up, soft scares."""
        return DirectorConfig(
            initial_mood=0.2,
            tension_rate=0.01,
            director_interval=1.0,
            low_reactivity_boost=1.2,
        )

    @staticmethod
    def standard() -> DirectorConfig:
        """Documented default pacing."""
        return DirectorConfig()

    @staticmethod
    def relentless() -> DirectorConfig:
        """Fast escalation that adapts mood to what works."""
        return DirectorConfig(
            initial_mood=0.6,
            initial_tension=0.3,
            tension_rate=0.04,
            mood_rule="effectiveness",
        )

    @staticmethod
    def deterministic_test(seed: int = 42) -> DirectorConfig:
        """Seeded configuration for tests and replays."""
        return DirectorConfig(prng_seed=seed)


PRESETS = {
    "gentle": ConfigPresets.gentle,
    "standard": ConfigPresets.standard,
    "relentless": ConfigPresets.relentless,
}


def list_presets() -> List[str]:
    """List available preset names."""
    return list(PRESETS.keys())


def get_preset(name: str) -> Optional[DirectorConfig]:
    """Get a preset by name (case-insensitive)."""
    factory = PRESETS.get(name.lower())
    return factory() if factory else None


def load_config(path: Optional[str] = None) -> DirectorConfig:
    """
    Resolve the active configuration.

    Checks in order:
    1. Explicit path
    2. NIGHTMARE_AI_CONFIG environment variable (a path or a preset name)
    3. Defaults
    """
    source = path or os.environ.get(CONFIG_ENV_VAR)
    if not source:
        return DirectorConfig()

    preset = get_preset(source)
    if preset is not None:
        return preset

    config = DirectorConfig.load(source)
    if config is None:
        logger.warning(f"Could not load config {source!r}, using defaults")
        return DirectorConfig()

    logger.info(f"Loaded director config from {source}")
    return config
