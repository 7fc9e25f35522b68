"""
Core data types for the nightmare AI director.

Enums declare their members in ordinal order; that order is used
as the deterministic tie-break whenever a "dominant" value is selected.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionKind(str, Enum):
    """Kinds of player action captured by the observer."""
    MOVE = "move"
    RUN = "run"
    HIDE = "hide"
    INTERACT = "interact"
    ATTACK = "attack"
    INVESTIGATE = "investigate"
    RETREAT = "retreat"
    FREEZE = "freeze"

    @classmethod
    def parse(cls, value: Any) -> Optional["ActionKind"]:
        """Parse an action kind, returning None if unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class FearKind(str, Enum):
    """Categories of fear the player can be profiled against."""
    DARKNESS = "darkness"
    CREATURES = "creatures"
    SUDDEN_NOISES = "sudden_noises"
    ISOLATION = "isolation"
    CHASING = "chasing"
    GORE = "gore"
    CLAUSTROPHOBIA = "claustrophobia"
    OPEN_SPACES = "open_spaces"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "FearKind":
        """Parse a fear kind; unrecognized values map to UNKNOWN."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


class ReactorType(str, Enum):
    """Behavioral archetypes derived from action frequencies."""
    CAUTIOUS = "cautious"
    BOLD = "bold"
    PANIC = "panic"
    METHODICAL = "methodical"
    RECKLESS = "reckless"
    HESITANT = "hesitant"


class ScareKind(str, Enum):
    """Kinds of scare event the director can fire."""
    AMBIENT_SOUND = "ambient_sound"
    SUDDEN_NOISE = "sudden_noise"
    CREATURE_APPEARANCE = "creature_appearance"
    ENVIRONMENT_CHANGE = "environment_change"
    HALLUCINATION = "hallucination"
    WHISPER = "whisper"

    @classmethod
    def parse(cls, value: Any) -> "ScareKind":
        """Parse a scare kind; unrecognized values map to AMBIENT_SOUND."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.AMBIENT_SOUND
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.AMBIENT_SOUND


@dataclass(frozen=True)
class Vector2D:
    """Immutable 2D position/direction in world units."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x - other.x, self.y - other.y)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_to(self, other: "Vector2D") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class ActionRecord:
    """
    A single observed player action.

    Attributes:
        kind: What the player did
        position: Where it happened
        direction: Movement vector for the action (zero if not a move)
        timestamp: Unix time when the action was observed
        context: Free-form details (damage source, interaction target, ...)
    """
    kind: ActionKind
    position: Vector2D
    direction: Vector2D = field(default_factory=Vector2D)
    timestamp: float = field(default_factory=time.time)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FearResponse:
    """
    How strongly the player reacted to a frightening stimulus.

    Attributes:
        fear_kind: The fear category the stimulus belongs to
        strength: Reaction strength (0.0 to 1.0)
        sanity_loss: Sanity points lost with the reaction
    """
    fear_kind: FearKind
    strength: float
    sanity_loss: float = 0.0

    def __post_init__(self):
        self.strength = max(0.0, min(1.0, self.strength))


@dataclass
class ObservationContext:
    """
    Rolling snapshot of the player's situation.

    Mutated once per simulation tick by the observer. Environmental hints
    (light, open space, exits, creatures) are supplied by the host.
    """
    current_sanity: float = 100.0
    recent_sanity_loss: float = 0.0
    time_since_last_scare: float = 60.0  # seconds
    light_level: float = 0.5
    open_space: float = 0.5
    nearby_exits: int = 2
    nearby_creatures: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MovementAnalysis:
    """Aggregate movement statistics over the bounded position history."""
    average_speed: float = 0.0
    direction_changes: int = 0
    explored_area: float = 0.0
    path_repetition: float = 0.0
    preferred_areas: List[Vector2D] = field(default_factory=list)


@dataclass
class InteractionAnalysis:
    """Interaction and stress statistics derived from the histories."""
    interaction_rate: float = 0.0
    preferred_interactions: Dict[str, int] = field(default_factory=dict)
    response_to_scares: Dict[FearKind, float] = field(default_factory=dict)
    health_loss_rate: float = 0.0  # per minute
    sanity_loss_rate: float = 0.0  # per minute


@dataclass
class BehaviorPattern:
    """A named qualitative pattern detected in the player's behavior."""
    name: str
    description: str
    weight: float


@dataclass
class ScareEvent:
    """
    A scare event built (and possibly fired) by the director.

    Attributes:
        kind: Scare kind
        intensity: Strength of the scare (0.0 to 1.0)
        position: Where the scare takes place
        duration: How long the effect lasts, in seconds
        creature_type: Creature to spawn (creature appearances only)
        timestamp: Unix time when the event was built
    """
    kind: ScareKind
    intensity: float
    position: Vector2D
    duration: float = 3.0
    creature_type: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "intensity": self.intensity,
            "position": self.position.to_dict(),
            "duration": self.duration,
            "creature_type": self.creature_type,
            "timestamp": self.timestamp,
        }


@dataclass
class ScareRecommendation:
    """
    A ranked suggestion for the next scare (not an executed action).

    Attributes:
        scare_kind: Scare to fire
        fear_target: Fear kind the scare exploits
        intensity: Suggested intensity (0.3 to 1.0)
        position: Suggested location
        delay: Suggested wait before firing, in seconds
        priority: Ranking score (higher first)
    """
    scare_kind: ScareKind
    fear_target: FearKind
    intensity: float
    position: Vector2D
    delay: float
    priority: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scare_kind": self.scare_kind.value,
            "fear_target": self.fear_target.value,
            "intensity": self.intensity,
            "position": self.position.to_dict(),
            "delay": self.delay,
            "priority": self.priority,
        }
