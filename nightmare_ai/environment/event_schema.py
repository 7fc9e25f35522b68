"""
Typed gameplay events consumed by the observer.

Each event kind is its own frozen dataclass carrying only the fields it
needs, so handlers never have to re-check payload types. Loose dict
payloads (from scripts, replays, or a bridge) are validated and typed
once at the boundary by parse_event(); anything malformed becomes None.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ..types import ActionKind, ScareKind, Vector2D
from ..validation import validate_event_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerMoved:
    """Player position changed."""
    position: Vector2D
    old_position: Vector2D = field(default_factory=Vector2D)
    speed: float = 0.0
    timestamp: float = field(default_factory=time.time)

    TYPE = "player_moved"


@dataclass(frozen=True)
class PlayerDamaged:
    """Player took damage from `source`."""
    source: str
    amount: float
    timestamp: float = field(default_factory=time.time)

    TYPE = "player_damaged"


@dataclass(frozen=True)
class PlayerSanityChanged:
    """Player sanity moved from `old_value` to `new_value`."""
    old_value: float
    new_value: float
    source: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    TYPE = "player_sanity_changed"

    @property
    def delta(self) -> float:
        return self.new_value - self.old_value


@dataclass(frozen=True)
class PlayerInteracted:
    """Player interacted with `target` (door, note, lantern, ...)."""
    target: str
    interaction_type: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    TYPE = "player_interacted"


@dataclass(frozen=True)
class ScareTriggered:
    """A scare played out around the player."""
    scare_kind: ScareKind
    intensity: float = 0.5
    timestamp: float = field(default_factory=time.time)

    TYPE = "scare_triggered"


@dataclass(frozen=True)
class PlayerActed:
    """Explicit action reported by the host (hide, attack, retreat, ...)."""
    action: ActionKind
    position: Optional[Vector2D] = None
    timestamp: float = field(default_factory=time.time)

    TYPE = "player_acted"


GameEvent = Union[
    PlayerMoved,
    PlayerDamaged,
    PlayerSanityChanged,
    PlayerInteracted,
    ScareTriggered,
    PlayerActed,
]

EVENT_CLASSES = (
    PlayerMoved,
    PlayerDamaged,
    PlayerSanityChanged,
    PlayerInteracted,
    ScareTriggered,
    PlayerActed,
)

EVENT_TYPES: Dict[str, type] = {cls.TYPE: cls for cls in EVENT_CLASSES}


def is_game_event(obj: Any) -> bool:
    return isinstance(obj, EVENT_CLASSES)


def to_vector(value: Any) -> Vector2D:
    """Convert a validated position ({"x","y"}, (x, y), or Vector2D)."""
    if isinstance(value, Vector2D):
        return value
    if isinstance(value, dict):
        return Vector2D(float(value["x"]), float(value["y"]))
    if isinstance(value, (list, tuple)):
        return Vector2D(float(value[0]), float(value[1]))
    return Vector2D(float(value.x), float(value.y))


def parse_event(data: Any) -> Optional[GameEvent]:
    """
    Type a loose event dict.

    Expected shape: {"type": "player_moved", "ts": 123.4, ...fields}.
    Fields may also be nested under "payload".

    Returns:
        A typed event, or None if the input is malformed (never raises)
    """
    if not isinstance(data, dict):
        logger.debug(f"Rejected non-dict event: {type(data).__name__}")
        return None

    event_type = data.get("type")
    payload = data.get("payload", data)
    if not isinstance(event_type, str) or event_type not in EVENT_TYPES:
        logger.debug(f"Rejected event with unknown type: {event_type!r}")
        return None

    result = validate_event_payload(event_type, payload)
    if not result.is_valid:
        logger.debug(f"Rejected {event_type}: {result.summary()}")
        return None

    ts = data.get("ts")
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        ts = time.time()

    try:
        if event_type == PlayerMoved.TYPE:
            old = payload.get("old_position")
            return PlayerMoved(
                position=to_vector(payload["position"]),
                old_position=to_vector(old) if old is not None else Vector2D(),
                speed=float(payload.get("speed") or 0.0),
                timestamp=ts,
            )

        if event_type == PlayerDamaged.TYPE:
            return PlayerDamaged(
                source=payload["source"],
                amount=float(payload["amount"]),
                timestamp=ts,
            )

        if event_type == PlayerSanityChanged.TYPE:
            return PlayerSanityChanged(
                old_value=float(payload["old_value"]),
                new_value=float(payload["new_value"]),
                source=payload.get("source"),
                timestamp=ts,
            )

        if event_type == PlayerInteracted.TYPE:
            return PlayerInteracted(
                target=payload["target"],
                interaction_type=payload.get("interaction_type"),
                timestamp=ts,
            )

        if event_type == ScareTriggered.TYPE:
            intensity = payload.get("intensity")
            return ScareTriggered(
                scare_kind=ScareKind.parse(payload["scare_kind"]),
                intensity=0.5 if intensity is None else float(intensity),
                timestamp=ts,
            )

        if event_type == PlayerActed.TYPE:
            pos = payload.get("position")
            return PlayerActed(
                action=ActionKind.parse(payload["action"]),
                position=to_vector(pos) if pos is not None else None,
                timestamp=ts,
            )

    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug(f"Rejected {event_type}: {e}")

    return None


def event_to_dict(event: GameEvent) -> Dict[str, Any]:
    """Serialize a typed event to the loose dict form accepted by parse_event()."""
    out: Dict[str, Any] = {"type": event.TYPE, "ts": event.timestamp}
    for name, value in event.__dict__.items():
        if name == "timestamp":
            continue
        if isinstance(value, Vector2D):
            value = value.to_dict()
        elif hasattr(value, "value"):
            value = value.value
        out[name] = value
    return out
