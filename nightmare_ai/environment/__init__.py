"""
Gameplay telemetry layer for the nightmare AI director.

This module turns raw gameplay signals into typed events and moves them
from producer threads to the single simulation thread.

Key principles:
- Each event kind carries only its own strongly-typed fields
- Malformed telemetry is rejected at the boundary, silently
- Events are delivered in batches, synchronously, once per frame

Design:
- Event schema: typed event dataclasses + dict parsing
- Event bus: bounded, thread-safe queue with per-type listeners
"""

from .event_schema import (
    GameEvent,
    PlayerMoved,
    PlayerDamaged,
    PlayerSanityChanged,
    PlayerInteracted,
    ScareTriggered,
    PlayerActed,
    EVENT_CLASSES,
    EVENT_TYPES,
    parse_event,
    event_to_dict,
    is_game_event,
)
from .event_bus import EventBus

__all__ = [
    # Typed events
    "GameEvent",
    "PlayerMoved",
    "PlayerDamaged",
    "PlayerSanityChanged",
    "PlayerInteracted",
    "ScareTriggered",
    "PlayerActed",
    "EVENT_CLASSES",
    "EVENT_TYPES",
    # Boundary parsing
    "parse_event",
    "event_to_dict",
    "is_game_event",
    # Delivery
    "EventBus",
]
