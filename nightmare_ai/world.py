"""
Collaborator interfaces consumed by the director.

The core never touches terrain, rendering or audio directly. It reads the
player's position/health/sanity and invokes two world effects. Hosts
subclass World (or pass any object with the same methods).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Tuple

from .types import Vector2D

logger = logging.getLogger(__name__)

MAX_SANITY = 100.0


@dataclass
class PlayerState:
    """
    Live player state as seen by the core.

    Attributes:
        position: Current world position
        sanity: Sanity scalar (0 to 100)
        health: Health scalar
    """
    position: Vector2D = field(default_factory=Vector2D)
    sanity: float = MAX_SANITY
    health: float = 100.0

    def reduce_sanity(self, amount: float) -> None:
        """Lower sanity by `amount`, never below zero."""
        self.sanity = max(0.0, self.sanity - amount)


class World:
    """
    World collaborator. Both effects are no-ops by default.

    Example:
        >>> class MyWorld(World):
        ...     def spawn_creature(self, kind, position):
        ...         return engine.entities.spawn(kind, position.x, position.y)
    """

    def spawn_creature(self, kind: str, position: Vector2D) -> Any:
        """Create a creature entity. Lifecycle is owned by the world."""
        return None

    def modify_environment(self, position: Vector2D, intensity: float) -> None:
        """Raise corruption in a radius around `position`."""
        return None


class RecordingWorld(World):
    """World that just records the effects it receives."""

    def __init__(self):
        self.spawned: List[Tuple[str, Vector2D]] = []
        self.modified: List[Tuple[Vector2D, float]] = []

    def spawn_creature(self, kind: str, position: Vector2D) -> Any:
        self.spawned.append((kind, position))
        logger.debug(f"Spawned {kind} at ({position.x:.1f}, {position.y:.1f})")
        return len(self.spawned)

    def modify_environment(self, position: Vector2D, intensity: float) -> None:
        self.modified.append((position, intensity))
        logger.debug(f"Corruption {intensity:.2f} at ({position.x:.1f}, {position.y:.1f})")
