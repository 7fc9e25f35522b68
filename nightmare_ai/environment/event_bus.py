"""
Gameplay event bus.

Many producers (input, world simulation, combat) publish from any thread;
the frame loop is the single consumer. dispatch_pending() drains the full
backlog under the queue lock and only then delivers it, so listeners see
each batch as a unit and never interleave with profile recomputation.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Type

from ..core.queues import BoundedQueue, DropEvent, DropPolicy
from .event_schema import GameEvent, is_game_event, parse_event

logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent], None]


class EventBus:
    """
    Queue-backed publish/subscribe for typed gameplay events.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(PlayerMoved, observer.record)
        >>> bus.publish(PlayerMoved(position=Vector2D(3, 4)))  # any thread
        >>> bus.dispatch_pending()                              # frame thread
        1
    """

    def __init__(
        self,
        maxsize: int = 4096,
        on_drop: Optional[Callable[[DropEvent], None]] = None,
        on_listener_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._queue: BoundedQueue[GameEvent] = BoundedQueue(
            maxsize=maxsize,
            drop_policy=DropPolicy.OLDEST,
            stage="gameplay_events",
            on_drop=on_drop,
        )
        self._listeners: Dict[type, List[Listener]] = defaultdict(list)
        self._on_listener_error = on_listener_error
        self.rejected_count = 0

    def subscribe(self, event_cls: Type, listener: Listener) -> None:
        """Register `listener` for events of `event_cls`."""
        self._listeners[event_cls].append(listener)

    def unsubscribe(self, event_cls: Type, listener: Listener) -> bool:
        listeners = self._listeners.get(event_cls, [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def publish(self, event: Any) -> bool:
        """
        Queue an event for the next drain.

        Accepts a typed event or its dict form. Malformed input is
        rejected here and never reaches the queue.

        Returns:
            True if queued
        """
        if isinstance(event, dict):
            event = parse_event(event)

        if not is_game_event(event):
            self.rejected_count += 1
            return False

        return self._queue.put(event)

    def dispatch_pending(self) -> int:
        """
        Deliver every queued event to its listeners, in publish order.

        Returns:
            Number of events delivered
        """
        batch = self._queue.drain()

        for event in batch:
            for listener in list(self._listeners.get(type(event), ())):
                try:
                    listener(event)
                except Exception as e:
                    logger.warning(f"Listener error on {type(event).__name__}: {e}")
                    if self._on_listener_error:
                        self._on_listener_error(e)

        return len(batch)

    def pending(self) -> int:
        return self._queue.size()

    def stats(self) -> dict:
        stats = self._queue.stats()
        stats["rejected_count"] = self.rejected_count
        return stats
