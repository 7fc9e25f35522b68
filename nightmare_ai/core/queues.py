"""
Bounded queues for inbound telemetry.

Prevents runaway memory growth when producers outpace the frame loop by:
- Limiting queue size
- Dropping items on overflow
- Logging drops for metrics

Producers may live on any thread; the single consumer drains the whole
backlog at once so a batch is processed atomically.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DropPolicy(str, Enum):
    """Policy for handling overflow."""
    OLDEST = "oldest"   # Drop oldest item when full
    NEWEST = "newest"   # Drop incoming item when full


@dataclass
class DropEvent:
    """Record of a dropped item."""
    stage: str
    timestamp: str
    policy: DropPolicy
    queue_size: int
    item_type: str

    def to_dict(self):
        return {
            "stage": self.stage,
            "timestamp": self.timestamp,
            "policy": self.policy.value,
            "queue_size": self.queue_size,
            "item_type": self.item_type,
        }


class BoundedQueue(Generic[T]):
    """
    Thread-safe bounded queue with configurable overflow handling.

    Never blocks: a full queue drops according to its policy.

    Example:
        >>> q = BoundedQueue[str](maxsize=3, stage="events")
        >>> q.put("a"); q.put("b"); q.put("c")
        >>> q.put("d")      # "a" dropped
        >>> q.drain()
        ['b', 'c', 'd']
    """

    def __init__(
        self,
        maxsize: int = 1024,
        drop_policy: DropPolicy = DropPolicy.OLDEST,
        stage: str = "unknown",
        on_drop: Optional[Callable[[DropEvent], None]] = None,
    ):
        """
        Initialize bounded queue.

        Args:
            maxsize: Maximum items in queue
            drop_policy: What to do when full
            stage: Name for logging/metrics
            on_drop: Callback when item is dropped
        """
        self.maxsize = max(1, maxsize)
        self.drop_policy = drop_policy
        self.stage = stage
        self.on_drop = on_drop

        self._queue: Deque[T] = deque()
        self._lock = threading.Lock()

        # Metrics
        self._put_count = 0
        self._get_count = 0
        self._drop_count = 0

    def put(self, item: T) -> bool:
        """
        Add item to queue.

        Returns:
            True if added, False if the incoming item was dropped
        """
        dropped_type: Optional[str] = None
        accepted = True

        with self._lock:
            self._put_count += 1

            if len(self._queue) >= self.maxsize:
                if self.drop_policy == DropPolicy.OLDEST:
                    dropped = self._queue.popleft()
                    dropped_type = type(dropped).__name__
                else:
                    dropped_type = type(item).__name__
                    accepted = False

            if accepted:
                self._queue.append(item)

            if dropped_type is not None:
                self._drop_count += 1
                drop = DropEvent(
                    stage=self.stage,
                    timestamp=datetime.now().isoformat(),
                    policy=self.drop_policy,
                    queue_size=len(self._queue),
                    item_type=dropped_type,
                )

        # Callback outside the lock so it may inspect the queue
        if dropped_type is not None:
            self._report_drop(drop)

        return accepted

    def drain(self) -> List[T]:
        """Remove and return every queued item, oldest first, in one step."""
        with self._lock:
            items = list(self._queue)
            self._queue.clear()
            self._get_count += len(items)
            return items

    def _report_drop(self, event: DropEvent) -> None:
        logger.warning(
            f"Queue {self.stage}: dropped {event.item_type} "
            f"(policy={event.policy.value}, size={event.queue_size})"
        )

        if self.on_drop:
            try:
                self.on_drop(event)
            except Exception as e:
                logger.warning(f"Drop callback error: {e}")

    def size(self) -> int:
        with self._lock:
            return len(self._queue)

    def stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                "stage": self.stage,
                "current_size": len(self._queue),
                "maxsize": self.maxsize,
                "put_count": self._put_count,
                "get_count": self._get_count,
                "drop_count": self._drop_count,
                "drop_rate": self._drop_count / max(1, self._put_count),
            }
