"""
Interval gates for the simulation loop.

The engine runs two independent clocks over the same simulation time:
a per-tick accumulator and slower periodic re-evaluations. A gate never
waits; if its interval has not elapsed the caller simply skips until a
later tick.
"""
from __future__ import annotations


class IntervalTimer:
    """
    Fires at most once per `interval` seconds of simulation time.

    Example:
        >>> timer = IntervalTimer(5.0)
        >>> timer.due(4.9)
        False
        >>> timer.due(5.0)
        True
        >>> timer.due(9.0)
        False
    """

    def __init__(self, interval: float, start: float = 0.0, name: str = "timer"):
        self.interval = max(0.0, interval)
        self.name = name
        self._last: float = start
        self.fired_count = 0

    def due(self, now: float) -> bool:
        """True (and re-armed) if at least `interval` has passed since the last firing."""
        if now - self._last >= self.interval:
            self._last = now
            self.fired_count += 1
            return True
        return False
