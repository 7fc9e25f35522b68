"""
Metrics collection for the director loop.

Tracks:
- Latency of analysis and director cycles
- Event ingestion counters (accepted / rejected / dropped)
- Scares fired
- Error counts by subsystem

Counter keys are "subsystem.name"; summary() groups them back by subsystem.
"""
from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, Optional

MAX_LATENCY_SAMPLES = 1000


@dataclass
class LatencyStats:
    """Running latency figures for one operation."""
    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0
    samples: Deque[float] = field(default_factory=lambda: deque(maxlen=MAX_LATENCY_SAMPLES))

    def record(self, ms: float) -> None:
        self.count += 1
        self.total_ms += ms
        self.min_ms = min(self.min_ms, ms)
        self.max_ms = max(self.max_ms, ms)
        self.samples.append(ms)

    @property
    def avg_ms(self) -> float:
        return self.total_ms / max(1, self.count)

    def percentile(self, p: float) -> float:
        """Approximate percentile (0-100) over the retained samples."""
        if not self.samples:
            return 0.0
        ordered = sorted(self.samples)
        return ordered[min(int(len(ordered) * p / 100), len(ordered) - 1)]

    def to_dict(self) -> Dict:
        return {
            "count": self.count,
            "avg_ms": round(self.avg_ms, 3),
            "min_ms": round(self.min_ms, 3) if self.count else 0,
            "max_ms": round(self.max_ms, 3),
            "p50_ms": round(self.percentile(50), 3),
            "p95_ms": round(self.percentile(95), 3),
        }


class Counter:
    """Thread-safe counter."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> int:
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def _split_key(key: str):
    subsystem, _, name = key.partition(".")
    return (subsystem, name) if name else ("general", subsystem)


class MetricsCollector:
    """
    Metrics for one engine session.

    Example:
        >>> metrics = MetricsCollector()
        >>> with metrics.time_operation("analysis_cycle"):
        ...     observer.analyze_cycle()
        >>> metrics.increment("scares_fired", subsystem="director")
        >>> metrics.summary()["counters"]["director"]
        {'scares_fired': 1}
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._start_time = datetime.now()
        self._latencies: Dict[str, LatencyStats] = defaultdict(LatencyStats)
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._errors: Dict[str, Counter] = defaultdict(Counter)

    def record_latency(self, operation: str, ms: float) -> None:
        with self._lock:
            self._latencies[operation].record(ms)

    def time_operation(self, operation: str) -> "LatencyContext":
        """Context manager that records the block's wall time under `operation`."""
        return LatencyContext(self, operation)

    def increment(
        self,
        counter: str,
        n: int = 1,
        subsystem: Optional[str] = None,
    ) -> int:
        key = f"{subsystem}.{counter}" if subsystem else counter
        with self._lock:
            c = self._counters[key]
        return c.inc(n)

    def record_error(self, subsystem: str, error_type: str = "unknown") -> None:
        with self._lock:
            c = self._errors[f"{subsystem}.{error_type}"]
        c.inc()

    def get_latency_stats(self, operation: str) -> Optional[LatencyStats]:
        with self._lock:
            return self._latencies.get(operation)

    def get_counter(self, counter: str) -> int:
        with self._lock:
            c = self._counters.get(counter)
        return c.value if c else 0

    def get_total_errors(self) -> int:
        with self._lock:
            counters = list(self._errors.values())
        return sum(c.value for c in counters)

    def summary(self) -> Dict:
        """Snapshot of latencies, counters grouped by subsystem, and errors."""
        uptime = (datetime.now() - self._start_time).total_seconds()

        with self._lock:
            counters: Dict[str, Dict[str, int]] = {}
            for key, c in self._counters.items():
                subsystem, name = _split_key(key)
                counters.setdefault(subsystem, {})[name] = c.value
            errors = {key: c.value for key, c in self._errors.items()}
            latencies = {op: stats.to_dict() for op, stats in self._latencies.items()}

        return {
            "uptime_seconds": round(uptime, 1),
            "latencies": latencies,
            "counters": counters,
            "errors": errors,
            "total_errors": sum(errors.values()),
        }


class LatencyContext:
    """Times a block with perf_counter and reports it to the collector."""

    def __init__(self, collector: MetricsCollector, operation: str):
        self.collector = collector
        self.operation = operation
        self.start_time: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self) -> "LatencyContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time is not None:
            self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
            self.collector.record_latency(self.operation, self.elapsed_ms)
