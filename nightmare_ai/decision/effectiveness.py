"""
Scare effectiveness tracking.

After each fired scare the tracker waits a fixed window of simulation
time, then scores the scare by how much sanity the player lost since
firing. Scores are smoothed per scare kind and drive the director's
weighted scare-kind choice.
"""
from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Tuple

from ..types import ScareKind
from ..util import clamp

logger = logging.getLogger(__name__)


@dataclass
class PendingEvaluation:
    """A fired scare waiting for its evaluation window to close."""
    kind: ScareKind
    sanity_at_fire: float
    fired_at: float


class ScareEffectiveness:
    """
    Per-kind effectiveness aggregate with weighted selection.

    Example:
        >>> tracker = ScareEffectiveness(window=10.0)
        >>> tracker.record_fire(ScareKind.WHISPER, sanity=80.0, now=0.0)
        >>> tracker.settle(now=10.0, sanity=70.0)
        [(<ScareKind.WHISPER: 'whisper'>, 0.5)]
    """

    def __init__(
        self,
        window: float = 10.0,
        floor: float = 0.1,
        retain: float = 0.7,
        sanity_scale: float = 20.0,
    ):
        self.window = window
        self.floor = floor
        self.retain = retain
        self.sanity_scale = sanity_scale

        self.values: Dict[ScareKind, float] = {}
        self.samples: Dict[ScareKind, int] = {}
        self._pending: Deque[PendingEvaluation] = deque()

    @property
    def has_data(self) -> bool:
        return bool(self.values)

    def pending(self) -> int:
        return len(self._pending)

    def record_fire(self, kind: ScareKind, sanity: float, now: float) -> None:
        self._pending.append(PendingEvaluation(kind, sanity, now))

    def settle(self, now: float, sanity: float) -> List[Tuple[ScareKind, float]]:
        """
        Score every pending scare whose window has closed.

        Returns:
            (kind, response) for each scare scored this call
        """
        scored = []
        # Pending entries are in firing order, so the first open window stops the scan
        while self._pending and now - self._pending[0].fired_at >= self.window:
            entry = self._pending.popleft()
            response = clamp((entry.sanity_at_fire - sanity) / self.sanity_scale, 0.0, 1.0)
            self.update(entry.kind, response)
            scored.append((entry.kind, response))
        return scored

    def update(self, kind: ScareKind, response: float) -> float:
        """Fold one response into a kind's value (first sample is taken as is)."""
        if kind in self.values:
            value = self.values[kind] * self.retain + response * (1.0 - self.retain)
        else:
            value = response
        self.values[kind] = value
        self.samples[kind] = self.samples.get(kind, 0) + 1
        logger.debug(f"Effectiveness {kind.value}: {value:.3f} (response {response:.3f})")
        return value

    def get(self, kind: ScareKind) -> Optional[float]:
        return self.values.get(kind)

    def mean(self) -> Optional[float]:
        if not self.values:
            return None
        return sum(self.values.values()) / len(self.values)

    def weights(self) -> Dict[ScareKind, float]:
        """Selection weight per scare kind; unseen kinds use the mean."""
        mean = self.mean() or 0.0
        return {
            kind: self.values.get(kind, mean) + self.floor
            for kind in ScareKind
        }

    def choose(self, rng: random.Random) -> ScareKind:
        """Pick a scare kind, uniform without data, weighted with it."""
        kinds = list(ScareKind)
        if not self.has_data:
            return rng.choice(kinds)

        weights = self.weights()
        return rng.choices(kinds, weights=[weights[k] for k in kinds], k=1)[0]

    def to_dict(self) -> Dict[str, float]:
        return {k.value: v for k, v in self.values.items()}
