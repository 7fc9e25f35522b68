"""
Spatial analytics over the player's movement.

Keeps a bounded position history plus a visit counter per grid cell and
derives speed, turning frequency, explored area, path repetition and the
most-visited spots. Every statistic is recomputed from scratch; the
history is bounded, so this stays cheap.
"""
from __future__ import annotations

import logging
import math
from collections import deque
from typing import Deque, Dict, List, Tuple

import numpy as np

from ..types import MovementAnalysis, Vector2D

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

TURN_THRESHOLD = math.pi / 4  # 45 degrees
PREFERRED_AREA_COUNT = 5


class MovementTracker:
    """
    Position history and sector-visit heatmap.

    Attributes:
        sector_size: Cell edge length in world units
        positions: Bounded position history (oldest evicted)
        visits: Visit count per cell, in first-visit order
    """

    def __init__(
        self,
        sector_size: float = 5.0,
        max_positions: int = 1000,
        world_size: float = 256.0,
        heatmap_resolution: int = 50,
    ):
        self.sector_size = sector_size
        self.world_size = world_size
        self.heatmap_resolution = heatmap_resolution
        self.positions: Deque[Vector2D] = deque(maxlen=max_positions)
        self.visits: Dict[Cell, int] = {}
        self.analysis = MovementAnalysis()

    def cell_of(self, p: Vector2D) -> Cell:
        return (
            int(math.floor(p.x / self.sector_size)),
            int(math.floor(p.y / self.sector_size)),
        )

    def cell_center(self, cell: Cell) -> Vector2D:
        half = self.sector_size / 2
        return Vector2D(
            cell[0] * self.sector_size + half,
            cell[1] * self.sector_size + half,
        )

    def record_position(self, p: Vector2D) -> None:
        """Append a sample and count a visit to its cell."""
        self.positions.append(p)
        cell = self.cell_of(p)
        self.visits[cell] = self.visits.get(cell, 0) + 1

    def compute(self) -> MovementAnalysis:
        """
        Recompute movement statistics from the full history.

        With fewer than two samples there is no path yet, and the
        previous analysis is returned unchanged.
        """
        samples = list(self.positions)
        if len(samples) < 2:
            return self.analysis

        total_distance = 0.0
        direction_changes = 0
        for i in range(1, len(samples)):
            total_distance += samples[i - 1].distance_to(samples[i])
            if i > 1 and self._turned(samples[i - 2], samples[i - 1], samples[i]):
                direction_changes += 1

        self.analysis = MovementAnalysis(
            average_speed=total_distance / (len(samples) - 1),
            direction_changes=direction_changes,
            explored_area=len(self.visits) * self.sector_size * self.sector_size,
            path_repetition=self.path_repetition(),
            preferred_areas=self.preferred_areas(),
        )
        return self.analysis

    @staticmethod
    def _turned(prev: Vector2D, curr: Vector2D, nxt: Vector2D) -> bool:
        d1 = curr - prev
        d2 = nxt - curr
        # Standing still has no heading
        if d1.length() == 0.0 or d2.length() == 0.0:
            return False

        diff = abs(math.atan2(d2.y, d2.x) - math.atan2(d1.y, d1.x))
        if diff > math.pi:
            diff = 2 * math.pi - diff
        return diff > TURN_THRESHOLD

    def path_repetition(self) -> float:
        """Mean visits per visited cell minus one, floored at zero."""
        if not self.visits:
            return 0.0
        avg = sum(self.visits.values()) / len(self.visits)
        return max(0.0, avg - 1.0)

    def preferred_areas(self, count: int = PREFERRED_AREA_COUNT) -> List[Vector2D]:
        """Centres of the most-visited cells; earlier-visited cells win ties."""
        # sorted() is stable, and visits keeps first-visit order
        ranked = sorted(self.visits.items(), key=lambda kv: kv[1], reverse=True)
        return [self.cell_center(cell) for cell, _ in ranked[:count]]

    def heatmap(self) -> np.ndarray:
        """
        Visit heatmap over the world, shape (resolution, resolution).

        Indexed [row=y, col=x]; each value is min(1, visits / 10).
        Cells outside the world extent are ignored.
        """
        n = self.heatmap_resolution
        grid = np.zeros((n, n), dtype=float)
        if not self.visits:
            return grid

        cells = np.array(list(self.visits.keys()), dtype=float)
        counts = np.array(list(self.visits.values()), dtype=float)

        # Cell index -> world coordinate -> heatmap index
        hx = np.floor(cells[:, 0] * self.sector_size * n / self.world_size).astype(int)
        hy = np.floor(cells[:, 1] * self.sector_size * n / self.world_size).astype(int)
        inside = (hx >= 0) & (hx < n) & (hy >= 0) & (hy < n)

        values = np.minimum(1.0, counts / 10.0)
        # Several cells can land in one heatmap bin; keep the hottest
        np.maximum.at(grid, (hy[inside], hx[inside]), values[inside])
        return grid
