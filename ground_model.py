import heapq
import logging
from collections import deque
from typing import Optional

import numpy as np

from config import (
    NODATA, UNCLASSIFIED, BUILDING, GROUND,
    CODE_UNASSIGNED, CODE_GROUND, CODE_BUILDING
)
from gridding import Rasters
from lidar_points import PointStore

_NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))


# ===== Ground find =====

def find_ground(last_grid: np.ndarray, building_slope_threshold: float) -> np.ndarray:
    """
    Labels every cell of ``last_grid`` ground (1), building (0) or, for
    NODATA cells, unclassified (-1).

    Seeds at the lowest unlabelled cell and grows by BFS over the four
    compass neighbours. A rise of at most the threshold keeps the label of
    the cell it came from, a steeper rise starts a building, and any drop
    ends the branch. Repeats from the next lowest unlabelled cell until
    every cell with data is labelled.
    """
    G = np.asarray(last_grid, dtype=float)
    rows, cols = G.shape
    tau = float(building_slope_threshold)

    is_ground = np.full((rows, cols), UNCLASSIFIED, dtype=np.int8)
    has_data = G != NODATA
    unclassified = int(has_data.sum())

    # (height, row, col) keeps ties in row-major order
    seeds = [(G[i, j], i, j) for i, j in zip(*np.nonzero(has_data))]
    heapq.heapify(seeds)

    q = deque()
    n_seeds = 0
    while unclassified > 0:
        seed = _next_seed(seeds, is_ground)
        if seed is None:
            break
        si, sj = seed
        is_ground[si, sj] = GROUND
        unclassified -= 1
        n_seeds += 1
        q.append((si, sj))

        while q:
            ci, cj = q.popleft()
            curr_type = is_ground[ci, cj]
            curr_h = G[ci, cj]
            for di, dj in _NEIGHBOURS:
                ni, nj = ci + di, cj + dj
                if ni < 0 or nj < 0 or ni >= rows or nj >= cols:
                    continue
                if is_ground[ni, nj] != UNCLASSIFIED or not has_data[ni, nj]:
                    continue

                slope = G[ni, nj] - curr_h
                if 0 <= slope <= tau:
                    is_ground[ni, nj] = curr_type
                elif slope > tau:
                    is_ground[ni, nj] = BUILDING
                else:
                    continue
                unclassified -= 1
                q.append((ni, nj))

    logging.debug(f"Ground find: {n_seeds} seeds, threshold {tau:.2f}")
    return is_ground


def _next_seed(seeds, is_ground) -> Optional[tuple]:
    while seeds:
        _, i, j = heapq.heappop(seeds)
        if is_ground[i, j] == UNCLASSIFIED:
            return i, j
    return None


class GroundClassifier:
    """Owns the slope threshold and the label grid derived from it."""

    def __init__(self, rasters: Rasters, building_slope_threshold: float):
        self.rasters = rasters
        self.building_slope_threshold = float(building_slope_threshold)
        self.is_ground = None
        self.rebuild()

    @property
    def last_grid(self) -> np.ndarray:
        return self.rasters.last_returns_mean

    def rebuild(self) -> np.ndarray:
        labels = find_ground(self.last_grid, self.building_slope_threshold)
        self.is_ground = labels
        n_ground = int((labels == GROUND).sum())
        n_bldg = int((labels == BUILDING).sum())
        logging.info(
            f"Building slope threshold {self.building_slope_threshold:.2f}: "
            f"ground={n_ground} building={n_bldg}"
        )
        return labels

    def set_threshold(self, value: float) -> np.ndarray:
        self.building_slope_threshold = max(0.0, round(float(value), 6))
        return self.rebuild()


# ===== Per-point codes =====

def assign_mycodes(store: PointStore, rasters: Rasters, is_ground: np.ndarray) -> np.ndarray:
    """ASPRS code of the cell each point falls in: ground 2, building 6, else 1."""
    rows, cols = is_ground.shape
    r, c = rasters.cell_of(store.column("x"), store.column("y"))
    inside = (r >= 0) & (r < rows) & (c >= 0) & (c < cols)

    codes = np.full(len(store), CODE_UNASSIGNED, dtype=int)
    labels = np.full(len(store), UNCLASSIFIED, dtype=int)
    labels[inside] = is_ground[r[inside], c[inside]]
    codes[labels == GROUND] = CODE_GROUND
    codes[labels == BUILDING] = CODE_BUILDING
    return codes
