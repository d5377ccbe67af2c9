import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from config import NODATA
from errors import EmptyRasterError
from lidar_points import BoundingBox, PointStore


@dataclass
class Rasters:
    first_returns_mean: np.ndarray   # mean z of first returns per cell
    last_returns_mean: np.ndarray    # mean z of all returns per cell
    min_elevation: float
    delta: float                     # cell side length
    minx: float
    miny: float

    @property
    def shape(self) -> Tuple[int, int]:
        return self.first_returns_mean.shape

    def cell_of(self, x, y):
        return cell_index(x, y, self.minx, self.miny, self.delta)


def cell_index(x, y, minx, miny, delta):
    """Row/col of world coordinates. A point on the max edge lands at r == rows or c == cols."""
    r = np.floor((np.asarray(y, float) - miny) / delta).astype(int)
    c = np.floor((np.asarray(x, float) - minx) / delta).astype(int)
    return r, c


def _ceil_cells(extent: float, delta: float) -> int:
    return max(1, int(math.ceil(extent / delta)))


def grid_resolution(n_points: int, bounds: BoundingBox, point_density: int) -> Tuple[float, int, int]:
    if point_density <= 0:
        raise ValueError(f"point density must be positive, got {point_density}")

    num_cells = n_points / float(point_density)
    h = bounds.height
    w = bounds.width

    if h > 0 and w > 0:
        delta = math.sqrt(h * w / num_cells)
    elif max(h, w) > 0:
        # points on a line: spread the cells along it
        delta = max(h, w) / max(num_cells, 1.0)
    else:
        delta = 1.0

    return delta, _ceil_cells(h, delta), _ceil_cells(w, delta)


def _mean_grid(rows, cols, r, c, z) -> np.ndarray:
    sums = np.zeros((rows, cols), float)
    counts = np.zeros((rows, cols), int)
    np.add.at(sums, (r, c), z)
    np.add.at(counts, (r, c), 1)
    out = np.full((rows, cols), NODATA, dtype=float)
    has = counts > 0
    out[has] = sums[has] / counts[has]
    return out


def robust_min_elevation(first_returns_mean: np.ndarray) -> float:
    valid = first_returns_mean[first_returns_mean != NODATA]
    if valid.size == 0:
        raise EmptyRasterError("raster has no cell with data")
    return float(valid.min())


def gridify(store: PointStore, point_density: int) -> Rasters:
    b = store.bounds
    delta, rows, cols = grid_resolution(len(store), b, point_density)

    x = store.column("x")
    y = store.column("y")
    z = store.column("z")
    rn = store.column("return_number")

    r, c = cell_index(x, y, b.minx, b.miny, delta)
    inside = (r >= 0) & (r < rows) & (c >= 0) & (c < cols)
    if not inside.all():
        logging.info(f"{int((~inside).sum())} points on the max edge left out of the grid")

    first = inside & (rn == 1)
    # every return goes to the last-return grid
    last = inside

    first_grid = _mean_grid(rows, cols, r[first], c[first], z[first])
    last_grid = _mean_grid(rows, cols, r[last], c[last], z[last])
    min_elevation = robust_min_elevation(first_grid)

    logging.info(
        f"Grid {rows} x {cols}, cell size {delta:.3f}, "
        f"min elevation {min_elevation:.3f}"
    )
    return Rasters(
        first_returns_mean=first_grid,
        last_returns_mean=last_grid,
        min_elevation=min_elevation,
        delta=delta,
        minx=b.minx,
        miny=b.miny,
    )
