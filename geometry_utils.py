# geometry_utils.py
from typing import Sequence, Tuple

import numpy as np

from config import SUN_INCIDENCE, Z_SCREEN_SCALE


# ===== Triangle normal / hill shade =====

def _to_local(p: Sequence[float]) -> np.ndarray:
    # raster vertex (row, col, h): column runs east (x), row runs north (y)
    i, j, h = p
    return np.array([j, i, h], dtype=float)


def triangle_normal(p1, p2, p3) -> np.ndarray:
    """
    Unit normal of a triangle given as raster vertices (row, col, h), from
    U = p2 - p1 and V = p3 - p1. Zero vector for a degenerate triangle.
    """
    a, b, c = _to_local(p1), _to_local(p2), _to_local(p3)
    n = np.cross(b - a, c - a)
    n_len = np.linalg.norm(n)
    if n_len == 0:
        return np.zeros(3)
    return n / n_len


def hill_shade(p1, p2, p3, sun: np.ndarray = SUN_INCIDENCE) -> Tuple[float, float, float]:
    s = float(np.dot(triangle_normal(p1, p2, p3), sun))
    return (s, s, s)


def grid_normals(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Vectorised triangle_normal over (..., 3) arrays of local (x, y, z) vertices."""
    n = np.cross(b - a, c - a)
    n_len = np.linalg.norm(n, axis=-1, keepdims=True)
    # a zero normal stays zero
    return n / np.where(n_len > 0, n_len, 1.0)


# ===== Screen mapping =====
# x=[0, cols], y=[0, rows] and z=[minz, maxz] are mapped into [-1, 1]

def xtoscreen(i, num_cols: int):
    return -1.0 + 2.0 * i / float(num_cols)


def ytoscreen(j, num_rows: int):
    return -1.0 + 2.0 * j / float(num_rows)


def ztoscreen(z, minz: float, maxz: float):
    span = maxz - minz
    if span == 0:
        return np.zeros_like(np.asarray(z, float)) if np.ndim(z) else 0.0
    return (-1.0 + 2.0 * (np.asarray(z, float) - minz) / span) / Z_SCREEN_SCALE


def world_to_screen(v, vmin: float, vmax: float):
    """Maps [vmin, vmax] onto [-1, 1]; the midpoint of a flat range maps to 0."""
    span = vmax - vmin
    if span == 0:
        return np.zeros_like(np.asarray(v, float))
    return -1.0 + 2.0 * (np.asarray(v, float) - vmin) / span
