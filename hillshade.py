from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from config import NODATA, NODATA_SHADE, SUN_INCIDENCE
from geometry_utils import grid_normals

Vertex = Tuple[float, float, float]   # (row, col, h)


@dataclass
class ShadedTriangle:
    vertices: Tuple[Vertex, Vertex, Vertex]
    color: Tuple[float, float, float]
    nodata: bool = False


def shade_grid(elevation: np.ndarray, sun: np.ndarray = SUN_INCIDENCE):
    """
    Shade of both triangles of every cell (i, j), 0 <= i < rows-1,
    0 <= j < cols-1, as two (rows-1, cols-1) arrays.

    T1 = ((i+1, j, h_i), (i, j, h), (i, j+1, h_j))
    T2 = ((i+1, j+1, h_2), (i+1, j, h_i), (i, j+1, h_j))
    """
    E = np.asarray(elevation, float)
    h = E[:-1, :-1]
    h_i = E[1:, :-1]
    h_j = E[:-1, 1:]
    h_2 = E[1:, 1:]
    I, J = np.meshgrid(np.arange(h.shape[0], dtype=float),
                       np.arange(h.shape[1], dtype=float), indexing="ij")

    # local frame: x = col, y = row
    v_h = np.stack([J, I, h], axis=-1)
    v_i = np.stack([J, I + 1, h_i], axis=-1)
    v_j = np.stack([J + 1, I, h_j], axis=-1)
    v_2 = np.stack([J + 1, I + 1, h_2], axis=-1)

    shade1 = grid_normals(v_i, v_h, v_j) @ sun
    shade2 = grid_normals(v_2, v_i, v_j) @ sun
    return shade1, shade2


def triangle_arrays(elevation: np.ndarray, min_elevation: float, sun: np.ndarray = SUN_INCIDENCE):
    """
    All triangles of the raster as arrays, in the order of hillshade_triangles:
    vertices (n, 3, 3) as (row, col, h), colors (n, 3), nodata (n,).
    """
    E = np.asarray(elevation, float)
    rows, cols = E.shape
    if rows < 2 or cols < 2:
        return np.zeros((0, 3, 3)), np.zeros((0, 3)), np.zeros(0, dtype=bool)

    shade1, shade2 = shade_grid(E, sun)
    nd = E == NODATA
    nd1 = nd[1:, :-1] | nd[:-1, :-1] | nd[:-1, 1:]
    nd2 = nd[1:, 1:] | nd[1:, :-1] | nd[:-1, 1:]

    I, J = np.meshgrid(np.arange(rows - 1, dtype=float),
                       np.arange(cols - 1, dtype=float), indexing="ij")
    v_h = np.stack([I, J, E[:-1, :-1]], axis=-1)
    v_i = np.stack([I + 1, J, E[1:, :-1]], axis=-1)
    v_j = np.stack([I, J + 1, E[:-1, 1:]], axis=-1)
    v_2 = np.stack([I + 1, J + 1, E[1:, 1:]], axis=-1)

    t1 = np.stack([v_i, v_h, v_j], axis=-2)
    t2 = np.stack([v_2, v_i, v_j], axis=-2)
    # T1 then T2 for each cell, cells row-major
    vertices = np.stack([t1, t2], axis=2).reshape(-1, 3, 3)
    nodata = np.stack([nd1, nd2], axis=2).reshape(-1)
    shades = np.stack([shade1, shade2], axis=2).reshape(-1)

    colors = np.repeat(shades[:, None], 3, axis=1)
    colors[nodata] = NODATA_SHADE
    vertices[nodata, :, 2] = float(min_elevation)
    return vertices, colors, nodata


def hillshade_triangles(elevation: np.ndarray, min_elevation: float) -> List[ShadedTriangle]:
    """One ShadedTriangle per triangle; triangle_arrays is the bulk form."""
    E = np.asarray(elevation, float)
    rows, cols = E.shape
    if rows < 2 or cols < 2:
        return []

    shade1, shade2 = shade_grid(E)
    nodata = E == NODATA
    m = float(min_elevation)

    tris: List[ShadedTriangle] = []
    for i in range(rows - 1):
        for j in range(cols - 1):
            h, h_i = float(E[i, j]), float(E[i + 1, j])
            h_j, h_2 = float(E[i, j + 1]), float(E[i + 1, j + 1])

            # triangle 1
            if nodata[i, j] or nodata[i + 1, j] or nodata[i, j + 1]:
                tris.append(ShadedTriangle(
                    ((i + 1, j, m), (i, j, m), (i, j + 1, m)), NODATA_SHADE, True))
            else:
                s = float(shade1[i, j])
                tris.append(ShadedTriangle(
                    ((i + 1, j, h_i), (i, j, h), (i, j + 1, h_j)), (s, s, s)))

            # triangle 2
            if nodata[i + 1, j + 1] or nodata[i + 1, j] or nodata[i, j + 1]:
                tris.append(ShadedTriangle(
                    ((i + 1, j + 1, m), (i + 1, j, m), (i, j + 1, m)), NODATA_SHADE, True))
            else:
                s = float(shade2[i, j])
                tris.append(ShadedTriangle(
                    ((i + 1, j + 1, h_2), (i + 1, j, h_i), (i, j + 1, h_j)), (s, s, s)))
    return tris
