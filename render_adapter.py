"""
Turns rasters, labels and points into drawable primitives in the [-1, 1]
display cube. Nothing here touches the render backend.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

from config import (
    NODATA, MAGENTA, YELLOW, LABEL_COLORS, CODE_COLORS, MAX_KNOWN_CODE, UNCLASSIFIED
)
from errors import InternalInvariantError
from geometry_utils import xtoscreen, ytoscreen, ztoscreen, world_to_screen
from gridding import Rasters
from hillshade import triangle_arrays
from lidar_points import BoundingBox, PointStore, WhichReturn, class_mask, return_mask


@dataclass
class TriangleBatch:
    vertices: np.ndarray    # (n, 3, 3) screen coordinates
    colors: np.ndarray      # (n, 3) raw shade, may be negative
    nodata: np.ndarray      # (n,) triangles lifted to min_elevation

    def __len__(self):
        return len(self.vertices)


@dataclass
class PointBatch:
    xyz: np.ndarray         # (n, 3) screen coordinates
    colors: np.ndarray      # (n, 3)

    def __len__(self):
        return len(self.xyz)


# ===== Hill shade view =====

def hillshade_view(rasters: Rasters, bounds: BoundingBox) -> TriangleBatch:
    elevation = rasters.first_returns_mean
    num_rows, num_cols = elevation.shape
    raw, colors, nodata = triangle_arrays(elevation, rasters.min_elevation)

    verts = np.empty_like(raw)
    verts[..., 0] = xtoscreen(raw[..., 0], num_cols)
    verts[..., 1] = ytoscreen(raw[..., 1], num_rows)
    verts[..., 2] = ztoscreen(raw[..., 2], bounds.minz, bounds.maxz)
    return TriangleBatch(verts, colors, nodata)


# ===== Ground view =====

def ground_view(rasters: Rasters, is_ground: np.ndarray, bounds: BoundingBox) -> PointBatch:
    last_grid = rasters.last_returns_mean
    num_rows, num_cols = last_grid.shape
    I, J = np.meshgrid(np.arange(num_rows), np.arange(num_cols), indexing="ij")

    nodata = last_grid == NODATA
    h = np.where(nodata, rasters.min_elevation, last_grid)

    colors = np.empty((num_rows, num_cols, 3), dtype=float)
    colors[...] = LABEL_COLORS[UNCLASSIFIED]
    for label, col in LABEL_COLORS.items():
        colors[is_ground == label] = col
    colors[nodata] = MAGENTA

    xyz = np.stack([
        xtoscreen(I, num_cols),
        ytoscreen(J, num_rows),
        ztoscreen(h, bounds.minz, bounds.maxz),
    ], axis=-1)
    return PointBatch(xyz.reshape(-1, 3), colors.reshape(-1, 3))


# ===== Point cloud view / colormaps =====

class ColorMap(IntEnum):
    ONE_COLOR = 0
    CODE_COLOR = 1
    MYCODE_COLOR = 2


COLORMAP_NAMES = {
    ColorMap.ONE_COLOR: "one color",
    ColorMap.CODE_COLOR: "by code",
    ColorMap.MYCODE_COLOR: "by mycode",
}


def color_one(codes: np.ndarray) -> np.ndarray:
    return np.tile(np.asarray(YELLOW, float), (len(codes), 1))


def color_by_code(codes: np.ndarray) -> np.ndarray:
    codes = np.asarray(codes, int)
    bad = (codes < 0) | (codes > MAX_KNOWN_CODE)
    if bad.any():
        raise InternalInvariantError(
            f"panic: encountered unknown code {int(codes[bad][0])}"
        )
    table = np.array([CODE_COLORS[c] for c in range(MAX_KNOWN_CODE + 1)], dtype=float)
    return table[codes]


def point_colors(colormap: ColorMap, codes: np.ndarray, mycodes: Optional[np.ndarray]) -> np.ndarray:
    if colormap == ColorMap.ONE_COLOR:
        return color_one(codes)
    if colormap == ColorMap.CODE_COLOR:
        return color_by_code(codes)
    if colormap == ColorMap.MYCODE_COLOR:
        if mycodes is None:
            mycodes = np.zeros(len(codes), dtype=int)
        return color_by_code(mycodes)
    raise InternalInvariantError(f"unknown colormap option {colormap!r}")


def point_cloud_view(store: PointStore, colormap: ColorMap = ColorMap.ONE_COLOR,
                     which_return: WhichReturn = WhichReturn.ALL_RETURN,
                     mycodes: Optional[np.ndarray] = None,
                     **class_toggles) -> PointBatch:
    b = store.bounds
    keep = return_mask(store, which_return) & class_mask(store, **class_toggles)

    xyz = np.column_stack([
        world_to_screen(store.column("x")[keep], b.minx, b.maxx),
        world_to_screen(store.column("y")[keep], b.miny, b.maxy),
        ztoscreen(store.column("z")[keep], b.minz, b.maxz),
    ])
    sel_mycodes = mycodes[keep] if mycodes is not None else None
    colors = point_colors(colormap, store.column("code")[keep], sel_mycodes)
    return PointBatch(xyz.reshape(-1, 3), colors.reshape(-1, 3))
