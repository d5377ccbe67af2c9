"""
Point records read from a las2txt dump and the bounding box around them.

The text file must be produced with the parse pattern ``xyznrc``:

    las2txt -i file.las -o file.txt -parse xyznrc

i.e. one point per line, ``x y z nb_of_returns return_number code``.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from config import CODE_BUILDING, CODE_GROUND, CODES_VEGETATION
from errors import EmptyInputError, InputFileError, MalformedInputError

N_FIELDS = 6


@dataclass(frozen=True)
class LidarPoint:
    x: float
    y: float
    z: float
    nb_of_returns: int      # how many returns this pulse has
    return_number: int      # the number of this return
    code: int               # classification code read from file
    mycode: int = 0         # classification code assigned by us


@dataclass
class BoundingBox:
    minx: float
    maxx: float
    miny: float
    maxy: float
    minz: float
    maxz: float

    @classmethod
    def from_point(cls, p: LidarPoint) -> "BoundingBox":
        return cls(p.x, p.x, p.y, p.y, p.z, p.z)

    def extend(self, p: LidarPoint) -> None:
        if p.x < self.minx:
            self.minx = p.x
        if p.x > self.maxx:
            self.maxx = p.x
        if p.y < self.miny:
            self.miny = p.y
        if p.y > self.maxy:
            self.maxy = p.y
        if p.z < self.minz:
            self.minz = p.z
        if p.z > self.maxz:
            self.maxz = p.z

    @property
    def width(self) -> float:
        return self.maxx - self.minx

    @property
    def height(self) -> float:
        return self.maxy - self.miny

    def contains(self, p: LidarPoint) -> bool:
        return (self.minx <= p.x <= self.maxx and
                self.miny <= p.y <= self.maxy and
                self.minz <= p.z <= self.maxz)


class PointStore:
    """Ordered, read-only collection of points plus their bounding box."""

    def __init__(self, points: Sequence[LidarPoint], bounds: BoundingBox):
        self._points = tuple(points)
        self.bounds = bounds
        self._arrays = None

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[LidarPoint]:
        return iter(self._points)

    def __getitem__(self, idx: int) -> LidarPoint:
        return self._points[idx]

    @property
    def points(self) -> Tuple[LidarPoint, ...]:
        return self._points

    def column(self, name: str) -> np.ndarray:
        """One field of every point as a numpy array (cached)."""
        if self._arrays is None:
            pts = self._points
            self._arrays = {
                "x": np.fromiter((p.x for p in pts), float, len(pts)),
                "y": np.fromiter((p.y for p in pts), float, len(pts)),
                "z": np.fromiter((p.z for p in pts), float, len(pts)),
                "nb_of_returns": np.fromiter((p.nb_of_returns for p in pts), int, len(pts)),
                "return_number": np.fromiter((p.return_number for p in pts), int, len(pts)),
                "code": np.fromiter((p.code for p in pts), int, len(pts)),
            }
        return self._arrays[name]


# ===== Ingest =====

def _to_point(record) -> LidarPoint:
    if isinstance(record, LidarPoint):
        return record
    try:
        fields = tuple(record)
    except TypeError:
        raise MalformedInputError(f"record is not a sequence: {record!r}")
    if len(fields) < N_FIELDS:
        raise MalformedInputError(
            f"record has {len(fields)} fields, expected {N_FIELDS}: {record!r}"
        )
    x, y, z, nr, rn, code = fields[:N_FIELDS]
    try:
        return LidarPoint(float(x), float(y), float(z), int(nr), int(rn), int(code))
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"bad record {record!r}: {e}") from e


def build_point_store(records: Iterable) -> PointStore:
    points: List[LidarPoint] = []
    bounds: Optional[BoundingBox] = None
    for rec in records:
        p = _to_point(rec)
        points.append(p)
        # bounds start at the first point, not at +/- inf
        if bounds is None:
            bounds = BoundingBox.from_point(p)
        else:
            bounds.extend(p)

    if bounds is None:
        raise EmptyInputError("no points in input")
    return PointStore(points, bounds)


def parse_point_lines(lines: Iterable[str]) -> Iterator[Tuple[float, float, float, int, int, int]]:
    """
    Yields (x, y, z, nb_of_returns, return_number, code) per line. Stops at
    the first line that does not hold six numeric fields; blank lines are
    skipped.
    """
    for lineno, line in enumerate(lines, start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) < N_FIELDS:
            logging.warning(f"Line {lineno}: {len(parts)} fields, stopping read")
            return
        try:
            rec = (float(parts[0]), float(parts[1]), float(parts[2]),
                   int(parts[3]), int(parts[4]), int(parts[5]))
        except ValueError:
            logging.warning(f"Line {lineno}: not a point record, stopping read")
            return
        yield rec


def read_points_from_file(fname: str) -> PointStore:
    try:
        f = open(fname, "r", encoding="ascii", errors="replace")
    except OSError as e:
        raise InputFileError(f"cannot open file {fname}") from e

    with f:
        store = build_point_store(parse_point_lines(f))

    b = store.bounds
    logging.info(
        f"total {len(store)} points in  [{b.minx:f}, {b.maxx:f}], "
        f"[{b.miny:f},{b.maxy:f}], [{b.minz:f},{b.maxz:f}]"
    )
    return store


# ===== Filters =====

class WhichReturn(IntEnum):
    ALL_RETURN = 0
    FIRST_RETURN = 1
    LAST_RETURN = 2
    MORE_THAN_ONE_RETURN = 3


RETURN_FILTER_NAMES = {
    WhichReturn.ALL_RETURN: "draw all returns",
    WhichReturn.FIRST_RETURN: "draw only first return (i.e. points with return_number=1)",
    WhichReturn.LAST_RETURN: "draw only last return (i.e. points with return_number = number_of_returns)",
    WhichReturn.MORE_THAN_ONE_RETURN: "draw only points that have >1 returns",
}


def return_mask(store: PointStore, which: WhichReturn) -> np.ndarray:
    rn = store.column("return_number")
    nr = store.column("nb_of_returns")
    if which == WhichReturn.ALL_RETURN:
        return np.ones(len(store), dtype=bool)
    if which == WhichReturn.FIRST_RETURN:
        return rn == 1
    if which == WhichReturn.LAST_RETURN:
        return rn == nr
    if which == WhichReturn.MORE_THAN_ONE_RETURN:
        return nr > 1
    raise ValueError(f"unknown return filter {which!r}")


def class_mask(store: PointStore, ground: bool = True, vegetation: bool = True,
               building: bool = True, other: bool = True) -> np.ndarray:
    code = store.column("code")
    is_ground = code == CODE_GROUND
    is_veg = np.isin(code, CODES_VEGETATION)
    is_bldg = code == CODE_BUILDING
    is_other = ~(is_ground | is_veg | is_bldg)

    keep = np.zeros(len(store), dtype=bool)
    if ground:
        keep |= is_ground
    if vegetation:
        keep |= is_veg
    if building:
        keep |= is_bldg
    if other:
        keep |= is_other
    return keep
