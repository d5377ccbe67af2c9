"""
lidarview <file>.txt <density> <building slope threshold>

Reads a LiDAR point cloud in las2txt form (-parse xyznrc), grids it,
finds ground vs. buildings and shows the result in a 3D viewer.

keys:
  s: toggle hill shade / ground view      p: toggle point cloud view
  +/-: raise/lower building slope threshold
  l/r, d/u, b/f: translate   x/X, y/Y, z/Z: rotate
  2/3: 2D / 3D projection    w: toggle wire/filled polygons
  c: cycle colormap   t: cycle return filter
  g, v, h, o: toggle ground, vegetation, buildings, other
  q: quit
"""

import argparse
import logging

from config import DEFAULT_POINT_DENSITY, DEFAULT_SLOPE_THRESHOLD, LOG_FORMAT
from errors import (
    CLIError, EmptyInputError, EmptyRasterError, InputFileError,
    InternalInvariantError, MalformedInputError
)
from gridding import gridify
from ground_model import GroundClassifier
from lidar_points import read_points_from_file
from viewer import LidarViewWindow, TerrainSession, ViewerController


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise CLIError(f"not an integer: {text!r}")
    if value <= 0:
        raise CLIError(f"must be positive: {value}")
    return value


def non_negative_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise CLIError(f"not a number: {text!r}")
    if not value >= 0.0 or value == float("inf"):
        raise CLIError(f"must be a finite number >= 0: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lidarview",
        description="Ground/building classification and hill shade of a LiDAR text dump."
    )
    parser.add_argument("file", help="Point file from las2txt -parse xyznrc")
    parser.add_argument("density", type=positive_int,
                        help=f"Average points per grid cell, e.g. {DEFAULT_POINT_DENSITY}")
    parser.add_argument("threshold", type=non_negative_float,
                        help=f"Building slope threshold, e.g. {DEFAULT_SLOPE_THRESHOLD}")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def load_session(path: str, point_density: int, threshold: float) -> TerrainSession:
    store = read_points_from_file(path)
    rasters = gridify(store, point_density)
    classifier = GroundClassifier(rasters, threshold)
    return TerrainSession(store=store, rasters=rasters, classifier=classifier)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT
    )

    try:
        session = load_session(args.file, args.density, args.threshold)
    except InputFileError as e:
        raise SystemExit(str(e))
    except (MalformedInputError, EmptyInputError, EmptyRasterError) as e:
        raise SystemExit(f"{args.file}: {e}")

    window = LidarViewWindow(ViewerController(session))
    try:
        window.show()
    except InternalInvariantError as e:
        logging.error(str(e))
        raise SystemExit(1)
    return 0


if __name__ == "__main__":
    main()
