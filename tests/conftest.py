import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from config import NODATA
from gridding import Rasters


def _grid_records(z, return_number=1, nb_of_returns=1, code=2):
    """One point per cell at (x=col, y=row); NODATA cells get no point."""
    z = np.asarray(z, float)
    recs = []
    for i in range(z.shape[0]):
        for j in range(z.shape[1]):
            if z[i, j] == NODATA:
                continue
            recs.append((float(j), float(i), float(z[i, j]), nb_of_returns, return_number, code))
    return recs


@pytest.fixture
def grid_records():
    return _grid_records


def _lattice_rasters(z):
    """Rasters with one unit cell per grid entry, matching _grid_records points."""
    z = np.asarray(z, float)
    data = z[z != NODATA]
    return Rasters(z.copy(), z.copy(), float(data.min()), 1.0, 0.0, 0.0)


@pytest.fixture
def lattice_rasters():
    return _lattice_rasters


@pytest.fixture
def write_points(tmp_path):
    def _write(lines, name="points.txt"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="ascii")
        return str(path)
    return _write


@pytest.fixture
def flat_plane():
    return np.full((10, 10), 5.0)


@pytest.fixture
def ridge():
    g = np.zeros((5, 9))
    g[:, 3:6] = 10.0
    return g


@pytest.fixture
def courtyard():
    g = np.zeros((7, 7))
    g[2:5, 2:5] = 10.0
    g[3, 3] = 0.0
    return g


@pytest.fixture
def holed_plane():
    g = np.zeros((5, 5))
    g[2, 2] = NODATA
    return g
