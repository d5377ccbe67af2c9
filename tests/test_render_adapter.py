import numpy as np
import pytest

from config import (
    BROWN, BUILDING, CODE_COLORS, GREEN, GROUND, MAGENTA, NODATA_SHADE,
    UNCLASSIFIED, WHITE, YELLOW
)
from errors import InternalInvariantError
from gridding import Rasters
from lidar_points import BoundingBox, WhichReturn, build_point_store
from render_adapter import (
    ColorMap, color_by_code, ground_view, hillshade_view, point_cloud_view, point_colors
)


def _rasters(grid, min_elevation):
    grid = np.asarray(grid, float)
    return Rasters(grid.copy(), grid.copy(), min_elevation, 1.0, 0.0, 0.0)


def test_hillshade_view_in_display_cube():
    g = np.array([[0.0, 1.0, 2.0], [1.0, 2.0, 4.0], [0.0, 0.0, 1.0]])
    bounds = BoundingBox(0, 2, 0, 2, 0.0, 4.0)
    batch = hillshade_view(_rasters(g, 0.0), bounds)
    assert len(batch) == 8
    assert batch.vertices.shape == (8, 3, 3)
    assert np.all(np.abs(batch.vertices[..., :2]) <= 1.0)
    assert np.all(np.abs(batch.vertices[..., 2]) <= 1.0 / 1.5 + 1e-12)
    assert not batch.nodata.any()
    # the first triangle's first vertex is (i+1, j) = (1, 0)
    np.testing.assert_allclose(batch.vertices[0, 0, :2], [-1 + 2 / 3, -1.0])


def test_hillshade_view_marks_nodata(holed_plane):
    bounds = BoundingBox(0, 4, 0, 4, -1.0, 1.0)
    batch = hillshade_view(_rasters(holed_plane, 0.0), bounds)
    assert batch.nodata.sum() == 6
    np.testing.assert_allclose(batch.colors[batch.nodata], [NODATA_SHADE] * 6)
    # lifted to min_elevation = 0 -> z_screen 0
    np.testing.assert_allclose(batch.vertices[batch.nodata][..., 2], 0.0)


def test_ground_view_colors(holed_plane):
    labels = np.full(holed_plane.shape, GROUND, dtype=np.int8)
    labels[0, 0] = BUILDING
    labels[4, 4] = UNCLASSIFIED
    labels[2, 2] = UNCLASSIFIED
    bounds = BoundingBox(0, 4, 0, 4, -2.0, 2.0)
    batch = ground_view(_rasters(holed_plane, -2.0), labels, bounds)

    assert len(batch) == 25
    cols = batch.colors.reshape(5, 5, 3)
    np.testing.assert_allclose(cols[0, 0], WHITE)
    np.testing.assert_allclose(cols[4, 4], GREEN)
    np.testing.assert_allclose(cols[1, 1], BROWN)
    np.testing.assert_allclose(cols[2, 2], MAGENTA)

    xyz = batch.xyz.reshape(5, 5, 3)
    # nodata point sits at min_elevation
    assert xyz[2, 2, 2] == pytest.approx(-1.0 / 1.5)
    assert xyz[1, 1, 2] == pytest.approx(0.0)
    np.testing.assert_allclose(xyz[0, 0, :2], [-1.0, -1.0])
    np.testing.assert_allclose(xyz[4, 0, :2], [-1 + 8 / 5, -1.0])


def test_color_by_code_table():
    cols = color_by_code(np.array([0, 2, 6, 18]))
    np.testing.assert_allclose(cols, [CODE_COLORS[0], CODE_COLORS[2], CODE_COLORS[6], CODE_COLORS[18]])


@pytest.mark.parametrize("code", [19, 31, -1])
def test_unknown_code_is_internal_error(code):
    with pytest.raises(InternalInvariantError):
        color_by_code(np.array([2, code]))


def test_each_colormap_uses_its_own_handler():
    codes = np.array([2, 6])
    mycodes = np.array([6, 2])
    np.testing.assert_allclose(point_colors(ColorMap.ONE_COLOR, codes, mycodes), [YELLOW, YELLOW])
    np.testing.assert_allclose(point_colors(ColorMap.CODE_COLOR, codes, mycodes),
                               [CODE_COLORS[2], CODE_COLORS[6]])
    np.testing.assert_allclose(point_colors(ColorMap.MYCODE_COLOR, codes, mycodes),
                               [CODE_COLORS[6], CODE_COLORS[2]])


def test_unknown_colormap_is_internal_error():
    with pytest.raises(InternalInvariantError):
        point_colors(7, np.array([2]), None)


@pytest.fixture
def cloud():
    return build_point_store([
        (0, 0, 0, 1, 1, 2),
        (10, 0, 9, 2, 1, 5),
        (10, 0, 1, 2, 2, 2),
        (0, 10, 8, 1, 1, 6),
        (5, 5, 4, 1, 1, 9),
    ])


def test_point_cloud_view_all(cloud):
    batch = point_cloud_view(cloud)
    assert len(batch) == 5
    np.testing.assert_allclose(batch.xyz[0], [-1.0, -1.0, -1.0 / 1.5])
    np.testing.assert_allclose(batch.xyz[4, :2], [0.0, 0.0])
    np.testing.assert_allclose(batch.colors, [YELLOW] * 5)


def test_point_cloud_view_filters(cloud):
    assert len(point_cloud_view(cloud, which_return=WhichReturn.FIRST_RETURN)) == 4
    assert len(point_cloud_view(cloud, which_return=WhichReturn.LAST_RETURN)) == 4
    assert len(point_cloud_view(cloud, which_return=WhichReturn.MORE_THAN_ONE_RETURN)) == 2
    assert len(point_cloud_view(cloud, ground=False)) == 3
    assert len(point_cloud_view(cloud, vegetation=False, other=False)) == 3
    batch = point_cloud_view(cloud, ColorMap.CODE_COLOR, building=False, other=False)
    np.testing.assert_allclose(batch.colors, [CODE_COLORS[2], CODE_COLORS[5], CODE_COLORS[2]])


def test_point_cloud_view_mycodes(cloud):
    mycodes = np.array([2, 6, 2, 6, 1])
    batch = point_cloud_view(cloud, ColorMap.MYCODE_COLOR, WhichReturn.FIRST_RETURN, mycodes)
    np.testing.assert_allclose(batch.colors, [CODE_COLORS[2], CODE_COLORS[6],
                                              CODE_COLORS[6], CODE_COLORS[1]])


def test_point_cloud_view_bad_code_raises():
    store = build_point_store([(0, 0, 0, 1, 1, 2), (1, 1, 1, 1, 1, 42)])
    with pytest.raises(InternalInvariantError):
        point_cloud_view(store, ColorMap.CODE_COLOR)
