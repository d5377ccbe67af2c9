import numpy as np
import pytest

from config import BUILDING, GROUND, NODATA, UNCLASSIFIED
from gridding import gridify
from ground_model import GroundClassifier, assign_mycodes, find_ground
from lidar_points import build_point_store


def test_flat_plane_is_all_ground(flat_plane):
    labels = find_ground(flat_plane, 0.1)
    assert labels.shape == flat_plane.shape
    assert np.all(labels == GROUND)


def test_ridge_is_building_flanks_are_ground(ridge):
    labels = find_ground(ridge, 0.5)
    assert np.all(labels[:, 3:6] == BUILDING)
    assert np.all(labels[:, :3] == GROUND)
    assert np.all(labels[:, 6:] == GROUND)


def test_courtyard_is_reseeded_as_ground(courtyard):
    # the enclosed low cell is only reachable by stepping down
    labels = find_ground(courtyard, 0.5)
    wall = courtyard == 10.0
    assert np.all(labels[wall] == BUILDING)
    assert labels[3, 3] == GROUND
    outer = np.ones_like(wall)
    outer[2:5, 2:5] = False
    assert np.all(labels[outer] == GROUND)


def test_nodata_cell_stays_unclassified(holed_plane):
    labels = find_ground(holed_plane, 0.5)
    assert labels[2, 2] == UNCLASSIFIED
    mask = holed_plane != NODATA
    assert np.all(labels[mask] == GROUND)


def test_large_threshold_makes_ridge_ground(ridge):
    assert np.any(find_ground(ridge, 0.5) == BUILDING)
    assert np.all(find_ground(ridge, 100.0) == GROUND)


def test_all_nodata_grid():
    labels = find_ground(np.full((4, 3), NODATA), 0.5)
    assert np.all(labels == UNCLASSIFIED)


def test_building_interior_inherits_building():
    # roof steps up again: still building, not a new ground seed
    g = np.array([[0.0, 10.0, 10.2, 13.0, 13.0]])
    labels = find_ground(g, 0.5)
    assert labels.tolist() == [[GROUND, BUILDING, BUILDING, BUILDING, BUILDING]]


def test_step_down_ends_branch():
    g = np.array([[0.0, 9.0, 0.0]])
    assert find_ground(g, 0.5).tolist() == [[GROUND, BUILDING, GROUND]]


def test_gentle_rise_stays_ground():
    g = np.array([[0.0, 0.3, 0.6, 0.9]])
    assert np.all(find_ground(g, 0.5) == GROUND)


def test_only_four_connected_neighbours():
    # the diagonal cell is lower but only reachable by a step down
    g = np.array([
        [0.0, 5.0],
        [5.0, 1.0],
    ])
    labels = find_ground(g, 0.5)
    assert labels.tolist() == [[GROUND, BUILDING], [BUILDING, GROUND]]


def _random_grid(seed, shape=(8, 9), holes=6):
    rng = np.random.default_rng(seed)
    g = np.round(rng.uniform(0.0, 3.0, size=shape), 2)
    idx = rng.choice(g.size, size=holes, replace=False)
    g.flat[idx] = NODATA
    return g


@pytest.mark.parametrize("seed", range(5))
def test_every_data_cell_is_labelled(seed):
    g = _random_grid(seed)
    for tau in (0.0, 0.2, 1.0, 5.0):
        labels = find_ground(g, tau)
        assert np.all(np.isin(labels[g != NODATA], (BUILDING, GROUND)))
        assert np.all(labels[g == NODATA] == UNCLASSIFIED)


@pytest.mark.parametrize("seed", range(5))
def test_same_input_same_labels(seed):
    g = _random_grid(seed)
    np.testing.assert_array_equal(find_ground(g, 0.4), find_ground(g, 0.4))


@pytest.mark.parametrize("seed", range(5))
def test_raising_threshold_never_adds_buildings(seed):
    g = _random_grid(seed)
    taus = [0.0, 0.05, 0.1, 0.3, 0.8, 2.0, 10.0]
    prev = find_ground(g, taus[0])
    for tau in taus[1:]:
        cur = find_ground(g, tau)
        assert not np.any((prev == GROUND) & (cur == BUILDING))
        prev = cur


def test_input_grid_is_not_modified(ridge):
    before = ridge.copy()
    find_ground(ridge, 0.5)
    np.testing.assert_array_equal(ridge, before)


_RIDGE_9 = np.zeros((9, 9))
_RIDGE_9[:, 3:6] = 10.0


def test_classifier_threshold_changes(lattice_rasters):
    rasters = lattice_rasters(_RIDGE_9)
    clf = GroundClassifier(rasters, 0.5)
    first = clf.is_ground.copy()
    assert np.any(first == BUILDING)

    clf.set_threshold(100.0)
    assert np.all(clf.is_ground == GROUND)

    clf.set_threshold(0.5)
    np.testing.assert_array_equal(clf.is_ground, first)


def test_classifier_threshold_not_negative(lattice_rasters):
    clf = GroundClassifier(lattice_rasters(_RIDGE_9), 0.05)
    clf.set_threshold(clf.building_slope_threshold - 0.05)
    clf.set_threshold(clf.building_slope_threshold - 0.05)
    assert clf.building_slope_threshold == 0.0


def test_assign_mycodes(grid_records, lattice_rasters):
    rasters = lattice_rasters(_RIDGE_9)
    store = build_point_store(grid_records(_RIDGE_9))
    clf = GroundClassifier(rasters, 0.5)
    codes = assign_mycodes(store, rasters, clf.is_ground)

    assert len(codes) == len(store)
    for p, code in zip(store, codes):
        if 3 <= p.x <= 5:
            assert code == 6
        else:
            assert code == 2


def test_mycodes_of_points_left_out_of_grid():
    store = build_point_store([
        (0.0, 0.0, 1.0, 1, 1, 2),
        (3.0, 1.0, 2.0, 1, 1, 2),
        (4.0, 4.0, 9.0, 1, 1, 2),
        (4.0, 0.0, 7.0, 1, 1, 2),
    ])
    rasters = gridify(store, 1)
    clf = GroundClassifier(rasters, 0.5)
    assert clf.is_ground.tolist() == [[GROUND, BUILDING], [UNCLASSIFIED, UNCLASSIFIED]]
    assert assign_mycodes(store, rasters, clf.is_ground).tolist() == [2, 6, 1, 1]
