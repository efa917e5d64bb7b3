import numpy as np
import pytest

from robocalib.messages import Point, PointStamped
from robocalib.plane import get_centroid, get_matrix, get_plane


def stamped(x, y, z):
    return PointStamped(Point(x, y, z), "base_link")


def test_get_matrix_columns_are_points():
    matrix = get_matrix([stamped(1, 2, 3), stamped(4, 5, 6)])
    assert matrix.shape == (3, 2)
    assert np.array_equal(matrix[:, 0], [1, 2, 3])
    assert np.array_equal(matrix[:, 1], [4, 5, 6])


def test_centroid_is_mean_of_points():
    matrix = get_matrix([stamped(0, 0, 0), stamped(2, 4, 6)])
    assert np.allclose(get_centroid(matrix), [1, 2, 3])


def test_centroid_of_nothing_is_error():
    with pytest.raises(ValueError):
        get_centroid(np.empty((3, 0)))


def test_centroid_requires_three_rows():
    with pytest.raises(ValueError):
        get_centroid(np.zeros((2, 4)))


def test_horizontal_plane():
    points = [stamped(x, y, 1.0) for x in (0.0, 1.0, 2.0) for y in (0.0, 1.0)]
    normal, d = get_plane(get_matrix(points))
    assert d == pytest.approx(1.0)
    assert abs(normal[2]) == pytest.approx(1.0)


def test_tilted_plane_fits_all_points():
    rng = np.random.default_rng(3)
    true_normal = np.array([1.0, -2.0, 0.5])
    true_normal /= np.linalg.norm(true_normal)
    basis = np.linalg.svd(true_normal[np.newaxis, :])[2][1:]
    coeffs = rng.uniform(-1, 1, size=(20, 2))
    points = (coeffs @ basis) + true_normal * -0.75
    normal, d = get_plane(points.T)
    assert d >= 0
    assert np.linalg.norm(normal) == pytest.approx(1.0)
    assert np.allclose(points @ normal + d, 0.0, atol=1e-9)
    assert abs(normal @ true_normal) == pytest.approx(1.0)


def test_plane_through_origin_side_is_consistent():
    points = np.array([[0.0, 1.0, 0.0, 1.0], [0.0, 0.0, 1.0, 1.0], [-2.0, -2.0, -2.0, -2.0]])
    normal, d = get_plane(points)
    assert d == pytest.approx(2.0)
    assert np.allclose(normal @ points + d, 0.0)