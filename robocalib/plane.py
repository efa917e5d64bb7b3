"""Point cloud helpers: centroid and best-fit plane."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from robocalib.messages import PointStamped


def get_matrix(points: Sequence[PointStamped]) -> np.ndarray:
    """Stack points as the columns of a 3xN matrix."""
    matrix = np.empty((3, len(points)))
    for column, stamped in enumerate(points):
        matrix[:, column] = (stamped.point.x, stamped.point.y, stamped.point.z)
    return matrix


def get_centroid(points) -> np.ndarray:
    """Mean of the columns of a 3xN matrix."""
    matrix = np.asarray(points, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != 3:
        raise ValueError("points must be a 3xN matrix")
    if matrix.shape[1] == 0:
        raise ValueError("cannot take the centroid of no points")
    return matrix.mean(axis=1)


def get_plane(points) -> tuple[np.ndarray, float]:
    """Fit a plane ax + by + cz + d = 0 to a 3xN matrix.

    Returns the unit normal (a, b, c) and d, with the normal oriented so
    that d is never negative.
    """
    matrix = np.asarray(points, dtype=float)
    centroid = get_centroid(matrix)
    centered = matrix - centroid[:, np.newaxis]
    u, _, _ = np.linalg.svd(centered, full_matrices=False)
    normal = u[:, -1].copy()
    d = -float(normal @ centroid)
    if d < 0:
        d = -d
        normal = -normal
    return normal, d