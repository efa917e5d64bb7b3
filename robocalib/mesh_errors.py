"""Residual blocks fitting projected points to a mesh or to another plane."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from robocalib.messages import CalibrationData
from robocalib.models import ChainModel
from robocalib.plane import get_centroid, get_matrix, get_plane
from robocalib.residuals import CalibrationOffsets, _feature_count


@dataclass(eq=False)
class Mesh:
    """A triangle mesh: an (N, 3) array of vertices and (M, 3) vertex indices."""

    vertices: np.ndarray
    triangles: np.ndarray

    def __post_init__(self) -> None:
        vertices = np.asarray(self.vertices, dtype=float)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError("vertices must be an (N, 3) array")
        triangles = np.asarray(self.triangles, dtype=int)
        if triangles.size == 0:
            triangles = triangles.reshape(0, 3)
        if triangles.ndim != 2 or triangles.shape[1] != 3:
            raise ValueError("triangles must be an (M, 3) array of vertex indices")
        if triangles.size and (triangles.min() < 0 or triangles.max() >= len(vertices)):
            raise ValueError("triangle refers to a vertex that does not exist")
        self.vertices = vertices
        self.triangles = triangles

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def edges(self) -> tuple[np.ndarray, np.ndarray]:
        """Start and end points of every triangle edge (A-B, B-C, C-A)."""
        a = self.vertices[self.triangles[:, 0]]
        b = self.vertices[self.triangles[:, 1]]
        c = self.vertices[self.triangles[:, 2]]
        return np.concatenate([a, b, c]), np.concatenate([b, c, a])


def dist_to_line(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """Squared distance from point ``c`` to the line segment ``a``-``b``."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    ab = b - a
    ac = c - a
    bc = c - b

    e = float(ac @ ab)
    if e <= 0.0:
        return float(ac @ ac)
    f = float(ab @ ab)
    if e >= f:
        return float(bc @ bc)
    return float(ac @ ac) - e * e / f


def _squared_segment_distances(
    starts: np.ndarray, ends: np.ndarray, point: np.ndarray
) -> np.ndarray:
    """Vectorised form of :func:`dist_to_line` over many segments."""
    ab = ends - starts
    ac = point - starts
    bc = point - ends
    e = np.einsum("ij,ij->i", ac, ab)
    f = np.einsum("ij,ij->i", ab, ab)
    ac_sq = np.einsum("ij,ij->i", ac, ac)
    bc_sq = np.einsum("ij,ij->i", bc, bc)
    safe_f = np.where(f > 0.0, f, 1.0)
    between = ac_sq - e * e / safe_f
    return np.where(e <= 0.0, ac_sq, np.where(e >= f, bc_sq, between))


class Chain3dToMesh:
    """Distance from each projected point to the nearest edge of a mesh."""

    def __init__(
        self,
        chain_model: ChainModel,
        offsets: CalibrationOffsets,
        data: CalibrationData,
        mesh: Mesh,
    ) -> None:
        self.num_residuals = _feature_count(data, chain_model)
        self.chain_model = chain_model
        self.offsets = offsets
        self.data = data
        self.mesh = mesh
        self._starts, self._ends = mesh.edges()

    def __call__(self, free_params: Sequence[float]) -> np.ndarray:
        self.offsets.update(free_params)
        points = self.chain_model.project(self.data, self.offsets)
        residuals = np.empty(len(points))
        for i, stamped in enumerate(points):
            p = np.array([stamped.point.x, stamped.point.y, stamped.point.z])
            if len(self._starts):
                dist = float(_squared_segment_distances(self._starts, self._ends, p).min())
            else:
                dist = sys.float_info.max
            residuals[i] = np.sqrt(dist)
        return residuals


class PlaneToPlaneError:
    """Mismatch between planes fitted to two models' projected points.

    Gives four residuals: the three normal differences scaled by
    ``scale_normal`` and the distance of the first centroid from the second
    plane scaled by ``scale_offset``.
    """

    num_residuals = 4

    def __init__(
        self,
        model_a: ChainModel,
        model_b: ChainModel,
        offsets: CalibrationOffsets,
        data: CalibrationData,
        scale_normal: float = 1.0,
        scale_offset: float = 1.0,
    ) -> None:
        self.model_a = model_a
        self.model_b = model_b
        self.offsets = offsets
        self.data = data
        self.scale_normal = scale_normal
        self.scale_offset = scale_offset

    def __call__(self, free_params: Sequence[float]) -> np.ndarray:
        self.offsets.update(free_params)

        matrix_a = get_matrix(self.model_a.project(self.data, self.offsets))
        normal_a, _ = get_plane(matrix_a)

        matrix_b = get_matrix(self.model_b.project(self.data, self.offsets))
        normal_b, d_b = get_plane(matrix_b)

        residuals = np.empty(self.num_residuals)
        residuals[0:3] = np.abs(normal_a - normal_b) * self.scale_normal
        centroid_a = get_centroid(matrix_a)
        residuals[3] = abs(float(normal_b @ centroid_a) + d_b) * self.scale_offset
        return residuals