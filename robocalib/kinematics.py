"""Rigid frames and rotation conversions used by the kinematic models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

_EPSILON = 1e-12


def _as_rotation(rotation) -> np.ndarray:
    matrix = np.asarray(rotation, dtype=float)
    if matrix.shape != (3, 3):
        raise ValueError(f"rotation must be a 3x3 matrix, got shape {matrix.shape}")
    return matrix


def _as_vector(vector) -> np.ndarray:
    array = np.asarray(vector, dtype=float).reshape(-1)
    if array.shape != (3,):
        raise ValueError(f"expected 3 components, got {array.size}")
    return array


@dataclass(eq=False)
class Frame:
    """A rigid transform: a rotation matrix followed by a translation."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = _as_rotation(self.rotation).copy()
        self.position = _as_vector(self.position).copy()

    @staticmethod
    def identity() -> "Frame":
        """Return the identity transform."""
        return Frame()

    def __mul__(self, other):
        if not isinstance(other, Frame):
            return NotImplemented
        return Frame(
            self.rotation @ other.rotation,
            self.rotation @ other.position + self.position,
        )

    def inverse(self) -> "Frame":
        """Return the transform that undoes this one."""
        rotation_t = self.rotation.T
        return Frame(rotation_t, -(rotation_t @ self.position))

    def transform_point(self, point: Sequence[float]) -> np.ndarray:
        """Apply the transform to a 3D point."""
        return self.rotation @ _as_vector(point) + self.position


def rotation_from_quaternion(x: float, y: float, z: float, w: float) -> np.ndarray:
    """Build a rotation matrix from quaternion components."""
    x2, y2, z2, w2 = x * x, y * y, z * z, w * w
    return np.array(
        [
            [w2 + x2 - y2 - z2, 2 * x * y - 2 * w * z, 2 * x * z + 2 * w * y],
            [2 * x * y + 2 * w * z, w2 - x2 + y2 - z2, 2 * y * z - 2 * w * x],
            [2 * x * z - 2 * w * y, 2 * y * z + 2 * w * x, w2 - x2 - y2 + z2],
        ]
    )


def quaternion_from_rotation(rotation) -> tuple[float, float, float, float]:
    """Return the quaternion (x, y, z, w) of a rotation matrix."""
    r = _as_rotation(rotation)
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > _EPSILON:
        s = 0.5 / math.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (r[2, 1] - r[1, 2]) * s
        y = (r[0, 2] - r[2, 0]) * s
        z = (r[1, 0] - r[0, 1]) * s
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = 2.0 * math.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2])
        w = (r[2, 1] - r[1, 2]) / s
        x = 0.25 * s
        y = (r[0, 1] + r[1, 0]) / s
        z = (r[0, 2] + r[2, 0]) / s
    elif r[1, 1] > r[2, 2]:
        s = 2.0 * math.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2])
        w = (r[0, 2] - r[2, 0]) / s
        x = (r[0, 1] + r[1, 0]) / s
        y = 0.25 * s
        z = (r[1, 2] + r[2, 1]) / s
    else:
        s = 2.0 * math.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1])
        w = (r[1, 0] - r[0, 1]) / s
        x = (r[0, 2] + r[2, 0]) / s
        y = (r[1, 2] + r[2, 1]) / s
        z = 0.25 * s
    return float(x), float(y), float(z), float(w)


def rotation_from_rpy(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Rotation about fixed X (roll), then fixed Y (pitch), then fixed Z (yaw)."""
    ca, sa = math.cos(yaw), math.sin(yaw)
    cb, sb = math.cos(pitch), math.sin(pitch)
    cg, sg = math.cos(roll), math.sin(roll)
    return np.array(
        [
            [ca * cb, ca * sb * sg - sa * cg, ca * sb * cg + sa * sg],
            [sa * cb, sa * sb * sg + ca * cg, sa * sb * cg - ca * sg],
            [-sb, cb * sg, cb * cg],
        ]
    )


def rpy_from_rotation(rotation) -> tuple[float, float, float]:
    """Return (roll, pitch, yaw) of a rotation matrix."""
    r = _as_rotation(rotation)
    pitch = math.atan2(-r[2, 0], math.sqrt(r[0, 0] ** 2 + r[1, 0] ** 2))
    if abs(pitch) > math.pi / 2.0 - _EPSILON:
        yaw = math.atan2(-r[0, 1], r[1, 1])
        roll = 0.0
    else:
        roll = math.atan2(r[2, 1], r[2, 2])
        yaw = math.atan2(r[1, 0], r[0, 0])
    return roll, pitch, yaw


def rotation_from_axis_magnitude(x: float, y: float, z: float) -> np.ndarray:
    """Rotation from an axis whose length is the rotation angle."""
    magnitude = math.sqrt(x * x + y * y + z * z)
    if magnitude == 0.0:
        return rotation_from_quaternion(0.0, 0.0, 0.0, 1.0)
    half_sin = math.sin(magnitude / 2.0)
    return rotation_from_quaternion(
        x / magnitude * half_sin,
        y / magnitude * half_sin,
        z / magnitude * half_sin,
        math.cos(magnitude / 2.0),
    )


def axis_magnitude_from_rotation(rotation) -> tuple[float, float, float]:
    """Axis scaled by rotation angle for a rotation matrix."""
    qx, qy, qz, qw = quaternion_from_rotation(rotation)
    if qw >= 1.0:
        return 0.0, 0.0, 0.0
    magnitude = 2.0 * math.acos(max(-1.0, qw))
    k = math.sqrt(1.0 - qw * qw)
    return (qx / k) * magnitude, (qy / k) * magnitude, (qz / k) * magnitude