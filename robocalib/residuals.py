"""Residual blocks comparing projected observations for calibration."""

from __future__ import annotations

import logging
import math
from typing import Protocol, Sequence

import numpy as np

from robocalib.kinematics import axis_magnitude_from_rotation
from robocalib.messages import CalibrationData, get_sensor_index
from robocalib.models import ChainModel, OffsetSource

_log = logging.getLogger(__name__)


class CalibrationOffsets(OffsetSource, Protocol):
    """Offsets that can be refreshed from a vector of free parameters."""

    def update(self, free_params: Sequence[float]) -> None:
        """Take new offset values from the optimiser's free parameters."""


def _feature_count(data: CalibrationData, model: ChainModel) -> int:
    index = get_sensor_index(data, model.name)
    if index is None:
        raise ValueError(
            f"Sensor name {model.name!r} doesn't match any of the existing finders"
        )
    return len(data.observations[index].features)


class Chain3dToChain3d:
    """Residual between two 3D projections of the same features.

    Gives three residuals (x, y, z differences) per observed feature.
    """

    def __init__(
        self,
        a_model: ChainModel,
        b_model: ChainModel,
        offsets: CalibrationOffsets,
        data: CalibrationData,
    ) -> None:
        self.num_residuals = 3 * _feature_count(data, a_model)
        self.a_model = a_model
        self.b_model = b_model
        self.offsets = offsets
        self.data = data

    def __call__(self, free_params: Sequence[float]) -> np.ndarray:
        self.offsets.update(free_params)
        a_pts = self.a_model.project(self.data, self.offsets)
        b_pts = self.b_model.project(self.data, self.offsets)
        if len(a_pts) != len(b_pts):
            raise ValueError("Observations do not match in size.")

        residuals = np.empty(3 * len(a_pts))
        for i, (a, b) in enumerate(zip(a_pts, b_pts)):
            if a.frame_id != b.frame_id:
                _log.warning("Projected observation frame_ids do not match.")
            residuals[3 * i : 3 * i + 3] = (
                a.point.x - b.point.x,
                a.point.y - b.point.y,
                a.point.z - b.point.z,
            )
        return residuals


class Chain3dToPlane:
    """Scaled distance of projected points from the plane ax + by + cz + d = 0."""

    def __init__(
        self,
        chain_model: ChainModel,
        offsets: CalibrationOffsets,
        data: CalibrationData,
        a: float = 0.0,
        b: float = 0.0,
        c: float = 1.0,
        d: float = 0.0,
        scale: float = 1.0,
    ) -> None:
        self.num_residuals = _feature_count(data, chain_model)
        self.chain_model = chain_model
        self.offsets = offsets
        self.data = data
        self.a, self.b, self.c, self.d = a, b, c, d

        denom = math.sqrt(a * a + b * b + c * c)
        if denom == 0.0:
            raise ValueError("Plane normal must not be zero")
        if abs(denom) < 0.1:
            _log.warning("Plane normal is extremely small: %s", denom)
        self.scale = scale / denom

    def __call__(self, free_params: Sequence[float]) -> np.ndarray:
        self.offsets.update(free_params)
        points = self.chain_model.project(self.data, self.offsets)
        return np.array(
            [
                abs(
                    self.a * p.point.x
                    + self.b * p.point.y
                    + self.c * p.point.z
                    + self.d
                )
                * self.scale
                for p in points
            ],
            dtype=float,
        )


class OutrageousError:
    """Penalty keeping a joint or frame offset from growing outrageously large.

    Gives seven residuals: the joint offset, three position offsets and the
    three components of the rotation offset in axis-magnitude form.
    """

    num_residuals = 7

    def __init__(
        self,
        offsets: CalibrationOffsets,
        name: str,
        joint_scaling: float = 1.0,
        position_scaling: float = 1.0,
        rotation_scaling: float = 1.0,
    ) -> None:
        self.offsets = offsets
        self.name = name
        self.joint = joint_scaling
        self.position = position_scaling
        self.rotation = rotation_scaling

    def __call__(self, free_params: Sequence[float]) -> np.ndarray:
        self.offsets.update(free_params)
        residuals = np.zeros(self.num_residuals)
        residuals[0] = self.joint * self.offsets.get(self.name)
        frame = self.offsets.get_frame(self.name)
        if frame is not None:
            residuals[1:4] = self.position * frame.position
            axis = axis_magnitude_from_rotation(frame.rotation)
            residuals[4:7] = [self.rotation * abs(v) for v in axis]
        return residuals