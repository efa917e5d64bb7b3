"""Calibration data records and lookup helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from robocalib.camera_info import CameraInfo


@dataclass
class Point:
    """A point in 3D space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class PointStamped:
    """A point tagged with the frame it is expressed in."""

    point: Point = field(default_factory=Point)
    frame_id: str = ""


@dataclass
class JointState:
    """Joint names with their positions, index aligned."""

    name: list[str] = field(default_factory=list)
    position: list[float] = field(default_factory=list)


@dataclass
class CameraParameter:
    """A named driver parameter of a depth camera."""

    name: str = ""
    value: float = 0.0


@dataclass
class ExtendedCameraInfo:
    """Camera intrinsics plus driver parameters such as depth scaling."""

    camera_info: CameraInfo = field(default_factory=CameraInfo)
    parameters: list[CameraParameter] = field(default_factory=list)


@dataclass
class Observation:
    """Features seen by one sensor."""

    sensor_name: str = ""
    features: list[PointStamped] = field(default_factory=list)
    ext_camera_info: ExtendedCameraInfo = field(default_factory=ExtendedCameraInfo)


@dataclass
class CalibrationData:
    """One captured sample: joint states and the observations made there."""

    joint_states: JointState = field(default_factory=JointState)
    observations: list[Observation] = field(default_factory=list)


def get_sensor_index(msg: CalibrationData, sensor: str) -> Optional[int]:
    """Index of the first observation from ``sensor``, or None if absent."""
    return next(
        (i for i, obs in enumerate(msg.observations) if obs.sensor_name == sensor),
        None,
    )


def has_sensor(msg: CalibrationData, sensor: str) -> bool:
    """Whether the sample holds an observation from ``sensor``."""
    return get_sensor_index(msg, sensor) is not None