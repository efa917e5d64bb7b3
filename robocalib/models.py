"""Kinematic chain models that project sensor observations into a root frame."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Sequence

import numpy as np

from robocalib.camera_info import P_CX_INDEX, P_CY_INDEX, P_FX_INDEX, P_FY_INDEX
from robocalib.kinematics import Frame, rotation_from_axis_magnitude
from robocalib.messages import (
    CalibrationData,
    JointState,
    Point,
    PointStamped,
    get_sensor_index,
)

_log = logging.getLogger(__name__)


class OffsetSource(Protocol):
    """Anything that supplies calibration offsets for joints and frames."""

    def get(self, name: str) -> float:
        """Offset of a single parameter, 0.0 when it is not calibrated."""

    def get_frame(self, name: str) -> Optional[Frame]:
        """Frame correction for ``name``, or None when there is none."""


class JointType(Enum):
    """Kinds of joint a segment can carry."""

    NONE = "none"
    ROTATIONAL = "rotational"
    TRANSLATIONAL = "translational"


@dataclass
class Joint:
    """A joint with its axis and origin expressed in the parent frame."""

    name: str
    type: JointType = JointType.NONE
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    def __post_init__(self) -> None:
        self.origin = np.asarray(self.origin, dtype=float).reshape(3).copy()
        axis = np.asarray(self.axis, dtype=float).reshape(3)
        norm = float(np.linalg.norm(axis))
        if self.type is not JointType.NONE and norm == 0.0:
            raise ValueError(f"joint {self.name!r} needs a non-zero axis")
        self.axis = axis / norm if norm else axis.copy()

    def pose(self, q: float) -> Frame:
        """Transform produced by the joint at position ``q``."""
        if self.type is JointType.ROTATIONAL:
            rotation = rotation_from_axis_magnitude(*(self.axis * q))
            return Frame(rotation, self.origin - rotation @ self.origin)
        if self.type is JointType.TRANSLATIONAL:
            return Frame(position=self.origin + self.axis * q)
        return Frame.identity()


@dataclass
class Segment:
    """A link of a chain: a joint followed by a fixed transform to the tip.

    ``tip`` is the transform from the segment base to its tip when the
    joint is at zero.
    """

    name: str
    joint: Joint
    tip: Frame = field(default_factory=Frame.identity)

    def __post_init__(self) -> None:
        self._joint_to_tip = self.joint.pose(0.0).inverse() * self.tip

    def pose(self, q: float) -> Frame:
        """Transform from segment base to tip with the joint at ``q``."""
        return self.joint.pose(q) * self._joint_to_tip

    def frame_to_tip(self) -> Frame:
        """Transform from segment base to tip with the joint at zero."""
        return self.tip


class KinematicTree:
    """Links connected by segments, rooted at a single link."""

    def __init__(self, root: str) -> None:
        self.root = root
        self._parents: dict[str, tuple[str, Segment]] = {}

    @property
    def links(self) -> list[str]:
        """Names of all links, root first."""
        return [self.root, *self._parents]

    def add_segment(self, parent: str, child: str, segment: Segment) -> None:
        """Attach ``segment`` between an existing ``parent`` and a new ``child`` link."""
        if parent != self.root and parent not in self._parents:
            raise ValueError(f"parent link {parent!r} is not in the tree")
        if child == self.root or child in self._parents:
            raise ValueError(f"link {child!r} is already in the tree")
        self._parents[child] = (parent, segment)

    def get_chain(self, root: str, tip: str) -> list[Segment]:
        """Segments leading from ``root`` down to ``tip``, in order."""
        segments: list[Segment] = []
        link = tip
        while link != root:
            entry = self._parents.get(link)
            if entry is None:
                raise ValueError(f"no chain from {root!r} to {tip!r}")
            link, segment = entry
            segments.append(segment)
        segments.reverse()
        return segments


def position_from_msg(name: str, msg: JointState) -> float:
    """Position of joint ``name`` in ``msg``; 0.0 when the joint is missing."""
    for joint_name, position in zip(msg.name, msg.position):
        if joint_name == name:
            return position
    _log.warning("Unable to find %s in joint state", name)
    return 0.0


class ChainModel:
    """A kinematic chain that transforms observations into its root frame."""

    model_type = "ChainModel"

    def __init__(self, name: str, tree: KinematicTree, root: str, tip: str) -> None:
        try:
            self._chain = tuple(tree.get_chain(root, tip))
        except ValueError:
            message = (
                f"Failed to build a chain model from {root} to {tip}, "
                "check the link names"
            )
            _log.error(message)
            raise ValueError(message) from None
        self.name = name
        self.root = root
        self.tip = tip

    @property
    def segments(self) -> tuple[Segment, ...]:
        """Segments of the chain from root to tip."""
        return self._chain

    def project(self, data: CalibrationData, offsets: OffsetSource) -> list[PointStamped]:
        """Positions, in the root frame, of the features this sensor observed."""
        index = get_sensor_index(data, self.name)
        if index is None:
            return []
        fk = self.chain_fk(offsets, data.joint_states)

        points = []
        for feature in data.observations[index].features:
            p = Frame(position=(feature.point.x, feature.point.y, feature.point.z))
            # Features in another frame (e.g. a checkerboard) need that
            # frame's offset applied before the chain's kinematics.
            if feature.frame_id != self.tip:
                correction = offsets.get_frame(feature.frame_id)
                if correction is not None:
                    p = correction * p
            p = fk * p
            x, y, z = (float(v) for v in p.position)
            points.append(PointStamped(Point(x, y, z), self.root))
        return points

    def chain_fk(self, offsets: OffsetSource, state: JointState) -> Frame:
        """Forward kinematics from root to tip with offsets applied."""
        p_out = Frame.identity()
        for segment in self._chain:
            name = segment.joint.name
            correction = offsets.get_frame(name) or Frame.identity()

            if segment.joint.type is not JointType.NONE:
                q = position_from_msg(name, state) + offsets.get(name)
                pose = segment.pose(q)
            else:
                pose = segment.pose(0.0)

            totip = segment.frame_to_tip().rotation
            p_out = p_out * Frame(position=pose.position + totip @ correction.position)
            p_out = p_out * Frame(totip @ correction.rotation @ totip.T @ pose.rotation)
        return p_out


class Camera3dModel(ChainModel):
    """A depth camera on a kinematic chain, with calibratable intrinsics."""

    model_type = "Camera3dModel"

    def __init__(
        self,
        name: str,
        param_name: str,
        tree: KinematicTree,
        root: str,
        tip: str,
    ) -> None:
        super().__init__(name, tree, root, tip)
        self.param_name = param_name

    def project(self, data: CalibrationData, offsets: OffsetSource) -> list[PointStamped]:
        """Reproject observed points through calibrated intrinsics, then the chain."""
        index = get_sensor_index(data, self.name)
        if index is None:
            return []
        observation = data.observations[index]
        ext = observation.ext_camera_info

        projection: Sequence[float] = ext.camera_info.P
        if len(projection) != 12:
            _log.warning("Unexpected CameraInfo projection matrix size")
        camera_fx = projection[P_FX_INDEX]
        camera_fy = projection[P_FY_INDEX]
        camera_cx = projection[P_CX_INDEX]
        camera_cy = projection[P_CY_INDEX]

        # Driver depth correction: new_depth_mm = (depth_mm + z_offset_mm) * z_scaling
        z_offset = 0.0
        z_scaling = 1.0
        for parameter in ext.parameters:
            if parameter.name == "z_scaling":
                z_scaling = parameter.value
            elif parameter.name == "z_offset_mm":
                z_offset = parameter.value / 1000.0

        prefix = self.param_name
        new_fx = camera_fx * (1.0 + offsets.get(prefix + "_fx"))
        new_fy = camera_fy * (1.0 + offsets.get(prefix + "_fy"))
        new_cx = camera_cx * (1.0 + offsets.get(prefix + "_cx"))
        new_cy = camera_cy * (1.0 + offsets.get(prefix + "_cy"))
        new_z_offset = offsets.get(prefix + "_z_offset")
        new_z_scaling = 1.0 + offsets.get(prefix + "_z_scaling")

        fk = self.chain_fk(offsets, data.joint_states)

        points = []
        for feature in observation.features:
            x, y, z = feature.point.x, feature.point.y, feature.point.z

            # Unproject through the parameters in use at capture time.
            u = x * camera_fx / z + camera_cx
            v = y * camera_fy / z + camera_cy
            depth = z / z_scaling - z_offset

            # Reproject through the calibrated parameters.
            new_z = (depth + new_z_offset) * new_z_scaling
            new_x = (u - new_cx) * new_z / new_fx
            new_y = (v - new_cy) * new_z / new_fy

            px, py, pz = (float(c) for c in fk.transform_point((new_x, new_y, new_z)))
            points.append(PointStamped(Point(px, py, pz), self.root))
        return points