import numpy as np
import pytest

from robocalib.kinematics import Frame, rotation_from_axis_magnitude
from robocalib.messages import (
    CalibrationData,
    Observation,
    Point,
    PointStamped,
)
from robocalib.models import ChainModel, Joint, JointType, KinematicTree, Segment
from robocalib.residuals import Chain3dToChain3d, Chain3dToPlane, OutrageousError


class FakeOffsets:
    def __init__(self, names=(), frames=None):
        self.names = list(names)
        self.values = {}
        self.frames = dict(frames or {})
        self.updates = []

    def update(self, free_params):
        self.updates.append(list(free_params))
        self.values = dict(zip(self.names, free_params))

    def get(self, name):
        return self.values.get(name, 0.0)

    def get_frame(self, name):
        return self.frames.get(name)


def _tree():
    tree = KinematicTree("base_link")
    tree.add_segment(
        "base_link",
        "tool",
        Segment("tool_seg", Joint("tool_joint", JointType.NONE), Frame(position=(1.0, 0.0, 0.0))),
    )
    return tree


def _obs(sensor, points):
    return Observation(
        sensor_name=sensor,
        features=[PointStamped(Point(*p), "tool") for p in points],
    )


def test_chain3d_identical_observations_give_zero():
    tree = _tree()
    a = ChainModel("a", tree, "base_link", "tool")
    b = ChainModel("b", tree, "base_link", "tool")
    pts = [(0.1, 0.2, 0.3), (0.4, 0.5, 0.6)]
    data = CalibrationData(observations=[_obs("a", pts), _obs("b", pts)])
    block = Chain3dToChain3d(a, b, FakeOffsets(), data)
    assert block.num_residuals == 6
    np.testing.assert_allclose(block([]), np.zeros(6), atol=1e-12)


def test_chain3d_residual_is_difference():
    tree = _tree()
    a = ChainModel("a", tree, "base_link", "tool")
    b = ChainModel("b", tree, "base_link", "tool")
    data = CalibrationData(
        observations=[_obs("a", [(0.5, 0.0, 0.2)]), _obs("b", [(0.0, 0.25, 0.0)])]
    )
    block = Chain3dToChain3d(a, b, FakeOffsets(), data)
    np.testing.assert_allclose(block([]), [0.5, -0.25, 0.2], atol=1e-12)


def test_chain3d_size_mismatch_raises():
    tree = _tree()
    a = ChainModel("a", tree, "base_link", "tool")
    b = ChainModel("b", tree, "base_link", "tool")
    data = CalibrationData(
        observations=[_obs("a", [(0, 0, 0), (1, 1, 1)]), _obs("b", [(0, 0, 0)])]
    )
    block = Chain3dToChain3d(a, b, FakeOffsets(), data)
    with pytest.raises(ValueError):
        block([])


def test_chain3d_missing_sensor_raises():
    tree = _tree()
    a = ChainModel("a", tree, "base_link", "tool")
    b = ChainModel("b", tree, "base_link", "tool")
    data = CalibrationData(observations=[_obs("b", [(0, 0, 0)])])
    with pytest.raises(ValueError):
        Chain3dToChain3d(a, b, FakeOffsets(), data)


def test_chain3d_passes_free_params_to_offsets():
    tree = _tree()
    a = ChainModel("a", tree, "base_link", "tool")
    b = ChainModel("b", tree, "base_link", "tool")
    pts = [(0.0, 0.0, 0.0)]
    data = CalibrationData(observations=[_obs("a", pts), _obs("b", pts)])
    offsets = FakeOffsets(["x"])
    Chain3dToChain3d(a, b, offsets, data)([0.7])
    assert offsets.updates == [[0.7]]


def test_plane_distance_from_ground():
    tree = _tree()
    model = ChainModel("a", tree, "base_link", "tool")
    data = CalibrationData(observations=[_obs("a", [(0.0, 0.0, 0.5), (0.3, 0.0, -0.25)])])
    block = Chain3dToPlane(model, FakeOffsets(), data)
    assert block.num_residuals == 2
    np.testing.assert_allclose(block([]), [0.5, 0.25], atol=1e-12)


def test_plane_normal_length_does_not_matter():
    tree = _tree()
    model = ChainModel("a", tree, "base_link", "tool")
    data = CalibrationData(observations=[_obs("a", [(0.2, 0.1, 0.7)])])
    unit = Chain3dToPlane(model, FakeOffsets(), data, 0.0, 0.0, 1.0, 0.0)
    long = Chain3dToPlane(model, FakeOffsets(), data, 0.0, 0.0, 3.0, 0.0)
    np.testing.assert_allclose(unit([]), long([]))


def test_plane_residuals_are_non_negative():
    tree = _tree()
    model = ChainModel("a", tree, "base_link", "tool")
    data = CalibrationData(observations=[_obs("a", [(0.0, 0.0, -2.0), (0.0, 0.0, 3.0)])])
    block = Chain3dToPlane(model, FakeOffsets(), data, 0.0, 0.0, 1.0, 0.0, 2.0)
    assert (block([]) >= 0).all()


def test_plane_zero_normal_raises():
    tree = _tree()
    model = ChainModel("a", tree, "base_link", "tool")
    data = CalibrationData(observations=[_obs("a", [(0.0, 0.0, 0.0)])])
    with pytest.raises(ValueError):
        Chain3dToPlane(model, FakeOffsets(), data, 0.0, 0.0, 0.0, 0.0)


def test_outrageous_joint_only():
    offsets = FakeOffsets(["shoulder"])
    block = OutrageousError(offsets, "shoulder", 2.0, 1.0, 1.0)
    residuals = block([0.25])
    assert len(residuals) == 7
    assert residuals[0] == pytest.approx(0.5)
    np.testing.assert_allclose(residuals[1:], np.zeros(6))


def test_outrageous_frame_offsets():
    frame = Frame(rotation_from_axis_magnitude(0.0, 0.0, -0.5), (0.1, -0.2, 0.3))
    offsets = FakeOffsets(frames={"cam": frame})
    block = OutrageousError(offsets, "cam", 1.0, 1.0, 1.0)
    residuals = block([])
    assert residuals[0] == 0.0
    np.testing.assert_allclose(residuals[1:4], [0.1, -0.2, 0.3], atol=1e-12)
    np.testing.assert_allclose(residuals[4:7], [0.0, 0.0, 0.5], atol=1e-9)