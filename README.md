# robocalib

Building blocks for calibrating robot sensors against the robot's kinematics.

## Modules

- `robocalib.kinematics`: the rigid transform `Frame` (`identity`, `*`,
  `inverse`, `transform_point`). It also converts rotation matrices to and
  from quaternions (`rotation_from_quaternion`, `quaternion_from_rotation`),
  roll/pitch/yaw (`rotation_from_rpy`, `rpy_from_rotation`) and the
  axis-magnitude form, in which the length of the axis is the angle
  (`rotation_from_axis_magnitude`, `axis_magnitude_from_rotation`).
- `robocalib.messages`: plain data records for captured samples. These are
  `Point`, `PointStamped`, `JointState`, `CameraParameter`,
  `ExtendedCameraInfo`, `Observation` and `CalibrationData`. It also provides
  `get_sensor_index` and `has_sensor`. `get_sensor_index` returns `None` when
  the sensor is absent.
- `robocalib.camera_info`: `CameraInfo`, plus the index constants for the
  K, P and D arrays. `update_camera_info` returns a copy with fractional
  fx/fy/cx/cy offsets applied to both P and K.
- `robocalib.plane`: `get_matrix` stacks points into a 3xN array, and
  `get_centroid` returns their mean. `get_plane` fits `ax + by + cz + d = 0`
  and returns the unit normal and `d`, with `d` never negative.
- `robocalib.models`: `KinematicTree`, built from `Segment`s. Each segment
  carries a `Joint` of a `JointType` (`NONE`, `ROTATIONAL`, `TRANSLATIONAL`).
  - `ChainModel` projects a sensor's observed features into the chain's root
    frame. It applies joint offsets and frame corrections taken from an
    offsets object.
  - `Camera3dModel` first reprojects depth-camera points through calibrated
    intrinsics: `<param_name>_fx`, `_fy`, `_cx`, `_cy`, `_z_offset` and
    `_z_scaling`.
  - `position_from_msg` reads a joint position from a `JointState`. It
    returns 0.0 when the joint is missing.
- `robocalib.residuals`: residual blocks that are called with a vector of free
  parameters and return a NumPy array.
  - `Chain3dToChain3d` gives x/y/z differences per feature.
  - `Chain3dToPlane` gives the scaled distance of each point to a plane.
  - `OutrageousError` gives 7 residuals that penalise large joint or frame
    offsets.
- `robocalib.mesh_errors`: `Mesh` holds vertices and triangles.
  - `dist_to_line` gives the squared distance from a point to a segment.
  - `Chain3dToMesh` gives the distance from each projected point to the
    nearest mesh edge.
  - `PlaneToPlaneError` gives 4 residuals comparing planes fitted to the
    points of two models.
- `robocalib.magnetometer`: `HardIronOffsetError`,
  `initial_hard_iron_estimate`, `calibrate_hard_iron` (a SciPy least-squares
  fit returning a `MagnetometerCalibration`) and `load_samples`.
- `robocalib.params`: `OptimizationParams`, with `FreeFrameParams`,
  `FreeFrameInitialValue` and `Params`. It is loaded from a plain mapping
  such as parsed YAML, through `OptimizationParams.from_mapping` or `load`.
  `get_param` reads a block setting and falls back to a default.

## Offsets

The models read offsets from any object with these methods:

- `get(name) -> float`
- `get_frame(name) -> Frame | None`

The residual blocks also call `update(free_params)` before projecting. The
package defines these as protocols (`models.OffsetSource` and
`residuals.CalibrationOffsets`) and leaves the implementation to you.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command-line tools

Convert an axis-magnitude rotation to roll, pitch and yaw:

```
robocalib-to-rpy 0.0 0.0 1.5707963
```

This prints `roll, pitch, yaw`. With fewer than three arguments it prints
usage and exits with status 1.

Estimate magnetometer hard-iron offsets from recorded samples:

```
robocalib-magnetometer samples.csv --max-iterations 1000
```

The samples file holds one `x y z` sample per line. Commas are allowed, and
blank lines and `#` comments are skipped. When no file is given, the command
reads `/tmp/magnetometer_calibration.txt`.

The estimated field strength and a short solver report are logged. The command
then prints `mag_bias_x`, `mag_bias_y` and `mag_bias_z` lines. `--soft-iron`
only logs that soft-iron calibration is not available; the fit is hard-iron
only.

## Example

```python
import math
from robocalib.kinematics import Frame
from robocalib.messages import CalibrationData, JointState, Observation, Point, PointStamped
from robocalib.models import ChainModel, Joint, JointType, KinematicTree, Segment

tree = KinematicTree("base_link")
tree.add_segment(
    "base_link",
    "link1",
    Segment("link1", Joint("j1", JointType.ROTATIONAL, axis=(0, 0, 1)),
            Frame(position=(1.0, 0.0, 0.0))),
)
arm = ChainModel("arm", tree, "base_link", "link1")


class NoOffsets:
    def get(self, name):
        return 0.0

    def get_frame(self, name):
        return None


sample = CalibrationData(
    JointState(["j1"], [math.pi / 2]),
    [Observation("arm", [PointStamped(Point(0.0, 0.0, 0.0), "link1")])],
)
print(arm.project(sample, NoOffsets()))  # the point at about (0, 1, 0) in base_link
```

## What this package does not do

It does not talk to a robot or to sensors:

- It captures no data and drives no joints or base.
- It has no feature finders.
- It does not read robot description files or load meshes from disk.

Kinematic trees, meshes and samples are built in Python or, for the
magnetometer, read from a text file. There is no ready-made offset store and
no driver that assembles every residual block into one optimisation and
exports results. The residual blocks are meant to be handed to a
least-squares solver of your choice.