"""Camera intrinsics and applying calibration offsets to them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

# Positions of the intrinsic values in the 3x4 projection matrix P.
P_FX_INDEX = 0
P_FY_INDEX = 5
P_CX_INDEX = 2
P_CY_INDEX = 6

# Positions of the intrinsic values in the 3x3 camera matrix K.
K_FX_INDEX = 0
K_FY_INDEX = 4
K_CX_INDEX = 2
K_CY_INDEX = 5

# Positions of the distortion coefficients in D.
D_1 = 0
D_2 = 1
D_3 = 2
D_4 = 3
D_5 = 4

# Positions of camera parameters in a packed parameter vector.
PARAMS_CX_INDEX = 0
PARAMS_CY_INDEX = 1
PARAMS_FX_INDEX = 2
PARAMS_FY_INDEX = 3
PARAMS_Z_SCALE_INDEX = 4
PARAMS_Z_OFFSET_INDEX = 5


@dataclass
class CameraInfo:
    """Calibration description of a pinhole camera."""

    height: int = 0
    width: int = 0
    distortion_model: str = ""
    D: list[float] = field(default_factory=list)
    K: list[float] = field(default_factory=lambda: [0.0] * 9)
    R: list[float] = field(default_factory=lambda: [0.0] * 9)
    P: list[float] = field(default_factory=lambda: [0.0] * 12)


def update_camera_info(
    camera_fx: float,
    camera_fy: float,
    camera_cx: float,
    camera_cy: float,
    info: CameraInfo,
) -> CameraInfo:
    """Return a copy of ``info`` with fractional offsets applied to P and K."""
    p = list(info.P)
    k = list(info.K)

    p[P_CX_INDEX] *= camera_cx + 1.0
    p[P_CY_INDEX] *= camera_cy + 1.0
    p[P_FX_INDEX] *= camera_fx + 1.0
    p[P_FY_INDEX] *= camera_fy + 1.0

    k[K_CX_INDEX] *= camera_cx + 1.0
    k[K_CY_INDEX] *= camera_cy + 1.0
    k[K_FX_INDEX] *= camera_fx + 1.0
    k[K_FY_INDEX] *= camera_fy + 1.0

    return replace(info, D=list(info.D), K=k, R=list(info.R), P=p)