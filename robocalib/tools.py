"""Command line helper converting axis-magnitude rotations to roll/pitch/yaw."""

from __future__ import annotations

import re
import sys
from typing import Optional, Sequence

from robocalib.kinematics import rotation_from_axis_magnitude, rpy_from_rotation

_LEADING_FLOAT = re.compile(
    r"\s*[+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)",
    re.IGNORECASE,
)

_USAGE = "to_rpy: Converts axis-magnitude to RPY notation\n\nusage: to_rpy a b c\n"


def _parse_float(text: str) -> float:
    """Read the leading number of ``text``; 0.0 if there is none."""
    match = _LEADING_FLOAT.match(text)
    return float(match.group().strip()) if match else 0.0


def to_rpy(x: float, y: float, z: float) -> tuple[float, float, float]:
    """Convert an axis-magnitude rotation to (roll, pitch, yaw)."""
    return rpy_from_rotation(rotation_from_axis_magnitude(x, y, z))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print the roll, pitch and yaw of the rotation given on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 3:
        print(_USAGE, file=sys.stderr)
        return 1
    x, y, z = (_parse_float(arg) for arg in args[:3])
    roll, pitch, yaw = to_rpy(x, y, z)
    print(f"{roll:.6g}, {pitch:.6g}, {yaw:.6g}")
    return 0


if __name__ == "__main__":
    sys.exit(main())