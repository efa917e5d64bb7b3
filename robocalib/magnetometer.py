"""Hard iron calibration of a magnetometer from recorded field samples."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

_log = logging.getLogger(__name__)

# Initial guess of the local magnetic field strength.
INITIAL_FIELD_STRENGTH = 0.45
DEFAULT_SAMPLES_FILE = "/tmp/magnetometer_calibration.txt"

_SEPARATOR = re.compile(r"[,\s]+")


class HardIronOffsetError:
    """Residual of one sample against a sphere offset by the hard iron bias.

    Parameters are ordered (field strength, x offset, y offset, z offset).
    """

    def __init__(self, x: float, y: float, z: float) -> None:
        self.x = x
        self.y = y
        self.z = z

    def __call__(self, params: Sequence[float]) -> np.ndarray:
        strength, bx, by, bz = params
        return np.array(
            [
                (self.x - bx) ** 2
                + (self.y - by) ** 2
                + (self.z - bz) ** 2
                - strength * strength
            ]
        )


@dataclass(frozen=True)
class MagnetometerCalibration:
    """Result of a hard iron calibration."""

    field_strength: float
    bias_x: float
    bias_y: float
    bias_z: float
    initial_cost: float
    final_cost: float
    evaluations: int

    def brief_report(self) -> str:
        return (
            f"Initial cost: {self.initial_cost:g}, final cost: {self.final_cost:g}, "
            f"evaluations: {self.evaluations}"
        )


def _as_samples(samples: Iterable[Sequence[float]]) -> np.ndarray:
    array = np.asarray(list(samples), dtype=float)
    if array.size == 0:
        raise ValueError("no magnetometer samples")
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError("samples must be (x, y, z) triples")
    return array


def initial_hard_iron_estimate(samples: Iterable[Sequence[float]]) -> np.ndarray:
    """Starting parameters: a nominal field strength and the sample mean as bias."""
    data = _as_samples(samples)
    return np.concatenate([[INITIAL_FIELD_STRENGTH], data.mean(axis=0)])


def calibrate_hard_iron(
    samples: Iterable[Sequence[float]], max_iterations: int = 1000
) -> MagnetometerCalibration:
    """Fit field strength and hard iron offsets to the samples by least squares."""
    data = _as_samples(samples)
    x0 = initial_hard_iron_estimate(data)
    _log.info(
        "Initial estimate for hard iron offsets: [%g, %g, %g]", x0[1], x0[2], x0[3]
    )

    def residuals(params: np.ndarray) -> np.ndarray:
        diff = data - params[1:]
        return np.einsum("ij,ij->i", diff, diff) - params[0] ** 2

    def jacobian(params: np.ndarray) -> np.ndarray:
        jac = np.empty((len(data), 4))
        jac[:, 0] = -2.0 * params[0]
        jac[:, 1:] = -2.0 * (data - params[1:])
        return jac

    initial_cost = 0.5 * float(np.sum(residuals(x0) ** 2))
    result = least_squares(
        residuals,
        x0,
        jac=jacobian,
        ftol=1e-10,
        max_nfev=max_iterations,
    )
    strength, bx, by, bz = (float(v) for v in result.x)
    return MagnetometerCalibration(
        field_strength=strength,
        bias_x=bx,
        bias_y=by,
        bias_z=bz,
        initial_cost=initial_cost,
        final_cost=float(result.cost),
        evaluations=int(result.nfev),
    )


def load_samples(path) -> list[tuple[float, float, float]]:
    """Read samples stored one per line as ``x y z`` (commas allowed).

    Blank lines and lines starting with ``#`` are skipped.
    """
    samples = []
    with Path(path).open(encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            fields = [f for f in _SEPARATOR.split(text) if f]
            if len(fields) != 3:
                raise ValueError(f"{path}:{number}: expected 3 values, got {len(fields)}")
            try:
                x, y, z = (float(f) for f in fields)
            except ValueError:
                raise ValueError(f"{path}:{number}: not a number in {text!r}") from None
            samples.append((x, y, z))
    return samples


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Calibrate hard iron offsets from a samples file and print the biases."""
    parser = argparse.ArgumentParser(
        prog="magnetometer_calibration",
        description="Estimate magnetometer hard iron offsets.",
    )
    parser.add_argument("samples_file", nargs="?", default=DEFAULT_SAMPLES_FILE)
    parser.add_argument("--soft-iron", action="store_true")
    parser.add_argument("--max-iterations", type=int, default=1000)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.soft_iron:
        _log.error("Soft Iron Calibration Is Not Yet Available.")

    try:
        samples = load_samples(args.samples_file)
    except OSError:
        _log.critical("Cannot open %s", args.samples_file)
        return 1
    except ValueError as err:
        _log.critical("%s", err)
        return 1
    _log.info("Loaded %s with %d samples", args.samples_file, len(samples))

    try:
        result = calibrate_hard_iron(samples, args.max_iterations)
    except ValueError as err:
        _log.critical("%s", err)
        return 1

    _log.info("%s", result.brief_report())
    _log.info("Estimated total magnetic field: %gT", result.field_strength)
    print(f"mag_bias_x: {result.bias_x:g}")
    print(f"mag_bias_y: {result.bias_y:g}")
    print(f"mag_bias_z: {result.bias_z:g}")
    return 0


if __name__ == "__main__":
    sys.exit(main())