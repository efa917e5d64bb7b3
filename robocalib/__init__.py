"""Kinematic chain models, calibration residual blocks and magnetometer hard-iron calibration."""

__version__ = "0.1.0"