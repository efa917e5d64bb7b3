"""Optimisation settings: free parameters, free frames, models and error blocks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, TypeVar

_log = logging.getLogger(__name__)

DEFAULT_BASE_LINK = "base_link"
DEFAULT_MAX_NUM_ITERATIONS = 1000

_T = TypeVar("_T")


def _as_list(value: Any, key: str) -> list:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeError(f"{key} must be a list")
    return list(value)


def _entry(item: Any, key: str, context: str) -> Any:
    if not isinstance(item, Mapping):
        raise TypeError(f"each entry of {context} must be a mapping")
    try:
        return item[key]
    except KeyError:
        raise ValueError(f"entry of {context} is missing {key!r}") from None


def _as_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a string, got {value!r}")
    return value


def _as_bool(value: Any, what: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{what} must be a boolean, got {value!r}")
    return value


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{what} must be a number, got {value!r}")
    return float(value)


_AXES = ("x", "y", "z", "roll", "pitch", "yaw")


@dataclass
class FreeFrameParams:
    """Which of a frame's six degrees of freedom are calibrated."""

    name: str
    x: bool = False
    y: bool = False
    z: bool = False
    roll: bool = False
    pitch: bool = False
    yaw: bool = False

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> "FreeFrameParams":
        context = "free_frames"
        name = _as_str(_entry(item, "name", context), "free frame name")
        flags = {
            axis: _as_bool(_entry(item, axis, context), f"{name}.{axis}")
            for axis in _AXES
        }
        return cls(name, **flags)


@dataclass
class FreeFrameInitialValue:
    """Starting offset values for a free frame."""

    name: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> "FreeFrameInitialValue":
        context = "free_frames_initial_values"
        name = _as_str(_entry(item, "name", context), "initial value name")
        values = {
            axis: _as_float(_entry(item, axis, context), f"{name}.{axis}")
            for axis in _AXES
        }
        return cls(name, **values)


@dataclass
class Params:
    """A named, typed configuration block with its full set of settings."""

    name: str
    type: str
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any], context: str) -> "Params":
        name = _as_str(_entry(item, "name", context), f"{context} name")
        kind = _as_str(_entry(item, "type", context), f"{context} type")
        return cls(name, kind, dict(item))


@dataclass
class OptimizationParams:
    """Everything that configures a calibration run."""

    base_link: str = DEFAULT_BASE_LINK
    free_params: list[str] = field(default_factory=list)
    free_frames: list[FreeFrameParams] = field(default_factory=list)
    free_frames_initial_values: list[FreeFrameInitialValue] = field(default_factory=list)
    models: list[Params] = field(default_factory=list)
    error_blocks: list[Params] = field(default_factory=list)
    max_num_iterations: int = DEFAULT_MAX_NUM_ITERATIONS

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "OptimizationParams":
        """Build settings from a configuration mapping."""
        params = cls()
        params.load(mapping)
        return params

    def load(self, mapping: Mapping[str, Any]) -> None:
        """Update from a configuration mapping.

        ``base_link`` keeps its value when absent; ``max_num_iterations``
        falls back to 1000. Lists are replaced only when their key is present.
        """
        self.base_link = _as_str(mapping.get("base_link", self.base_link), "base_link")
        iterations = mapping.get("max_num_iterations", DEFAULT_MAX_NUM_ITERATIONS)
        if isinstance(iterations, bool) or not isinstance(iterations, int):
            raise TypeError("max_num_iterations must be an integer")
        self.max_num_iterations = iterations

        if "free_params" in mapping:
            self.free_params = [
                _as_str(name, "free_params entry")
                for name in _as_list(mapping["free_params"], "free_params")
            ]

        if "free_frames" in mapping:
            self.free_frames = [
                FreeFrameParams.from_mapping(item)
                for item in _as_list(mapping["free_frames"], "free_frames")
            ]

        if "free_frames_initial_values" in mapping:
            self.free_frames_initial_values = [
                FreeFrameInitialValue.from_mapping(item)
                for item in _as_list(
                    mapping["free_frames_initial_values"], "free_frames_initial_values"
                )
            ]

        if "models" in mapping:
            self.models = [
                Params.from_mapping(item, "models")
                for item in _as_list(mapping["models"], "models")
            ]

        if "error_blocks" in mapping:
            self.error_blocks = [
                Params.from_mapping(item, "error_blocks")
                for item in _as_list(mapping["error_blocks"], "error_blocks")
            ]

    def get_param(self, params: Params, name: str, default: _T) -> _T:
        """Setting ``name`` of a block, or ``default`` (with a warning) if unset.

        A present value is converted to the type of ``default``.
        """
        if name not in params.params:
            _log.warning("%s was not set, using default of %s", name, default)
            return default
        value = params.params[name]
        if isinstance(default, bool):
            return _as_bool(value, name)  # type: ignore[return-value]
        if isinstance(default, float):
            return _as_float(value, name)  # type: ignore[return-value]
        if isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got {value!r}")
            return value  # type: ignore[return-value]
        if isinstance(default, str):
            return _as_str(value, name)  # type: ignore[return-value]
        return value