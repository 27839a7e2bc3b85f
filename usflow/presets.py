from __future__ import annotations

import math
from typing import Callable

from .errors import ConfigurationError
from .geometry import AcousticPath, FlowMeterConfig


def _chord(position: float, angle: float, pipe_diameter: float, weight: float) -> AcousticPath:
    return AcousticPath(
        position=position,
        angle=angle,
        length=pipe_diameter / math.sin(angle),
        weight=weight,
    )


def create_2path_config(pipe_diameter: float) -> FlowMeterConfig:
    """Two diagonal 45° paths either side of the axis, equal weights."""
    angle = math.pi / 4.0
    return FlowMeterConfig(
        pipe_diameter=pipe_diameter,
        paths=[
            _chord(0.25, angle, pipe_diameter, 0.5),
            _chord(-0.25, angle, pipe_diameter, 0.5),
        ],
    )


def create_4path_config(pipe_diameter: float) -> FlowMeterConfig:
    """Outer 60° pair at ±0.35 D and inner 45° pair at ±0.15 D, weights 0.25."""
    angle_60 = math.pi / 3.0
    angle_45 = math.pi / 4.0
    return FlowMeterConfig(
        pipe_diameter=pipe_diameter,
        paths=[
            _chord(0.35, angle_60, pipe_diameter, 0.25),
            _chord(-0.35, angle_60, pipe_diameter, 0.25),
            _chord(0.15, angle_45, pipe_diameter, 0.25),
            _chord(-0.15, angle_45, pipe_diameter, 0.25),
        ],
    )


PRESETS: dict[str, Callable[[float], FlowMeterConfig]] = {
    "2path": create_2path_config,
    "4path": create_4path_config,
}


def build_preset(name: str, pipe_diameter: float) -> FlowMeterConfig:
    try:
        builder = PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown path layout {name!r}; expected one of {sorted(PRESETS)}"
        ) from None
    return builder(float(pipe_diameter))
