from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Sequence


@dataclass(frozen=True)
class AcousticPath:
    position: float  # offset across the diameter, normalized -1..1 (informational)
    angle: float     # angle to the pipe axis [rad]
    length: float    # acoustic path length [m]
    weight: float    # quadrature weighting coefficient

    @property
    def angle_deg(self) -> float:
        return math.degrees(self.angle)


@dataclass
class FlowMeterConfig:
    """Meter geometry: pipe diameter plus the ordered acoustic paths.

    Path order is significant; ``measurements[i]`` and
    ``FlowResult.path_velocities[i]`` both refer to ``paths[i]``.
    ``num_paths`` defaults to ``len(paths)`` when not given explicitly.
    """

    pipe_diameter: float  # [m]
    paths: Sequence[AcousticPath] | None = field(default_factory=tuple)
    num_paths: int | None = None

    def __post_init__(self):
        if self.paths is not None:
            self.paths = tuple(self.paths)
        if self.num_paths is None:
            self.num_paths = len(self.paths) if self.paths is not None else 0

    @property
    def weight_sum(self) -> float:
        return math.fsum(p.weight for p in (self.paths or ()) if p is not None)


@dataclass(frozen=True)
class PathMeasurement:
    t_upstream: float    # [s]
    t_downstream: float  # [s]

    @property
    def delta_t(self) -> float:
        return self.t_upstream - self.t_downstream
