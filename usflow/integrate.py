from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Sequence

from .errors import ConfigurationError
from .geometry import FlowMeterConfig, PathMeasurement
from .velocity import calculate_path_velocity, is_degenerate

if TYPE_CHECKING:
    from .flowmeter import FlowResult

logger = logging.getLogger(__name__)


def pipe_area(diameter: float) -> float:
    """Circular cross-section A = π (D/2)² [m²]."""
    radius = diameter / 2.0
    return math.pi * radius * radius


def _check_inputs(config: FlowMeterConfig | None, measurements: Sequence[PathMeasurement] | None) -> int:
    if config is None:
        raise ConfigurationError("Flow meter configuration is required")
    if measurements is None:
        raise ConfigurationError("Path measurements are required")
    n = config.num_paths
    if not n or n <= 0:
        raise ConfigurationError("Configuration has no acoustic paths (num_paths == 0)")
    if config.paths is None:
        raise ConfigurationError("Configuration paths are missing")
    if len(config.paths) < n:
        raise ConfigurationError(
            f"num_paths={n} but only {len(config.paths)} acoustic paths configured"
        )
    missing = [i + 1 for i in range(n) if config.paths[i] is None]
    if missing:
        raise ConfigurationError(f"Acoustic path entries missing for path(s) {missing}")
    # extra paths beyond num_paths are unused; measurements must pair one-to-one
    if len(measurements) != n:
        raise ConfigurationError(
            f"num_paths={n} but {len(measurements)} path measurements supplied"
        )
    return int(n)


def calculate_flow_rate(
    config: FlowMeterConfig | None,
    measurements: Sequence[PathMeasurement] | None,
    result: "FlowResult",
) -> "FlowResult":
    """Fill ``result`` with per-path velocities and the volumetric flow.

    Weighted quadrature over the cross-section::

        Q = (π D² / 4) * Σ w_i v_i

    The weights come from the configuration (typically Gauss-Jacobi
    coefficients summing to 1); they are not derived or checked here.  The
    sum is accumulated in path order so repeated runs round identically.

    Raises :class:`ConfigurationError` for a missing configuration or
    measurement set, ``num_paths == 0``, fewer than ``num_paths`` paths, a
    ``None`` entry among the used paths, or a measurement count other than
    ``num_paths``.  A degenerate transit-time pair only zeroes its own path.
    """
    n = _check_inputs(config, measurements)

    velocities = result.allocate(n)
    degenerate: list[int] = []
    weighted_velocity_sum = 0.0
    for i in range(n):
        path = config.paths[i]
        meas = measurements[i]
        velocities[i] = calculate_path_velocity(path, meas)
        if is_degenerate(path, meas):
            degenerate.append(i)
            logger.debug("Path %d: degenerate measurement %r, velocity forced to 0", i + 1, meas)
        weighted_velocity_sum += path.weight * float(velocities[i])

    area = pipe_area(config.pipe_diameter)
    result.volumetric_flow = area * weighted_velocity_sum
    result.degenerate_paths = tuple(degenerate)
    velocities.setflags(write=False)

    if degenerate:
        logger.info("%d of %d paths fell back to zero velocity: %s", len(degenerate), n, degenerate)
    return result
