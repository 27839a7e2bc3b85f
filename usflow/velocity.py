from __future__ import annotations

import math

from .geometry import AcousticPath, PathMeasurement


def is_degenerate(path: AcousticPath | None, measurement: PathMeasurement | None) -> bool:
    """True when :func:`calculate_path_velocity` would return its zero fallback.

    Lets a caller tell a guarded fallback apart from a genuine zero-flow
    reading (equal transit times), which both yield ``0.0``.
    """
    if path is None or measurement is None:
        return True
    if measurement.t_upstream <= 0 or measurement.t_downstream <= 0:
        return True
    return math.sin(path.angle) == 0


def calculate_path_velocity(path: AcousticPath | None, measurement: PathMeasurement | None) -> float:
    """Axial flow velocity [m/s] seen by one acoustic path.

    Transit-time differential method::

        v = (L / (2 sin θ)) * (Δt / (t_up * t_down)),   Δt = t_up - t_down

    Never raises.  Missing inputs, a non-positive transit time or a path
    parallel to the pipe axis (``sin θ == 0``) return ``0.0``, checked in that
    order.  A positive result means net flow in the upstream reference
    direction.
    """
    if path is None or measurement is None:
        return 0.0

    t_up = measurement.t_upstream
    t_down = measurement.t_downstream
    if t_up <= 0 or t_down <= 0:
        return 0.0

    sin_theta = math.sin(path.angle)
    if sin_theta == 0:
        return 0.0

    delta_t = t_up - t_down
    return (path.length / (2.0 * sin_theta)) * (delta_t / (t_up * t_down))
