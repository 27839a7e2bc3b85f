from __future__ import annotations

import math

from .geometry import FlowMeterConfig, PathMeasurement

SOUND_SPEED_WATER = 1480.0  # m/s


def simulate_measurements(
    config: FlowMeterConfig,
    true_flow_velocity: float,
    sound_speed: float = SOUND_SPEED_WATER,
) -> list[PathMeasurement]:
    """Synthetic transit times for a uniform flow of ``true_flow_velocity``.

    Sound crosses each path of length ``L`` at ``c - v sin θ`` upstream and
    ``c + v sin θ`` downstream, the same projection used by
    :func:`~usflow.velocity.calculate_path_velocity`, so processing the
    output recovers ``true_flow_velocity`` on every path.
    For demonstration and tests only.
    """
    c = float(sound_speed)
    v = float(true_flow_velocity)
    if c <= abs(v):
        raise ValueError("sound_speed must exceed the magnitude of the flow velocity")
    out: list[PathMeasurement] = []
    for path in config.paths[: config.num_paths]:
        v_along = v * math.sin(path.angle)
        out.append(
            PathMeasurement(
                t_upstream=path.length / (c - v_along),
                t_downstream=path.length / (c + v_along),
            )
        )
    return out
