"""Flow meter entry point: result ownership and release."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .errors import ConfigurationError, ResultReleasedError
from .geometry import FlowMeterConfig, PathMeasurement
from .integrate import calculate_flow_rate

logger = logging.getLogger(__name__)


class FlowResult:
    """Per-path velocities [m/s] and volumetric flow [m³/s] for one reading.

    Owned by the caller once returned from :func:`flowmeter_process`.  Call
    :meth:`release` (or use the result as a context manager) exactly once
    when done; reading values afterwards raises :class:`ResultReleasedError`.
    ``degenerate_paths`` lists the path indices whose velocity is the zero
    fallback rather than a measured zero.
    """

    def __init__(self):
        self._path_velocities: np.ndarray | None = None
        self._volumetric_flow = 0.0
        self._degenerate_paths: tuple[int, ...] = ()
        self.released = False

    def _check_live(self):
        if self.released:
            raise ResultReleasedError("FlowResult has been released")

    def allocate(self, num_paths: int) -> np.ndarray:
        """Reserve zeroed storage for ``num_paths`` velocities and return it."""
        self._check_live()
        self._path_velocities = np.zeros(int(num_paths), dtype=float)
        return self._path_velocities

    @property
    def path_velocities(self) -> np.ndarray:
        self._check_live()
        if self._path_velocities is None:
            return np.zeros(0, dtype=float)
        return self._path_velocities

    @property
    def volumetric_flow(self) -> float:
        self._check_live()
        return self._volumetric_flow

    @volumetric_flow.setter
    def volumetric_flow(self, value: float):
        self._check_live()
        self._volumetric_flow = float(value)

    @property
    def degenerate_paths(self) -> tuple[int, ...]:
        self._check_live()
        return self._degenerate_paths

    @degenerate_paths.setter
    def degenerate_paths(self, value):
        self._check_live()
        self._degenerate_paths = tuple(int(i) for i in value)

    @property
    def num_paths(self) -> int:
        return len(self.path_velocities)

    def release(self):
        """Drop the velocity storage.  Safe to call more than once."""
        self._path_velocities = None
        self._volumetric_flow = 0.0
        self._degenerate_paths = ()
        self.released = True

    def __enter__(self) -> "FlowResult":
        return self

    def __exit__(self, *exc):
        self.release()
        return False

    def __repr__(self):
        if self.released:
            return "FlowResult(<released>)"
        return (
            f"FlowResult(path_velocities={self.path_velocities.tolist()!r}, "
            f"volumetric_flow={self.volumetric_flow!r})"
        )


def flowmeter_process(
    config: FlowMeterConfig | None,
    measurements: Sequence[PathMeasurement] | None,
) -> FlowResult:
    """Compute a :class:`FlowResult` for one set of path measurements.

    Raises :class:`ConfigurationError` when the configuration or the
    measurements are missing or inconsistent.  Any storage reserved for the
    result is released before the error propagates, so a failed call never
    hands back a half-filled result.
    """
    if config is None or measurements is None:
        raise ConfigurationError("Both a configuration and measurements are required")

    result = FlowResult()
    try:
        calculate_flow_rate(config, measurements, result)
    except Exception:
        result.release()
        raise
    logger.debug("Processed %d paths: Q=%.6g m3/s", result.num_paths, result.volumetric_flow)
    return result


def flowmeter_result_free(result: FlowResult | None) -> None:
    """Release ``result``; ``None`` is accepted and ignored."""
    if result is not None:
        result.release()
