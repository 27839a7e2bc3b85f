import math

import numpy as np
import pytest

import usflow.flowmeter as flowmeter
import usflow.integrate as integrate
from usflow.errors import ConfigurationError, ResultReleasedError
from usflow.flowmeter import FlowResult, flowmeter_process, flowmeter_result_free
from usflow.geometry import AcousticPath, FlowMeterConfig, PathMeasurement
from usflow.presets import create_2path_config

D = 0.1
C = 1480.0
V_TRUE = 2.0


def _single_path_config():
    angle = math.pi / 4
    return FlowMeterConfig(
        pipe_diameter=D,
        paths=[AcousticPath(position=0.0, angle=angle, length=D / math.sin(angle), weight=1.0)],
    )


def _acoustic_times(path, v=V_TRUE, c=C):
    v_along = v * math.sin(path.angle)
    return PathMeasurement(path.length / (c - v_along), path.length / (c + v_along))


def test_single_path_end_to_end():
    cfg = _single_path_config()
    meas = [_acoustic_times(cfg.paths[0])]
    res = flowmeter_process(cfg, meas)
    assert len(res.path_velocities) == cfg.num_paths == len(meas)
    assert res.path_velocities[0] == pytest.approx(2.0, rel=1e-2)
    assert res.volumetric_flow == pytest.approx(2.0 * math.pi * 0.05**2, rel=1e-2)
    assert res.volumetric_flow == pytest.approx(0.015708, rel=1e-2)
    flowmeter_result_free(res)


def test_symmetric_two_path_matches_single_path():
    single = flowmeter_process(_single_path_config(), [_acoustic_times(_single_path_config().paths[0])])
    cfg = create_2path_config(D)
    assert cfg.paths[0].position == -cfg.paths[1].position
    m = _acoustic_times(cfg.paths[0])
    res = flowmeter_process(cfg, [m, m])
    assert res.path_velocities[0] == res.path_velocities[1]
    assert res.volumetric_flow == pytest.approx(single.volumetric_flow, rel=1e-12)
    flowmeter_result_free(res)
    flowmeter_result_free(single)


@pytest.mark.parametrize(
    "cfg, meas",
    [
        (None, [PathMeasurement(1e-4, 1e-4)]),
        (_single_path_config(), None),
        (FlowMeterConfig(pipe_diameter=D, paths=[]), []),
    ],
)
def test_configuration_errors_return_no_result(cfg, meas):
    with pytest.raises(ConfigurationError):
        flowmeter_process(cfg, meas)


class _RecordingResult(FlowResult):
    instances = []

    def __init__(self):
        super().__init__()
        _RecordingResult.instances.append(self)


def test_failure_after_allocation_releases_result(monkeypatch):
    _RecordingResult.instances.clear()
    monkeypatch.setattr(flowmeter, "FlowResult", _RecordingResult)
    calls = []

    def failing(path, meas):
        calls.append(path)
        if len(calls) == 2:
            raise RuntimeError("injected failure")
        return 1.0

    monkeypatch.setattr(integrate, "calculate_path_velocity", failing)
    cfg = create_2path_config(D)
    with pytest.raises(RuntimeError, match="injected"):
        flowmeter_process(cfg, [PathMeasurement(1e-4, 1e-4)] * 2)

    assert len(_RecordingResult.instances) == 1
    leaked = _RecordingResult.instances[0]
    assert leaked.released
    assert leaked._path_velocities is None
    with pytest.raises(ResultReleasedError):
        leaked.path_velocities


def test_configuration_error_releases_result(monkeypatch):
    _RecordingResult.instances.clear()
    monkeypatch.setattr(flowmeter, "FlowResult", _RecordingResult)
    cfg = FlowMeterConfig(pipe_diameter=D, paths=[], num_paths=0)
    with pytest.raises(ConfigurationError):
        flowmeter_process(cfg, [])
    assert all(r.released for r in _RecordingResult.instances)


def test_release_is_idempotent_and_blocks_reads():
    cfg = _single_path_config()
    res = flowmeter_process(cfg, [_acoustic_times(cfg.paths[0])])
    res.release()
    res.release()
    flowmeter_result_free(res)
    with pytest.raises(ResultReleasedError):
        res.volumetric_flow
    with pytest.raises(ResultReleasedError):
        res.path_velocities
    assert "released" in repr(res)


def test_free_accepts_none():
    flowmeter_result_free(None)


def test_context_manager_releases():
    cfg = _single_path_config()
    with flowmeter_process(cfg, [_acoustic_times(cfg.paths[0])]) as res:
        assert isinstance(res.path_velocities, np.ndarray)
        assert res.num_paths == 1
    assert res.released


def test_each_call_returns_independent_storage():
    cfg = _single_path_config()
    meas = [_acoustic_times(cfg.paths[0])]
    a = flowmeter_process(cfg, meas)
    b = flowmeter_process(cfg, meas)
    assert a.path_velocities is not b.path_velocities
    a.release()
    assert b.path_velocities[0] == pytest.approx(2.0, rel=1e-9)
    b.release()


def test_extra_measurement_fails_and_releases(monkeypatch):
    _RecordingResult.instances.clear()
    monkeypatch.setattr(flowmeter, "FlowResult", _RecordingResult)
    cfg = create_2path_config(D)
    m = _acoustic_times(cfg.paths[0])
    with pytest.raises(ConfigurationError):
        flowmeter_process(cfg, [m, m, PathMeasurement(1e-4, 2e-4)])
    assert all(r.released for r in _RecordingResult.instances)


def test_missing_path_entry_fails_cleanly():
    cfg = FlowMeterConfig(pipe_diameter=D, paths=[_single_path_config().paths[0], None])
    m = _acoustic_times(cfg.paths[0])
    with pytest.raises(ConfigurationError):
        flowmeter_process(cfg, [m, m])


def test_degenerate_paths_unreadable_after_release():
    cfg = create_2path_config(D)
    m = _acoustic_times(cfg.paths[0])
    res = flowmeter_process(cfg, [m, PathMeasurement(0.0, 1e-4)])
    assert res.degenerate_paths == (1,)
    res.release()
    with pytest.raises(ResultReleasedError):
        res.degenerate_paths
