"""
usflow - multipath ultrasonic transit-time flow meter.
"""

__version__ = "0.1.0"

from .errors import ConfigurationError, ResultReleasedError
from .geometry import AcousticPath, FlowMeterConfig, PathMeasurement
from .velocity import calculate_path_velocity, is_degenerate
from .integrate import calculate_flow_rate, pipe_area
from .flowmeter import FlowResult, flowmeter_process, flowmeter_result_free
from .presets import PRESETS, build_preset, create_2path_config, create_4path_config
from .simulate import SOUND_SPEED_WATER, simulate_measurements
from .io import config_from_dict, config_to_dict, load_config_json, load_measurements_csv, write_measurements_csv

__all__ = [
    "__version__",
    "ConfigurationError", "ResultReleasedError",
    "AcousticPath", "FlowMeterConfig", "PathMeasurement",
    "calculate_path_velocity", "is_degenerate",
    "calculate_flow_rate", "pipe_area",
    "FlowResult", "flowmeter_process", "flowmeter_result_free",
    "PRESETS", "build_preset", "create_2path_config", "create_4path_config",
    "SOUND_SPEED_WATER", "simulate_measurements",
    "config_from_dict", "config_to_dict", "load_config_json", "load_measurements_csv", "write_measurements_csv",
]
