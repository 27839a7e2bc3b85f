from __future__ import annotations
import json
import math
from pathlib import Path
from typing import Any, Sequence
import numpy as np
import pandas as pd

from .errors import ConfigurationError
from .geometry import AcousticPath, FlowMeterConfig, PathMeasurement
from .presets import build_preset

_UP_ALIASES = ["t_upstream", "t_up", "T_up_s", "t_upstream_s", "Upstream", "t_upstream_us", "t_up_us"]
_DOWN_ALIASES = ["t_downstream", "t_down", "T_down_s", "t_downstream_s", "Downstream", "t_downstream_us", "t_down_us"]
_PATH_ALIASES = ["path", "Path", "path_id", "chord"]


def _pick(df: pd.DataFrame, names: list[str]) -> str | None:
    low = {c.lower(): c for c in df.columns}
    for n in names:
        if n.lower() in low:
            return low[n.lower()]
    return None


def _path_from_dict(i: int, d: dict[str, Any], pipe_diameter: float) -> AcousticPath:
    try:
        if "angle" in d:
            angle = float(d["angle"])
        else:
            angle = math.radians(float(d["angle_deg"]))
        # chord length defaults to a full diameter crossing at this angle
        length = float(d["length"]) if "length" in d else pipe_diameter / math.sin(angle)
        return AcousticPath(
            position=float(d.get("position", 0.0)),
            angle=angle,
            length=length,
            weight=float(d["weight"]),
        )
    except (KeyError, TypeError, ValueError, ZeroDivisionError) as e:
        raise ConfigurationError(f"Invalid acoustic path #{i + 1}: {e!r}") from e


def config_from_dict(d: dict[str, Any]) -> FlowMeterConfig:
    """Build a :class:`FlowMeterConfig` from a JSON-style mapping.

    Either ``{"preset": "2path", "pipe_diameter": 0.1}`` or an explicit
    ``{"pipe_diameter": 0.1, "paths": [{"angle_deg": 45, "weight": 0.5}, ...]}``.
    Path entries take ``angle`` [rad] or ``angle_deg``; ``length`` defaults to
    ``D / sin(angle)``.
    """
    if "pipe_diameter" not in d:
        raise ConfigurationError("pipe_diameter is required")
    try:
        D = float(d["pipe_diameter"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid pipe_diameter {d['pipe_diameter']!r}") from e
    if d.get("preset"):
        return build_preset(str(d["preset"]), D)
    paths = d.get("paths")
    if not paths:
        raise ConfigurationError("Configuration needs a 'preset' or a non-empty 'paths' list")
    cfg = FlowMeterConfig(
        pipe_diameter=D,
        paths=[_path_from_dict(i, p, D) for i, p in enumerate(paths)],
    )
    if "num_paths" in d and int(d["num_paths"]) != cfg.num_paths:
        raise ConfigurationError(
            f"num_paths={d['num_paths']} does not match {cfg.num_paths} listed paths"
        )
    return cfg


def config_to_dict(config: FlowMeterConfig) -> dict[str, Any]:
    return {
        "pipe_diameter": config.pipe_diameter,
        "num_paths": config.num_paths,
        "paths": [
            {"position": p.position, "angle": p.angle, "length": p.length, "weight": p.weight}
            for p in config.paths
        ],
    }


def load_config_json(path: Path) -> FlowMeterConfig:
    with open(path) as fh:
        return config_from_dict(json.load(fh))


def load_measurements_csv(path: Path) -> list[PathMeasurement]:
    """Read one transit-time pair per row.

    Columns are matched case-insensitively against common aliases.  A column
    ending in ``_us`` is taken as microseconds.  When a ``path`` column is
    present rows are ordered by it (1-based path numbers).
    """
    df = pd.read_csv(path, float_precision="round_trip")
    up = _pick(df, _UP_ALIASES)
    down = _pick(df, _DOWN_ALIASES)
    if up is None or down is None:
        raise ConfigurationError(
            f"{Path(path).name}: expected upstream/downstream transit-time columns, got {list(df.columns)}"
        )
    pcol = _pick(df, _PATH_ALIASES)
    if pcol is not None:
        df = df.sort_values(pcol, kind="stable")
    t_up = pd.to_numeric(df[up], errors="coerce").to_numpy(float)
    t_down = pd.to_numeric(df[down], errors="coerce").to_numpy(float)
    if up.lower().endswith("_us"):
        t_up = t_up * 1e-6
    if down.lower().endswith("_us"):
        t_down = t_down * 1e-6
    # unparseable cells become 0 s so the path falls back to zero velocity
    t_up = np.nan_to_num(t_up, nan=0.0)
    t_down = np.nan_to_num(t_down, nan=0.0)
    return [PathMeasurement(float(a), float(b)) for a, b in zip(t_up, t_down)]


def write_measurements_csv(path: Path, measurements: Sequence[PathMeasurement]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({
        "path": np.arange(1, len(measurements) + 1),
        "t_upstream": [m.t_upstream for m in measurements],
        "t_downstream": [m.t_downstream for m in measurements],
    }).to_csv(path, index=False)
    return path
