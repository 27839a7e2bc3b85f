from __future__ import annotations
import json
import math
from pathlib import Path
from typing import Sequence
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt

from .flowmeter import FlowResult
from .geometry import FlowMeterConfig, PathMeasurement
from .integrate import pipe_area


def m3s_to_lps(q: float) -> float:
    return q * 1000.0


def m3s_to_lpm(q: float) -> float:
    return q * 60000.0


def rad_to_deg(angle: float) -> float:
    return angle * 180.0 / math.pi


def config_table(config: FlowMeterConfig) -> pd.DataFrame:
    rows = []
    for i, p in enumerate(config.paths[: config.num_paths], start=1):
        rows.append(dict(
            path=i,
            position=p.position,
            angle_rad=p.angle,
            angle_deg=rad_to_deg(p.angle),
            length_m=p.length,
            weight=p.weight,
        ))
    return pd.DataFrame(rows, columns=["path", "position", "angle_rad", "angle_deg", "length_m", "weight"])


def result_table(config: FlowMeterConfig, measurements: Sequence[PathMeasurement], result: FlowResult) -> pd.DataFrame:
    """One row per path: transit times, Δt, velocity and the fallback flag."""
    v = result.path_velocities
    bad = set(result.degenerate_paths)
    n = len(v)
    t_up = np.array([m.t_upstream for m in measurements[:n]], dtype=float)
    t_down = np.array([m.t_downstream for m in measurements[:n]], dtype=float)
    return pd.DataFrame({
        "path": np.arange(1, n + 1),
        "t_upstream_s": t_up,
        "t_downstream_s": t_down,
        "delta_t_s": t_up - t_down,
        "velocity_m_s": np.asarray(v, dtype=float),
        "degenerate": [i in bad for i in range(n)],
    })


def result_summary(config: FlowMeterConfig, result: FlowResult) -> dict:
    q = result.volumetric_flow
    return {
        "pipe_diameter_m": float(config.pipe_diameter),
        "pipe_area_m2": pipe_area(config.pipe_diameter),
        "num_paths": int(config.num_paths),
        "weight_sum": config.weight_sum,
        "path_velocities_m_s": [float(x) for x in result.path_velocities],
        "volumetric_flow_m3_s": q,
        "volumetric_flow_l_s": m3s_to_lps(q),
        "volumetric_flow_l_min": m3s_to_lpm(q),
        "degenerate_paths": [i + 1 for i in result.degenerate_paths],
    }


def format_config(config: FlowMeterConfig) -> str:
    lines = [
        "Flow Meter Configuration:",
        f"  Pipe diameter: {config.pipe_diameter:.3f} m",
        f"  Number of paths: {config.num_paths}",
        f"  Pipe area: {pipe_area(config.pipe_diameter):.6f} m²",
        "",
        "Acoustic Paths:",
    ]
    for i, p in enumerate(config.paths[: config.num_paths], start=1):
        lines += [
            f"  Path {i}:",
            f"    Position: {p.position:.2f} D",
            f"    Angle: {rad_to_deg(p.angle):.2f}° ({p.angle:.4f} rad)",
            f"    Path length: {p.length:.4f} m",
            f"    Weight: {p.weight:.3f}",
        ]
    return "\n".join(lines)


def format_measurements(measurements: Sequence[PathMeasurement], true_velocity: float | None = None) -> str:
    head = "Simulated Measurements"
    if true_velocity is not None:
        head += f" (True flow velocity: {true_velocity:.2f} m/s)"
    lines = [head + ":"]
    for i, m in enumerate(measurements, start=1):
        lines.append(
            f"  Path {i}: t_upstream = {m.t_upstream:.8f} s, "
            f"t_downstream = {m.t_downstream:.8f} s, Δt = {m.delta_t:.2e} s"
        )
    return "\n".join(lines)


def format_results(result: FlowResult) -> str:
    lines = ["Flow Calculation Results:"]
    bad = set(result.degenerate_paths)
    for i, v in enumerate(result.path_velocities):
        flag = "  (degenerate measurement)" if i in bad else ""
        lines.append(f"  Path {i + 1} velocity: {v:.4f} m/s{flag}")
    q = result.volumetric_flow
    lines += [
        "",
        "Volumetric Flow Rate:",
        f"  {q:.6f} m³/s",
        f"  {m3s_to_lpm(q):.4f} L/min",
        f"  {m3s_to_lps(q):.2f} L/s",
    ]
    return "\n".join(lines)


def write_summary_tables(outdir: Path, config: FlowMeterConfig, measurements: Sequence[PathMeasurement], result: FlowResult):
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    result_table(config, measurements, result).to_csv(outdir / "per_path.csv", index=False)
    (outdir / "flow_result.json").write_text(json.dumps(result_summary(config, result), indent=2))
    return [str(outdir / "per_path.csv"), str(outdir / "flow_result.json")]


def plot_path_velocities(outdir: Path, config: FlowMeterConfig, result: FlowResult, title="Path velocities", stem="path_velocities"):
    """Bar chart of per-path velocity, labelled with chord position."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    v = np.asarray(result.path_velocities, dtype=float)
    labels = [f"P{i + 1}\n{p.position:+.2f}D" for i, p in enumerate(config.paths[: len(v)])]
    bad = set(result.degenerate_paths)
    colors = ["tab:red" if i in bad else "tab:blue" for i in range(len(v))]
    fig = plt.figure(figsize=(7, 4))
    plt.bar(np.arange(len(v)), v, color=colors)
    plt.xticks(np.arange(len(v)), labels)
    plt.ylabel("Velocity (m/s)")
    plt.title(f"{title}  Q = {result.volumetric_flow:.6f} m³/s")
    p = outdir / f"{stem}.png"
    fig.tight_layout()
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return str(p)
