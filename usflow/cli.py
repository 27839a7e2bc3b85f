from __future__ import annotations
import argparse, json, logging
from pathlib import Path
from .errors import ConfigurationError
from .flowmeter import flowmeter_process, flowmeter_result_free
from .io import load_config_json, load_measurements_csv, write_measurements_csv
from .presets import PRESETS, build_preset
from .report import (
    format_config,
    format_measurements,
    format_results,
    plot_path_velocities,
    result_summary,
    write_summary_tables,
)
from .simulate import SOUND_SPEED_WATER, simulate_measurements

logger = logging.getLogger(__name__)


def build_parser():
    p = argparse.ArgumentParser(prog="usflow", description="Multipath ultrasonic transit-time flow meter")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    d = sub.add_parser("demo", help="Simulate and process the built-in path layouts")
    d.add_argument("--diameter", type=float, default=0.1, help="Pipe diameter [m]")
    d.add_argument("--velocity", type=float, default=2.0, help="True flow velocity [m/s]")
    d.add_argument("--sound-speed", type=float, default=SOUND_SPEED_WATER, help="Speed of sound [m/s]")
    d.add_argument("--preset", nargs="+", choices=list(PRESETS), default=list(PRESETS))

    pr = sub.add_parser("process", help="Compute flow from a config JSON and a measurements CSV")
    pr.add_argument("--config", required=True, type=Path, help="Meter configuration JSON")
    pr.add_argument("--measurements", required=True, type=Path, help="Transit-time CSV, one row per path")
    pr.add_argument("--out", type=Path, default=None, help="Directory for per_path.csv / flow_result.json")
    pr.add_argument("--plot", action="store_true", help="Also write path_velocities.png (needs --out)")

    s = sub.add_parser("simulate", help="Write synthetic transit times for a uniform flow")
    s.add_argument("--config", type=Path, default=None, help="Meter configuration JSON")
    s.add_argument("--preset", choices=list(PRESETS), default=None)
    s.add_argument("--diameter", type=float, default=0.1, help="Pipe diameter for --preset [m]")
    s.add_argument("--velocity", type=float, required=True, help="True flow velocity [m/s]")
    s.add_argument("--sound-speed", type=float, default=SOUND_SPEED_WATER)
    s.add_argument("--out", required=True, type=Path)
    return p


def _demo(a):
    print("=== Ultrasonic Multipath Flow Meter ===\n")
    for name in a.preset:
        config = build_preset(name, a.diameter)
        print(f"### {config.num_paths}-PATH CONFIGURATION ###\n")
        print(format_config(config))
        measurements = simulate_measurements(config, a.velocity, sound_speed=a.sound_speed)
        print()
        print(format_measurements(measurements, a.velocity))
        result = flowmeter_process(config, measurements)
        try:
            print()
            print(format_results(result))
        finally:
            flowmeter_result_free(result)
        print("\n")
    print("=== End of Demonstration ===")


def _process(a):
    config = load_config_json(a.config)
    measurements = load_measurements_csv(a.measurements)
    with flowmeter_process(config, measurements) as result:
        summary = result_summary(config, result)
        if a.out:
            summary["files"] = write_summary_tables(a.out, config, measurements, result)
            if a.plot:
                summary["files"].append(plot_path_velocities(a.out, config, result))
        elif a.plot:
            logger.warning("--plot ignored without --out")
    print(json.dumps(summary, indent=2))


def _simulate(a):
    if a.config:
        config = load_config_json(a.config)
    elif a.preset:
        config = build_preset(a.preset, a.diameter)
    else:
        raise SystemExit("simulate needs --config or --preset")
    measurements = simulate_measurements(config, a.velocity, sound_speed=a.sound_speed)
    out = write_measurements_csv(a.out, measurements)
    print(json.dumps({"measurements_csv": str(out), "num_paths": len(measurements)}))


def main(argv=None):
    ap = build_parser()
    a = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if a.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if a.cmd == "demo":
            _demo(a)
        elif a.cmd == "process":
            _process(a)
        elif a.cmd == "simulate":
            _simulate(a)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        raise SystemExit(f"usflow: {e}") from e
    except ValueError as e:
        # e.g. simulated flow faster than the speed of sound
        logger.error("Invalid input: %s", e)
        raise SystemExit(f"usflow: {e}") from e


if __name__ == "__main__":
    main()
