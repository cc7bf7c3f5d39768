from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Annotated, Literal, Optional

import typer
import yaml

from simulation.profiles import DEFAULT_SPEED_REFERENCE_KMH


@dataclass
class AppConfig:
    scenario: Literal["speed_tracking", "open_loop", "motor_step"] = "speed_tracking"
    motor: str = "mg2"
    vehicle: str = "compact_hev"
    gear_ratio: float = 4.113
    dt: float = 1e-3
    t_end: float = 50.0
    v_bus: float = 500.0
    overspeed_severity: Literal["ignore", "warn", "error"] = "warn"
    kp: float = 400.0
    ki: float = 100.0
    max_brake_force: float = 8000.0
    load_torque: float = 0.0
    plot: bool = True
    results_dir: str = "results"
    verbose: bool = True
    motor_overrides: dict = field(default_factory=dict)
    vehicle_overrides: dict = field(default_factory=dict)
    speed_reference_kmh: list = field(default_factory=lambda: [list(p) for p in DEFAULT_SPEED_REFERENCE_KMH])
    torque_profile: list = field(default_factory=lambda: [
        [0.0, 0.0], [1.0, 0.0], [1.2, 200.0], [15.0, 200.0], [15.2, 0.0], [30.0, 0.0],
    ])
    brake_profile: list = field(default_factory=lambda: [
        [0.0, 0.0], [20.0, 0.0], [20.5, 4000.0], [30.0, 4000.0],
    ])


_SCENARIOS = ("speed_tracking", "open_loop", "motor_step")
_SEVERITIES = ("ignore", "warn", "error")


def _load_yaml_defaults(path: Path) -> dict:
    """Load a YAML config file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def build_app_config(cli_values: dict, config_path: Optional[Path] = None) -> AppConfig:
    """
    AppConfig defaults <- YAML file <- explicitly given CLI values.

    CLI options left unset arrive as None and do not override the file.
    """
    known = {f.name for f in fields(AppConfig)}
    merged = {}

    if config_path is not None:
        yaml_values = _load_yaml_defaults(config_path)
        unknown = set(yaml_values) - known
        if unknown:
            raise ValueError(f"Unknown keys in {config_path}: {sorted(unknown)}")
        merged.update(yaml_values)

    merged.update({k: v for k, v in cli_values.items() if v is not None})

    if merged.get("scenario", "speed_tracking") not in _SCENARIOS:
        raise ValueError(f"Unknown scenario: {merged['scenario']}. Options: {list(_SCENARIOS)}")
    if merged.get("overspeed_severity", "warn") not in _SEVERITIES:
        raise ValueError(
            f"Unknown overspeed severity: {merged['overspeed_severity']}. Options: {list(_SEVERITIES)}")

    return AppConfig(**merged)


app = typer.Typer(add_completion=False, help="Motor-drive / vehicle simulation")


@app.command(help="Run a motor or driveline scenario")
def simulate(
    # ── Scenario ──────────────────────────────────────────────────
    scenario: Annotated[Optional[str], typer.Option(help="speed_tracking, open_loop or motor_step")] = None,
    motor: Annotated[Optional[str], typer.Option(help="Motor preset (mg1, mg2)")] = None,
    vehicle: Annotated[Optional[str], typer.Option(help="Vehicle preset (compact_hev)")] = None,
    gear_ratio: Annotated[Optional[float], typer.Option(help="Motor-to-axle gear ratio [-]")] = None,
    load_torque: Annotated[Optional[float], typer.Option(help="Constant load torque for motor_step [N·m]")] = None,

    # ── Integration ───────────────────────────────────────────────
    dt: Annotated[Optional[float], typer.Option(help="Fixed step size [s]")] = None,
    t_end: Annotated[Optional[float], typer.Option(help="Simulation end time [s]")] = None,
    v_bus: Annotated[Optional[float], typer.Option(help="DC bus voltage [V]")] = None,
    overspeed_severity: Annotated[Optional[str], typer.Option(help="ignore, warn or error")] = None,

    # ── Driver ────────────────────────────────────────────────────
    kp: Annotated[Optional[float], typer.Option(help="Speed tracking proportional gain at the axle")] = None,
    ki: Annotated[Optional[float], typer.Option(help="Speed tracking integral gain at the axle")] = None,
    max_brake_force: Annotated[Optional[float], typer.Option(help="Friction brake saturation [N]")] = None,

    # ── Output ────────────────────────────────────────────────────
    plot: Annotated[Optional[bool], typer.Option("--plot/--no-plot", help="Generate trace plots")] = None,
    results_dir: Annotated[Optional[str], typer.Option(help="Base directory for run outputs")] = None,
    verbose: Annotated[Optional[bool], typer.Option("--verbose/--quiet", help="Print progress")] = None,

    # ── Config file ───────────────────────────────────────────────
    config: Annotated[Optional[Path], typer.Option(help="Path to YAML config file")] = None,
):
    """Build AppConfig from CLI args (with optional YAML defaults) and run."""
    from main import main as run_main

    cli_values = {
        "scenario": scenario, "motor": motor, "vehicle": vehicle,
        "gear_ratio": gear_ratio, "load_torque": load_torque,
        "dt": dt, "t_end": t_end, "v_bus": v_bus,
        "overspeed_severity": overspeed_severity,
        "kp": kp, "ki": ki, "max_brake_force": max_brake_force,
        "plot": plot, "results_dir": results_dir, "verbose": verbose,
    }

    try:
        args = build_app_config(cli_values, config)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    run_main(args)


@app.command(help="Plot traces from a saved signals CSV")
def plot(
    csv_path: Annotated[Path, typer.Argument(help="signals.csv written by a previous run")],
    layout: Annotated[str, typer.Option(help="powersplit, driveline or motor")] = "driveline",
    output: Annotated[Optional[Path], typer.Option(help="Image file to write")] = None,
):
    from main import plot_saved_run

    if layout not in ("powersplit", "driveline", "motor"):
        raise typer.BadParameter(f"Unknown layout: {layout}")

    plot_saved_run(csv_path, layout, output)
