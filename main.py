import sys
import warnings
from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).parent))

from config import (
    OverspeedSeverity,
    RuntimeLimitWarning,
    get_motor_config,
    get_vehicle_config,
    rad_s_to_rpm,
)
from config.app_config import AppConfig, app
from controllers import OpenLoopController, SpeedTrackingController
from models import MotorDriveUnit, SimpleVehicle
from simulation import (
    CommandProfile,
    DrivelineSimulator,
    MotorSimulator,
    SimulationDataset,
)
from utils import RunManager, export_results
from visualization import (
    plot_driveline_results,
    plot_motor_results,
    plot_powersplit_results,
)


def _section(title: str):
    print("\n" + "="*70)
    print(title)
    print("="*70)


def build_models(args: AppConfig):
    motor_config = get_motor_config(args.motor, overrides=args.motor_overrides)
    vehicle_config = get_vehicle_config(args.vehicle, overrides=args.vehicle_overrides)

    motor = MotorDriveUnit(
        motor_config,
        overspeed_severity=OverspeedSeverity.parse(args.overspeed_severity),
        verbose=args.verbose,
    )
    vehicle = SimpleVehicle(vehicle_config)
    return motor, vehicle


def build_simulator(args: AppConfig, motor: MotorDriveUnit, vehicle: SimpleVehicle):
    if args.scenario == "motor_step":
        controller = OpenLoopController(
            CommandProfile.from_breakpoints(args.torque_profile, unit="N*m"))
        return MotorSimulator(
            motor, controller,
            load_profile=CommandProfile.constant(args.load_torque, unit="N*m"),
            v_bus=args.v_bus, dt=args.dt, verbose=args.verbose,
        )

    if args.scenario == "open_loop":
        controller = OpenLoopController(
            CommandProfile.from_breakpoints(args.torque_profile, unit="N*m"),
            CommandProfile.from_breakpoints(args.brake_profile, unit="N"),
        )
    else:
        controller = SpeedTrackingController.from_vehicle_speed_kmh(
            CommandProfile.from_breakpoints(args.speed_reference_kmh, unit="km/h"),
            motor,
            gear_ratio=args.gear_ratio,
            tire_radius=vehicle.config.R,
            kp=args.kp,
            ki=args.ki,
            max_brake_force=args.max_brake_force,
        )

    return DrivelineSimulator(
        motor, vehicle, controller,
        gear_ratio=args.gear_ratio, v_bus=args.v_bus, dt=args.dt, verbose=args.verbose,
    )


def main(args: AppConfig):
    """Main execution function."""

    print("="*70)
    print("  MOTOR DRIVE / VEHICLE SIMULATION")
    print("="*70)

    run_manager = RunManager(args.scenario, base_dir=args.results_dir, verbose=args.verbose)

    # =========================================================================
    _section("CONFIGURATION")

    motor, vehicle = build_models(args)
    mcfg = motor.config
    vcfg = vehicle.config

    print(f"\nScenario: {args.scenario}")
    print(f"Motor ({args.motor}): {mcfg.trq_max:.0f} N·m, {mcfg.power_max/1000:.0f} kW, "
          f"{rad_s_to_rpm(mcfg.spd_max):.0f} rpm max, corner at {rad_s_to_rpm(mcfg.corner_speed):.0f} rpm")
    print(f"   Efficiency {mcfg.efficiency_pct:.1f}% at {rad_s_to_rpm(mcfg.spd_eff):.0f} rpm / "
          f"{mcfg.trq_eff:.0f} N·m -> {motor.losses.total_loss_eff:.0f} W loss")
    print(f"Vehicle ({args.vehicle}): M={vcfg.M:.0f} kg, R={vcfg.R:.3f} m")
    print(f"Overspeed severity: {motor.overspeed_severity.value}")

    # =========================================================================
    _section("SIMULATION")

    simulator = build_simulator(args, motor, vehicle)

    # One warning per overspeed sample; the motor keeps the count
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeLimitWarning)
        dataset = simulator.simulate(args.t_end)

    if motor.overspeed_events:
        print(f"   ⚠ {motor.overspeed_events} overspeed samples "
              f"(spd_max {rad_s_to_rpm(mcfg.spd_max):.0f} rpm)")

    # =========================================================================
    _section("RESULTS SUMMARY")

    meta = dataset.metadata
    motor_speed = dataset.get("Motor Speed").data

    summary_text = f"""
        {'='*70}
        MOTOR DRIVE SIMULATION RESULTS - {args.scenario.upper()}
        {'='*70}
        Motor preset:           {args.motor}
        Vehicle preset:         {args.vehicle}
        Step size:              {args.dt*1e3:.3f} ms
        Duration:               {meta['t_end']:.2f} s

        MOTOR:
        Max speed:              {abs(motor_speed).max():.0f} rpm
        Overspeed samples:      {meta['overspeed_events']}
        Electrical energy:      {meta['electrical_energy_J']/1e3:.1f} kJ
        Loss energy:            {meta['loss_energy_J']/1e3:.1f} kJ
    """

    if "Vehicle Speed" in dataset:
        summary_text += f"""
        VEHICLE:
        Final speed:            {meta['final_speed_kmh']:.1f} km/h
        Max speed:              {dataset.get('Vehicle Speed').data.max():.1f} km/h
        Distance:               {meta['distance_m']:.0f} m
    """

    summary_text += f"""
        {'='*70}
    """

    print(summary_text)
    run_manager.save_summary(summary_text)

    # =========================================================================
    _section("SAVING DATA")

    run_manager.save_dataset(dataset, 'signals')
    if "Vehicle Speed" in dataset:
        run_manager.save_json(export_results(dataset, motor, vcfg, args), 'results_summary')
    else:
        run_manager.save_json(dataset.metadata, 'results_summary')

    # =========================================================================
    if args.plot:
        _section("GENERATING PLOTS")

        if args.scenario == "motor_step":
            fig = plot_motor_results(dataset, title=f"{args.motor.upper()} step response")
        else:
            fig = plot_driveline_results(dataset, title=f"Driveline - {args.scenario}")
        run_manager.save_plot(fig, '01_traces')
        plt.close(fig)

        print("\n✓ All plots saved!")

    print("\n" + "="*70)
    print("  COMPLETE")
    print("="*70)
    print(f"\n📁 All results saved to: {run_manager.run_dir}")

    return dataset, run_manager


def plot_saved_run(csv_path: Path, layout: str = "driveline", output: Optional[Path] = None):
    """Render a saved signals CSV with one of the trace layouts"""
    dataset = SimulationDataset.from_csv(csv_path)

    plotters = {
        'powersplit': plot_powersplit_results,
        'driveline': plot_driveline_results,
        'motor': plot_motor_results,
    }
    fig = plotters[layout](dataset)

    if output is None:
        output = Path(csv_path).with_name(f"{Path(csv_path).stem}_{layout}.png")
    fig.savefig(output, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"   ✓ Saved {output}")
    return output


if __name__ == "__main__":
    app()
