from pathlib import Path
from datetime import datetime
import json
from typing import Dict
import numpy as np
import matplotlib.pyplot as plt

from config import motor_config_to_dict
from simulation import SimulationDataset


class RunManager:
    """Manages results directory structure and file saving"""

    def __init__(self, scenario_name: str, base_dir: str = "results", verbose: bool = True):
        self.scenario_name = scenario_name
        self.base_dir = Path(base_dir)
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.verbose = verbose

        # Create directory structure: results/scenario/YYYYMMDD_HHMMSS/
        self.run_dir = self.base_dir / scenario_name.lower() / self.timestamp
        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.plots_dir = self.run_dir / "plots"
        self.plots_dir.mkdir(exist_ok=True)

        self.data_dir = self.run_dir / "data"
        self.data_dir.mkdir(exist_ok=True)

        self._log(f"\n📁 Results directory: {self.run_dir}")

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def save_plot(self, fig: plt.Figure, name: str):
        """Save a matplotlib figure"""
        path = self.plots_dir / f"{name}.png"
        fig.savefig(path, dpi=150, bbox_inches='tight')
        self._log(f"   ✓ Saved {path.name}")
        return path

    def save_json(self, data: Dict, name: str):
        """Save data as JSON"""
        path = self.data_dir / f"{name}.json"

        with open(path, 'w') as f:
            json.dump(convert_numpy(data), f, indent=2)
        self._log(f"   ✓ Saved {path.name}")
        return path

    def save_dataset(self, dataset: SimulationDataset, name: str = "signals"):
        """Save logged signals as CSV (one column per signal)"""
        path = dataset.to_csv(self.data_dir / f"{name}.csv")
        self._log(f"   ✓ Saved {path.name}")
        return path

    def save_summary(self, summary: str):
        """Save text summary"""
        path = self.run_dir / "summary.txt"
        with open(path, 'w') as f:
            f.write(summary)
        self._log(f"   ✓ Saved summary.txt")
        return path


def convert_numpy(obj):
    """Convert numpy types so they can be JSON serialized"""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, dict):
        return {k: convert_numpy(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy(item) for item in obj]
    return obj


def export_results(dataset: SimulationDataset, motor, vehicle_config, args) -> Dict:
    """Summary of a driveline run for JSON export"""
    motor_config = motor.config

    vehicle_speed = dataset.get("Vehicle Speed").data
    motor_speed = dataset.get("Motor Speed").data
    motor_torque = dataset.get("Motor Torque").data

    results = {
        'metadata': {
            'scenario': args.scenario,
            'motor': args.motor,
            'vehicle': args.vehicle,
            'timestamp': datetime.now().isoformat(),
            'dt': args.dt,
            't_end': args.t_end,
            'gear_ratio': args.gear_ratio,
            'overspeed_severity': args.overspeed_severity,
        },
        'motor_config': motor_config_to_dict(motor_config),
        'vehicle_config': {k: getattr(vehicle_config, k) for k in vehicle_config.__dataclass_fields__},
        'motor_envelope': motor.get_constraints(),
        'energy': {
            'electrical_energy_kJ': dataset.metadata.get('electrical_energy_J', 0.0) / 1e3,
            'loss_energy_kJ': dataset.metadata.get('loss_energy_J', 0.0) / 1e3,
        },
        'motor_stats': {
            'max_speed_rpm': float(np.max(np.abs(motor_speed))),
            'max_torque_Nm': float(np.max(motor_torque)),
            'min_torque_Nm': float(np.min(motor_torque)),
            'overspeed_events': int(dataset.metadata.get('overspeed_events', 0)),
        },
        'velocity_stats': {
            'max_speed_kmh': float(vehicle_speed.max()),
            'final_speed_kmh': float(vehicle_speed[-1]),
            'distance_m': float(dataset.metadata.get('distance_m', 0.0)),
        },
    }

    if "Axle Speed Reference" in dataset:
        ref = dataset.get("Axle Speed Reference").data
        axle = dataset.get("Axle Speed").data
        results['tracking'] = {
            'rms_error_rpm': float(np.sqrt(np.mean((ref - axle) ** 2))),
            'max_error_rpm': float(np.max(np.abs(ref - axle))),
        }

    return results
