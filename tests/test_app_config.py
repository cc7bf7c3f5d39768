import tempfile
import unittest
import warnings
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

from config import RuntimeLimitWarning
from config.app_config import AppConfig, build_app_config
from main import main


class BuildAppConfigTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, text):
        path = self.tmp / "run.yaml"
        path.write_text(text)
        return path

    def test_defaults(self):
        args = build_app_config({})
        self.assertEqual(args.scenario, "speed_tracking")
        self.assertEqual(args.gear_ratio, 4.113)

    def test_yaml_then_cli(self):
        path = self._write("scenario: open_loop\ndt: 0.002\nmotor_overrides:\n  trq_max: 300.0\n")
        args = build_app_config({"dt": 0.005, "t_end": None}, path)

        self.assertEqual(args.scenario, "open_loop")
        self.assertEqual(args.dt, 0.005)
        self.assertEqual(args.t_end, AppConfig().t_end)
        self.assertEqual(args.motor_overrides, {"trq_max": 300.0})

    def test_unknown_yaml_key(self):
        with self.assertRaises(ValueError):
            build_app_config({}, self._write("gear: 3.0\n"))

    def test_shipped_configs_load(self):
        configs = Path(__file__).resolve().parent.parent / "configs"
        self.assertEqual(build_app_config({}, configs / "motor_step.yaml").motor, "mg1")
        args = build_app_config({}, configs / "speed_tracking.yaml")
        self.assertEqual(args.speed_reference_kmh[-1], [50.0, 0.0])

    def test_bad_choices(self):
        with self.assertRaises(ValueError):
            build_app_config({"scenario": "drive_cycle"})
        with self.assertRaises(ValueError):
            build_app_config({"overspeed_severity": "fatal"})


class MainSmokeTests(unittest.TestCase):
    def test_short_runs_write_outputs(self):
        with tempfile.TemporaryDirectory() as tmp:
            for scenario in ("speed_tracking", "open_loop", "motor_step"):
                with self.subTest(scenario=scenario):
                    args = AppConfig(scenario=scenario, t_end=0.5, dt=5e-3,
                                     results_dir=tmp, verbose=False)
                    dataset, run_manager = main(args)

                    self.assertIn("Motor Speed", dataset)
                    self.assertTrue((run_manager.data_dir / "signals.csv").exists())
                    self.assertTrue((run_manager.data_dir / "results_summary.json").exists())
                    self.assertTrue((run_manager.plots_dir / "01_traces.png").exists())

    def test_overspeed_samples_are_counted_not_collected(self):
        args = AppConfig(scenario="motor_step", t_end=1.0, dt=1e-3, plot=False, verbose=False,
                         torque_profile=[[0.0, 1000.0], [1.0, 1000.0]])
        with tempfile.TemporaryDirectory() as tmp:
            args.results_dir = tmp
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                dataset, _ = main(args)

        self.assertGreater(dataset.metadata['overspeed_events'], 500)
        self.assertFalse([w for w in caught if issubclass(w.category, RuntimeLimitWarning)])


if __name__ == "__main__":
    unittest.main()
