import unittest
from dataclasses import FrozenInstanceError, replace

import numpy as np

from config import (
    ConfigurationError,
    MotorConfig,
    OverspeedSeverity,
    derive_loss_parameters,
    get_motor_config,
    get_vehicle_config,
    rad_s_to_rpm,
    rpm_to_rad_s,
)
from models import MotorDriveUnit


class MotorConfigTests(unittest.TestCase):
    def test_presets_are_valid(self):
        for name in ("mg1", "mg2", "MG2"):
            cfg = get_motor_config(name)
            self.assertIsInstance(cfg, MotorConfig)
        self.assertEqual(get_vehicle_config("compact_hev").M, 1450.0)

    def test_unknown_preset(self):
        with self.assertRaises(ValueError):
            get_motor_config("mg3")
        with self.assertRaises(ValueError):
            get_vehicle_config("truck")

    def test_efficiency_bounds(self):
        for eff in (100.0, 0.0, -5.0, 120.0):
            with self.assertRaises(ConfigurationError):
                MotorConfig(efficiency_pct=eff)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            MotorConfig(efficiency_pct=100.0)

    def test_no_model_from_rejected_parameters(self):
        motor = None
        with self.assertRaises(ConfigurationError):
            motor = MotorDriveUnit(get_motor_config("mg2", overrides={'efficiency_pct': 100.0}))
        self.assertIsNone(motor)

    def test_iron_ratio_bounds(self):
        for ratio in (0.0, 1.0, 1.5):
            with self.assertRaises(ConfigurationError):
                MotorConfig(iron_to_nominal_ratio=ratio)

    def test_strictly_positive_parameters(self):
        for name in ('trq_max', 'spd_max', 'power_max', 'response_time_const',
                     'spd_eff', 'trq_eff', 'elec_loss_const', 'J_rotor', 'initial_spd'):
            with self.subTest(name=name):
                with self.assertRaises(ConfigurationError):
                    replace(MotorConfig(), **{name: 0.0})

    def test_damping_may_be_zero(self):
        self.assertEqual(MotorConfig(k_damp=0.0).k_damp, 0.0)
        with self.assertRaises(ConfigurationError):
            MotorConfig(k_damp=-1e-3)

    def test_initial_speed_strictly_positive(self):
        for spd in (0.0, -1.0):
            with self.assertRaises(ConfigurationError):
                MotorConfig(initial_spd=spd)
        self.assertGreater(MotorConfig().initial_spd, 0.0)
        self.assertGreater(get_motor_config("mg1").initial_spd, 0.0)

    def test_unreachable_power(self):
        cfg = MotorConfig()
        with self.assertRaises(ConfigurationError):
            MotorConfig(power_max=cfg.trq_max * cfg.spd_max * 1.01)

    def test_test_point_outside_envelope(self):
        with self.assertRaises(ConfigurationError):
            MotorConfig(trq_eff=450.0)
        with self.assertRaises(ConfigurationError):
            MotorConfig(trq_eff=300.0, spd_eff=rpm_to_rad_s(3000.0))

    def test_fixed_loss_larger_than_total_loss(self):
        with self.assertRaises(ConfigurationError):
            MotorConfig(elec_loss_const=5000.0)

    def test_non_numeric(self):
        with self.assertRaises(ConfigurationError):
            MotorConfig(trq_max=float('nan'))
        with self.assertRaises(ConfigurationError):
            MotorConfig(trq_max="400")
        with self.assertRaises(ConfigurationError):
            MotorConfig(trq_max=True)

    def test_numpy_scalars_accepted(self):
        cfg = MotorConfig(trq_max=np.float32(400.0), k_damp=np.float64(2e-3))
        self.assertEqual(cfg.trq_max, 400.0)

    def test_frozen(self):
        cfg = MotorConfig()
        with self.assertRaises(FrozenInstanceError):
            cfg.trq_max = 10.0

    def test_overrides_are_validated(self):
        self.assertEqual(get_motor_config("mg2", overrides={'trq_max': 300.0}).trq_max, 300.0)
        with self.assertRaises(ConfigurationError):
            get_motor_config("mg2", overrides={'J_rotor': -1.0})

    def test_derived_loss_parameters(self):
        cfg = MotorConfig(trq_eff=100.0, spd_eff=200.0, efficiency_pct=80.0,
                          elec_loss_const=1000.0, iron_to_nominal_ratio=0.25)
        losses = derive_loss_parameters(cfg)

        self.assertAlmostEqual(losses.mechpow_eff, 20000.0, places=9)
        self.assertAlmostEqual(losses.total_loss_eff, 5000.0, places=9)
        self.assertAlmostEqual(losses.nominal_losses_eff, 4000.0, places=9)
        self.assertAlmostEqual(losses.iron_loss_eff, 1000.0, places=9)
        self.assertAlmostEqual(losses.copper_loss_coeff, 0.3, places=12)

    def test_rpm_conversion(self):
        self.assertAlmostEqual(rad_s_to_rpm(rpm_to_rad_s(6500.0)), 6500.0, places=9)


class OverspeedSeverityTests(unittest.TestCase):
    def test_parse(self):
        self.assertIs(OverspeedSeverity.parse("WARN"), OverspeedSeverity.WARN)
        self.assertIs(OverspeedSeverity.parse(OverspeedSeverity.ERROR), OverspeedSeverity.ERROR)
        with self.assertRaises(ValueError):
            OverspeedSeverity.parse("fatal")


if __name__ == "__main__":
    unittest.main()
