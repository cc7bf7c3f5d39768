import unittest
import warnings

import numpy as np

from config import (
    MotorConfig,
    OverspeedSeverity,
    RuntimeLimitWarning,
    rpm_to_rad_s,
)
from models import MotorDriveUnit


class MotorLossModelTests(unittest.TestCase):
    def setUp(self):
        self.config = MotorConfig()
        self.motor = MotorDriveUnit(self.config)

    def test_efficiency_reproduced_at_test_point(self):
        cfg = self.config
        out = self.motor.evaluate(cfg.trq_eff, cfg.spd_eff)

        self.assertAlmostEqual(out['trq_out'], cfg.trq_eff, places=12)
        eta = out['p_mech'] / (out['p_mech'] + out['p_loss'])
        self.assertAlmostEqual(eta, cfg.efficiency_pct / 100.0, places=12)
        self.assertAlmostEqual(self.motor.efficiency(cfg.trq_eff, cfg.spd_eff),
                               cfg.efficiency_pct / 100.0, places=12)

    def test_efficiency_reproduced_for_mg1(self):
        cfg = MotorConfig.for_mg1()
        motor = MotorDriveUnit(cfg)
        self.assertAlmostEqual(motor.efficiency(cfg.trq_eff, cfg.spd_eff),
                               cfg.efficiency_pct / 100.0, places=12)

    def test_loss_split_at_test_point(self):
        losses = self.motor.losses
        cfg = self.config
        copper = losses.copper_loss_coeff * cfg.trq_eff**2

        self.assertAlmostEqual(losses.iron_loss_eff + cfg.elec_loss_const + copper,
                               losses.total_loss_eff, places=9)
        self.assertAlmostEqual(losses.iron_loss_eff,
                               cfg.iron_to_nominal_ratio * losses.nominal_losses_eff, places=12)
        self.assertAlmostEqual(self.motor.loss_power(cfg.trq_eff, cfg.spd_eff),
                               losses.total_loss_eff, places=9)

    def test_idle_loss_is_iron_plus_fixed(self):
        expected = self.motor.losses.iron_loss_eff + self.config.elec_loss_const
        self.assertAlmostEqual(self.motor.loss_power(0.0, 100.0), expected, places=9)

    def test_loss_grows_with_torque_squared(self):
        base = self.motor.loss_power(0.0, 50.0)
        l1 = self.motor.loss_power(50.0, 50.0) - base
        l2 = self.motor.loss_power(100.0, 50.0) - base
        self.assertAlmostEqual(l2 / l1, 4.0, places=9)

    def test_torque_clamp(self):
        trq_max = self.config.trq_max
        for cmd in (trq_max + 1.0, 1000.0, 1e6, -1e6):
            for spd in (0.0, 10.0, 100.0, 149.0):
                trq = self.motor.clamp_torque(cmd, spd)
                self.assertLessEqual(abs(trq), trq_max + 1e-9)

        self.assertAlmostEqual(self.motor.clamp_torque(1000.0, 0.0), trq_max, places=12)
        self.assertAlmostEqual(self.motor.clamp_torque(-1000.0, 50.0), -trq_max, places=12)

    def test_power_clamp(self):
        p_max = self.config.power_max
        for spd in np.linspace(1.0, self.config.spd_max, 25):
            for cmd in (-1e4, -400.0, 50.0, 250.0, 400.0, 1e4):
                trq = self.motor.clamp_torque(cmd, spd)
                self.assertLessEqual(abs(trq * spd), p_max * (1.0 + 1e-12))

    def test_constant_power_above_corner_speed(self):
        corner = self.config.corner_speed
        self.assertAlmostEqual(corner, 150.0, places=12)

        self.assertAlmostEqual(self.motor.clamp_torque(1e3, 0.5 * corner), self.config.trq_max, places=9)
        self.assertAlmostEqual(self.motor.clamp_torque(1e3, 2.0 * corner), self.config.trq_max / 2.0, places=9)
        self.assertAlmostEqual(self.motor.torque_limit(2.0 * corner), self.config.trq_max / 2.0, places=9)

    def test_commands_inside_envelope_pass_through(self):
        self.assertAlmostEqual(self.motor.clamp_torque(123.0, 100.0), 123.0, places=12)
        self.assertAlmostEqual(self.motor.clamp_torque(-50.0, -300.0), -50.0, places=12)

    def test_bus_current(self):
        trq, spd, v_bus = 100.0, 200.0, 500.0
        p_elec = self.motor.electrical_power(trq, spd)
        self.assertAlmostEqual(self.motor.bus_current(trq, spd, v_bus), p_elec / v_bus, places=9)
        self.assertEqual(self.motor.bus_current(trq, spd, 0.0), 0.0)

    def test_generating_draws_less_than_mechanical_power(self):
        # Regenerating: electrical power is less negative than mechanical
        out = self.motor.evaluate(-100.0, 200.0)
        self.assertLess(out['p_mech'], 0.0)
        self.assertGreater(out['p_elec'], out['p_mech'])
        self.assertEqual(self.motor.efficiency(-100.0, 200.0), 0.0)


class MotorDynamicsTests(unittest.TestCase):
    def setUp(self):
        self.config = MotorConfig()
        self.motor = MotorDriveUnit(self.config)

    def test_torque_lag_rate(self):
        x_dot = self.motor.derivatives(np.array([0.0, 0.0]), trq_cmd=100.0)
        self.assertAlmostEqual(x_dot[0], 0.0, places=12)
        self.assertAlmostEqual(x_dot[1], 100.0 / self.config.response_time_const, places=9)

    def test_lag_targets_clamped_command(self):
        x_dot = self.motor.derivatives(np.array([0.0, 0.0]), trq_cmd=1e4)
        self.assertAlmostEqual(x_dot[1], self.config.trq_max / self.config.response_time_const, places=6)

    def test_rotor_acceleration(self):
        cfg = self.config
        x_dot = self.motor.derivatives(np.array([10.0, 50.0]), trq_cmd=50.0, trq_load=20.0)
        expected = (50.0 - cfg.k_damp * 10.0 - 20.0) / cfg.J_rotor
        self.assertAlmostEqual(x_dot[0], expected, places=9)
        self.assertAlmostEqual(x_dot[1], 0.0, places=12)

    def test_initial_state(self):
        motor = MotorDriveUnit(MotorConfig(initial_spd=rpm_to_rad_s(1000.0)))
        np.testing.assert_allclose(motor.initial_state(), [rpm_to_rad_s(1000.0), 0.0])

    def test_dynamics_function_is_cached(self):
        self.assertIs(self.motor.create_time_domain_dynamics(), self.motor.create_time_domain_dynamics())
        self.assertIs(self.motor.create_output_function(), self.motor.create_output_function())


class OverspeedTests(unittest.TestCase):
    def setUp(self):
        self.config = MotorConfig()

    def test_below_limit_is_silent(self):
        motor = MotorDriveUnit(self.config, overspeed_severity=OverspeedSeverity.ERROR)
        self.assertFalse(motor.check_overspeed(self.config.spd_max * 0.99))
        self.assertEqual(motor.overspeed_events, 0)

    def test_warn_reports_and_continues(self):
        motor = MotorDriveUnit(self.config, overspeed_severity=OverspeedSeverity.WARN)
        with self.assertWarns(RuntimeLimitWarning):
            exceeded = motor.check_overspeed(self.config.spd_max + 1.0, t=1.5)
        self.assertTrue(exceeded)
        self.assertEqual(motor.overspeed_events, 1)

    def test_limit_is_inclusive_and_symmetric(self):
        motor = MotorDriveUnit(self.config, overspeed_severity=OverspeedSeverity.WARN)
        with self.assertWarns(RuntimeLimitWarning):
            self.assertTrue(motor.check_overspeed(self.config.spd_max))
        with self.assertWarns(RuntimeLimitWarning):
            self.assertTrue(motor.check_overspeed(-self.config.spd_max - 1.0))

    def test_error_raises(self):
        motor = MotorDriveUnit(self.config, overspeed_severity="error")
        with self.assertRaises(RuntimeLimitWarning):
            motor.check_overspeed(self.config.spd_max + 1.0)

    def test_ignore_is_suppressed(self):
        motor = MotorDriveUnit(self.config, overspeed_severity=OverspeedSeverity.IGNORE)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertTrue(motor.check_overspeed(self.config.spd_max * 2.0))
        self.assertEqual(len(caught), 0)
        self.assertEqual(motor.overspeed_events, 1)

    def test_unknown_severity(self):
        with self.assertRaises(ValueError):
            MotorDriveUnit(self.config, overspeed_severity="loud")


if __name__ == "__main__":
    unittest.main()
