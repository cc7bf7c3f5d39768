"""
Rudimentary longitudinal vehicle

One axle node (torque in, speed out), a brake-force command and a
first-order mass integration:

    F_brake = max(0, BrkF) * tanh(axle_spd / 0.1 rpm)
    axle_spd = v / R
    M * dv/dt = axle_trq / R - F_brake

The tanh term makes the brake force follow the direction of motion and fade
to zero at standstill, so a stopped vehicle is never pushed backwards.
"""
from typing import Dict

import casadi as ca
import numpy as np

from config import ConfigurationError, VehicleConfig, rpm_to_rad_s

# Axle speed at which the brake force reaches tanh(1) of the command
BRAKE_SPEED_THRESHOLD = rpm_to_rad_s(0.1)   # [rad/s]

MPS_TO_KMH = 3.6


class SimpleVehicle:
    """
    State: x = [v]
    Control: u = [brk_f, axle_trq]
    """

    def __init__(self, config: VehicleConfig):
        if not isinstance(config, VehicleConfig):
            raise ConfigurationError(f"Expected VehicleConfig, got {type(config).__name__}")
        self.config = config

        self._dynamics_time_func = None
        self._brake_func = None

    # ==================== Symbolic ====================

    def brake_force_sym(self, brk_f, axle_spd):
        return ca.fmax(brk_f, 0) * ca.tanh(axle_spd / BRAKE_SPEED_THRESHOLD)

    def axle_speed_sym(self, v):
        return v / self.config.R

    def create_time_domain_dynamics(self) -> ca.Function:
        """
        Create CasADi function for the longitudinal dynamics.

        Returns: dv/dt, plus the algebraic brake force and axle speed
        """
        if self._dynamics_time_func is not None:
            return self._dynamics_time_func

        veh = self.config

        v = ca.MX.sym('v')
        brk_f = ca.MX.sym('brk_f')
        axle_trq = ca.MX.sym('axle_trq')

        axle_spd = self.axle_speed_sym(v)
        F_brake = self.brake_force_sym(brk_f, axle_spd)
        dv_dt = (axle_trq / veh.R - F_brake) / veh.M

        x = ca.vertcat(v)
        u = ca.vertcat(brk_f, axle_trq)

        self._dynamics_time_func = ca.Function(
            'vehicle_dynamics', [x, u], [dv_dt, F_brake, axle_spd],
            ['x', 'u'], ['x_dot', 'F_brake', 'axle_spd']
        )
        return self._dynamics_time_func

    # ==================== Scalar ====================

    def brake_force(self, brk_f: float, axle_spd: float) -> float:
        if self._brake_func is None:
            brk = ca.MX.sym('brk_f')
            spd = ca.MX.sym('axle_spd')
            self._brake_func = ca.Function(
                'brake_force', [brk, spd], [self.brake_force_sym(brk, spd)],
                ['brk_f', 'axle_spd'], ['F_brake'])
        return float(self._brake_func(brk_f, axle_spd))

    def axle_speed(self, v: float) -> float:
        return v / self.config.R

    def reaction_torque(self, axle_trq: float) -> float:
        """Torque the vehicle exerts back on the axle node"""
        return -axle_trq

    def acceleration(self, v: float, brk_f: float, axle_trq: float) -> float:
        out = self.create_time_domain_dynamics()(v, [brk_f, axle_trq])
        return float(out[0])

    def step_outputs(self, v: float, brk_f: float, axle_trq: float) -> Dict[str, float]:
        """Every per-step quantity, in evaluation order"""
        dv_dt, F_brake, axle_spd = self.create_time_domain_dynamics()(v, [brk_f, axle_trq])
        return {
            'F_brake': float(F_brake),
            'axle_trq': axle_trq,
            'axle_spd': float(axle_spd),
            'dv_dt': float(dv_dt),
            'v': v,
            'V_out': self.speed_kmh(v),
        }

    def initial_state(self) -> np.ndarray:
        return np.array([self.config.initial_speed])

    @staticmethod
    def speed_kmh(v: float) -> float:
        return v * MPS_TO_KMH

    @staticmethod
    def speed_mps(v_kmh: float) -> float:
        return v_kmh / MPS_TO_KMH

    def ramp_speed(self, v0: float, axle_trq: float, t: float) -> float:
        """Closed-form speed for constant axle torque and no brake"""
        veh = self.config
        return v0 + axle_trq / (veh.M * veh.R) * t

