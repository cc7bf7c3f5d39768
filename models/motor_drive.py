"""
Motor & drive unit

Torque command -> delivered torque, losses and rotor speed, with:
- "max torque and power" limiting: constant torque below the corner speed,
  constant power above it
- losses from a single efficiency test point (iron + fixed electrical + copper)
- first-order lag between commanded and delivered torque (drive bandwidth)
- rotor inertia/damping against an external load torque

The equations are built as CasADi expressions so a solver can use the
compiled functions directly; the scalar methods evaluate the same
functions for one operating point.
"""
import warnings
from typing import Dict, Optional

import casadi as ca
import numpy as np

from config import (
    ConfigurationError,
    MotorConfig,
    OverspeedSeverity,
    RuntimeLimitWarning,
    derive_loss_parameters,
)

# Speed below which the power limit is not evaluated (avoids P/0)
_SPD_EPS = 1e-9
# Bus voltage below which no current is reported
_V_BUS_EPS = 1e-6


class MotorDriveUnit:
    """
    Motor and drive electronics as seen from the torque command and the shaft.

    State: x = [spd, trq]  (rotor speed, lagged torque)
    Input: u = [trq_cmd, trq_load]
    """

    def __init__(self,
                 config: MotorConfig,
                 overspeed_severity: OverspeedSeverity = OverspeedSeverity.WARN,
                 verbose: bool = False):

        if not isinstance(config, MotorConfig):
            raise ConfigurationError(f"Expected MotorConfig, got {type(config).__name__}")

        self.config = config
        self.losses = derive_loss_parameters(config)
        self.overspeed_severity = OverspeedSeverity.parse(overspeed_severity)
        self.verbose = verbose

        self.overspeed_events = 0

        # Cache for CasADi functions
        self._output_func = None
        self._dynamics_time_func = None

    @property
    def name(self) -> str:
        return "MotorDriveUnit"

    def _log(self, message: str):
        if self.verbose:
            print(f"   [{self.name}] {message}")

    # =====================================================================
    # SYMBOLIC MODEL
    # =====================================================================

    def torque_limit_sym(self, spd):
        """Maximum torque magnitude at a given speed"""
        cfg = self.config
        return ca.fmin(cfg.trq_max, cfg.power_max / ca.fmax(ca.fabs(spd), _SPD_EPS))

    def clamp_torque_sym(self, trq, spd):
        limit = self.torque_limit_sym(spd)
        return ca.fmax(-limit, ca.fmin(trq, limit))

    def loss_power_sym(self, trq):
        losses = self.losses
        return (losses.iron_loss_eff
                + self.config.elec_loss_const
                + losses.copper_loss_coeff * trq**2)

    def lag_rate_sym(self, trq, trq_cmd, spd):
        """d(trq)/dt of the drive's torque response"""
        target = self.clamp_torque_sym(trq_cmd, spd)
        return (target - trq) / self.config.response_time_const

    def rotor_accel_sym(self, trq, spd, trq_load):
        cfg = self.config
        trq_del = self.clamp_torque_sym(trq, spd)
        return (trq_del - cfg.k_damp * spd - trq_load) / cfg.J_rotor

    def create_output_function(self) -> ca.Function:
        """
        Algebraic outputs at one operating point.

        Inputs: trq (torque state), spd, v_bus
        Outputs: trq_out, p_mech, p_loss, p_elec, i_bus
        """
        if self._output_func is not None:
            return self._output_func

        trq = ca.MX.sym('trq')
        spd = ca.MX.sym('spd')
        v_bus = ca.MX.sym('v_bus')

        trq_out = self.clamp_torque_sym(trq, spd)
        p_mech = trq_out * spd
        p_loss = self.loss_power_sym(trq_out)
        p_elec = p_mech + p_loss

        # Electrical node only carries current with a positive supply
        i_bus = ca.if_else(v_bus > _V_BUS_EPS, p_elec / ca.fmax(v_bus, _V_BUS_EPS), 0)

        self._output_func = ca.Function(
            'motor_outputs',
            [trq, spd, v_bus], [trq_out, p_mech, p_loss, p_elec, i_bus],
            ['trq', 'spd', 'v_bus'], ['trq_out', 'p_mech', 'p_loss', 'p_elec', 'i_bus']
        )
        return self._output_func

    def create_time_domain_dynamics(self) -> ca.Function:
        """
        Create CasADi function for the rotor and torque-lag dynamics.

        State: x = [spd, trq]
        Control: u = [trq_cmd, trq_load]

        Returns: dx/dt
        """
        if self._dynamics_time_func is not None:
            return self._dynamics_time_func

        spd = ca.MX.sym('spd')
        trq = ca.MX.sym('trq')
        trq_cmd = ca.MX.sym('trq_cmd')
        trq_load = ca.MX.sym('trq_load')

        dspd_dt = self.rotor_accel_sym(trq, spd, trq_load)
        dtrq_dt = self.lag_rate_sym(trq, trq_cmd, spd)

        x = ca.vertcat(spd, trq)
        u = ca.vertcat(trq_cmd, trq_load)
        x_dot = ca.vertcat(dspd_dt, dtrq_dt)

        self._dynamics_time_func = ca.Function(
            'motor_dynamics', [x, u], [x_dot],
            ['x', 'u'], ['x_dot']
        )
        return self._dynamics_time_func

    # =====================================================================
    # SCALAR EVALUATION
    # =====================================================================

    def torque_limit(self, spd: float) -> float:
        cfg = self.config
        if abs(spd) <= _SPD_EPS:
            return cfg.trq_max
        return min(cfg.trq_max, cfg.power_max / abs(spd))

    def clamp_torque(self, trq: float, spd: float) -> float:
        """Achievable torque for a command at the given speed"""
        return float(self.create_output_function()(trq, spd, 0.0)[0])

    def loss_power(self, trq: float, spd: float) -> float:
        """Total loss power [W] when delivering (clamped) trq at spd"""
        return float(self.create_output_function()(trq, spd, 0.0)[2])

    def electrical_power(self, trq: float, spd: float) -> float:
        return float(self.create_output_function()(trq, spd, 0.0)[3])

    def bus_current(self, trq: float, spd: float, v_bus: float) -> float:
        return float(self.create_output_function()(trq, spd, v_bus)[4])

    def evaluate(self, trq: float, spd: float, v_bus: float = 0.0) -> Dict[str, float]:
        """All algebraic outputs at one operating point"""
        out = self.create_output_function()(trq, spd, v_bus)
        keys = ('trq_out', 'p_mech', 'p_loss', 'p_elec', 'i_bus')
        return {k: float(v) for k, v in zip(keys, out)}

    def efficiency(self, trq: float, spd: float) -> float:
        """
        Motoring efficiency P_mech / (P_mech + P_loss).

        Returns 0 where no mechanical power is delivered.
        """
        out = self.evaluate(trq, spd)
        if out['p_mech'] <= 0.0:
            return 0.0
        return out['p_mech'] / out['p_elec']

    def derivatives(self, state: np.ndarray, trq_cmd: float, trq_load: float = 0.0) -> np.ndarray:
        """dx/dt for x = [spd, trq]"""
        return self.create_time_domain_dynamics()(state, [trq_cmd, trq_load]).full().flatten()

    def initial_state(self) -> np.ndarray:
        return np.array([self.config.initial_spd, 0.0])

    # =====================================================================
    # MONITORING
    # =====================================================================

    def check_overspeed(self, spd: float, t: Optional[float] = None) -> bool:
        """
        Report |spd| >= spd_max according to the overspeed severity.

        Returns True if the limit was reached. With ERROR severity a
        RuntimeLimitWarning is raised instead.
        """
        spd_max = self.config.spd_max
        if abs(spd) < spd_max:
            return False

        self.overspeed_events += 1
        when = f" at t={t:.3f}s" if t is not None else ""
        message = (f"Rotor speed {abs(spd):.1f} rad/s{when} exceeds "
                   f"spd_max {spd_max:.1f} rad/s")

        if self.overspeed_severity is OverspeedSeverity.ERROR:
            raise RuntimeLimitWarning(message)
        if self.overspeed_severity is OverspeedSeverity.WARN:
            if self.overspeed_events == 1:
                self._log(f"⚠ {message}")
            warnings.warn(message, RuntimeLimitWarning, stacklevel=2)
        return True

    def get_constraints(self) -> Dict:
        """Return system constraints"""
        cfg = self.config
        return {
            'trq_min': -cfg.trq_max,
            'trq_max': cfg.trq_max,
            'power_max': cfg.power_max,
            'spd_max': cfg.spd_max,
            'corner_speed': cfg.corner_speed,
        }
