"""
Motor -> ideal gear -> vehicle, integrated as one rigid driveline.

With the gear rigid, motor speed is tied to vehicle speed,
spd = G * v / R, and the motor and vehicle equations collapse onto v:

    (M + J_rotor * G² / R²) * dv/dt = G * (T_del - k_damp * spd) / R - F_brake

The torque lag of the drive stays a separate state. Axle torque is
recovered from the motor side of the gear:

    axle_trq = G * (T_del - k_damp * spd - J_rotor * d(spd)/dt)
"""
import numpy as np
import casadi as ca
from typing import Union

from config import rad_s_to_rpm
from models import MotorDriveUnit, SimpleVehicle
from .motor import _integrate
from .profiles import CommandProfile
from .results import SimulationDataset


class DrivelineSimulator:
    """
    State: x = [v, trq]
    Control: u = [trq_cmd, brk_f]
    """

    def __init__(self,
                 motor: MotorDriveUnit,
                 vehicle: SimpleVehicle,
                 controller,
                 gear_ratio: float = 4.113,
                 v_bus: Union[float, CommandProfile] = 500.0,
                 dt: float = 1e-3,
                 verbose: bool = True):
        if gear_ratio <= 0.0:
            raise ValueError("gear_ratio must be > 0")
        if dt <= 0.0:
            raise ValueError("dt must be > 0")

        self.motor = motor
        self.vehicle = vehicle
        self.controller = controller
        self.gear_ratio = gear_ratio
        self.v_bus = v_bus if isinstance(v_bus, CommandProfile) else CommandProfile.constant(v_bus, unit="V")
        self.dt = dt
        self.verbose = verbose

        self._dynamics_time_func = None
        self.dynamics_func = self.create_time_domain_dynamics()
        self.output_func = motor.create_output_function()

    def _log(self, message: str):
        if self.verbose:
            print(f"   [DrivelineSimulator] {message}")

    @property
    def equivalent_mass(self) -> float:
        """Vehicle mass plus rotor inertia reflected to the wheel [kg]"""
        veh = self.vehicle.config
        mot = self.motor.config
        return veh.M + mot.J_rotor * self.gear_ratio**2 / veh.R**2

    def create_time_domain_dynamics(self) -> ca.Function:
        """
        Returns: dx/dt plus algebraic [spd, trq_out, F_brake, axle_trq]
        """
        if self._dynamics_time_func is not None:
            return self._dynamics_time_func

        G = self.gear_ratio
        R = self.vehicle.config.R
        mot = self.motor.config

        v = ca.MX.sym('v')
        trq = ca.MX.sym('trq')
        trq_cmd = ca.MX.sym('trq_cmd')
        brk_f = ca.MX.sym('brk_f')

        axle_spd = self.vehicle.axle_speed_sym(v)
        spd = G * axle_spd

        trq_out = self.motor.clamp_torque_sym(trq, spd)
        dtrq_dt = self.motor.lag_rate_sym(trq, trq_cmd, spd)

        F_brake = self.vehicle.brake_force_sym(brk_f, axle_spd)
        shaft_trq = trq_out - mot.k_damp * spd
        dv_dt = (G * shaft_trq / R - F_brake) / self.equivalent_mass

        dspd_dt = G * dv_dt / R
        axle_trq = G * (shaft_trq - mot.J_rotor * dspd_dt)

        x = ca.vertcat(v, trq)
        u = ca.vertcat(trq_cmd, brk_f)
        x_dot = ca.vertcat(dv_dt, dtrq_dt)
        alg = ca.vertcat(spd, trq_out, F_brake, axle_trq)

        self._dynamics_time_func = ca.Function(
            'driveline_dynamics', [x, u], [x_dot, alg],
            ['x', 'u'], ['x_dot', 'alg']
        )
        return self._dynamics_time_func

    def simulate(self, t_end: float) -> SimulationDataset:
        """Simulate from t=0 to t_end and return the logged signals"""
        if t_end <= 0.0:
            raise ValueError("t_end must be > 0")

        n_steps = int(round(t_end / self.dt))
        state = np.array([self.vehicle.config.initial_speed, 0.0])
        self.controller.reset()
        has_reference = hasattr(self.controller, 'reference_at')

        G = self.gear_ratio
        self._log("Rigid gear: motor speed follows the vehicle, motor initial_spd is not used")

        times, cmd_log, brk_cmd_log, ref_log = [], [], [], []
        spd_log, trq_log, current_log, loss_log, p_elec_log = [], [], [], [], []
        axle_spd_log, axle_trq_log, brake_log, v_log = [], [], [], []

        self._log(f"Simulating {t_end:.2f}s with dt={self.dt * 1e3:.2f}ms, gear ratio {G:.3f}")

        for k in range(n_steps + 1):
            t = k * self.dt
            v = state[0]
            axle_spd = self.vehicle.axle_speed(v)
            spd = G * axle_spd

            self.motor.check_overspeed(spd, t)

            trq_out, _, p_loss, p_elec, i_bus = self.output_func(state[1], spd, self.v_bus(t))
            control = self.controller.get_control(t, {
                'v': v,
                'axle_spd': axle_spd,
                'spd': spd,
                'trq': float(trq_out),
            })

            _, alg = self.dynamics_func(state, control)
            alg = alg.full().flatten()

            times.append(t)
            cmd_log.append(control[0])
            brk_cmd_log.append(control[1])
            if has_reference:
                ref_log.append(self.controller.reference_at(t))
            spd_log.append(spd)
            trq_log.append(float(trq_out))
            current_log.append(float(i_bus))
            loss_log.append(float(p_loss))
            p_elec_log.append(float(p_elec))
            axle_spd_log.append(axle_spd)
            axle_trq_log.append(alg[3])
            brake_log.append(alg[2])
            v_log.append(v)

            if k < n_steps:
                state = self._integrate_rk4(state, np.asarray(control, dtype=float))

        times = np.array(times)
        dataset = SimulationDataset(metadata={
            'model': 'driveline',
            'dt': self.dt,
            't_end': times[-1],
            'gear_ratio': G,
            'equivalent_mass_kg': self.equivalent_mass,
            'overspeed_events': self.motor.overspeed_events,
        })
        dataset.add("Motor Speed", times, rad_s_to_rpm(np.array(spd_log)), "rpm")
        dataset.add("Motor Torque Command", times, cmd_log, "N*m")
        dataset.add("Motor Torque", times, trq_log, "N*m")
        dataset.add("Motor Current", times, current_log, "A")
        dataset.add("Motor Loss", times, loss_log, "W")
        if has_reference:
            dataset.add("Axle Speed Reference", times, rad_s_to_rpm(np.array(ref_log)), "rpm")
        dataset.add("Axle Speed", times, rad_s_to_rpm(np.array(axle_spd_log)), "rpm")
        dataset.add("Axle Torque", times, axle_trq_log, "N*m")
        dataset.add("Brake Force Command", times, brk_cmd_log, "N")
        dataset.add("Brake Force", times, brake_log, "N")
        dataset.add("Vehicle Speed", times, SimpleVehicle.speed_kmh(np.array(v_log)), "km/h")

        dataset.metadata['electrical_energy_J'] = _integrate(times, np.array(p_elec_log))
        dataset.metadata['loss_energy_J'] = _integrate(times, np.array(loss_log))
        dataset.metadata['distance_m'] = _integrate(times, np.array(v_log))
        dataset.metadata['final_speed_kmh'] = float(SimpleVehicle.speed_kmh(v_log[-1]))

        self._log(f"Final speed {dataset.metadata['final_speed_kmh']:.1f} km/h, "
                  f"distance {dataset.metadata['distance_m']:.0f} m")
        return dataset

    def _integrate_rk4(self, state: np.ndarray, control: np.ndarray) -> np.ndarray:
        """RK4 integration step"""

        def f(x):
            return self.dynamics_func(x, control)[0].full().flatten()

        k1 = f(state)
        k2 = f(state + self.dt/2 * k1)
        k3 = f(state + self.dt/2 * k2)
        k4 = f(state + self.dt * k3)

        return state + self.dt / 6 * (k1 + 2*k2 + 2*k3 + k4)
