import numpy as np
from typing import Optional, Union

from config import rad_s_to_rpm
from models import MotorDriveUnit
from .profiles import CommandProfile
from .results import SimulationDataset


class MotorSimulator:
    """Drive the motor alone against a load-torque profile (fixed-step RK4)"""

    def __init__(self,
                 motor: MotorDriveUnit,
                 controller,
                 load_profile: Optional[CommandProfile] = None,
                 v_bus: Union[float, CommandProfile] = 500.0,
                 dt: float = 1e-3,
                 verbose: bool = True):
        if dt <= 0.0:
            raise ValueError("dt must be > 0")

        self.motor = motor
        self.controller = controller
        self.load_profile = load_profile or CommandProfile.constant(0.0, unit="N*m")
        self.v_bus = v_bus if isinstance(v_bus, CommandProfile) else CommandProfile.constant(v_bus, unit="V")
        self.dt = dt
        self.verbose = verbose

        self.dynamics_func = motor.create_time_domain_dynamics()
        self.output_func = motor.create_output_function()

    def _log(self, message: str):
        if self.verbose:
            print(f"   [MotorSimulator] {message}")

    def simulate(self, t_end: float) -> SimulationDataset:
        """Simulate from t=0 to t_end and return the logged signals"""
        if t_end <= 0.0:
            raise ValueError("t_end must be > 0")

        n_steps = int(round(t_end / self.dt))
        state = self.motor.initial_state()
        self.controller.reset()

        times, spd_log, cmd_log, trq_log, load_log = [], [], [], [], []
        loss_log, p_elec_log, current_log = [], [], []

        self._log(f"Simulating {t_end:.2f}s with dt={self.dt * 1e3:.2f}ms ({n_steps} steps)")

        for k in range(n_steps + 1):
            t = k * self.dt
            spd, trq = state

            self.motor.check_overspeed(spd, t)

            trq_out, _, p_loss, p_elec, i_bus = self.output_func(trq, spd, self.v_bus(t))
            control = self.controller.get_control(t, {
                'spd': spd,
                'trq': float(trq_out),
                'axle_spd': spd,
            })
            trq_load = self.load_profile(t)

            times.append(t)
            spd_log.append(spd)
            cmd_log.append(control[0])
            trq_log.append(float(trq_out))
            load_log.append(trq_load)
            loss_log.append(float(p_loss))
            p_elec_log.append(float(p_elec))
            current_log.append(float(i_bus))

            if k < n_steps:
                u = np.array([control[0], trq_load])
                state = self._integrate_rk4(state, u)

        times = np.array(times)
        dataset = SimulationDataset(metadata={
            'model': self.motor.name,
            'dt': self.dt,
            't_end': times[-1],
            'overspeed_events': self.motor.overspeed_events,
        })
        dataset.add("Motor Speed", times, rad_s_to_rpm(np.array(spd_log)), "rpm")
        dataset.add("Motor Torque Command", times, cmd_log, "N*m")
        dataset.add("Motor Torque", times, trq_log, "N*m")
        dataset.add("Motor Load Torque", times, load_log, "N*m")
        dataset.add("Motor Loss", times, loss_log, "W")
        dataset.add("Motor Electrical Power", times, p_elec_log, "W")
        dataset.add("Motor Current", times, current_log, "A")

        dataset.metadata['electrical_energy_J'] = _integrate(times, np.array(p_elec_log))
        dataset.metadata['loss_energy_J'] = _integrate(times, np.array(loss_log))

        self._log(f"Final speed {rad_s_to_rpm(state[0]):.0f} rpm, "
                  f"{self.motor.overspeed_events} overspeed samples")
        return dataset

    def _integrate_rk4(self, state: np.ndarray, control: np.ndarray) -> np.ndarray:
        """RK4 integration step"""

        k1 = self.dynamics_func(state, control).full().flatten()
        k2 = self.dynamics_func(state + self.dt/2 * k1, control).full().flatten()
        k3 = self.dynamics_func(state + self.dt/2 * k2, control).full().flatten()
        k4 = self.dynamics_func(state + self.dt * k3, control).full().flatten()

        return state + self.dt / 6 * (k1 + 2*k2 + 2*k3 + k4)


def _integrate(times: np.ndarray, values: np.ndarray) -> float:
    """Trapezoidal integral over a (possibly nonuniform) time base"""
    if len(times) < 2:
        return 0.0
    return float(np.sum(0.5 * (values[1:] + values[:-1]) * np.diff(times)))
