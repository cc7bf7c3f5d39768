import numpy as np
from typing import Dict, Optional

from models import MotorDriveUnit
from simulation.profiles import CommandProfile
from .base import DriverController


class SpeedTrackingController(DriverController):
    """
    PI driver tracking an axle speed reference.

    Logic:
    1. PI on axle speed error gives an axle torque demand.
    2. The motor supplies it through the gear, within its torque/power envelope.
    3. Braking demand the motor cannot regenerate goes to the friction brake.
    4. A zero (or negative) reference means "stop": no torque, full brake.
    """

    def __init__(self,
                 reference: CommandProfile,
                 motor: MotorDriveUnit,
                 gear_ratio: float,
                 tire_radius: float,
                 kp: float = 400.0,
                 ki: float = 100.0,
                 max_brake_force: float = 8000.0):

        if gear_ratio <= 0.0:
            raise ValueError("gear_ratio must be > 0")
        if tire_radius <= 0.0:
            raise ValueError("tire_radius must be > 0")
        if max_brake_force < 0.0:
            raise ValueError("max_brake_force must be >= 0")

        self.reference = reference      # [rad/s] axle speed
        self.motor = motor
        self.gear_ratio = gear_ratio
        self.tire_radius = tire_radius

        # Tuning parameters
        self.kp = kp                    # [N·m/(rad/s)] at the axle
        self.ki = ki                    # [N·m/rad] at the axle
        self.max_brake_force = max_brake_force

        self._integral = 0.0
        self._t_last: Optional[float] = None

    def reset(self):
        self._integral = 0.0
        self._t_last = None

    def reference_at(self, t: float) -> float:
        return self.reference(t)

    def get_control(self, t: float, measurements: Dict[str, float]) -> np.ndarray:
        """
        measurements: axle_spd [rad/s], spd [rad/s] (motor shaft)
        """
        axle_ref = self.reference(t)
        axle_spd = measurements['axle_spd']
        motor_spd = measurements.get('spd', axle_spd * self.gear_ratio)

        dt = 0.0 if self._t_last is None else max(t - self._t_last, 0.0)
        self._t_last = t

        if axle_ref <= 0.0:
            self._integral = 0.0
            return np.array([0.0, self.max_brake_force])

        error = axle_ref - axle_spd
        trq_demand_axle = self.kp * error + self.ki * (self._integral + error * dt)

        trq_limit = self.motor.torque_limit(motor_spd)
        trq_cmd = trq_demand_axle / self.gear_ratio
        saturated = abs(trq_cmd) > trq_limit

        # Anti-windup: stop integrating while pushing further into saturation
        if not (saturated and np.sign(error) == np.sign(trq_cmd)):
            self._integral += error * dt

        trq_cmd = float(np.clip(trq_cmd, -trq_limit, trq_limit))

        brk_f = 0.0
        if trq_demand_axle < 0.0:
            residual_axle = -trq_demand_axle - trq_limit * self.gear_ratio
            if residual_axle > 0.0:
                brk_f = min(residual_axle / self.tire_radius, self.max_brake_force)

        return np.array([trq_cmd, brk_f])

    @classmethod
    def from_vehicle_speed_kmh(cls,
                               reference_kmh: CommandProfile,
                               motor: MotorDriveUnit,
                               gear_ratio: float,
                               tire_radius: float,
                               **kwargs) -> 'SpeedTrackingController':
        """Build from a vehicle speed reference in km/h"""
        axle_ref = CommandProfile(
            reference_kmh.times,
            reference_kmh.values / 3.6 / tire_radius,
            unit="rad/s",
        )
        return cls(axle_ref, motor, gear_ratio, tire_radius, **kwargs)
