import numpy as np
from typing import Dict, Optional

from simulation.profiles import CommandProfile
from .base import DriverController


class OpenLoopController(DriverController):
    """Replays torque and brake-force command profiles"""

    def __init__(self, torque_profile: CommandProfile, brake_profile: Optional[CommandProfile] = None):
        self.torque_profile = torque_profile
        self.brake_profile = brake_profile or CommandProfile.constant(0.0, unit="N")

    def get_control(self, t: float, measurements: Dict[str, float]) -> np.ndarray:
        return np.array([self.torque_profile(t), self.brake_profile(t)])
