import numpy as np
from abc import ABC, abstractmethod
from typing import Dict


class DriverController(ABC):
    """Base class for drivers of the motor/driveline harness"""

    @abstractmethod
    def get_control(self, t: float, measurements: Dict[str, float]) -> np.ndarray:
        """Return control vector [motor torque command (N·m), brake force (N)]"""
        raise NotImplementedError

    def reset(self):
        pass
