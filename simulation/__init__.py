from .profiles import CommandProfile, DEFAULT_SPEED_REFERENCE_KMH
from .results import Signal, SimulationDataset
from .motor import MotorSimulator
from .driveline import DrivelineSimulator

__all__ = [
    'CommandProfile',
    'DEFAULT_SPEED_REFERENCE_KMH',
    'Signal',
    'SimulationDataset',
    'MotorSimulator',
    'DrivelineSimulator',
]
