from .motor_drive import MotorDriveUnit
from .vehicle import BRAKE_SPEED_THRESHOLD, SimpleVehicle

__all__ = [
    'MotorDriveUnit',
    'SimpleVehicle',
    'BRAKE_SPEED_THRESHOLD',
]
