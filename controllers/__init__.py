from .base import DriverController
from .open_loop import OpenLoopController
from .speed_tracking import SpeedTrackingController

__all__ = [
    'DriverController',
    'OpenLoopController',
    'SpeedTrackingController',
]
