from .errors import ConfigurationError, OverspeedSeverity, RuntimeLimitWarning
from .motor import (
    DerivedLossParameters,
    MotorConfig,
    derive_loss_parameters,
    get_motor_config,
    motor_config_to_dict,
    rad_s_to_rpm,
    rpm_to_rad_s,
)
from .vehicle import VehicleConfig, get_vehicle_config


__all__ = [
    'ConfigurationError',
    'OverspeedSeverity',
    'RuntimeLimitWarning',
    'MotorConfig',
    'DerivedLossParameters',
    'VehicleConfig',
    'derive_loss_parameters',
    'get_motor_config',
    'get_vehicle_config',
    'motor_config_to_dict',
    'rad_s_to_rpm',
    'rpm_to_rad_s',
]
