"""
Error types shared by the motor and vehicle models.

ConfigurationError is raised while a parameter set is being built and means
no model can be created from it. RuntimeLimitWarning is the only condition
detected while integrating; how loudly it is reported depends on the
OverspeedSeverity the model was built with.
"""

from enum import Enum


class ConfigurationError(ValueError):
    """A parameter violates its declared bounds."""


class RuntimeLimitWarning(UserWarning):
    """Rotor speed reached or exceeded its rated maximum."""


class OverspeedSeverity(str, Enum):
    IGNORE = "ignore"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, value) -> "OverspeedSeverity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise ValueError(
                f"Unknown overspeed severity: {value}. Options: {[s.value for s in cls]}"
            ) from e
