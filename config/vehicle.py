from dataclasses import dataclass, replace
from typing import Mapping, Optional
import math
from numbers import Real

from .errors import ConfigurationError


@dataclass(frozen=True)
class VehicleConfig:
    """Rudimentary longitudinal vehicle: one axle, a tire radius and a mass"""

    R: float = 0.3                  # [m] Tire rolling radius
    M: float = 1450.0               # [kg] Vehicle mass
    initial_speed: float = 0.0      # [m/s] Initial longitudinal speed

    def __post_init__(self):
        for name in ('R', 'M', 'initial_speed'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ConfigurationError(f"'{name}' must be a finite number, got {value!r}")
        if self.R <= 0.0:
            raise ConfigurationError(f"'R' must be > 0, got {self.R}")
        if self.M <= 0.0:
            raise ConfigurationError(f"'M' must be > 0, got {self.M}")

    @classmethod
    def for_compact_hev(cls) -> 'VehicleConfig':
        """Compact power-split hybrid hatchback"""
        return cls(R=0.3, M=1450.0)


_VEHICLE_PRESETS = {
    'compact_hev': VehicleConfig.for_compact_hev,
}


def get_vehicle_config(name: str = "compact_hev",
                       *,
                       overrides: Optional[Mapping[str, float]] = None) -> VehicleConfig:
    try:
        cfg = _VEHICLE_PRESETS[name.lower()]()
    except KeyError as e:
        raise ValueError(f"Unknown vehicle preset: {name}. Options: {list(_VEHICLE_PRESETS.keys())}") from e
    if overrides:
        cfg = replace(cfg, **dict(overrides))
    return cfg
