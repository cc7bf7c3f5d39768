"""Piecewise-linear command signals (torque, brake force, speed references)."""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from scipy.interpolate import interp1d


@dataclass
class CommandProfile:
    """
    Breakpoint signal, linearly interpolated and held flat outside the
    breakpoints.
    """
    times: np.ndarray
    values: np.ndarray
    unit: str = ""
    _interp: object = field(init=False, repr=False, default=None)

    def __post_init__(self):
        self.times = np.atleast_1d(np.asarray(self.times, dtype=float))
        self.values = np.atleast_1d(np.asarray(self.values, dtype=float))

        if self.times.ndim != 1 or self.times.shape != self.values.shape:
            raise ValueError("times and values must be 1-D arrays of equal length")
        if len(self.times) == 0:
            raise ValueError("profile needs at least one breakpoint")
        if np.any(np.diff(self.times) <= 0.0):
            raise ValueError("profile times must be strictly increasing")

        if len(self.times) > 1:
            self._interp = interp1d(
                self.times, self.values,
                kind='linear',
                bounds_error=False,
                fill_value=(self.values[0], self.values[-1]),
            )

    def __call__(self, t: float) -> float:
        if self._interp is None:
            return float(self.values[0])
        return float(self._interp(t))

    @property
    def end_time(self) -> float:
        return float(self.times[-1])

    @classmethod
    def constant(cls, value: float, unit: str = "") -> 'CommandProfile':
        return cls(np.array([0.0]), np.array([value]), unit=unit)

    @classmethod
    def from_breakpoints(cls, points: Sequence[Sequence[float]], unit: str = "") -> 'CommandProfile':
        """Build from [(t0, v0), (t1, v1), ...] pairs (e.g. read from YAML)."""
        arr = np.asarray(points, dtype=float)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError("breakpoints must be a sequence of (time, value) pairs")
        return cls(arr[:, 0], arr[:, 1], unit=unit)


# Default speed-tracking scenario: accelerate, cruise, decelerate to standstill
DEFAULT_SPEED_REFERENCE_KMH = [
    (0.0, 0.0),
    (2.0, 0.0),
    (12.0, 60.0),
    (22.0, 60.0),
    (27.0, 90.0),
    (35.0, 90.0),
    (45.0, 0.0),
    (50.0, 0.0),
]
