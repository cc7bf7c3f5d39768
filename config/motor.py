"""
Motor & drive unit configuration

Parameterisation follows the single-point efficiency description of a
motor and its drive electronics: torque/speed/power limits, the efficiency
measured at one (speed, torque) test point, and how the losses at that point
split between iron, fixed electrical and copper losses.

All speeds are in rad/s; use rpm_to_rad_s for datasheet values.
"""

from dataclasses import dataclass, fields, replace
from typing import Dict, Mapping, Optional
import math
from numbers import Real

from .errors import ConfigurationError


def rpm_to_rad_s(rpm: float) -> float:
    return rpm * 2.0 * math.pi / 60.0


def rad_s_to_rpm(rad_s: float) -> float:
    return rad_s * 60.0 / (2.0 * math.pi)


_STRICTLY_POSITIVE = (
    'trq_max',
    'spd_max',
    'power_max',
    'response_time_const',
    'efficiency_pct',
    'spd_eff',
    'trq_eff',
    'iron_to_nominal_ratio',
    'elec_loss_const',
    'J_rotor',
    'initial_spd',
)


@dataclass(frozen=True)
class MotorConfig:
    """Parameters of a motor and drive unit (defaults: power-split HEV traction motor)"""

    # ==================== Limits ====================
    trq_max: float = 400.0                          # [N·m] Maximum torque
    spd_max: float = rpm_to_rad_s(6500.0)           # [rad/s] Rated maximum speed
    power_max: float = 60e3                         # [W] Maximum power

    # ==================== Drive electronics ====================
    response_time_const: float = 0.02               # [s] Torque control time constant

    # ==================== Efficiency test point ====================
    efficiency_pct: float = 92.0                    # [%] Efficiency at the test point
    spd_eff: float = rpm_to_rad_s(3000.0)           # [rad/s] Speed at the test point
    trq_eff: float = 100.0                          # [N·m] Torque at the test point
    iron_to_nominal_ratio: float = 0.3              # [-] Iron share of the nominal loss
    elec_loss_const: float = 200.0                  # [W] Fixed electrical loss

    # ==================== Rotor ====================
    J_rotor: float = 0.05                           # [kg·m²] Rotor inertia
    k_damp: float = 1e-3                            # [N·m/(rad/s)] Rotor damping
    initial_spd: float = 1e-3                       # [rad/s] Initial rotor speed

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any parameter is out of bounds."""
        for name in (f.name for f in fields(self)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ConfigurationError(f"'{name}' must be a finite number, got {value!r}")

        for name in _STRICTLY_POSITIVE:
            if getattr(self, name) <= 0.0:
                raise ConfigurationError(f"'{name}' must be > 0, got {getattr(self, name)}")

        if self.k_damp < 0.0:
            raise ConfigurationError(f"'k_damp' must be >= 0, got {self.k_damp}")

        if not self.efficiency_pct < 100.0:
            raise ConfigurationError(
                f"'efficiency_pct' must be in (0, 100), got {self.efficiency_pct}")
        if not self.iron_to_nominal_ratio < 1.0:
            raise ConfigurationError(
                f"'iron_to_nominal_ratio' must be in (0, 1), got {self.iron_to_nominal_ratio}")

        if self.trq_max * self.spd_max < self.power_max:
            raise ConfigurationError(
                f"power_max ({self.power_max:.0f} W) is not reachable: "
                f"trq_max * spd_max = {self.trq_max * self.spd_max:.0f} W")

        # The test point has to be an operating point the drive can reach
        if self.trq_eff > self.trq_max:
            raise ConfigurationError(
                f"'trq_eff' ({self.trq_eff}) exceeds trq_max ({self.trq_max})")
        if self.spd_eff > self.spd_max:
            raise ConfigurationError(
                f"'spd_eff' ({self.spd_eff}) exceeds spd_max ({self.spd_max})")
        if self.trq_eff * self.spd_eff > self.power_max:
            raise ConfigurationError(
                f"Efficiency test point ({self.trq_eff * self.spd_eff:.0f} W) "
                f"exceeds power_max ({self.power_max:.0f} W)")

        total_loss = self.trq_eff * self.spd_eff * (100.0 / self.efficiency_pct - 1.0)
        if self.elec_loss_const >= total_loss:
            raise ConfigurationError(
                f"'elec_loss_const' ({self.elec_loss_const} W) must be smaller than the "
                f"total loss at the test point ({total_loss:.1f} W)")

    @property
    def corner_speed(self) -> float:
        """Speed above which the power limit governs maximum torque [rad/s]"""
        return self.power_max / self.trq_max

    @classmethod
    def for_mg1(cls) -> 'MotorConfig':
        """Generator (MG1) of a power-split hybrid: fast, low torque"""
        return cls(
            trq_max=160.0,
            spd_max=rpm_to_rad_s(10000.0),
            power_max=42e3,
            efficiency_pct=90.0,
            spd_eff=rpm_to_rad_s(4000.0),
            trq_eff=50.0,
            elec_loss_const=150.0,
            J_rotor=0.03,
        )

    @classmethod
    def for_mg2(cls) -> 'MotorConfig':
        """Traction motor (MG2) of a power-split hybrid"""
        return cls()


@dataclass(frozen=True)
class DerivedLossParameters:
    """
    Loss figures at the efficiency test point.

    Computed once from a MotorConfig; the copper coefficient is chosen so that
    iron + fixed + copper losses at (spd_eff, trq_eff) give exactly
    efficiency_pct.
    """
    mechpow_eff: float          # [W] Mechanical power at the test point
    total_loss_eff: float       # [W] Total loss at the test point
    nominal_losses_eff: float   # [W] Loss excluding the fixed electrical loss
    iron_loss_eff: float        # [W] Iron loss
    copper_loss_coeff: float    # [W/(N·m)²] Copper loss per squared torque


def derive_loss_parameters(config: MotorConfig) -> DerivedLossParameters:
    mechpow_eff = config.trq_eff * config.spd_eff
    total_loss_eff = mechpow_eff * (100.0 / config.efficiency_pct - 1.0)
    nominal_losses_eff = total_loss_eff - config.elec_loss_const
    iron_loss_eff = config.iron_to_nominal_ratio * nominal_losses_eff
    copper_loss_coeff = (nominal_losses_eff - iron_loss_eff) / config.trq_eff**2

    return DerivedLossParameters(
        mechpow_eff=mechpow_eff,
        total_loss_eff=total_loss_eff,
        nominal_losses_eff=nominal_losses_eff,
        iron_loss_eff=iron_loss_eff,
        copper_loss_coeff=copper_loss_coeff,
    )


_MOTOR_PRESETS = {
    'mg1': MotorConfig.for_mg1,
    'mg2': MotorConfig.for_mg2,
}


def get_motor_config(name: str = "mg2",
                     *,
                     overrides: Optional[Mapping[str, float]] = None) -> MotorConfig:
    """Return a preset MotorConfig, optionally with some fields replaced.

    Overrides go through the dataclass constructor, so they are validated
    like any other parameter set.
    """
    try:
        cfg = _MOTOR_PRESETS[name.lower()]()
    except KeyError as e:
        raise ValueError(f"Unknown motor preset: {name}. Options: {list(_MOTOR_PRESETS.keys())}") from e
    if overrides:
        cfg = replace(cfg, **dict(overrides))
    return cfg


def motor_config_to_dict(config: MotorConfig) -> Dict[str, float]:
    return {f.name: getattr(config, f.name) for f in fields(config)}
