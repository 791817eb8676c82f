"""
Conversions between concentrated (pump) units and normalized units.

Pumps count in concentrated units (CU): with U200 insulin one pump unit holds
two U100-equivalent units. Everything downstream of the pump driver works in
normalized units, so amounts and absolute rates cross the boundary here:

    normalized = concentrated * concentration_factor

Relative (percent) rates are dimensionless and never scaled.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from insulin_logic.errors import ConfigurationError


def validate_concentration(concentration_factor: float) -> float:
    """Return the factor as float or raise ConfigurationError."""
    if isinstance(concentration_factor, bool) or not isinstance(concentration_factor, (int, float)):
        raise ConfigurationError(f"concentration_factor must be a number, got {concentration_factor!r}")
    if not math.isfinite(concentration_factor) or concentration_factor <= 0:
        raise ConfigurationError(f"concentration_factor ({concentration_factor}) must be a finite number > 0")
    return float(concentration_factor)


def to_normalized(concentrated_amount: float, concentration_factor: float) -> float:
    f = validate_concentration(concentration_factor)
    return concentrated_amount * f


def from_normalized(normalized_amount: float, concentration_factor: float) -> float:
    f = validate_concentration(concentration_factor)
    return normalized_amount / f


def to_normalized_rate(concentrated_rate: float, concentration_factor: float, is_absolute: bool) -> float:
    f = validate_concentration(concentration_factor)
    return concentrated_rate * f if is_absolute else concentrated_rate


def from_normalized_rate(normalized_rate: float, concentration_factor: float, is_absolute: bool) -> float:
    f = validate_concentration(concentration_factor)
    return normalized_rate / f if is_absolute else normalized_rate


@dataclass(frozen=True)
class ConvertedAmount:
    normalized_units: float
    concentrated_units: float
    concentration_factor: float

    @classmethod
    def from_pump(cls, concentrated_units: float, concentration_factor: float) -> "ConvertedAmount":
        return cls(
            normalized_units=to_normalized(concentrated_units, concentration_factor),
            concentrated_units=float(concentrated_units),
            concentration_factor=float(concentration_factor),
        )

    @classmethod
    def for_pump(cls, normalized_units: float, concentration_factor: float) -> "ConvertedAmount":
        """Amount the pump must be told to deliver for ``normalized_units``."""
        return cls(
            normalized_units=float(normalized_units),
            concentrated_units=from_normalized(normalized_units, concentration_factor),
            concentration_factor=float(concentration_factor),
        )

    @property
    def is_reference(self) -> bool:
        return self.concentration_factor == 1.0


@dataclass(frozen=True)
class ConvertedRate:
    normalized_rate: float
    concentrated_rate: float
    concentration_factor: float
    is_absolute: bool

    @classmethod
    def from_pump(cls, concentrated_rate: float, concentration_factor: float, is_absolute: bool) -> "ConvertedRate":
        return cls(
            normalized_rate=to_normalized_rate(concentrated_rate, concentration_factor, is_absolute),
            concentrated_rate=float(concentrated_rate),
            concentration_factor=float(concentration_factor),
            is_absolute=is_absolute,
        )

    @classmethod
    def for_pump(cls, normalized_rate: float, concentration_factor: float, is_absolute: bool) -> "ConvertedRate":
        return cls(
            normalized_rate=float(normalized_rate),
            concentrated_rate=from_normalized_rate(normalized_rate, concentration_factor, is_absolute),
            concentration_factor=float(concentration_factor),
            is_absolute=is_absolute,
        )

    @property
    def is_reference(self) -> bool:
        return self.concentration_factor == 1.0


def convert_amount(concentrated_units: float, concentration_factor: float) -> ConvertedAmount:
    return ConvertedAmount.from_pump(concentrated_units, concentration_factor)


def convert_rate(concentrated_rate: float, concentration_factor: float, is_absolute: bool) -> ConvertedRate:
    return ConvertedRate.from_pump(concentrated_rate, concentration_factor, is_absolute)
