"""
Structured display values for insulin amounts and rates.

With the reference concentration (U100) an amount is shown in normalized
units only. With any other concentration the value the pump shows
(concentrated units) must be displayed next to the normalized one, so a user
comparing the pump screen with this application sees both numbers.

Rendering and localisation stay with the caller; these helpers only decide
what has to be shown.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional

from insulin_logic.profile import InsulinProfile

from .converter import from_normalized, from_normalized_rate, validate_concentration
from .types import concentration_label

logger = logging.getLogger(__name__)

# fluid volume of one U100 unit
MICROLITERS_PER_REFERENCE_UNIT = 10.0


@dataclass(frozen=True)
class DisplayAmount:
    normalized_units: float
    concentrated_units: Optional[float]
    concentration_factor: float
    concentration_label: Optional[str]
    volume_ul: float

    @property
    def show_concentrated(self) -> bool:
        return self.concentrated_units is not None


@dataclass(frozen=True)
class DisplayRate:
    value: float  # normalized U/h, or percent when not absolute
    concentrated_rate: Optional[float]
    is_absolute: bool
    concentration_factor: float
    concentration_label: Optional[str]

    @property
    def show_concentrated(self) -> bool:
        return self.concentrated_rate is not None


def round_to_step(value: float, step: float) -> float:
    """Round down to a multiple of the pump's bolus step."""
    if step <= 0:
        return value
    steps = math.floor((value + 1e-9) / step)
    return steps * step


def volume_microliters(normalized_units: float, concentration_factor: float) -> float:
    """Fluid volume delivered for ``normalized_units`` (1 U of U100 is 10 µl)."""
    return from_normalized(normalized_units, concentration_factor) * MICROLITERS_PER_REFERENCE_UNIT


def format_for_display(
    amount: float, profile: InsulinProfile, bolus_step: Optional[float] = None
) -> DisplayAmount:
    """Display values for a normalized ``amount`` delivered with ``profile``'s insulin.

    ``bolus_step`` (normalized units) rounds down both values to what the pump
    can deliver.
    """
    f = validate_concentration(profile.concentration_factor)
    normalized = float(amount)
    if bolus_step is not None:
        normalized = round_to_step(normalized, bolus_step)

    if f == 1.0:
        return DisplayAmount(
            normalized_units=normalized,
            concentrated_units=None,
            concentration_factor=f,
            concentration_label=None,
            volume_ul=volume_microliters(normalized, f),
        )

    concentrated = from_normalized(normalized, f)
    if bolus_step is not None:
        concentrated = round_to_step(concentrated, bolus_step / f)
    logger.debug(f"Dual-unit display for {normalized} U at {concentration_label(f)}")
    return DisplayAmount(
        normalized_units=normalized,
        concentrated_units=concentrated,
        concentration_factor=f,
        concentration_label=concentration_label(f),
        volume_ul=volume_microliters(normalized, f),
    )


def format_rate_for_display(rate: float, profile: InsulinProfile, is_absolute: bool) -> DisplayRate:
    """Display values for a normalized basal rate; percent rates are shown as is."""
    f = validate_concentration(profile.concentration_factor)
    if not is_absolute or f == 1.0:
        return DisplayRate(
            value=float(rate),
            concentrated_rate=None,
            is_absolute=is_absolute,
            concentration_factor=f,
            concentration_label=None,
        )
    return DisplayRate(
        value=float(rate),
        concentrated_rate=from_normalized_rate(rate, f, is_absolute),
        is_absolute=is_absolute,
        concentration_factor=f,
        concentration_label=concentration_label(f),
    )
