"""
Insulin pharmacokinetic profiles.

An InsulinProfile is the immutable description of one insulin: label,
duration of action (DIA), time to peak activity and concentration factor
relative to U100. Profiles are validated on construction; an invalid one can
never reach the curve model.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import math
from numbers import Real
from typing import Any, Dict, List, Optional

from .config import MS_PER_HOUR, MS_PER_MINUTE
from .curve import shape_for
from .errors import InvalidProfileError

# peaks closer than this fraction of DIA to DIA/2 are rejected
HALF_DIA_MARGIN = 0.01


class InsulinTemplate(Enum):
    """Curve templates a profile can be derived from (value is the stored id)."""

    UNKNOWN = -1
    RAPID_ACTING = 2
    ULTRA_RAPID_ACTING = 3
    FREE_PEAK = 4
    LYUMJEV = 5

    @property
    def default_peak_minutes(self) -> Optional[int]:
        return _TEMPLATE_PEAKS.get(self)

    @classmethod
    def from_id(cls, value: int) -> "InsulinTemplate":
        for template in cls:
            if template.value == value:
                return template
        return cls.UNKNOWN

    @classmethod
    def from_peak(cls, peak_time_ms: int) -> "InsulinTemplate":
        """Template whose default peak matches, FREE_PEAK otherwise."""
        for template, minutes in _TEMPLATE_PEAKS.items():
            if minutes * MS_PER_MINUTE == peak_time_ms:
                return template
        return cls.FREE_PEAK


_TEMPLATE_PEAKS: Dict[InsulinTemplate, int] = {
    InsulinTemplate.RAPID_ACTING: 75,
    InsulinTemplate.ULTRA_RAPID_ACTING: 55,
    InsulinTemplate.LYUMJEV: 45,
}


def _whole_ms(name: str, value: Any, errors: List[str]) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        errors.append(f"{name} ({value!r}) must be a finite number of milliseconds")
        return None
    return int(value)


def _usable_curve(peak_time_ms: int, duration_of_action_ms: int) -> bool:
    try:
        shape = shape_for(peak_time_ms, duration_of_action_ms)
    except (ZeroDivisionError, OverflowError):
        return False
    coefficients = (shape.tau, shape.a, shape.S)
    return all(math.isfinite(c) for c in coefficients) and shape.tau != 0 and shape.S > 0


@dataclass(frozen=True)
class InsulinProfile:
    label: str
    duration_of_action_ms: int
    peak_time_ms: int
    concentration_factor: float = 1.0
    template: InsulinTemplate = InsulinTemplate.UNKNOWN

    def __post_init__(self):
        errors = []

        if not isinstance(self.label, str) or not self.label.strip():
            errors.append("label must be a non-empty string")

        # coerce first so the checks see the values the curve will use
        dia = _whole_ms("duration_of_action_ms", self.duration_of_action_ms, errors)
        peak = _whole_ms("peak_time_ms", self.peak_time_ms, errors)

        if dia is not None and dia <= 0:
            errors.append(f"duration_of_action_ms ({dia}) must be > 0")
            dia = None

        if peak is not None and peak <= 0:
            errors.append(f"peak_time_ms ({peak}) must be > 0")
        elif peak is not None and dia is not None:
            if peak >= dia:
                errors.append(f"peak_time_ms ({peak}) must be < duration_of_action_ms ({dia})")
            elif abs(2 * peak - dia) <= 2 * HALF_DIA_MARGIN * dia:
                # tau = tp * (1 - tp/td) / (1 - 2*tp/td) blows up around tp == td/2
                errors.append(
                    f"peak_time_ms ({peak}) must not be within {HALF_DIA_MARGIN:.0%} of DIA "
                    f"of half of duration_of_action_ms ({dia})"
                )
            elif not _usable_curve(peak, dia):
                errors.append(f"peak_time_ms ({peak}) and duration_of_action_ms ({dia}) give no usable curve")

        cf = self.concentration_factor
        if isinstance(cf, bool) or not isinstance(cf, Real) or not math.isfinite(cf) or cf <= 0:
            errors.append(f"concentration_factor ({cf}) must be a finite number > 0")

        if errors:
            raise InvalidProfileError("Invalid InsulinProfile:\n  - " + "\n  - ".join(errors))

        # normalise numeric types so equal profiles compare equal
        object.__setattr__(self, "duration_of_action_ms", dia)
        object.__setattr__(self, "peak_time_ms", peak)
        object.__setattr__(self, "concentration_factor", float(cf))

    @classmethod
    def from_hours(
        cls,
        label: str,
        peak_minutes: float,
        dia_hours: float,
        template: InsulinTemplate = InsulinTemplate.UNKNOWN,
        concentration_factor: float = 1.0,
    ) -> "InsulinProfile":
        return cls(
            label=label,
            duration_of_action_ms=int(dia_hours * MS_PER_HOUR),
            peak_time_ms=int(peak_minutes * MS_PER_MINUTE),
            concentration_factor=concentration_factor,
            template=template,
        )

    @classmethod
    def from_template(
        cls,
        template: InsulinTemplate,
        dia_hours: float = 5.0,
        label: Optional[str] = None,
        concentration_factor: float = 1.0,
    ) -> "InsulinProfile":
        peak = template.default_peak_minutes
        if peak is None:
            raise InvalidProfileError(f"Template {template.name} has no default peak time")
        return cls.from_hours(
            label or template.name.replace("_", " ").title(),
            peak,
            dia_hours,
            template=template,
            concentration_factor=concentration_factor,
        )

    @property
    def dia_hours(self) -> float:
        """DIA in hours rounded to one decimal place."""
        return round(self.duration_of_action_ms / MS_PER_HOUR, 1)

    @property
    def peak_minutes(self) -> int:
        return self.peak_time_ms // MS_PER_MINUTE

    @property
    def is_reference_concentration(self) -> bool:
        return self.concentration_factor == 1.0

    def with_concentration(self, concentration_factor: float) -> "InsulinProfile":
        """Return a superseding profile with another concentration."""
        return replace(self, concentration_factor=concentration_factor)

    def with_timing(
        self, duration_of_action_ms: Optional[int] = None, peak_time_ms: Optional[int] = None
    ) -> "InsulinProfile":
        dia = self.duration_of_action_ms if duration_of_action_ms is None else duration_of_action_ms
        peak = self.peak_time_ms if peak_time_ms is None else peak_time_ms
        return replace(self, duration_of_action_ms=dia, peak_time_ms=peak)

    def to_json(self) -> Dict[str, Any]:
        return {
            "insulinLabel": self.label,
            "insulinEndTime": self.duration_of_action_ms,
            "insulinPeakTime": self.peak_time_ms,
            "concentration": self.concentration_factor,
            "insulinTemplate": self.template.value,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "InsulinProfile":
        try:
            dia = int(data.get("insulinEndTime", 0))
            peak = int(data.get("insulinPeakTime", 0))
            concentration = float(data.get("concentration", 1.0))
            template = InsulinTemplate.from_id(int(data.get("insulinTemplate", -1)))
        except (TypeError, ValueError) as e:
            raise InvalidProfileError(f"Malformed insulin profile record: {e}") from e
        return cls(
            label=str(data.get("insulinLabel", "")),
            duration_of_action_ms=dia,
            peak_time_ms=peak,
            concentration_factor=concentration,
            template=template,
        )
