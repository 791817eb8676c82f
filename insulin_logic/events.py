"""
Dose events.

A dose event is one of three variants, each carrying the InsulinProfile of
the insulin that was delivered:

- Bolus: instantaneous amount
- TemporaryRate: time-bounded override of the scheduled basal, absolute
  (U/h) or relative (percent of the scheduled rate)
- ExtendedDose: amount spread evenly over a window

Timestamps are epoch milliseconds; datetimes are accepted and converted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import math
from typing import Optional, Union

from .config import MS_PER_HOUR
from .errors import InvalidEventError
from .profile import InsulinProfile

TimeLike = Union[int, float, datetime]


def as_epoch_ms(dt: TimeLike) -> int:
    if isinstance(dt, datetime):
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    return int(dt)


def _now_ms(now: Optional[TimeLike]) -> int:
    return as_epoch_ms(now if now is not None else datetime.now(timezone.utc))


class BolusType(Enum):
    NORMAL = "NORMAL"
    SMB = "SMB"
    PRIMING = "PRIMING"


def _check_non_negative(kind: str, **values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value) or value < 0:
            raise InvalidEventError(f"{kind}.{name} ({value}) must be a finite number >= 0")


@dataclass(frozen=True)
class Bolus:
    timestamp_ms: int
    amount_units: float
    profile: InsulinProfile
    valid: bool = True
    bolus_type: BolusType = BolusType.NORMAL

    def __post_init__(self):
        object.__setattr__(self, "timestamp_ms", as_epoch_ms(self.timestamp_ms))
        _check_non_negative("Bolus", amount_units=self.amount_units)

    @property
    def is_dosing(self) -> bool:
        return self.valid and self.bolus_type != BolusType.PRIMING


@dataclass(frozen=True)
class TemporaryRate:
    timestamp_ms: int
    duration_ms: int
    rate: float  # U/h when is_absolute, percent of scheduled basal otherwise
    is_absolute: bool
    profile: InsulinProfile
    valid: bool = True

    def __post_init__(self):
        object.__setattr__(self, "timestamp_ms", as_epoch_ms(self.timestamp_ms))
        _check_non_negative("TemporaryRate", duration_ms=self.duration_ms, rate=self.rate)

    @property
    def is_dosing(self) -> bool:
        return self.valid

    @property
    def end_ms(self) -> int:
        return self.timestamp_ms + int(self.duration_ms)

    def is_in_progress(self, now: Optional[TimeLike] = None) -> bool:
        now_ms = _now_ms(now)
        return self.timestamp_ms <= now_ms < self.end_ms


@dataclass(frozen=True)
class ExtendedDose:
    timestamp_ms: int
    duration_ms: int
    total_amount_units: float
    profile: InsulinProfile
    valid: bool = True

    def __post_init__(self):
        object.__setattr__(self, "timestamp_ms", as_epoch_ms(self.timestamp_ms))
        _check_non_negative(
            "ExtendedDose", duration_ms=self.duration_ms, total_amount_units=self.total_amount_units
        )

    @property
    def is_dosing(self) -> bool:
        return self.valid

    @property
    def end_ms(self) -> int:
        return self.timestamp_ms + int(self.duration_ms)

    @property
    def rate(self) -> float:
        """Delivery rate in U/h (0 for a zero-length window)."""
        if self.duration_ms <= 0:
            return 0.0
        return self.total_amount_units * MS_PER_HOUR / self.duration_ms

    def is_in_progress(self, now: Optional[TimeLike] = None) -> bool:
        now_ms = _now_ms(now)
        return self.timestamp_ms <= now_ms < self.end_ms


DoseEvent = Union[Bolus, TemporaryRate, ExtendedDose]
