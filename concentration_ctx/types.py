"""Insulin concentrations known to pumps and insulin pens."""

from __future__ import annotations

from enum import Enum


class ConcentrationType(Enum):
    UNKNOWN = -1.0
    U10 = 0.1
    U40 = 0.4
    U50 = 0.5
    U100 = 1.0
    U200 = 2.0
    U300 = 3.0
    U500 = 5.0

    @property
    def label(self) -> str:
        return "Unknown" if self is ConcentrationType.UNKNOWN else self.name

    @classmethod
    def from_factor(cls, factor: float) -> "ConcentrationType":
        for ctype in cls:
            if ctype.value == factor:
                return ctype
        return cls.UNKNOWN

    @classmethod
    def from_units_per_ml(cls, units_per_ml: int) -> "ConcentrationType":
        """Lookup by the number printed on the vial (100 for U100)."""
        for ctype in cls:
            if ctype is not cls.UNKNOWN and round(ctype.value * 100) == units_per_ml:
                return ctype
        return cls.UNKNOWN


def concentration_label(factor: float) -> str:
    """'U100', 'U200', ... also for factors outside the known table."""
    return f"U{int(round(factor * 100))}"
