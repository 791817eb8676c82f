# Makes this directory a package for easy imports

from .config import DEFAULT_CONFIG, EngineConfig
from .curve import activity, iob_fraction
from .errors import (
    ConfigurationError,
    InsulinEngineError,
    InvalidEventError,
    InvalidProfileError,
    MissingDependencyError,
)
from .events import Bolus, BolusType, DoseEvent, ExtendedDose, TemporaryRate
from .iob import (
    ZERO,
    DoseContribution,
    ExerciseAdjustment,
    IobTotal,
    bolus_contribution,
    compute_iob,
    contribution,
    extended_contribution,
    relative_rate_delta,
    temporary_rate_contribution,
)
from .profile import InsulinProfile, InsulinTemplate
from .timeline import iob_timeline

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "activity",
    "iob_fraction",
    "ConfigurationError",
    "InsulinEngineError",
    "InvalidEventError",
    "InvalidProfileError",
    "MissingDependencyError",
    "Bolus",
    "BolusType",
    "DoseEvent",
    "ExtendedDose",
    "TemporaryRate",
    "ZERO",
    "DoseContribution",
    "ExerciseAdjustment",
    "IobTotal",
    "bolus_contribution",
    "compute_iob",
    "contribution",
    "extended_contribution",
    "relative_rate_delta",
    "temporary_rate_contribution",
    "InsulinProfile",
    "InsulinTemplate",
    "iob_timeline",
]
