"""Engine configuration.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class EngineConfig:
    # Micro-dose spacing for extended doses and temporary rates. Halving it
    # moves reference results by far less than 0.01 U.
    step_ms: int = 1 * MS_PER_MINUTE
    # Hard limit used by exponential curves; shorter DIA is accepted but logged
    min_dia_hours: float = 5.0
    # Warn when step_ms exceeds this fraction of the profile peak time
    max_step_peak_ratio: float = 0.2

    strict_validation: bool = True

    def __post_init__(self):
        """Validate configuration parameters.

        An unusable step_ms always raises ConfigurationError. The advisory
        thresholds raise with strict_validation (the default) and are only
        logged as warnings otherwise.
        """
        if isinstance(self.step_ms, bool) or not isinstance(self.step_ms, int) or self.step_ms <= 0:
            raise ConfigurationError(f"step_ms ({self.step_ms}) must be a positive integer")

        errors = []

        if self.min_dia_hours <= 0:
            errors.append(f"min_dia_hours ({self.min_dia_hours}) must be > 0")

        if not (0 < self.max_step_peak_ratio <= 1):
            errors.append(f"max_step_peak_ratio ({self.max_step_peak_ratio}) must be in range (0, 1]")

        if errors:
            msg = "Invalid EngineConfig parameters:\n  - " + "\n  - ".join(errors)
            if self.strict_validation:
                raise ConfigurationError(msg)
            logger.warning(msg + "\n(Set strict_validation=True to raise errors.)")


DEFAULT_CONFIG = EngineConfig()
