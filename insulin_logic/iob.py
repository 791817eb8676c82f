"""
IOB based on oref0/oref1.

Boluses are evaluated directly on the activity curve. Extended doses and
temporary rates are delivered continuously, so they are split into
micro-doses of ``EngineConfig.step_ms`` placed at the midpoint of each step;
micro-doses that lie after the query time have not been delivered yet and
contribute nothing.

Relative temporary rates are evaluated net of the scheduled basal rate, which
the caller provides through ``basal_lookup(timestamp_ms) -> U/h``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from math import ceil
from typing import Callable, Iterable, Optional, Set, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, MS_PER_HOUR, EngineConfig
from .curve import activity, activity_array, iob_fraction, iob_fraction_array
from .errors import ConfigurationError, MissingDependencyError
from .events import Bolus, DoseEvent, ExtendedDose, TemporaryRate, TimeLike, as_epoch_ms
from .profile import InsulinProfile

logger = logging.getLogger(__name__)

BasalLookup = Callable[[int], float]

NORMAL_TARGET_MGDL = 100.0


@dataclass(frozen=True)
class DoseContribution:
    iob_units: float = 0.0
    activity_units_per_ms: float = 0.0

    def __add__(self, other: "DoseContribution") -> "DoseContribution":
        return DoseContribution(
            self.iob_units + other.iob_units,
            self.activity_units_per_ms + other.activity_units_per_ms,
        )


ZERO = DoseContribution()


@dataclass(frozen=True)
class ExerciseAdjustment:
    """Sensitivity inputs applied to the scheduled basal baseline.

    ``autosens_ratio`` is used as is, unless exercise mode is on with an
    elevated temporary target, in which case the ratio follows the
    half-basal exercise target.
    """

    autosens_ratio: float = 1.0
    exercise_mode: bool = False
    half_basal_exercise_target: float = 160.0
    target_mgdl: float = NORMAL_TARGET_MGDL
    is_temp_target: bool = False

    def __post_init__(self):
        if self.autosens_ratio <= 0:
            raise ConfigurationError(f"autosens_ratio ({self.autosens_ratio}) must be > 0")
        if self.half_basal_exercise_target <= NORMAL_TARGET_MGDL:
            raise ConfigurationError(
                f"half_basal_exercise_target ({self.half_basal_exercise_target}) must be > "
                f"{NORMAL_TARGET_MGDL:.0f}"
            )

    def sensitivity_ratio(self) -> float:
        if self.exercise_mode and self.is_temp_target and self.target_mgdl >= NORMAL_TARGET_MGDL + 5:
            c = self.half_basal_exercise_target - NORMAL_TARGET_MGDL
            return c / (c + self.target_mgdl - NORMAL_TARGET_MGDL)
        return self.autosens_ratio


@dataclass
class IobTotal:
    iob_units: float
    activity_units_per_ms: float
    bolus_iob_units: float
    basal_iob_units: float
    bolus_insulin_units: float
    net_basal_insulin_units: float
    time_ms: int

    @property
    def activity_units_per_min(self) -> float:
        return self.activity_units_per_ms * 60_000

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.time_ms / 1000.0, tz=timezone.utc)

    @property
    def contribution(self) -> DoseContribution:
        return DoseContribution(self.iob_units, self.activity_units_per_ms)


def relative_rate_delta(scheduled_rate: float, percent: float, sensitivity_ratio: float = 1.0) -> float:
    """Net U/h of a percent temporary rate against the (sensitivity-scaled) baseline.

    200 % of R yields +R, 0 % yields -R.
    """
    return scheduled_rate * (percent / 100.0) - scheduled_rate * sensitivity_ratio


def _micro_dose_grid(start_ms: int, duration_ms: int, step_ms: int) -> Tuple[np.ndarray, np.ndarray]:
    """Midpoints and lengths of the delivery steps covering [start, start + duration]."""
    n = int(ceil(duration_ms / step_ms))
    starts = start_ms + np.arange(n, dtype=float) * step_ms
    ends = np.minimum(starts + step_ms, float(start_ms + duration_ms))
    lengths = ends - starts
    return starts + lengths / 2.0, lengths


def _sum_micro_doses(
    times_ms: np.ndarray, amounts: np.ndarray, query_ms: int, profile: InsulinProfile
) -> Tuple[DoseContribution, float]:
    delivered = times_ms <= query_ms
    if not delivered.any():
        return ZERO, 0.0
    elapsed = query_ms - times_ms[delivered]
    doses = amounts[delivered]
    iob = float(np.sum(doses * iob_fraction_array(elapsed, profile)))
    act = float(np.sum(doses * activity_array(elapsed, profile)))
    on_board = elapsed < profile.duration_of_action_ms
    return DoseContribution(iob, act), float(np.sum(doses[on_board]))


def _bolus(bolus: Bolus, query_ms: int) -> Tuple[DoseContribution, float]:
    if not bolus.is_dosing:
        logger.debug(f"Skipping non-dosing bolus at {bolus.timestamp_ms} ({bolus.bolus_type.name})")
        return ZERO, 0.0
    # a bolus dated after the query time is pending: fully on board, no activity
    elapsed = query_ms - bolus.timestamp_ms
    profile = bolus.profile
    contrib = DoseContribution(
        bolus.amount_units * iob_fraction(elapsed, profile),
        bolus.amount_units * activity(elapsed, profile),
    )
    delivered = bolus.amount_units if 0 <= elapsed < profile.duration_of_action_ms else 0.0
    return contrib, delivered


def _extended(dose: ExtendedDose, query_ms: int, config: EngineConfig) -> Tuple[DoseContribution, float]:
    if not dose.is_dosing:
        logger.debug(f"Skipping invalid extended dose at {dose.timestamp_ms}")
        return ZERO, 0.0
    if dose.duration_ms <= 0 or dose.total_amount_units == 0:
        return ZERO, 0.0
    if query_ms < dose.timestamp_ms or query_ms >= dose.end_ms + dose.profile.duration_of_action_ms:
        return ZERO, 0.0

    times, lengths = _micro_dose_grid(dose.timestamp_ms, int(dose.duration_ms), config.step_ms)
    amounts = dose.total_amount_units * (lengths / float(dose.duration_ms))
    return _sum_micro_doses(times, amounts, query_ms, dose.profile)


def _temporary_rate(
    tr: TemporaryRate,
    query_ms: int,
    basal_lookup: Optional[BasalLookup],
    exercise: Optional[ExerciseAdjustment],
    config: EngineConfig,
) -> Tuple[DoseContribution, float]:
    if not tr.is_dosing:
        logger.debug(f"Skipping invalid temporary rate at {tr.timestamp_ms}")
        return ZERO, 0.0
    if not tr.is_absolute and basal_lookup is None:
        raise MissingDependencyError(
            f"Temporary rate of {tr.rate:.0f}% at {tr.timestamp_ms} needs a scheduled basal lookup"
        )
    if tr.duration_ms <= 0:
        return ZERO, 0.0
    if query_ms < tr.timestamp_ms or query_ms >= tr.end_ms + tr.profile.duration_of_action_ms:
        return ZERO, 0.0

    times, lengths = _micro_dose_grid(tr.timestamp_ms, int(tr.duration_ms), config.step_ms)
    if tr.is_absolute:
        rates = np.full(times.shape, float(tr.rate))
    else:
        ratio = exercise.sensitivity_ratio() if exercise is not None else 1.0
        rates = np.array(
            [relative_rate_delta(_scheduled_basal(basal_lookup, t), tr.rate, ratio) for t in times],
            dtype=float,
        )
    amounts = rates * (lengths / MS_PER_HOUR)
    return _sum_micro_doses(times, amounts, query_ms, tr.profile)


def _scheduled_basal(basal_lookup: BasalLookup, timestamp_ms: float) -> float:
    rate = float(basal_lookup(int(timestamp_ms)))
    if rate < 0:
        raise ConfigurationError(f"Scheduled basal lookup returned {rate} U/h at {int(timestamp_ms)}")
    return rate


def _evaluate(
    event: DoseEvent,
    query_ms: int,
    basal_lookup: Optional[BasalLookup],
    exercise: Optional[ExerciseAdjustment],
    config: EngineConfig,
) -> Tuple[DoseContribution, float]:
    if isinstance(event, Bolus):
        return _bolus(event, query_ms)
    if isinstance(event, ExtendedDose):
        return _extended(event, query_ms, config)
    if isinstance(event, TemporaryRate):
        return _temporary_rate(event, query_ms, basal_lookup, exercise, config)
    raise TypeError(f"Unsupported dose event type: {type(event).__name__}")


def bolus_contribution(bolus: Bolus, query_time: TimeLike) -> DoseContribution:
    return _bolus(bolus, as_epoch_ms(query_time))[0]


def extended_contribution(
    dose: ExtendedDose, query_time: TimeLike, config: Optional[EngineConfig] = None
) -> DoseContribution:
    return _extended(dose, as_epoch_ms(query_time), config or DEFAULT_CONFIG)[0]


def temporary_rate_contribution(
    tr: TemporaryRate,
    query_time: TimeLike,
    basal_lookup: Optional[BasalLookup] = None,
    exercise: Optional[ExerciseAdjustment] = None,
    config: Optional[EngineConfig] = None,
) -> DoseContribution:
    return _temporary_rate(tr, as_epoch_ms(query_time), basal_lookup, exercise, config or DEFAULT_CONFIG)[0]


def contribution(
    event: DoseEvent,
    query_time: TimeLike,
    *,
    basal_lookup: Optional[BasalLookup] = None,
    exercise: Optional[ExerciseAdjustment] = None,
    config: Optional[EngineConfig] = None,
) -> DoseContribution:
    """IOB and activity of a single event at ``query_time``."""
    return _evaluate(event, as_epoch_ms(query_time), basal_lookup, exercise, config or DEFAULT_CONFIG)[0]


def check_profiles(events: Iterable[DoseEvent], config: Optional[EngineConfig] = None) -> None:
    """Log a warning for each accepted profile that looks unsuitable for the curve."""
    cfg = config or DEFAULT_CONFIG
    seen: Set[InsulinProfile] = set()
    for event in events:
        profile = event.profile
        if profile in seen:
            continue
        seen.add(profile)
        if profile.duration_of_action_ms < cfg.min_dia_hours * MS_PER_HOUR:
            logger.warning(
                f"Insulin '{profile.label}' has DIA {profile.dia_hours}h, "
                f"shorter than the {cfg.min_dia_hours}h minimum for exponential curves."
            )
        if cfg.step_ms > cfg.max_step_peak_ratio * profile.peak_time_ms:
            logger.warning(
                f"Discretization step {cfg.step_ms}ms is coarse relative to the "
                f"{profile.peak_minutes}min peak of '{profile.label}'."
            )


def _iob_total(
    query_ms: int,
    events: Iterable[DoseEvent],
    basal_lookup: Optional[BasalLookup],
    exercise: Optional[ExerciseAdjustment],
    config: EngineConfig,
) -> IobTotal:
    iob_sum = 0.0
    activity_sum = 0.0
    bolusiob = 0.0
    basaliob = 0.0
    bolusinsulin = 0.0
    netbasalinsulin = 0.0

    for event in events:
        contrib, delivered = _evaluate(event, query_ms, basal_lookup, exercise, config)
        iob_sum += contrib.iob_units
        activity_sum += contrib.activity_units_per_ms
        if isinstance(event, TemporaryRate):
            basaliob += contrib.iob_units
            netbasalinsulin += delivered
        else:
            bolusiob += contrib.iob_units
            bolusinsulin += delivered

    return IobTotal(
        iob_units=iob_sum,
        activity_units_per_ms=activity_sum,
        bolus_iob_units=bolusiob,
        basal_iob_units=basaliob,
        bolus_insulin_units=bolusinsulin,
        net_basal_insulin_units=netbasalinsulin,
        time_ms=query_ms,
    )


def compute_iob(
    query_time: TimeLike,
    events: Iterable[DoseEvent],
    *,
    basal_lookup: Optional[BasalLookup] = None,
    exercise: Optional[ExerciseAdjustment] = None,
    config: Optional[EngineConfig] = None,
) -> IobTotal:
    """Total insulin on board and activity of ``events`` at ``query_time``.

    Extended doses and temporary rates add only what was delivered by
    ``query_time``; invalid and priming events add nothing. Relative temporary
    rates require ``basal_lookup``.
    """
    cfg = config or DEFAULT_CONFIG
    events = list(events)
    check_profiles(events, cfg)
    return _iob_total(as_epoch_ms(query_time), events, basal_lookup, exercise, cfg)
