"""IOB / activity series over a time range, for graphs and exports."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG, MS_PER_MINUTE, EngineConfig
from .events import DoseEvent, TimeLike, as_epoch_ms
from .iob import BasalLookup, ExerciseAdjustment, _iob_total, check_profiles

logger = logging.getLogger(__name__)


def iob_timeline(
    events: Iterable[DoseEvent],
    start: TimeLike,
    end: TimeLike,
    step_ms: int = 5 * MS_PER_MINUTE,
    *,
    basal_lookup: Optional[BasalLookup] = None,
    exercise: Optional[ExerciseAdjustment] = None,
    config: Optional[EngineConfig] = None,
) -> pd.DataFrame:
    """Evaluate IOB every ``step_ms`` from ``start`` to ``end`` inclusive.

    Returns a DataFrame indexed by UTC timestamps with columns ``iob``,
    ``activity`` (U/min), ``bolus_iob`` and ``basal_iob``.
    """
    cfg = config or DEFAULT_CONFIG
    start_ms = as_epoch_ms(start)
    end_ms = as_epoch_ms(end)
    if end_ms < start_ms:
        raise ValueError(f"end ({end_ms}) must not be before start ({start_ms})")
    if step_ms <= 0:
        raise ValueError(f"step_ms ({step_ms}) must be > 0")

    events = list(events)
    check_profiles(events, cfg)

    times = np.arange(start_ms, end_ms + 1, step_ms, dtype=np.int64)
    logger.debug(f"Evaluating {len(events)} events at {len(times)} points")

    totals = [_iob_total(int(t), events, basal_lookup, exercise, cfg) for t in times]

    return pd.DataFrame(
        {
            "iob": [t.iob_units for t in totals],
            "activity": [t.activity_units_per_min for t in totals],
            "bolus_iob": [t.bolus_iob_units for t in totals],
            "basal_iob": [t.basal_iob_units for t in totals],
        },
        index=pd.to_datetime(times, unit="ms", utc=True),
    )
