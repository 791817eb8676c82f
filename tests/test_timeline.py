"""
Unit tests for iob_timeline.

Tests cover:
- Shape and index of the returned DataFrame
- Agreement with compute_iob at each point
- Argument validation
"""

from datetime import datetime, timezone
import logging

import pandas as pd
import pytest

from insulin_logic import Bolus, ExtendedDose, TemporaryRate, compute_iob, iob_timeline
from insulin_logic.config import MS_PER_HOUR, MS_PER_MINUTE
from insulin_logic.errors import MissingDependencyError
from insulin_logic.profile import InsulinProfile

T0 = 1_735_725_600_000  # 2025-01-01 10:00 UTC


@pytest.fixture
def profile():
    return InsulinProfile.from_hours("Fiasp", 55, 6.0)


@pytest.fixture
def events(profile):
    return [
        Bolus(T0, 3.0, profile),
        ExtendedDose(T0 + 15 * MS_PER_MINUTE, MS_PER_HOUR, 1.0, profile),
        TemporaryRate(T0 + MS_PER_HOUR, MS_PER_HOUR, 50.0, False, profile),
    ]


def lookup(timestamp_ms):
    return 0.8


class TestTimeline:
    """Series over a time range"""

    def test_columns_and_index(self, events):
        df = iob_timeline(events, T0, T0 + 2 * MS_PER_HOUR, 15 * MS_PER_MINUTE, basal_lookup=lookup)
        assert list(df.columns) == ["iob", "activity", "bolus_iob", "basal_iob"]
        assert len(df) == 9  # end inclusive
        assert df.index[0] == pd.Timestamp("2025-01-01 10:00", tz="UTC")
        assert df.index[-1] == pd.Timestamp("2025-01-01 12:00", tz="UTC")

    def test_matches_compute_iob(self, events):
        df = iob_timeline(events, T0, T0 + 4 * MS_PER_HOUR, 30 * MS_PER_MINUTE, basal_lookup=lookup)
        for i, t in enumerate(range(T0, T0 + 4 * MS_PER_HOUR + 1, 30 * MS_PER_MINUTE)):
            total = compute_iob(t, events, basal_lookup=lookup)
            assert df["iob"].iloc[i] == pytest.approx(total.iob_units)
            assert df["activity"].iloc[i] == pytest.approx(total.activity_units_per_min)
            assert df["basal_iob"].iloc[i] == pytest.approx(total.basal_iob_units)

    def test_breakdown_sums(self, events):
        df = iob_timeline(events, T0, T0 + 6 * MS_PER_HOUR, basal_lookup=lookup)
        assert ((df["bolus_iob"] + df["basal_iob"] - df["iob"]).abs() < 1e-9).all()

    def test_decays_to_zero(self, events):
        df = iob_timeline(events, T0 + 8 * MS_PER_HOUR, T0 + 9 * MS_PER_HOUR, basal_lookup=lookup)
        assert (df["iob"] == 0.0).all()

    def test_datetime_bounds(self, events):
        start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        end = datetime(2025, 1, 1, 11, 0, tzinfo=timezone.utc)
        df = iob_timeline(events, start, end, basal_lookup=lookup)
        assert len(df) == 13
        assert df["iob"].iloc[0] == pytest.approx(3.0)

    def test_single_point(self, events):
        df = iob_timeline(events, T0, T0, basal_lookup=lookup)
        assert len(df) == 1

    def test_end_before_start(self, events):
        with pytest.raises(ValueError, match="before start"):
            iob_timeline(events, T0, T0 - 1, basal_lookup=lookup)

    @pytest.mark.parametrize("step", [0, -MS_PER_MINUTE])
    def test_bad_step(self, events, step):
        with pytest.raises(ValueError, match="step_ms"):
            iob_timeline(events, T0, T0 + MS_PER_HOUR, step, basal_lookup=lookup)

    def test_missing_lookup(self, events):
        with pytest.raises(MissingDependencyError):
            iob_timeline(events, T0, T0 + MS_PER_HOUR)

    def test_warns_once(self, caplog):
        short = InsulinProfile.from_hours("Short", 45, 3.0)
        with caplog.at_level(logging.WARNING, logger="insulin_logic"):
            iob_timeline([Bolus(T0, 1.0, short)], T0, T0 + MS_PER_HOUR)
        assert caplog.text.count("shorter than") == 1
