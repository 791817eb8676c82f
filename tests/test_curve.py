"""
Unit tests for the exponential activity curve.

Tests cover:
- Pinned values before the dose and after DIA
- Monotonic decay and [0, 1] bounds across profiles
- Reference bolus regression fixture
- Agreement between scalar and vectorised evaluation
"""

import numpy as np
import pytest

from insulin_logic.config import MS_PER_HOUR, MS_PER_MINUTE
from insulin_logic.curve import activity, activity_array, curve_shape, iob_fraction, iob_fraction_array
from insulin_logic.profile import InsulinProfile

PROFILES = [
    (30, 5.0),
    (45, 5.0),
    (55, 6.0),
    (75, 5.0),
    (75, 8.0),
    (120, 9.0),
]


def _profile(peak_min, dia_h):
    return InsulinProfile.from_hours(f"peak{peak_min}-dia{dia_h}", peak_min, dia_h)


@pytest.fixture
def reference_profile():
    """Reference curve: peak 30 min, DIA 5 h"""
    return InsulinProfile.from_hours("Reference", 30, 5.0)


class TestBoundaries:
    """Edge policy independent of the closed form"""

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_full_iob_at_zero(self, peak_min, dia_h):
        p = _profile(peak_min, dia_h)
        assert iob_fraction(0, p) == 1.0
        assert activity(0, p) == 0.0

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_before_dose(self, peak_min, dia_h):
        """Negative elapsed time: dose pending, fully on board"""
        p = _profile(peak_min, dia_h)
        assert iob_fraction(-MS_PER_HOUR, p) == 1.0
        assert activity(-MS_PER_HOUR, p) == 0.0

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_expired_at_and_after_dia(self, peak_min, dia_h):
        p = _profile(peak_min, dia_h)
        for t in (p.duration_of_action_ms, p.duration_of_action_ms + 1, 3 * p.duration_of_action_ms):
            assert iob_fraction(t, p) == 0.0
            assert activity(t, p) == 0.0


class TestShape:
    """Properties of the curve inside (0, DIA)"""

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_monotonic_non_increasing(self, peak_min, dia_h):
        p = _profile(peak_min, dia_h)
        t = np.linspace(-MS_PER_HOUR, p.duration_of_action_ms + MS_PER_HOUR, 5001)
        frac = iob_fraction_array(t, p)
        assert np.all(np.diff(frac) <= 1e-12)

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_bounds(self, peak_min, dia_h):
        p = _profile(peak_min, dia_h)
        t = np.linspace(0, p.duration_of_action_ms, 2001)
        frac = iob_fraction_array(t, p)
        act = activity_array(t, p)
        assert np.all((frac >= 0.0) & (frac <= 1.0))
        assert np.all(act >= 0.0)

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_activity_peaks_at_peak_time(self, peak_min, dia_h):
        """Activity maximum sits at the configured peak"""
        p = _profile(peak_min, dia_h)
        t = np.arange(0, p.duration_of_action_ms, MS_PER_MINUTE)
        act = activity_array(t, p)
        peak_at = t[int(np.argmax(act))]
        assert abs(peak_at - p.peak_time_ms) <= MS_PER_MINUTE

    @pytest.mark.parametrize("peak_min,dia_h", PROFILES)
    def test_activity_integrates_to_one(self, peak_min, dia_h):
        """Area under activity equals the whole dose"""
        p = _profile(peak_min, dia_h)
        t = np.linspace(0, p.duration_of_action_ms, 20001)
        act = activity_array(t, p)
        area = np.sum((act[1:] + act[:-1]) / 2 * np.diff(t))
        assert area == pytest.approx(1.0, abs=1e-3)

    def test_iob_is_integral_of_activity(self, reference_profile):
        """1 - iob(t) equals the activity accumulated up to t"""
        p = reference_profile
        t = np.linspace(0, 2 * MS_PER_HOUR, 20001)
        act = activity_array(t, p)
        absorbed = np.sum((act[1:] + act[:-1]) / 2 * np.diff(t))
        assert 1 - iob_fraction(2 * MS_PER_HOUR, p) == pytest.approx(absorbed, abs=1e-4)


class TestReferenceCurve:
    """Regression fixture: 10 U with peak 30 min, DIA 5 h"""

    @pytest.mark.parametrize(
        "hours,expected",
        [(0, 10.0), (1, 3.92), (2, 0.77), (3, 0.10), (4, 0.0)],
    )
    def test_reference_values(self, reference_profile, hours, expected):
        assert 10.0 * iob_fraction(hours * MS_PER_HOUR, reference_profile) == pytest.approx(expected, abs=0.05)

    def test_shape_coefficients(self, reference_profile):
        shape = curve_shape(reference_profile)
        assert shape.tau == pytest.approx(33.75 * MS_PER_MINUTE)
        assert shape.a == pytest.approx(0.225)
        assert shape.td == 5 * MS_PER_HOUR


class TestScalarVectorAgreement:
    def test_scalar_matches_array(self, reference_profile):
        t = np.array([-5.0, 0.0, 1.0, 10 * MS_PER_MINUTE, MS_PER_HOUR, 4.9 * MS_PER_HOUR, 5 * MS_PER_HOUR])
        frac = iob_fraction_array(t, reference_profile)
        act = activity_array(t, reference_profile)
        for i, ti in enumerate(t):
            assert iob_fraction(ti, reference_profile) == pytest.approx(frac[i], rel=1e-12)
            assert activity(ti, reference_profile) == pytest.approx(act[i], rel=1e-12)

    def test_returns_python_float(self, reference_profile):
        assert isinstance(iob_fraction(MS_PER_HOUR, reference_profile), float)
        assert isinstance(activity(MS_PER_HOUR, reference_profile), float)
