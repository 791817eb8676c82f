"""
Exponential insulin activity curve (oref0/oref1 style).

The curve is parameterised by peak time ``tp`` and duration of action ``td``
and evaluated in milliseconds, so ``activity`` is a fraction of the dose per
millisecond:

    tau = tp * (1 - tp/td) / (1 - 2*tp/td)
    a   = 2*tau/td
    S   = 1 / (1 - a + (1+a) * exp(-td/tau))
    iob(t)      = 1 - S*(1-a) * ((t^2/(tau*td*(1-a)) - t/tau - 1) * exp(-t/tau) + 1)
    activity(t) = (S/tau^2) * t * (1 - t/td) * exp(-t/tau)

Outside the open interval (0, td) the curve is pinned: before or at the dose
the whole amount is still on board, at or after td nothing is.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from math import exp
from typing import TYPE_CHECKING, Union

import numpy as np

if TYPE_CHECKING:
    from .profile import InsulinProfile

ArrayLike = Union[float, int, np.ndarray]


@dataclass(frozen=True)
class CurveShape:
    tau: float
    a: float
    S: float
    td: float


@lru_cache(maxsize=256)
def shape_for(peak_time_ms: int, duration_of_action_ms: int) -> CurveShape:
    """Curve coefficients; may raise ZeroDivisionError or OverflowError for unusable timings."""
    tp = float(peak_time_ms)
    td = float(duration_of_action_ms)
    tau = tp * (1 - tp / td) / (1 - 2 * tp / td)
    a = 2 * tau / td
    S = 1.0 / (1 - a + (1 + a) * exp(-td / tau))
    return CurveShape(tau=tau, a=a, S=S, td=td)


def curve_shape(profile: InsulinProfile) -> CurveShape:
    return shape_for(profile.peak_time_ms, profile.duration_of_action_ms)


def iob_fraction_array(elapsed_ms: ArrayLike, profile: InsulinProfile) -> np.ndarray:
    """Fraction of a unit dose still on board after ``elapsed_ms``, in [0, 1]."""
    t = np.asarray(elapsed_ms, dtype=float)
    shape = curve_shape(profile)
    tau, a, S, td = shape.tau, shape.a, shape.S, shape.td

    inside = (t > 0) & (t < td)
    tc = np.where(inside, t, 0.0)
    # (1-a) multiplied through so tau == td/2 stays finite
    decay = (tc * tc / (tau * td) - (1 - a) * (tc / tau + 1)) * np.exp(-tc / tau)
    frac = np.clip(1 - S * (decay + (1 - a)), 0.0, 1.0)

    return np.where(t <= 0, 1.0, np.where(t >= td, 0.0, frac))


def activity_array(elapsed_ms: ArrayLike, profile: InsulinProfile) -> np.ndarray:
    """Activity of a unit dose after ``elapsed_ms``, in fraction per ms (>= 0)."""
    t = np.asarray(elapsed_ms, dtype=float)
    shape = curve_shape(profile)
    tau, S, td = shape.tau, shape.S, shape.td

    inside = (t > 0) & (t < td)
    tc = np.where(inside, t, 0.0)
    act = np.maximum((S / (tau * tau)) * tc * (1 - tc / td) * np.exp(-tc / tau), 0.0)

    return np.where(inside, act, 0.0)


def iob_fraction(elapsed_ms: float, profile: InsulinProfile) -> float:
    return float(iob_fraction_array(elapsed_ms, profile))


def activity(elapsed_ms: float, profile: InsulinProfile) -> float:
    return float(activity_array(elapsed_ms, profile))
