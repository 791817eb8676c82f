"""Exception types raised by the insulin engine.

Every error is local to a single call: nothing here is retried or queued.
Events flagged ``valid=False`` are routine data and never raise.
"""

from __future__ import annotations


class InsulinEngineError(ValueError):
    """Base class for all engine errors."""


class InvalidProfileError(InsulinEngineError):
    """Insulin profile violates its timing or concentration invariants."""


class InvalidEventError(InsulinEngineError):
    """Dose event carries a negative amount, rate or duration."""


class MissingDependencyError(InsulinEngineError):
    """A relative temporary rate was evaluated without a scheduled basal lookup."""


class ConfigurationError(InsulinEngineError):
    """Bad concentration factor or engine configuration value."""
