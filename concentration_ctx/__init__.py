# Makes this directory a package for easy imports

from .converter import (
    ConvertedAmount,
    ConvertedRate,
    convert_amount,
    convert_rate,
    from_normalized,
    from_normalized_rate,
    to_normalized,
    to_normalized_rate,
    validate_concentration,
)
from .display import DisplayAmount, DisplayRate, format_for_display, format_rate_for_display, volume_microliters
from .types import ConcentrationType, concentration_label

__all__ = [
    "ConvertedAmount",
    "ConvertedRate",
    "convert_amount",
    "convert_rate",
    "from_normalized",
    "from_normalized_rate",
    "to_normalized",
    "to_normalized_rate",
    "validate_concentration",
    "DisplayAmount",
    "DisplayRate",
    "format_for_display",
    "format_rate_for_display",
    "volume_microliters",
    "ConcentrationType",
    "concentration_label",
]
