from .format import (
    deg_to_dms,
    deg_to_hms,
    format_angle,
    format_clock,
    format_duration,
    round_tenths,
)

__all__ = [
    "deg_to_dms",
    "deg_to_hms",
    "format_angle",
    "format_clock",
    "format_duration",
    "round_tenths",
]
