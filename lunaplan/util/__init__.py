from .format import (
    deg_to_dms,
    deg_to_hms,
    format_degrees,
    format_hours,
    format_local_time,
    format_percent,
)

__all__ = [
    "deg_to_dms",
    "deg_to_hms",
    "format_degrees",
    "format_hours",
    "format_local_time",
    "format_percent",
]
