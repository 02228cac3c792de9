from .base import PositionProvider, angular_separation_deg
from .meeus import MeeusPositionProvider
from .types import HorizontalPosition, ObserverLocation


def get_position_provider(config) -> PositionProvider:
    backend = getattr(config, "ephemeris_backend", None) or "meeus"
    if backend == "meeus":
        return MeeusPositionProvider()
    if backend == "astropy":
        from .astropy_backend import AstropyPositionProvider

        return AstropyPositionProvider()
    raise ValueError(f"Unsupported ephemeris backend: {backend}")

__all__ = [
    "PositionProvider",
    "MeeusPositionProvider",
    "HorizontalPosition",
    "ObserverLocation",
    "angular_separation_deg",
    "get_position_provider",
]
