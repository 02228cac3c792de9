import datetime
import math
from abc import ABC, abstractmethod

from .types import HorizontalPosition, ObserverLocation


class PositionProvider(ABC):
    """Altitude/azimuth lookups for the Sun, the Moon and fixed targets.

    All angles are degrees; azimuth is measured from north through east.
    Implementations must be pure and safe to call from several threads.
    """

    name: str

    @abstractmethod
    def sun_altaz(self, t: datetime.datetime, location: ObserverLocation) -> HorizontalPosition:
        pass

    @abstractmethod
    def moon_altaz(self, t: datetime.datetime, location: ObserverLocation) -> HorizontalPosition:
        pass

    @abstractmethod
    def target_altaz(
        self,
        t: datetime.datetime,
        location: ObserverLocation,
        ra_deg: float,
        dec_deg: float,
    ) -> HorizontalPosition:
        pass

    @abstractmethod
    def moon_illumination(self, t: datetime.datetime) -> float:
        """Illuminated fraction of the lunar disk, in percent [0, 100]."""

    def is_available(self) -> dict:
        """Return a dict with 'ok' (bool) and 'detail' (str) for doctor checks."""
        return {"ok": True, "detail": "available"}


def angular_separation_deg(a: HorizontalPosition, b: HorizontalPosition) -> float:
    alt1 = math.radians(a.alt_deg)
    alt2 = math.radians(b.alt_deg)
    daz = math.radians(a.az_deg - b.az_deg)
    cos_sep = math.sin(alt1) * math.sin(alt2) + math.cos(alt1) * math.cos(alt2) * math.cos(daz)
    cos_sep = max(-1.0, min(1.0, cos_sep))
    return math.degrees(math.acos(cos_sep))
