from __future__ import annotations

import datetime
import functools
import math

from lunaplan.errors import BackendError
from .base import PositionProvider
from .types import HorizontalPosition, ObserverLocation

try:
    from astropy.coordinates import AltAz, EarthLocation, SkyCoord, get_body
    from astropy.time import Time
    import astropy.units as u

    ASTROPY_AVAILABLE = True
except ImportError:
    ASTROPY_AVAILABLE = False


def _require_astropy() -> None:
    if not ASTROPY_AVAILABLE:
        raise BackendError(
            "astropy is required for the 'astropy' ephemeris backend. "
            "Install with: pip install -e .[tools]"
        )


@functools.lru_cache(maxsize=32)
def _earth_location(location: ObserverLocation):
    return EarthLocation(
        lat=location.latitude_deg * u.deg,
        lon=location.longitude_deg * u.deg,
        height=(location.elevation_m or 0.0) * u.m,
    )


class AstropyPositionProvider(PositionProvider):
    """Position backend on astropy's coordinate frames.

    Uses the built-in ephemeris; topocentric Moon positions include parallax.
    """

    name = "astropy"

    def __init__(self):
        _require_astropy()

    def sun_altaz(self, t, location: ObserverLocation) -> HorizontalPosition:
        return self._body_altaz("sun", t, location)

    def moon_altaz(self, t, location: ObserverLocation) -> HorizontalPosition:
        return self._body_altaz("moon", t, location)

    def target_altaz(self, t, location: ObserverLocation, ra_deg: float, dec_deg: float) -> HorizontalPosition:
        try:
            coord = SkyCoord(ra=ra_deg * u.deg, dec=dec_deg * u.deg, frame="icrs")
            return self._to_altaz(coord, t, location)
        except (ValueError, TypeError) as e:
            raise BackendError(f"astropy target position failed: {e}") from e

    def moon_illumination(self, t) -> float:
        try:
            obstime = _obstime(t)
            sun = get_body("sun", obstime)
            moon = get_body("moon", obstime)
            elongation = sun.separation(moon).rad
        except (ValueError, TypeError) as e:
            raise BackendError(f"astropy moon illumination failed: {e}") from e
        return float((1.0 - math.cos(elongation)) / 2.0 * 100.0)

    def is_available(self) -> dict:
        if not ASTROPY_AVAILABLE:
            return {"ok": False, "detail": "astropy not installed"}
        return {"ok": True, "detail": "astropy coordinates"}

    def _body_altaz(self, body: str, t, location: ObserverLocation) -> HorizontalPosition:
        try:
            obstime = _obstime(t)
            coord = get_body(body, obstime, location=_earth_location(location))
            return self._to_altaz(coord, t, location)
        except (ValueError, TypeError) as e:
            raise BackendError(f"astropy {body} position failed: {e}") from e

    @staticmethod
    def _to_altaz(coord, t, location: ObserverLocation) -> HorizontalPosition:
        frame = AltAz(obstime=_obstime(t), location=_earth_location(location))
        altaz = coord.transform_to(frame)
        return HorizontalPosition(alt_deg=float(altaz.alt.deg), az_deg=float(altaz.az.deg) % 360.0)


def _obstime(t: datetime.datetime):
    if t.tzinfo is not None:
        t = t.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return Time(t, scale="utc")
