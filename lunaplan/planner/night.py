import datetime
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lunaplan.ephemeris.base import PositionProvider
from lunaplan.ephemeris.types import ObserverLocation
from .crossing import refine_crossing, sample_times
from .types import NightWindow

logger = logging.getLogger(__name__)

SUN_HORIZON_DEG = -0.5
SCAN_STEP_MIN = 5.0


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def local_instant(date: datetime.date, hour: int, tz: datetime.tzinfo) -> datetime.datetime:
    """UTC instant of ``hour``:00 local time on ``date``."""
    local = datetime.datetime.combine(date, datetime.time(hour), tzinfo=tz)
    return local.astimezone(datetime.timezone.utc)


class NightWindowCalculator:
    """Sunset, sunrise and buffered darkness for one local night.

    The Sun is scanned from local noon of the night's date to local noon of
    the next day. Polar cases degrade as follows: a Sun already down at the
    start of the scan sets at the scan start, a Sun that never comes back up
    rises at the scan end, and a Sun that never sets gives a zero-length
    night at local midnight.
    """

    def __init__(self, provider: PositionProvider):
        self._provider = provider

    def compute(
        self,
        date: datetime.date,
        location: ObserverLocation,
        dusk_buffer_hours: float,
        dawn_buffer_hours: float,
    ) -> NightWindow:
        tz = resolve_timezone(location.timezone)
        next_day = date + datetime.timedelta(days=1)
        scan_start = local_instant(date, 12, tz)
        scan_end = local_instant(next_day, 12, tz)
        midnight = local_instant(next_day, 0, tz)

        def margin(t: datetime.datetime) -> float:
            return self._provider.sun_altaz(t, location).alt_deg - SUN_HORIZON_DEG

        times = sample_times(scan_start, scan_end, SCAN_STEP_MIN)
        margins = [margin(t) for t in times]

        sunset_idx = None
        if margins[0] < 0:
            sunset = scan_start
            sunset_idx = 0
        else:
            for i in range(1, len(times)):
                if margins[i] < 0 <= margins[i - 1]:
                    sunset = refine_crossing(margin, times[i - 1], times[i])
                    sunset_idx = i
                    break

        if sunset_idx is None:
            logger.debug("Sun never sets on %s at %s", date, location)
            sunset = sunrise = midnight
        else:
            sunrise = scan_end
            for i in range(sunset_idx + 1, len(times)):
                if margins[i - 1] < 0 <= margins[i]:
                    sunrise = refine_crossing(margin, times[i - 1], times[i])
                    break

        darkness_start = sunset + datetime.timedelta(hours=dusk_buffer_hours)
        darkness_end = sunrise - datetime.timedelta(hours=dawn_buffer_hours)
        return NightWindow(
            sunset_utc=sunset,
            sunrise_utc=sunrise,
            darkness_start_utc=darkness_start,
            darkness_end_utc=darkness_end,
            dark_hours=(darkness_end - darkness_start).total_seconds() / 3600.0,
            midnight_utc=midnight,
        )
