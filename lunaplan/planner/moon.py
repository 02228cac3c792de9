import datetime
from typing import Callable, Sequence

from lunaplan.ephemeris.base import PositionProvider, angular_separation_deg
from lunaplan.ephemeris.types import HorizontalPosition, ObserverLocation
from .crossing import sample_times
from .types import MoonAltitudeSample, MoonOverlap, TargetVisibilitySpan


def sample_moon(
    provider: PositionProvider,
    location: ObserverLocation,
    start_utc: datetime.datetime,
    end_utc: datetime.datetime,
    cadence_min: float,
) -> list[MoonAltitudeSample]:
    samples = []
    for t in sample_times(start_utc, end_utc, cadence_min):
        pos = provider.moon_altaz(t, location)
        samples.append(MoonAltitudeSample(time_utc=t, altitude_deg=pos.alt_deg, azimuth_deg=pos.az_deg))
    return samples


def partition(
    span: TargetVisibilitySpan,
    moon_samples: Sequence[MoonAltitudeSample],
    separations: Sequence[float],
) -> MoonOverlap:
    """Split a visibility span into moon-up and moon-down hours.

    Each sampling interval is clipped to the span. It counts as moon-up when
    the mean of its bounding Moon altitudes is above the horizon.
    ``separations`` holds the target/Moon separation at each sample and is
    averaged over the moon-up overlap, weighted by overlap length.
    """
    if len(separations) != len(moon_samples):
        raise ValueError("separations must align with moon samples")
    if span.is_empty:
        return MoonOverlap(hours_moon_down=0.0, hours_moon_up=0.0, avg_separation_moon_up=None)
    if len(moon_samples) < 2:
        # Not enough samples to form an interval; classify by what is known.
        up = bool(moon_samples) and moon_samples[0].altitude_deg > 0
        if up:
            return MoonOverlap(0.0, span.duration_hours, separations[0])
        return MoonOverlap(span.duration_hours, 0.0, None)

    down_h = 0.0
    up_h = 0.0
    weighted_sep = 0.0
    for k in range(len(moon_samples) - 1):
        a, b = moon_samples[k], moon_samples[k + 1]
        lo = max(a.time_utc, span.rise_utc)
        hi = min(b.time_utc, span.set_utc)
        if hi <= lo:
            continue
        overlap_h = (hi - lo).total_seconds() / 3600.0
        if (a.altitude_deg + b.altitude_deg) / 2.0 > 0:
            up_h += overlap_h
            weighted_sep += overlap_h * (separations[k] + separations[k + 1]) / 2.0
        else:
            down_h += overlap_h

    avg = weighted_sep / up_h if up_h > 0 else None
    return MoonOverlap(hours_moon_down=down_h, hours_moon_up=up_h, avg_separation_moon_up=avg)


def separations_at(
    position_fn: Callable[[datetime.datetime], HorizontalPosition],
    moon_samples: Sequence[MoonAltitudeSample],
) -> list[float]:
    """Target/Moon angular separation at each Moon sample instant."""
    return [
        angular_separation_deg(position_fn(s.time_utc), HorizontalPosition(s.altitude_deg, s.azimuth_deg))
        for s in moon_samples
    ]
