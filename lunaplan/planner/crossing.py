import datetime
import math
from typing import Callable

from lunaplan.ephemeris.types import HorizontalPosition
from .thresholds import DirectionalThreshold
from .types import TargetVisibilitySpan

PositionFn = Callable[[datetime.datetime], HorizontalPosition]

REFINE_TOLERANCE_S = 1.0


def sample_times(
    start: datetime.datetime,
    end: datetime.datetime,
    cadence_min: float,
) -> list[datetime.datetime]:
    """Evenly spaced instants covering [start, end], both ends included.

    The step never exceeds ``cadence_min``. An empty or inverted window
    yields no samples.
    """
    if end <= start:
        return []
    total_min = (end - start).total_seconds() / 60.0
    if total_min <= cadence_min:
        return [start, end]
    steps = max(1, math.ceil(total_min / cadence_min))
    delta = (end - start) / steps
    return [start + delta * i for i in range(steps)] + [end]


def refine_crossing(
    margin_fn: Callable[[datetime.datetime], float],
    t0: datetime.datetime,
    t1: datetime.datetime,
    tolerance_s: float = REFINE_TOLERANCE_S,
) -> datetime.datetime:
    """Bisect between two instants on opposite sides of a threshold.

    ``margin_fn`` is non-negative on the "above" side. Returns the instant
    on ``t1``'s side of the crossing once the bracket is within tolerance.
    ``t1`` may precede ``t0``.
    """
    above0 = margin_fn(t0) >= 0
    while abs((t1 - t0).total_seconds()) > tolerance_s:
        mid = t0 + (t1 - t0) / 2
        if (margin_fn(mid) >= 0) == above0:
            t0 = mid
        else:
            t1 = mid
    return t1


def empty_span(start: datetime.datetime) -> TargetVisibilitySpan:
    return TargetVisibilitySpan(
        rise_utc=start,
        set_utc=start,
        duration_hours=0.0,
        rise_offset_hours=0.0,
        set_offset_hours=0.0,
    )


def find_span(
    position_fn: PositionFn,
    start_utc: datetime.datetime,
    end_utc: datetime.datetime,
    thresholds: DirectionalThreshold,
    cadence_min: float,
) -> TargetVisibilitySpan:
    """Longest stretch of [start_utc, end_utc] with the body above its limit.

    The body counts as above when its altitude reaches the directional
    minimum for its current azimuth. Run boundaries inside the window are
    bisected to within a second; ties between runs go to the earliest.
    """
    times = sample_times(start_utc, end_utc, cadence_min)
    if not times:
        return empty_span(start_utc)

    def margin(t: datetime.datetime) -> float:
        pos = position_fn(t)
        return pos.alt_deg - thresholds.minimum_altitude(pos.az_deg)

    margins = [margin(t) for t in times]
    runs = _above_runs(margins)
    if not runs:
        return empty_span(start_utc)

    last = len(times) - 1
    best = None
    for first_idx, last_idx in runs:
        if first_idx == 0:
            rise = times[0]
        else:
            rise = refine_crossing(margin, times[first_idx - 1], times[first_idx])
        if last_idx == last:
            set_ = times[last]
        else:
            # Bisect from the above side so the set instant stays inside the run.
            set_ = refine_crossing(margin, times[last_idx + 1], times[last_idx])
        if best is None or (set_ - rise) > (best[1] - best[0]):
            best = (rise, set_, first_idx == 0, last_idx == last)

    rise, set_, up_at_start, up_at_end = best
    rise_pos = position_fn(rise)
    set_pos = position_fn(set_)
    return TargetVisibilitySpan(
        rise_utc=rise,
        set_utc=set_,
        duration_hours=_hours(set_ - rise),
        rise_offset_hours=_hours(rise - start_utc),
        set_offset_hours=_hours(set_ - start_utc),
        rise_azimuth_deg=rise_pos.az_deg,
        set_azimuth_deg=set_pos.az_deg,
        rise_min_alt_deg=thresholds.minimum_altitude(rise_pos.az_deg),
        set_min_alt_deg=thresholds.minimum_altitude(set_pos.az_deg),
        already_up_at_start=up_at_start,
        still_up_at_end=up_at_end,
    )


def _above_runs(margins: list[float]) -> list[tuple[int, int]]:
    runs: list[tuple[int, int]] = []
    run_start = None
    for i, m in enumerate(margins):
        if m >= 0:
            if run_start is None:
                run_start = i
        elif run_start is not None:
            runs.append((run_start, i - 1))
            run_start = None
    if run_start is not None:
        runs.append((run_start, len(margins) - 1))
    return runs


def _hours(delta: datetime.timedelta) -> float:
    return delta.total_seconds() / 3600.0
