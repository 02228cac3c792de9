from concurrent.futures import ThreadPoolExecutor
import datetime
import logging
import math
import threading
from typing import Sequence

from lunaplan.ephemeris import get_position_provider
from lunaplan.ephemeris.base import PositionProvider, angular_separation_deg
from lunaplan.ephemeris.types import HorizontalPosition, ObserverLocation
from lunaplan.errors import BackendError, CalculationCancelled
from .crossing import PositionFn, find_span
from .moon import partition, sample_moon, separations_at
from .moon_tiers import ImagingRating, MoonTierConfig
from .night import NightWindowCalculator, local_instant, resolve_timezone
from .thresholds import DirectionalThreshold
from .types import (
    CalculationResult,
    DayResult,
    ImagingWindow,
    MoonAltitudeSample,
    NightWindow,
    PlanRequest,
    Target,
    TargetNightResult,
)

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7
IMAGING_STEP_MIN = 15
MOON_HORIZON = DirectionalThreshold.uniform(0.0)

# Failures a position provider may raise for a single lookup.
PROVIDER_ERRORS = (BackendError, ValueError, ArithmeticError)


class Planner:
    def __init__(self, config, provider: PositionProvider | None = None):
        self._config = config
        self._provider = provider or get_position_provider(config)
        self._nights = NightWindowCalculator(self._provider)

    @property
    def provider(self) -> PositionProvider:
        return self._provider

    def plan(
        self,
        start_date: datetime.date | None = None,
        end_date: datetime.date | None = None,
        targets: Sequence[Target] | None = None,
        location: ObserverLocation | None = None,
        thresholds: DirectionalThreshold | None = None,
        moon_tiers: MoonTierConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CalculationResult:
        request = self.default_request(self._config)
        if start_date is not None:
            request.start_date = start_date
            if end_date is None:
                request.end_date = start_date + datetime.timedelta(days=DEFAULT_DAYS - 1)
        if end_date is not None:
            request.end_date = end_date
        if targets is not None:
            request.targets = list(targets)
        if location is not None:
            request.location = location
        if thresholds is not None:
            request.thresholds = thresholds
        if moon_tiers is not None:
            request.moon_tiers = moon_tiers
        return self.calculate(request, cancel_event=cancel_event)

    def calculate(
        self,
        request: PlanRequest,
        cancel_event: threading.Event | None = None,
    ) -> CalculationResult:
        _validate_request(request)
        tz = resolve_timezone(request.location.timezone)
        dates = _night_dates(request.start_date, request.end_date)
        workers = min(self._config.workers, len(dates))
        logger.debug(
            "Planning %d night(s) for %d target(s) with %d worker(s)",
            len(dates),
            len(request.targets),
            workers,
        )

        if workers <= 1:
            days = [self._run_night(request, d, tz, cancel_event) for d in dates]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._run_night, request, d, tz, cancel_event) for d in dates]
                try:
                    days = [f.result() for f in futures]
                except CalculationCancelled:
                    for f in futures:
                        f.cancel()
                    raise

        return CalculationResult(
            days=days,
            thresholds=request.thresholds,
            moon_tiers=request.moon_tiers,
            dusk_buffer_hours=request.dusk_buffer_hours,
            dawn_buffer_hours=request.dawn_buffer_hours,
            sample_interval_minutes=request.sample_interval_minutes,
            target_names=[t.name for t in request.targets],
            location=request.location,
        )

    @staticmethod
    def default_request(config, targets: Sequence[Target] = ()) -> PlanRequest:
        start = datetime.date.today()
        location = ObserverLocation(
            latitude_deg=config.site_latitude_deg,
            longitude_deg=config.site_longitude_deg,
            elevation_m=config.site_elevation_m,
            timezone=config.site_timezone,
            name=config.site_name,
        )
        return PlanRequest(
            start_date=start,
            end_date=start + datetime.timedelta(days=DEFAULT_DAYS - 1),
            location=location,
            targets=list(targets),
            thresholds=DirectionalThreshold.from_values(config.min_altitudes_deg),
            moon_tiers=MoonTierConfig.from_dict(config.moon_tiers),
            dusk_buffer_hours=config.dusk_buffer_hours,
            dawn_buffer_hours=config.dawn_buffer_hours,
            sample_interval_minutes=config.sample_interval_minutes,
            observation_hour=config.observation_hour,
        )

    def _run_night(
        self,
        request: PlanRequest,
        date: datetime.date,
        tz: datetime.tzinfo,
        cancel_event: threading.Event | None,
    ) -> DayResult:
        if cancel_event is not None and cancel_event.is_set():
            raise CalculationCancelled(f"Calculation cancelled before {date.isoformat()}")

        location = request.location
        label = f"{date.month}/{date.day}"
        provider = self._provider
        try:
            night = self._nights.compute(date, location, request.dusk_buffer_hours, request.dawn_buffer_hours)
            reference = local_instant(date, request.observation_hour, tz)
            moon_ref = provider.moon_altaz(reference, location)
            moon_phase = round_phase(provider.moon_illumination(reference))
            moon_samples = sample_moon(
                provider,
                location,
                night.darkness_start_utc,
                night.darkness_end_utc,
                request.sample_interval_minutes,
            )
            moon_span = find_span(
                lambda t: provider.moon_altaz(t, location),
                night.darkness_start_utc,
                night.darkness_end_utc,
                MOON_HORIZON,
                request.sample_interval_minutes,
            )
        except PROVIDER_ERRORS as e:
            logger.warning("Night of %s unavailable: %s", date.isoformat(), e)
            return DayResult(
                date=date,
                date_label=label,
                moon_alt_deg=None,
                moon_phase=None,
                night_window=None,
                moon_visibility=None,
                moon_samples=[],
                target_results=[_unavailable(i, t, e) for i, t in enumerate(request.targets)],
                error=str(e),
            )

        logger.debug(
            "Night of %s: %.1fh dark, moon %.0f%% at %.1f deg",
            date.isoformat(),
            night.dark_hours,
            moon_phase,
            moon_ref.alt_deg,
        )
        results = [
            self._target_result(request, i, target, night, reference, moon_ref, moon_phase, moon_samples)
            for i, target in enumerate(request.targets)
        ]
        return DayResult(
            date=date,
            date_label=label,
            moon_alt_deg=round(moon_ref.alt_deg, 1),
            moon_phase=moon_phase,
            night_window=night,
            moon_visibility=moon_span,
            moon_samples=moon_samples,
            target_results=results,
        )

    def _target_result(
        self,
        request: PlanRequest,
        index: int,
        target: Target,
        night: NightWindow,
        reference: datetime.datetime,
        moon_ref: HorizontalPosition,
        moon_phase: float,
        moon_samples: Sequence[MoonAltitudeSample],
    ) -> TargetNightResult:
        location = request.location
        provider = self._provider

        def position(t: datetime.datetime) -> HorizontalPosition:
            return provider.target_altaz(t, location, target.ra_deg, target.dec_deg)

        try:
            span = find_span(
                position,
                night.darkness_start_utc,
                night.darkness_end_utc,
                request.thresholds,
                request.sample_interval_minutes,
            )
            overlap = partition(span, moon_samples, separations_at(position, moon_samples))
            rating = request.moon_tiers.evaluate_moon_aware_with_reason(
                moon_phase,
                overlap.hours_moon_down,
                overlap.hours_moon_up,
                overlap.avg_separation_moon_up,
            )
            target_ref = position(reference)
            if night.has_darkness:
                window = imaging_window(position, reference, night.darkness_end_utc, request.thresholds)
            else:
                window = ImagingWindow(duration_hours=0.0, start_utc=reference, end_utc=None)
        except PROVIDER_ERRORS as e:
            logger.warning("Target %s unavailable on %s: %s", target.name, night.midnight_utc.date(), e)
            return _unavailable(index, target, e)

        return TargetNightResult(
            target_name=target.name,
            color_index=index,
            target_alt_deg=round(target_ref.alt_deg, 1),
            angular_separation_deg=round(angular_separation_deg(moon_ref, target_ref), 1),
            imaging_window=window,
            visibility=span,
            hours_moon_down=overlap.hours_moon_down,
            hours_moon_up=overlap.hours_moon_up,
            avg_separation_moon_up=overlap.avg_separation_moon_up,
            rating=rating.rating,
            rating_reason=rating.reason,
        )


def imaging_window(
    position_fn: PositionFn,
    start_utc: datetime.datetime,
    cutoff_utc: datetime.datetime,
    thresholds: DirectionalThreshold,
) -> ImagingWindow:
    """Walk forward from ``start_utc`` while the target stays above its limit.

    Steps are 15 minutes; the window ends at the first failing step or at
    ``cutoff_utc``. A target below its limit at the start has no window.
    """
    pos = position_fn(start_utc)
    if start_utc >= cutoff_utc or pos.alt_deg < thresholds.minimum_altitude(pos.az_deg):
        return ImagingWindow(duration_hours=0.0, start_utc=start_utc, end_utc=None)

    step = datetime.timedelta(minutes=IMAGING_STEP_MIN)
    end = cutoff_utc
    t = start_utc
    while t < cutoff_utc:
        t += step
        if t >= cutoff_utc:
            break
        pos = position_fn(t)
        if pos.alt_deg < thresholds.minimum_altitude(pos.az_deg):
            end = t
            break
    return ImagingWindow(
        duration_hours=(end - start_utc).total_seconds() / 3600.0,
        start_utc=start_utc,
        end_utc=end,
    )


def round_phase(illumination_pct: float) -> float:
    """Whole-percent moon phase; halves round up."""
    return float(math.floor(illumination_pct + 0.5))


def _unavailable(index: int, target: Target, exc: Exception) -> TargetNightResult:
    return TargetNightResult(
        target_name=target.name,
        color_index=index,
        target_alt_deg=None,
        angular_separation_deg=None,
        imaging_window=ImagingWindow(duration_hours=0.0, start_utc=None, end_utc=None),
        visibility=None,
        hours_moon_down=0.0,
        hours_moon_up=0.0,
        avg_separation_moon_up=None,
        rating=ImagingRating.NO_IMAGING,
        rating_reason="Position data unavailable",
        available=False,
        error=str(exc),
    )


def _validate_request(request: PlanRequest) -> None:
    location = request.location
    if location is None or location.latitude_deg is None or location.longitude_deg is None:
        raise ValueError("Observer location is required (lat/lon)")
    if not -90.0 <= location.latitude_deg <= 90.0:
        raise ValueError(f"Latitude out of range: {location.latitude_deg}")
    if request.end_date < request.start_date:
        raise ValueError("End date must not be before start date")
    if request.sample_interval_minutes <= 0:
        raise ValueError("Sample interval must be positive")
    if not 0 <= request.observation_hour <= 23:
        raise ValueError("Observation hour must be between 0 and 23")


def _night_dates(start: datetime.date, end: datetime.date) -> list[datetime.date]:
    count = (end - start).days + 1
    return [start + datetime.timedelta(days=i) for i in range(count)]
