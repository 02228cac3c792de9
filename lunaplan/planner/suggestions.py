from dataclasses import dataclass
import datetime
import functools
import logging
from typing import Sequence

from lunaplan.ephemeris.base import PositionProvider
from lunaplan.util.format import format_local_time
from .crossing import find_span
from .moon import partition, sample_moon, separations_at
from .moon_tiers import ImagingRating
from .night import NightWindowCalculator, local_instant, resolve_timezone
from .planner import PROVIDER_ERRORS, round_phase
from .types import (
    MoonAltitudeSample,
    NightWindow,
    PlanRequest,
    Target,
    TargetSuggestion,
    TargetVisibilitySpan,
)

logger = logging.getLogger(__name__)

MIN_GAP_HOURS = 0.5
MAX_SUGGESTIONS = 12
SHORT_RANGE_DAYS = 30

Interval = tuple[datetime.datetime, datetime.datetime]


def find_gaps(
    darkness_start: datetime.datetime,
    darkness_end: datetime.datetime,
    spans: Sequence[TargetVisibilitySpan],
) -> list[Interval]:
    """Stretches of the darkness window not covered by any span."""
    merged: list[list[datetime.datetime]] = []
    for span in sorted(spans, key=lambda s: s.rise_utc):
        if merged and span.rise_utc <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], span.set_utc)
        else:
            merged.append([span.rise_utc, span.set_utc])

    gaps: list[Interval] = []
    current = darkness_start
    for start, end in merged:
        gap_end = min(start, darkness_end)
        if gap_end > current:
            gaps.append((current, gap_end))
        current = max(current, end)
    if current < darkness_end:
        gaps.append((current, darkness_end))
    return gaps


def overlap_hours(span: TargetVisibilitySpan, gaps: Sequence[Interval]) -> float:
    """Hours of ``span`` inside ``gaps``, rounded to a tenth."""
    total = 0.0
    for gap_start, gap_end in gaps:
        lo = max(span.rise_utc, gap_start)
        hi = min(span.set_utc, gap_end)
        if hi > lo:
            total += (hi - lo).total_seconds()
    return round(total / 3600.0, 1)


def sample_offsets(days: int) -> list[int]:
    """Day offsets of the nights used to judge a date range."""
    if days <= SHORT_RANGE_DAYS:
        return [days // 2]
    return [10, days // 2, max(days - 10, days // 2 + 1)]


@dataclass
class _NightContext:
    date: datetime.date
    night: NightWindow
    moon_phase: float
    moon_samples: Sequence[MoonAltitudeSample]
    gaps: list[Interval]

    @property
    def gap_hours(self) -> float:
        return sum((end - start).total_seconds() for start, end in self.gaps) / 3600.0


@dataclass
class _Candidate:
    span: TargetVisibilitySpan
    gap_hours: float
    rating: ImagingRating
    reason: str


class SuggestionEngine:
    """Suggest catalog targets that fill the idle parts of a schedule.

    The selected targets in a ``PlanRequest`` define which parts of each
    sampled night are already covered. Candidates are scored on how much of
    the uncovered darkness they fill and on their Moon rating.
    """

    def __init__(self, provider: PositionProvider):
        self._provider = provider
        self._nights = NightWindowCalculator(provider)

    def suggest(self, request: PlanRequest, candidates: Sequence[Target]) -> list[TargetSuggestion]:
        location = request.location
        if location.latitude_deg is None or location.longitude_deg is None:
            raise ValueError("Observer location is required (lat/lon)")
        if request.end_date < request.start_date:
            raise ValueError("End date must not be before start date")
        tz = resolve_timezone(location.timezone)

        days = (request.end_date - request.start_date).days + 1
        contexts = []
        for offset in sample_offsets(days):
            date = request.start_date + datetime.timedelta(days=offset)
            ctx = self._night_context(request, date, tz)
            if ctx is not None:
                contexts.append(ctx)

        if not any(ctx.gap_hours >= MIN_GAP_HOURS for ctx in contexts):
            logger.info("No schedule gaps of %.1fh or more; nothing to suggest", MIN_GAP_HOURS)
            return []

        selected = {t.identity for t in request.targets}
        suggestions = []
        for candidate in candidates:
            if candidate.identity in selected:
                continue
            if 90.0 - abs(location.latitude_deg - candidate.dec_deg) < 0:
                continue
            try:
                suggestion = self._score_candidate(request, candidate, contexts, tz)
            except PROVIDER_ERRORS as e:
                logger.warning("Skipping candidate %s: %s", candidate.name, e)
                continue
            if suggestion is not None:
                suggestions.append(suggestion)

        suggestions.sort(key=functools.cmp_to_key(_compare))
        return suggestions[:MAX_SUGGESTIONS]

    def _night_context(
        self,
        request: PlanRequest,
        date: datetime.date,
        tz: datetime.tzinfo,
    ) -> _NightContext | None:
        location = request.location
        provider = self._provider
        cadence = request.sample_interval_minutes
        try:
            night = self._nights.compute(date, location, request.dusk_buffer_hours, request.dawn_buffer_hours)
            if not night.has_darkness:
                return None
            reference = local_instant(date, request.observation_hour, tz)
            moon_phase = round_phase(provider.moon_illumination(reference))
            moon_samples = sample_moon(provider, location, night.darkness_start_utc, night.darkness_end_utc, cadence)
            spans = [
                find_span(
                    lambda t, target=target: provider.target_altaz(t, location, target.ra_deg, target.dec_deg),
                    night.darkness_start_utc,
                    night.darkness_end_utc,
                    request.thresholds,
                    cadence,
                )
                for target in request.targets
            ]
        except PROVIDER_ERRORS as e:
            logger.warning("Skipping sample night %s: %s", date.isoformat(), e)
            return None

        gaps = find_gaps(night.darkness_start_utc, night.darkness_end_utc, [s for s in spans if not s.is_empty])
        return _NightContext(date=date, night=night, moon_phase=moon_phase, moon_samples=moon_samples, gaps=gaps)

    def _score_candidate(
        self,
        request: PlanRequest,
        candidate: Target,
        contexts: Sequence[_NightContext],
        tz: datetime.tzinfo,
    ) -> TargetSuggestion | None:
        location = request.location

        def position(t):
            return self._provider.target_altaz(t, location, candidate.ra_deg, candidate.dec_deg)

        best: _Candidate | None = None
        first_available: datetime.date | None = None
        for ctx in contexts:
            if ctx.gap_hours < MIN_GAP_HOURS:
                continue
            span = find_span(
                position,
                ctx.night.darkness_start_utc,
                ctx.night.darkness_end_utc,
                request.thresholds,
                request.sample_interval_minutes,
            )
            if span.is_empty:
                continue
            gap_hours = overlap_hours(span, ctx.gaps)
            if gap_hours < MIN_GAP_HOURS:
                continue
            if first_available is None:
                first_available = ctx.date

            overlap = partition(span, ctx.moon_samples, separations_at(position, ctx.moon_samples))
            result = request.moon_tiers.evaluate_moon_aware_with_reason(
                ctx.moon_phase,
                overlap.hours_moon_down,
                overlap.hours_moon_up,
                overlap.avg_separation_moon_up,
            )
            if result.rating is ImagingRating.NO_IMAGING:
                continue
            if (
                best is None
                or gap_hours > best.gap_hours
                or (gap_hours == best.gap_hours and result.rating.order < best.rating.order)
            ):
                best = _Candidate(span=span, gap_hours=gap_hours, rating=result.rating, reason=result.reason)

        if best is None:
            return None

        visible_from = format_local_time(best.span.rise_utc, tz)
        visible_to = format_local_time(best.span.set_utc, tz)
        available_from = first_available if first_available != contexts[0].date else None
        return TargetSuggestion(
            target=candidate,
            visibility_hours=round(best.span.duration_hours, 1),
            gap_coverage_hours=best.gap_hours,
            rating=best.rating,
            reason=f"{visible_from}–{visible_to} · {best.reason}",
            visible_from_utc=best.span.rise_utc,
            visible_to_utc=best.span.set_utc,
            available_from=available_from,
        )


def _compare(a: TargetSuggestion, b: TargetSuggestion) -> int:
    a_later = a.available_from is not None
    b_later = b.available_from is not None
    if a_later != b_later:
        return 1 if a_later else -1
    if abs(a.gap_coverage_hours - b.gap_coverage_hours) > MIN_GAP_HOURS:
        return -1 if a.gap_coverage_hours > b.gap_coverage_hours else 1
    return a.rating.order - b.rating.order
