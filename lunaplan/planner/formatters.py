import json
import datetime
from dataclasses import asdict
from typing import Sequence

from lunaplan.util.format import (
    deg_to_dms,
    deg_to_hms,
    format_degrees,
    format_hours,
    format_local_time,
    format_percent,
)
from .night import resolve_timezone
from .thresholds import CardinalDirection
from .types import CalculationResult, DayResult, TargetNightResult, TargetSuggestion


def format_json(result: CalculationResult, envelope: dict | None = None) -> str:
    """Serialize a result, optionally as the ``data`` member of ``envelope``."""
    payload = asdict(result)
    if envelope is not None:
        payload = {**envelope, "data": payload}
    return json.dumps(payload, indent=2, default=str)


def format_text(result: CalculationResult) -> str:
    tz = _result_tz(result)
    lines: list[str] = []
    lines.append("Lunaplan Imaging Plan")
    lines.append("=====================")
    if result.location is not None:
        if result.location.name:
            lines.append(f"Site: {result.location.name}")
        lines.append(
            f"Location: lat {result.location.latitude_deg:.3f}°, lon {result.location.longitude_deg:.3f}°"
            f" ({result.location.timezone})"
        )
    lines.append(
        "Min altitude: "
        + ", ".join(
            f"{d.label} {format_degrees(result.thresholds.for_direction(d))}" for d in CardinalDirection
        )
    )
    lines.append(
        "Moon tiers: "
        + ", ".join(
            f"{result.moon_tiers.tier_range_label(i)} ≥{format_degrees(sep)}"
            for i, sep in enumerate(result.moon_tiers.min_separations_deg)
        )
    )
    for day in result.days:
        lines.append("")
        lines.extend(_format_day(day, tz))
    return "\n".join(lines)


def format_suggestions_text(suggestions: Sequence[TargetSuggestion]) -> str:
    if not suggestions:
        return "No suggestions: the selected targets already cover the dark hours."
    lines = ["Suggested targets", "-----------------"]
    name_w = min(30, max(len(s.target.name) for s in suggestions))
    for idx, s in enumerate(suggestions, start=1):
        name = s.target.name[:name_w].ljust(name_w)
        coords = f"{deg_to_hms(s.target.ra_deg)} {deg_to_dms(s.target.dec_deg)}"
        line = (
            f"{idx:>2}. {name}  {coords}  {s.rating.label:<10}"
            f"  gap {format_hours(s.gap_coverage_hours)}  {s.reason}"
        )
        if s.available_from is not None:
            line += f"  (from {s.available_from.strftime('%b %d')})"
        lines.append(line)
    return "\n".join(lines)


def _format_day(day: DayResult, tz: datetime.tzinfo) -> list[str]:
    header = f"{day.date.isoformat()} ({day.date_label})"
    if day.error is not None:
        return [f"{header}  unavailable: {day.error}"]

    night = day.night_window
    lines = [
        f"{header}  dark {format_local_time(night.darkness_start_utc, tz)}"
        f"–{format_local_time(night.darkness_end_utc, tz)} ({format_hours(night.dark_hours)})"
        f"  moon {format_percent(day.moon_phase)} at {format_degrees(day.moon_alt_deg)}"
    ]
    lines.append(
        f"    Sunset {format_local_time(night.sunset_utc, tz, with_date=True)}"
        f", sunrise {format_local_time(night.sunrise_utc, tz, with_date=True)}"
    )
    moon = day.moon_visibility
    if moon is not None and not moon.is_empty:
        lines.append(
            f"    Moon up {format_local_time(moon.rise_utc, tz)}–{format_local_time(moon.set_utc, tz)}"
        )
    if not night.has_darkness:
        lines.append("    No astronomical darkness after buffers")
    for result in day.target_results:
        lines.append("    " + _format_target(result, tz))
    return lines


def _format_target(result: TargetNightResult, tz: datetime.tzinfo) -> str:
    if not result.available:
        return f"{result.target_name}: unavailable ({result.error})"
    span = result.visibility
    if span is None or span.is_empty:
        window = "not above limits"
    else:
        window = (
            f"{format_local_time(span.rise_utc, tz)}–{format_local_time(span.set_utc, tz)}"
            f" ({format_hours(span.duration_hours)})"
        )
    return f"{result.target_name}: {window}  {result.rating.label}: {result.rating_reason}"


def _result_tz(result: CalculationResult) -> datetime.tzinfo:
    if result.location is None:
        return datetime.timezone.utc
    return resolve_timezone(result.location.timezone)
