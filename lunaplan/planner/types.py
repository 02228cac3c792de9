from dataclasses import dataclass, field
import datetime
from typing import Optional, Sequence

from lunaplan.ephemeris.types import ObserverLocation
from .moon_tiers import ImagingRating, MoonTierConfig
from .thresholds import DirectionalThreshold


@dataclass(frozen=True)
class Target:
    name: str
    ra_deg: float
    dec_deg: float
    type: str = "unknown"
    id: str | None = None

    @property
    def identity(self) -> tuple[str, float, float]:
        return (self.name, self.ra_deg, self.dec_deg)


@dataclass
class NightWindow:
    sunset_utc: datetime.datetime
    sunrise_utc: datetime.datetime
    darkness_start_utc: datetime.datetime
    darkness_end_utc: datetime.datetime
    dark_hours: float
    midnight_utc: datetime.datetime

    @property
    def has_darkness(self) -> bool:
        return self.dark_hours > 0


@dataclass
class TargetVisibilitySpan:
    rise_utc: datetime.datetime
    set_utc: datetime.datetime
    duration_hours: float
    rise_offset_hours: float
    set_offset_hours: float
    rise_azimuth_deg: float | None = None
    set_azimuth_deg: float | None = None
    rise_min_alt_deg: float | None = None
    set_min_alt_deg: float | None = None
    already_up_at_start: bool = False
    still_up_at_end: bool = False

    @property
    def is_empty(self) -> bool:
        return self.duration_hours <= 0


@dataclass(frozen=True)
class MoonAltitudeSample:
    time_utc: datetime.datetime
    altitude_deg: float
    azimuth_deg: float


@dataclass(frozen=True)
class MoonOverlap:
    hours_moon_down: float
    hours_moon_up: float
    avg_separation_moon_up: float | None


@dataclass
class ImagingWindow:
    duration_hours: float
    start_utc: datetime.datetime | None
    end_utc: datetime.datetime | None


@dataclass
class TargetNightResult:
    target_name: str
    color_index: int
    target_alt_deg: float | None
    angular_separation_deg: float | None
    imaging_window: ImagingWindow
    visibility: TargetVisibilitySpan | None
    hours_moon_down: float
    hours_moon_up: float
    avg_separation_moon_up: float | None
    rating: ImagingRating
    rating_reason: str
    available: bool = True
    error: str | None = None


@dataclass
class DayResult:
    date: datetime.date
    date_label: str
    moon_alt_deg: float | None
    moon_phase: float | None
    night_window: NightWindow | None
    moon_visibility: TargetVisibilitySpan | None
    moon_samples: Sequence[MoonAltitudeSample]
    target_results: Sequence[TargetNightResult]
    error: Optional[str] = None

    # Backward-compatible accessors for the first target.

    @property
    def target_alt_deg(self) -> float | None:
        return self.target_results[0].target_alt_deg if self.target_results else None

    @property
    def angular_separation_deg(self) -> float | None:
        return self.target_results[0].angular_separation_deg if self.target_results else None

    @property
    def imaging_window(self) -> ImagingWindow:
        if self.target_results:
            return self.target_results[0].imaging_window
        return ImagingWindow(duration_hours=0.0, start_utc=None, end_utc=None)

    @property
    def target_visibility(self) -> TargetVisibilitySpan | None:
        return self.target_results[0].visibility if self.target_results else None


@dataclass
class CalculationResult:
    days: Sequence[DayResult]
    thresholds: DirectionalThreshold
    moon_tiers: MoonTierConfig
    dusk_buffer_hours: float
    dawn_buffer_hours: float
    sample_interval_minutes: float
    target_names: Sequence[str]
    location: ObserverLocation | None = None

    @property
    def min_altitude_threshold(self) -> float:
        return sum(self.thresholds.values) / len(self.thresholds.values)

    @property
    def dates(self) -> list[str]:
        return [d.date_label for d in self.days]

    @property
    def moon_phase(self) -> list[float | None]:
        return [d.moon_phase for d in self.days]

    @property
    def moon_alt(self) -> list[float | None]:
        return [d.moon_alt_deg for d in self.days]


@dataclass
class PlanRequest:
    start_date: datetime.date
    end_date: datetime.date
    location: ObserverLocation
    targets: Sequence[Target]
    thresholds: DirectionalThreshold = field(default_factory=DirectionalThreshold.default)
    moon_tiers: MoonTierConfig = field(default_factory=MoonTierConfig.default)
    dusk_buffer_hours: float = 1.0
    dawn_buffer_hours: float = 1.0
    sample_interval_minutes: float = 20.0
    observation_hour: int = 22


@dataclass
class TargetSuggestion:
    target: Target
    visibility_hours: float
    gap_coverage_hours: float
    rating: ImagingRating
    reason: str
    visible_from_utc: datetime.datetime
    visible_to_utc: datetime.datetime
    available_from: datetime.date | None = None
