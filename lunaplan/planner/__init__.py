from lunaplan.ephemeris.types import ObserverLocation
from .moon_tiers import ImagingRating, MoonTierConfig, RatingResult
from .planner import Planner
from .suggestions import SuggestionEngine, find_gaps, overlap_hours
from .thresholds import CardinalDirection, DirectionalThreshold
from .types import (
    CalculationResult,
    DayResult,
    ImagingWindow,
    MoonAltitudeSample,
    MoonOverlap,
    NightWindow,
    PlanRequest,
    Target,
    TargetNightResult,
    TargetSuggestion,
    TargetVisibilitySpan,
)

__all__ = [
    "Planner",
    "SuggestionEngine",
    "find_gaps",
    "overlap_hours",
    "ObserverLocation",
    "CardinalDirection",
    "DirectionalThreshold",
    "ImagingRating",
    "MoonTierConfig",
    "RatingResult",
    "CalculationResult",
    "DayResult",
    "ImagingWindow",
    "MoonAltitudeSample",
    "MoonOverlap",
    "NightWindow",
    "PlanRequest",
    "Target",
    "TargetNightResult",
    "TargetSuggestion",
    "TargetVisibilitySpan",
]
