from dataclasses import dataclass
import enum
import json
import logging
import math
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

TIER_NAMES = ("New Tier", "Crescent Tier", "Quarter Tier", "Gibbous Tier")
FIXED_LOWER_BOUNDS = (0.0, 11.0, 26.0, 51.0)
FIXED_UPPER_BOUNDS = (10.0, 25.0, 50.0)  # last tier ends at max_moon_phase

DEFAULT_MIN_SEPARATIONS = (10.0, 30.0, 60.0, 90.0)
DEFAULT_MAX_MOON_PHASE = 75.0


class ImagingRating(str, enum.Enum):
    GOOD = "good"
    ALLOWABLE = "allowable"
    MIXED = "mixed"
    NO_IMAGING = "no_imaging"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def order(self) -> int:
        """Sort key, lowest is best."""
        return _ORDER[self]


_LABELS = {
    ImagingRating.GOOD: "Good",
    ImagingRating.ALLOWABLE: "Allowable",
    ImagingRating.MIXED: "Mixed",
    ImagingRating.NO_IMAGING: "No Imaging",
}
_ORDER = {
    ImagingRating.GOOD: 0,
    ImagingRating.ALLOWABLE: 1,
    ImagingRating.MIXED: 2,
    ImagingRating.NO_IMAGING: 3,
}


@dataclass(frozen=True)
class RatingResult:
    rating: ImagingRating
    reason: str


@dataclass(frozen=True)
class MoonTierConfig:
    """Moon brightness tiers and the separation each tier requires.

    Tiers cover 0-10%, 11-25%, 26-50% and 51% up to ``max_moon_phase``
    illumination. Above ``max_moon_phase`` the Moon is too bright to image
    whenever it is up.
    """

    min_separations_deg: tuple[float, ...] = DEFAULT_MIN_SEPARATIONS
    max_moon_phase: float = DEFAULT_MAX_MOON_PHASE

    def __post_init__(self):
        seps = tuple(float(s) for s in self.min_separations_deg)
        if len(seps) != len(TIER_NAMES):
            raise ValueError(f"Expected {len(TIER_NAMES)} tier separations, got {len(seps)}")
        if not all(math.isfinite(s) for s in seps):
            raise ValueError("Tier separations must be finite")
        max_phase = float(self.max_moon_phase)
        if not math.isfinite(max_phase):
            raise ValueError("max_moon_phase must be finite")
        object.__setattr__(self, "min_separations_deg", seps)
        object.__setattr__(self, "max_moon_phase", max_phase)

    @classmethod
    def default(cls) -> "MoonTierConfig":
        return cls()

    @property
    def upper_bounds(self) -> tuple[float, ...]:
        return FIXED_UPPER_BOUNDS + (self.max_moon_phase,)

    def tier_index(self, moon_phase: float) -> Optional[int]:
        """Index of the tier containing ``moon_phase``, None above the last tier."""
        for i, upper in enumerate(self.upper_bounds):
            if moon_phase <= upper:
                return i
        return None

    def evaluate(self, moon_phase: float, separation_deg: float) -> ImagingRating:
        if moon_phase > self.max_moon_phase:
            return ImagingRating.NO_IMAGING
        i = self.tier_index(moon_phase)
        if i is None:
            return ImagingRating.NO_IMAGING
        if separation_deg >= self.min_separations_deg[i]:
            return ImagingRating.GOOD if i == 0 else ImagingRating.ALLOWABLE
        return ImagingRating.NO_IMAGING

    def evaluate_with_reason(self, moon_phase: float, separation_deg: float) -> RatingResult:
        rating = self.evaluate(moon_phase, separation_deg)
        sep = f"{separation_deg:.0f}°"
        phase = f"{moon_phase:.0f}%"
        if moon_phase > self.max_moon_phase:
            return RatingResult(rating, f"Moon too bright ({phase} > {self.max_moon_phase:.0f}%)")
        if rating is ImagingRating.GOOD:
            return RatingResult(rating, f"Sep {sep} OK at {phase} moon")
        if rating is ImagingRating.ALLOWABLE:
            return RatingResult(rating, f"Sep {sep} meets settings at {phase} moon")
        return RatingResult(rating, f"Sep {sep} doesn't meet settings at {phase} moon")

    def evaluate_moon_aware(
        self,
        moon_phase: float,
        hours_moon_down: float,
        hours_moon_up: float,
        avg_separation_moon_up: Optional[float],
    ) -> ImagingRating:
        return self.evaluate_moon_aware_with_reason(
            moon_phase, hours_moon_down, hours_moon_up, avg_separation_moon_up
        ).rating

    def evaluate_moon_aware_with_reason(
        self,
        moon_phase: float,
        hours_moon_down: float,
        hours_moon_up: float,
        avg_separation_moon_up: Optional[float],
    ) -> RatingResult:
        if hours_moon_down <= 0 and hours_moon_up <= 0:
            return RatingResult(ImagingRating.NO_IMAGING, "Target not visible")

        if hours_moon_up <= 0:
            return RatingResult(ImagingRating.GOOD, f"Moon below horizon ({hours_moon_down:.1f}h moon-free)")

        sep = avg_separation_moon_up if avg_separation_moon_up is not None else 0.0
        if hours_moon_down <= 0:
            return self.evaluate_with_reason(moon_phase, sep)

        moon_up = self.evaluate(moon_phase, sep)
        if moon_up is ImagingRating.GOOD:
            return RatingResult(
                ImagingRating.GOOD,
                f"{hours_moon_down:.1f}h moon-free + sep {sep:.0f}° OK",
            )
        if moon_up is ImagingRating.ALLOWABLE:
            return RatingResult(
                ImagingRating.ALLOWABLE,
                f"{hours_moon_down:.1f}h moon-free + {hours_moon_up:.1f}h allowable at {moon_phase:.0f}% moon",
            )
        return RatingResult(
            ImagingRating.MIXED,
            f"{hours_moon_down:.1f}h moon-free, {hours_moon_up:.1f}h at {moon_phase:.0f}% moon",
        )

    def tier_range_label(self, index: int) -> str:
        lower = int(FIXED_LOWER_BOUNDS[index])
        upper = int(self.upper_bounds[index])
        return f"{lower}–{upper}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_separations_deg": list(self.min_separations_deg),
            "max_moon_phase": self.max_moon_phase,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "MoonTierConfig":
        if not data:
            return cls.default()
        try:
            return cls(
                min_separations_deg=tuple(data.get("min_separations_deg", DEFAULT_MIN_SEPARATIONS)),
                max_moon_phase=data.get("max_moon_phase", DEFAULT_MAX_MOON_PHASE),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Invalid moon tier settings %r (%s), using defaults", data, e)
            return cls.default()

    @classmethod
    def from_json(cls, text: str) -> "MoonTierConfig":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.warning("Unreadable moon tier settings (%s), using defaults", e)
            return cls.default()
        if not isinstance(data, dict):
            logger.warning("Moon tier settings must be a JSON object, using defaults")
            return cls.default()
        return cls.from_dict(data)
