from dataclasses import dataclass
import enum
import json
import logging
import math
from typing import Sequence

logger = logging.getLogger(__name__)

SECTOR_COUNT = 8
SECTOR_WIDTH_DEG = 45.0
DEFAULT_MIN_ALT_DEG = 30.0


class CardinalDirection(enum.IntEnum):
    N = 0
    NE = 1
    E = 2
    SE = 3
    S = 4
    SW = 5
    W = 6
    NW = 7

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class DirectionalThreshold:
    """Minimum usable altitude per compass sector.

    ``values`` holds one altitude for each of N, NE, E, SE, S, SW, W, NW.
    Between sector centres the limit is blended linearly, wrapping from NW
    back to N.
    """

    values: tuple[float, ...]

    def __post_init__(self):
        values = tuple(float(v) for v in self.values)
        if len(values) != SECTOR_COUNT:
            raise ValueError(f"Expected {SECTOR_COUNT} directional altitudes, got {len(values)}")
        for v in values:
            if not math.isfinite(v) or v < 0:
                raise ValueError(f"Directional altitudes must be finite and non-negative, got {v}")
        object.__setattr__(self, "values", values)

    @classmethod
    def uniform(cls, value: float) -> "DirectionalThreshold":
        return cls((value,) * SECTOR_COUNT)

    @classmethod
    def default(cls) -> "DirectionalThreshold":
        return cls.uniform(DEFAULT_MIN_ALT_DEG)

    @classmethod
    def from_values(cls, values: Sequence[float] | None) -> "DirectionalThreshold":
        if values is None:
            return cls.default()
        try:
            return cls(tuple(values))
        except (TypeError, ValueError) as e:
            logger.warning("Invalid directional altitudes %r (%s), using defaults", values, e)
            return cls.default()

    @classmethod
    def from_json(cls, text: str) -> "DirectionalThreshold":
        try:
            values = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.warning("Unreadable directional altitudes (%s), using defaults", e)
            return cls.default()
        if not isinstance(values, list):
            logger.warning("Directional altitudes must be a JSON list, using defaults")
            return cls.default()
        return cls.from_values(values)

    def to_json(self) -> str:
        return json.dumps(list(self.values))

    def minimum_altitude(self, azimuth_deg: float) -> float:
        az = azimuth_deg % 360.0
        sector = az / SECTOR_WIDTH_DEG
        lower = CardinalDirection(int(sector) % SECTOR_COUNT)
        upper = CardinalDirection((lower + 1) % SECTOR_COUNT)
        blend = sector - int(sector)
        return self.for_direction(lower) * (1.0 - blend) + self.for_direction(upper) * blend

    def for_direction(self, direction: CardinalDirection) -> float:
        return self.values[direction]
