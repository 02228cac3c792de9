from dataclasses import dataclass


@dataclass(frozen=True)
class ObserverLocation:
    latitude_deg: float
    longitude_deg: float
    elevation_m: float | None = None
    timezone: str = "UTC"
    name: str | None = None


@dataclass(frozen=True)
class HorizontalPosition:
    alt_deg: float
    az_deg: float
