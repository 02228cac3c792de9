import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import tomli as tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:  # Python < 3.11
        import tomli as tomllib

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "lunaplan" / "config.toml"

DEFAULT_BUFFER_HOURS = 1.0
DEFAULT_SAMPLE_INTERVAL_MIN = 20.0
DEFAULT_OBSERVATION_HOUR = 22
DEFAULT_WORKERS = 4


class Config:
    def __init__(self, data: dict):
        self._data = data

    def _planner(self) -> dict:
        return self._data.get("planner", {})

    @property
    def site_latitude_deg(self):
        return self._data.get("site", {}).get("latitude_deg", None)

    @property
    def site_longitude_deg(self):
        return self._data.get("site", {}).get("longitude_deg", None)

    @property
    def site_elevation_m(self):
        return self._data.get("site", {}).get("elevation_m", None)

    @property
    def site_timezone(self):
        return self._data.get("site", {}).get("timezone", "UTC")

    @property
    def site_name(self):
        return self._data.get("site", {}).get("name", None)

    @property
    def dusk_buffer_hours(self) -> float:
        return _non_negative(self._planner().get("dusk_buffer_hours"), DEFAULT_BUFFER_HOURS, "dusk_buffer_hours")

    @property
    def dawn_buffer_hours(self) -> float:
        return _non_negative(self._planner().get("dawn_buffer_hours"), DEFAULT_BUFFER_HOURS, "dawn_buffer_hours")

    @property
    def sample_interval_minutes(self) -> float:
        value = self._planner().get("sample_interval_minutes")
        if value is None:
            return DEFAULT_SAMPLE_INTERVAL_MIN
        if not isinstance(value, (int, float)) or value <= 0:
            logger.warning("Invalid planner.sample_interval_minutes %r, using %s", value, DEFAULT_SAMPLE_INTERVAL_MIN)
            return DEFAULT_SAMPLE_INTERVAL_MIN
        return float(value)

    @property
    def observation_hour(self) -> int:
        value = self._planner().get("observation_hour")
        if value is None:
            return DEFAULT_OBSERVATION_HOUR
        if not isinstance(value, int) or not 0 <= value <= 23:
            logger.warning("Invalid planner.observation_hour %r, using %s", value, DEFAULT_OBSERVATION_HOUR)
            return DEFAULT_OBSERVATION_HOUR
        return value

    @property
    def workers(self) -> int:
        value = self._planner().get("workers")
        if value is None:
            return DEFAULT_WORKERS
        if not isinstance(value, int) or value < 1:
            logger.warning("Invalid planner.workers %r, using %s", value, DEFAULT_WORKERS)
            return DEFAULT_WORKERS
        return value

    @property
    def min_altitudes_deg(self):
        return self._planner().get("min_altitudes_deg", None)

    @property
    def moon_tiers(self) -> dict | None:
        return self._planner().get("moon_tiers", None)

    @property
    def ephemeris_backend(self) -> str:
        return self._data.get("ephemeris", {}).get("backend", "meeus")


def _non_negative(value, default: float, key: str) -> float:
    if value is None:
        return default
    if not isinstance(value, (int, float)) or value < 0:
        logger.warning("Invalid planner.%s %r, using %s", key, value, default)
        return default
    return float(value)


def load_config(path: Path | None = None) -> Config:
    explicit_path = path
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit_path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        # Return default config if default file missing
        return Config({})

    with open(path, "rb") as f:
        data = tomllib.load(f)

    return Config(data)
