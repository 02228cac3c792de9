import logging

import pytest

from lunaplan.config import Config, load_config


def test_defaults_when_empty():
    config = Config({})
    assert config.site_latitude_deg is None
    assert config.site_timezone == "UTC"
    assert config.dusk_buffer_hours == 1.0
    assert config.dawn_buffer_hours == 1.0
    assert config.sample_interval_minutes == 20.0
    assert config.observation_hour == 22
    assert config.workers == 4
    assert config.min_altitudes_deg is None
    assert config.moon_tiers is None
    assert config.ephemeris_backend == "meeus"


def test_reads_sections():
    config = Config(
        {
            "site": {"latitude_deg": 33.75, "longitude_deg": -84.39, "timezone": "America/New_York", "name": "Home"},
            "planner": {
                "dusk_buffer_hours": 1.5,
                "sample_interval_minutes": 10,
                "observation_hour": 21,
                "workers": 2,
                "min_altitudes_deg": [20, 25, 30, 35, 40, 35, 30, 25],
                "moon_tiers": {"min_separations_deg": [15, 30, 60, 90], "max_moon_phase": 80},
            },
            "ephemeris": {"backend": "astropy"},
        }
    )
    assert config.site_latitude_deg == 33.75
    assert config.site_name == "Home"
    assert config.dusk_buffer_hours == 1.5
    assert config.sample_interval_minutes == 10.0
    assert config.observation_hour == 21
    assert config.workers == 2
    assert config.min_altitudes_deg[4] == 40
    assert config.moon_tiers["max_moon_phase"] == 80
    assert config.ephemeris_backend == "astropy"


@pytest.mark.parametrize(
    "planner, prop, expected",
    [
        ({"dusk_buffer_hours": -1}, "dusk_buffer_hours", 1.0),
        ({"dawn_buffer_hours": "late"}, "dawn_buffer_hours", 1.0),
        ({"sample_interval_minutes": 0}, "sample_interval_minutes", 20.0),
        ({"observation_hour": 25}, "observation_hour", 22),
        ({"workers": 0}, "workers", 4),
    ],
)
def test_invalid_values_fall_back(planner, prop, expected, caplog):
    config = Config({"planner": planner})
    with caplog.at_level(logging.WARNING, logger="lunaplan.config"):
        assert getattr(config, prop) == expected
    assert "Invalid planner." in caplog.text


def test_load_config_missing_explicit_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_load_config_reads_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[site]\nlatitude_deg = -34.93\nlongitude_deg = 138.6\ntimezone = "Australia/Adelaide"\n'
        "[planner]\nworkers = 1\n"
    )
    config = load_config(path)
    assert config.site_latitude_deg == -34.93
    assert config.site_timezone == "Australia/Adelaide"
    assert config.workers == 1
