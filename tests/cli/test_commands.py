import json

import pytest

from lunaplan.cli.commands import parse_target_spec
from lunaplan.cli.main import main

ATLANTA_TOML = """
[site]
latitude_deg = 33.75
longitude_deg = -84.39
elevation_m = 320
timezone = "America/New_York"
name = "Atlanta"

[planner]
workers = 2
"""

M42 = "M42,83.82,-5.39"


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(ATLANTA_TOML)
    return str(path)


def test_parse_target_spec():
    target = parse_target_spec(" M 42, Orion Nebula , 83.82, -5.39 ")
    assert target.name == "M 42, Orion Nebula"
    assert target.ra_deg == 83.82
    assert target.dec_deg == -5.39


@pytest.mark.parametrize("value", ["M42", "M42,83.82", ",83.82,-5.39", "M42,abc,-5", "M42,360,0", "M42,10,91"])
def test_parse_target_spec_rejects(value):
    with pytest.raises(ValueError):
        parse_target_spec(value)


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "Lunaplan 0.1.0"


def test_plan_json(config_path, capsys):
    code = main(["plan", "--config", config_path, "--start", "2026-02-23", "--days", "2", "--target", M42, "--json"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["command"] == "plan"
    days = payload["data"]["days"]
    assert [d["date"] for d in days] == ["2026-02-23", "2026-02-24"]
    assert days[0]["target_results"][0]["target_name"] == "M42"
    assert payload["data"]["location"]["name"] == "Atlanta"


def test_plan_text(config_path, capsys):
    assert main(["plan", "--config", config_path, "--start", "2026-02-23", "--days", "1", "--target", M42]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Lunaplan Imaging Plan")
    assert "Site: Atlanta" in out
    assert "M42:" in out


def test_plan_location_override_drops_site_name(config_path, capsys):
    argv = ["plan", "--config", config_path, "--start", "2026-02-23", "--days", "1", "--target", M42]
    argv += ["--lat", "51.48", "--lon", "0.0", "--tz", "Europe/London", "--json"]
    assert main(argv) == 0
    location = json.loads(capsys.readouterr().out)["data"]["location"]
    assert location["latitude_deg"] == 51.48
    assert location["timezone"] == "Europe/London"
    assert location["name"] is None


def test_plan_without_targets_is_usage_error(config_path, capsys):
    assert main(["plan", "--config", config_path]) == 2
    assert "--target" in capsys.readouterr().err


def test_plan_error_envelope(config_path, capsys):
    code = main(["plan", "--config", config_path, "--target", "bad", "--json"])
    assert code == 2
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "invalid_request"


def test_plan_missing_config_file(tmp_path, capsys):
    missing = str(tmp_path / "nope.toml")
    assert main(["plan", "--config", missing, "--target", M42]) == 2
    assert "Config file not found" in capsys.readouterr().err


def test_plan_rejects_zero_days(config_path):
    assert main(["plan", "--config", config_path, "--days", "0", "--target", M42]) == 2


def test_suggest_json(config_path, capsys):
    argv = ["suggest", "--config", config_path, "--start", "2026-02-23", "--days", "3", "--target", M42]
    argv += ["--candidate", "M81,148.89,69.07", "--candidate", M42, "--json"]
    assert main(argv) == 0
    payload = json.loads(capsys.readouterr().out)
    names = [s["target"]["name"] for s in payload["data"]["suggestions"]]
    assert "M42" not in names


def test_suggest_requires_candidates(config_path, capsys):
    assert main(["suggest", "--config", config_path, "--target", M42]) == 2
    assert "--candidate" in capsys.readouterr().err


def test_doctor_ready(config_path, capsys):
    assert main(["doctor", "--config", config_path]) == 0
    out = capsys.readouterr().out
    assert "Lunaplan Doctor Report" in out
    assert "System ready." in out


def test_doctor_reports_missing_site(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text('[site]\ntimezone = "UTC"\n')
    assert main(["doctor", "--config", str(path), "--json"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert payload["data"]["checks"]["site"]["ok"] is False
    assert payload["data"]["checks"]["timezone"]["ok"] is True
