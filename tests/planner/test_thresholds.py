import logging

import pytest

from lunaplan.planner.thresholds import SECTOR_WIDTH_DEG, CardinalDirection, DirectionalThreshold

VALUES = (10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0)


def test_exact_sector_values():
    t = DirectionalThreshold(VALUES)
    for direction in CardinalDirection:
        assert t.minimum_altitude(direction * SECTOR_WIDTH_DEG) == pytest.approx(VALUES[direction])


def test_midpoint_blends():
    t = DirectionalThreshold(VALUES)
    assert t.minimum_altitude(22.5) == pytest.approx(15.0)
    assert t.minimum_altitude(180.0 + 11.25) == pytest.approx(52.5)


def test_wraps_from_northwest_to_north():
    t = DirectionalThreshold(VALUES)
    # Halfway between NW (80) and N (10).
    assert t.minimum_altitude(337.5) == pytest.approx(45.0)
    assert t.minimum_altitude(360.0) == pytest.approx(10.0)
    assert t.minimum_altitude(-22.5) == pytest.approx(45.0)
    assert t.minimum_altitude(720.0 + 45.0) == pytest.approx(20.0)


def test_uniform_is_flat():
    t = DirectionalThreshold.uniform(25.0)
    for az in (0.0, 13.0, 99.9, 271.0, 359.99):
        assert t.minimum_altitude(az) == pytest.approx(25.0)


def test_default_is_thirty():
    assert DirectionalThreshold.default().values == (30.0,) * 8


@pytest.mark.parametrize(
    "values",
    [
        (30.0,) * 7,
        (30.0,) * 9,
        (30.0,) * 7 + (-1.0,),
        (30.0,) * 7 + (float("nan"),),
        (30.0,) * 7 + (float("inf"),),
    ],
)
def test_rejects_invalid(values):
    with pytest.raises(ValueError):
        DirectionalThreshold(values)


def test_list_input_becomes_tuple():
    t = DirectionalThreshold([15, 15, 15, 15, 15, 15, 15, 15])
    assert t.values == (15.0,) * 8
    assert hash(t) == hash(DirectionalThreshold.uniform(15.0))


def test_json_round_trip():
    t = DirectionalThreshold(VALUES)
    assert DirectionalThreshold.from_json(t.to_json()) == t


@pytest.mark.parametrize("text", ["not json", '{"n": 30}', "[1, 2, 3]", "[30, 30, 30, 30, 30, 30, 30, -5]"])
def test_from_json_falls_back_to_default(text, caplog):
    with caplog.at_level(logging.WARNING):
        assert DirectionalThreshold.from_json(text) == DirectionalThreshold.default()
    assert "using defaults" in caplog.text


def test_from_values_none_is_default():
    assert DirectionalThreshold.from_values(None) == DirectionalThreshold.default()


def test_direction_labels():
    assert [d.label for d in CardinalDirection] == ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
    assert DirectionalThreshold(VALUES).for_direction(CardinalDirection.E) == 30.0
