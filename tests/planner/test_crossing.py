import datetime

import pytest

from lunaplan.ephemeris.types import HorizontalPosition
from lunaplan.planner.crossing import find_span, refine_crossing, sample_times
from lunaplan.planner.thresholds import DirectionalThreshold

UTC = datetime.timezone.utc
START = datetime.datetime(2026, 3, 1, 20, tzinfo=UTC)
END = START + datetime.timedelta(hours=8)
FLAT_30 = DirectionalThreshold.uniform(30.0)


def _hours(t):
    return (t - START).total_seconds() / 3600.0


def _within_a_second(actual, expected):
    return abs((actual - expected).total_seconds()) <= 1.0


def rising(t):
    # Crosses 30 degrees at START + 2h.
    return HorizontalPosition(10.0 + 10.0 * _hours(t), 90.0)


def setting(t):
    # Crosses 30 degrees at START + 5h.
    return HorizontalPosition(80.0 - 10.0 * _hours(t), 270.0)


def test_sample_times_cover_window():
    times = sample_times(START, END, 20)
    assert times[0] == START
    assert times[-1] == END
    assert len(times) == 25
    steps = {b - a for a, b in zip(times, times[1:])}
    assert steps == {datetime.timedelta(minutes=20)}


def test_sample_times_uneven_window_never_exceeds_cadence():
    end = START + datetime.timedelta(minutes=50)
    times = sample_times(START, end, 20)
    assert times[0] == START and times[-1] == end
    assert all(b - a <= datetime.timedelta(minutes=20) for a, b in zip(times, times[1:]))


def test_sample_times_empty_window():
    assert sample_times(START, START, 20) == []
    assert sample_times(END, START, 20) == []


def test_refine_crossing_either_direction():
    crossing = START + datetime.timedelta(hours=2)

    def margin(t):
        return rising(t).alt_deg - 30.0

    forward = refine_crossing(margin, START, START + datetime.timedelta(hours=3))
    backward = refine_crossing(margin, START + datetime.timedelta(hours=3), START)
    assert _within_a_second(forward, crossing)
    assert _within_a_second(backward, crossing)
    assert margin(forward) >= 0
    assert margin(backward) < 0


def test_rising_target():
    span = find_span(rising, START, END, FLAT_30, 20)
    assert _within_a_second(span.rise_utc, START + datetime.timedelta(hours=2))
    assert span.set_utc == END
    assert span.still_up_at_end
    assert not span.already_up_at_start
    assert span.duration_hours == pytest.approx(6.0, abs=0.001)
    assert span.rise_offset_hours == pytest.approx(2.0, abs=0.001)
    assert span.set_offset_hours == pytest.approx(8.0)
    assert span.rise_azimuth_deg == 90.0
    assert span.rise_min_alt_deg == 30.0


def test_setting_target():
    span = find_span(setting, START, END, FLAT_30, 20)
    assert span.rise_utc == START
    assert span.already_up_at_start
    assert not span.still_up_at_end
    assert _within_a_second(span.set_utc, START + datetime.timedelta(hours=5))
    assert span.duration_hours == pytest.approx(5.0, abs=0.001)


def test_up_all_night():
    span = find_span(lambda t: HorizontalPosition(60.0, 0.0), START, END, FLAT_30, 20)
    assert span.rise_utc == START and span.set_utc == END
    assert span.already_up_at_start and span.still_up_at_end
    assert span.duration_hours == pytest.approx(8.0)


def test_never_visible_is_empty_span():
    span = find_span(lambda t: HorizontalPosition(10.0, 0.0), START, END, FLAT_30, 20)
    assert span.is_empty
    assert span.rise_utc == span.set_utc == START
    assert span.duration_hours == 0.0
    assert span.rise_azimuth_deg is None
    assert span.set_min_alt_deg is None


def test_empty_window_is_empty_span():
    span = find_span(rising, END, START, FLAT_30, 20)
    assert span.is_empty
    assert span.rise_utc == END


def test_longest_run_wins():
    def dipping(t):
        h = _hours(t)
        up = 1.0 <= h < 2.0 or 3.0 <= h < 5.5
        return HorizontalPosition(45.0 if up else 10.0, 180.0)

    span = find_span(dipping, START, END, FLAT_30, 20)
    assert _within_a_second(span.rise_utc, START + datetime.timedelta(hours=3))
    assert _within_a_second(span.set_utc, START + datetime.timedelta(hours=5.5))
    assert span.duration_hours == pytest.approx(2.5, abs=0.001)


def test_equal_runs_pick_earliest():
    def twice(t):
        h = _hours(t)
        up = 1.0 <= h < 2.0 or 4.0 <= h < 5.0
        return HorizontalPosition(45.0 if up else 10.0, 180.0)

    span = find_span(twice, START, END, FLAT_30, 20)
    assert _within_a_second(span.rise_utc, START + datetime.timedelta(hours=1))


def test_directional_threshold_blocks_north():
    # 35 degrees clears 30 everywhere except the 40-degree northern limit.
    thresholds = DirectionalThreshold((40.0, 30.0, 30.0, 30.0, 30.0, 30.0, 30.0, 30.0))

    def sweeping(t):
        # Azimuth swings from 180 through 270 to due north at START + 4h.
        return HorizontalPosition(35.0, (180.0 + 45.0 * _hours(t)) % 360.0)

    # Past north the target clears its limit again from START + 4.5h; that run is shorter.
    span = find_span(sweeping, START, START + datetime.timedelta(hours=7), thresholds, 10)
    assert span.rise_utc == START
    # Limit reaches 35 halfway between NW and N, at azimuth 337.5 = START + 3.5h.
    assert _within_a_second(span.set_utc, START + datetime.timedelta(hours=3.5))
    assert span.set_min_alt_deg == pytest.approx(35.0, abs=0.01)


def test_span_invariants_hold_for_many_shapes():
    shapes = [rising, setting, lambda t: HorizontalPosition(30.0, 45.0)]
    for shape in shapes:
        span = find_span(shape, START, END, FLAT_30, 15)
        assert span.rise_utc <= span.set_utc
        assert span.duration_hours >= 0
