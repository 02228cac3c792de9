import datetime
from zoneinfo import ZoneInfo

from lunaplan.util.format import (
    deg_to_dms,
    deg_to_hms,
    format_degrees,
    format_hours,
    format_local_time,
    format_percent,
)


def test_deg_to_hms_zero():
    assert deg_to_hms(0.0) == "00:00:00.0"


def test_deg_to_hms_one_hour():
    # 15 degrees = 1 hour
    assert deg_to_hms(15.0, precision=1) == "01:00:00.0"


def test_deg_to_hms_wrap():
    assert deg_to_hms(360.0) == "00:00:00.0"


def test_deg_to_hms_rounding_carry():
    # 23:59:59.96 with 1 decimal should round to 00:00:00.0
    seconds = (24 * 3600) - 0.04
    assert deg_to_hms(seconds / 240.0, precision=1) == "00:00:00.0"


def test_deg_to_dms_signs():
    assert deg_to_dms(10.0) == "+10:00:00"
    assert deg_to_dms(-10.5) == "-10:30:00"


def test_deg_to_dms_small_negative():
    assert deg_to_dms(-0.0001, precision=2).startswith("-00:00:")


def test_plain_formatters():
    assert format_hours(4.0) == "4.0h"
    assert format_hours(2.345) == "2.3h"
    assert format_degrees(49.6) == "50°"
    assert format_percent(39.6) == "40%"


def test_format_local_time_converts_zone():
    dt = datetime.datetime(2026, 2, 23, 23, 30, tzinfo=datetime.timezone.utc)
    assert format_local_time(dt, ZoneInfo("America/New_York")) == "18:30"
    assert format_local_time(dt, ZoneInfo("America/New_York"), with_date=True) == "2026-02-23 18:30"


def test_format_local_time_missing():
    assert format_local_time(None, None) == "--:--"


def test_format_local_time_naive_is_utc():
    dt = datetime.datetime(2026, 2, 23, 5, 7)
    assert format_local_time(dt, None) == "05:07"
