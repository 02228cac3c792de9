import datetime
from typing import Tuple


def _wrap_hours(hours: float) -> float:
    return hours % 24.0


def _split_dms(angle_deg: float, precision: int) -> Tuple[int, int, int, float]:
    sign = -1 if angle_deg < 0 else 1
    a = abs(angle_deg)
    total_seconds = round(a * 3600.0, precision)
    deg = int(total_seconds // 3600)
    rem = total_seconds - deg * 3600
    minutes = int(rem // 60)
    seconds = rem - minutes * 60
    return sign, deg, minutes, seconds


def _split_hms(hours: float, precision: int) -> Tuple[int, int, float]:
    h = _wrap_hours(hours)
    total_seconds = round(h * 3600.0, precision) % (24.0 * 3600.0)
    hours_int = int(total_seconds // 3600)
    rem = total_seconds - hours_int * 3600
    minutes = int(rem // 60)
    seconds = rem - minutes * 60
    return hours_int, minutes, seconds


def deg_to_hms(ra_deg: float, precision: int = 1) -> str:
    h, m, s = _split_hms(ra_deg / 15.0, precision)
    s_fmt = f"{s:0{3 + precision}.{precision}f}"
    return f"{h:02d}:{m:02d}:{s_fmt}"


def deg_to_dms(dec_deg: float, precision: int = 0) -> str:
    sign_val, d, m, s = _split_dms(dec_deg, precision)
    sign = "-" if sign_val < 0 else "+"
    width = 2 if precision == 0 else 3 + precision
    s_fmt = f"{s:0{width}.{precision}f}"
    return f"{sign}{d:02d}:{m:02d}:{s_fmt}"


def format_hours(hours: float) -> str:
    return f"{hours:.1f}h"


def format_degrees(deg: float) -> str:
    return f"{deg:.0f}°"


def format_percent(pct: float) -> str:
    return f"{pct:.0f}%"


def format_local_time(
    dt: datetime.datetime | None,
    tz: datetime.tzinfo | None,
    with_date: bool = False,
) -> str:
    if dt is None:
        return "--:--"
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    if tz is None:
        tz = datetime.timezone.utc
    local = dt.astimezone(tz)
    if with_date:
        return local.strftime("%Y-%m-%d %H:%M")
    return local.strftime("%H:%M")
