"""Low-precision analytic positions after Meeus, "Astronomical Algorithms".

Sun to about 0.01°, Moon to a few arcminutes (principal periodic terms of
chapter 47). Refraction and lunar parallax are ignored.
"""

import datetime
import math

from .base import PositionProvider
from .types import HorizontalPosition, ObserverLocation

J2000_JD = 2451545.0

# (D, M, M', F, coefficient in 1e-6 degrees)
_MOON_LON_TERMS = (
    (0, 0, 1, 0, 6288774),
    (2, 0, -1, 0, 1274027),
    (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618),
    (0, 1, 0, 0, -185116),
    (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793),
    (2, -1, -1, 0, 57066),
    (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758),
    (0, 1, -1, 0, -40923),
    (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383),
    (2, 0, 0, -2, 15327),
    (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980),
    (4, 0, -1, 0, 10675),
    (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548),
    (2, 1, -1, 0, -7888),
    (2, 1, 0, 0, -6766),
    (1, 0, -1, 0, -5163),
    (1, 1, 0, 0, 4987),
    (2, -1, 1, 0, 4036),
    (2, 0, 2, 0, 3994),
    (4, 0, 0, 0, 3861),
    (2, 0, -3, 0, 3665),
    (0, 1, -2, 0, -2689),
    (2, 0, -1, 2, -2602),
    (2, -1, -2, 0, 2390),
    (1, 0, 1, 0, -2348),
    (2, -2, 0, 0, 2236),
    (0, 1, 2, 0, -2120),
    (0, 2, 0, 0, -2069),
    (2, -2, -1, 0, 2048),
    (2, 0, 1, -2, -1773),
    (2, 0, 0, 2, -1595),
    (4, -1, -1, 0, 1215),
    (0, 0, 2, 2, -1110),
    (3, 0, -1, 0, -892),
    (2, 1, 1, 0, -810),
    (4, -1, -2, 0, 759),
    (0, 2, -1, 0, -713),
    (2, 2, -1, 0, -700),
    (2, 1, -2, 0, 691),
    (2, -1, 0, -2, 596),
    (4, 0, 1, 0, 549),
    (0, 0, 4, 0, 537),
    (4, -1, 0, 0, 520),
    (1, 0, -2, 0, -487),
)

_MOON_LAT_TERMS = (
    (0, 0, 0, 1, 5128122),
    (0, 0, 1, 1, 280602),
    (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237),
    (2, 0, -1, 1, 55413),
    (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573),
    (0, 0, 2, 1, 17198),
    (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822),
    (2, -1, 0, -1, 8216),
    (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200),
    (2, 1, 0, -1, -3359),
    (2, -1, -1, 1, 2463),
    (2, -1, 0, 1, 2211),
    (2, -1, -1, -1, 2065),
    (0, 1, -1, -1, -1870),
    (4, 0, -1, -1, 1828),
    (0, 1, 0, 1, -1794),
    (0, 0, 0, 3, -1749),
    (0, 1, -1, 1, -1565),
    (1, 0, 0, 1, -1491),
    (0, 1, 1, 1, -1475),
    (0, 1, 1, -1, -1410),
    (0, 1, 0, -1, -1344),
    (1, 0, 0, -1, -1335),
    (0, 0, 3, 1, 1107),
    (4, 0, 0, -1, 1021),
    (4, 0, -1, 1, 833),
)


def julian_date(dt: datetime.datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    dt = dt.astimezone(datetime.timezone.utc)
    year = dt.year
    month = dt.month
    day = dt.day + (dt.hour + (dt.minute + (dt.second + dt.microsecond / 1e6) / 60.0) / 60.0) / 24.0
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + day + b - 1524.5
    return jd


def _normalize_angle_rad(angle: float) -> float:
    return angle % (2.0 * math.pi)


def _centuries(jd: float) -> float:
    return (jd - J2000_JD) / 36525.0


def _obliquity_rad(t: float) -> float:
    omega = math.radians(125.04 - 1934.136 * t)
    return math.radians(23.4393 - 0.01300 * t + 0.00256 * math.cos(omega))


def _gmst_rad(dt: datetime.datetime) -> float:
    jd = julian_date(dt)
    d = jd - J2000_JD
    t = d / 36525.0
    gmst_deg = 280.46061837 + 360.98564736629 * d + 0.000387933 * t * t - t * t * t / 38710000.0
    return _normalize_angle_rad(math.radians(gmst_deg % 360.0))


def local_sidereal_time_rad(dt: datetime.datetime, longitude_deg: float) -> float:
    return _normalize_angle_rad(_gmst_rad(dt) + math.radians(longitude_deg))


def ra_dec_to_alt_az(
    ra_rad: float,
    dec_rad: float,
    lat_rad: float,
    lon_deg: float,
    dt: datetime.datetime,
) -> tuple[float, float]:
    lst = local_sidereal_time_rad(dt, lon_deg)
    ha = _normalize_angle_rad(lst - ra_rad)
    sin_alt = math.sin(dec_rad) * math.sin(lat_rad) + math.cos(dec_rad) * math.cos(lat_rad) * math.cos(ha)
    alt = math.asin(max(-1.0, min(1.0, sin_alt)))
    az = math.atan2(
        -math.sin(ha) * math.cos(dec_rad),
        math.sin(dec_rad) * math.cos(lat_rad) - math.cos(dec_rad) * math.sin(lat_rad) * math.cos(ha),
    )
    az = _normalize_angle_rad(az)
    return alt, az


def sun_ra_dec_rad(dt: datetime.datetime) -> tuple[float, float]:
    t = _centuries(julian_date(dt))
    l0 = (280.46646 + 36000.76983 * t + 0.0003032 * t * t) % 360.0
    m = math.radians((357.52911 + 35999.05029 * t - 0.0001537 * t * t) % 360.0)
    c = (
        (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m)
        + 0.000289 * math.sin(3 * m)
    )
    lam = math.radians((l0 + c) % 360.0)
    eps = _obliquity_rad(t)
    ra = math.atan2(math.cos(eps) * math.sin(lam), math.cos(lam))
    dec = math.asin(math.sin(eps) * math.sin(lam))
    return _normalize_angle_rad(ra), dec


def moon_ra_dec_rad(dt: datetime.datetime) -> tuple[float, float]:
    t = _centuries(julian_date(dt))
    lp = (218.3164477 + 481267.88123421 * t - 0.0015786 * t * t + t ** 3 / 538841.0 - t ** 4 / 65194000.0) % 360.0
    d = (297.8501921 + 445267.1114034 * t - 0.0018819 * t * t + t ** 3 / 545868.0 - t ** 4 / 113065000.0) % 360.0
    m = (357.5291092 + 35999.0502909 * t - 0.0001536 * t * t + t ** 3 / 24490000.0) % 360.0
    mp = (134.9633964 + 477198.8675055 * t + 0.0087414 * t * t + t ** 3 / 69699.0 - t ** 4 / 14712000.0) % 360.0
    f = (93.2720950 + 483202.0175233 * t - 0.0036539 * t * t - t ** 3 / 3526000.0 + t ** 4 / 863310000.0) % 360.0
    a1 = (119.75 + 131.849 * t) % 360.0
    a2 = (53.09 + 479264.290 * t) % 360.0
    a3 = (313.45 + 481266.484 * t) % 360.0
    e = 1.0 - 0.002516 * t - 0.0000074 * t * t

    d_r, m_r, mp_r, f_r = (math.radians(x) for x in (d, m, mp, f))

    sum_l = _periodic_sum(_MOON_LON_TERMS, d_r, m_r, mp_r, f_r, e)
    sum_l += (
        3958.0 * math.sin(math.radians(a1))
        + 1962.0 * math.sin(math.radians(lp - f))
        + 318.0 * math.sin(math.radians(a2))
    )
    sum_b = _periodic_sum(_MOON_LAT_TERMS, d_r, m_r, mp_r, f_r, e)
    sum_b += (
        -2235.0 * math.sin(math.radians(lp))
        + 382.0 * math.sin(math.radians(a3))
        + 175.0 * math.sin(math.radians(a1 - f))
        + 175.0 * math.sin(math.radians(a1 + f))
        + 127.0 * math.sin(math.radians(lp - mp))
        - 115.0 * math.sin(math.radians(lp + mp))
    )

    lam = math.radians((lp + sum_l / 1_000_000.0) % 360.0)
    beta = math.radians(sum_b / 1_000_000.0)
    eps = _obliquity_rad(t)
    ra = math.atan2(
        math.sin(lam) * math.cos(eps) - math.tan(beta) * math.sin(eps),
        math.cos(lam),
    )
    sin_dec = math.sin(beta) * math.cos(eps) + math.cos(beta) * math.sin(eps) * math.sin(lam)
    dec = math.asin(max(-1.0, min(1.0, sin_dec)))
    return _normalize_angle_rad(ra), dec


def _periodic_sum(terms, d_r, m_r, mp_r, f_r, e) -> float:
    total = 0.0
    for cd, cm, cmp, cf, coeff in terms:
        arg = cd * d_r + cm * m_r + cmp * mp_r + cf * f_r
        if abs(cm) == 1:
            coeff *= e
        elif abs(cm) == 2:
            coeff *= e * e
        total += coeff * math.sin(arg)
    return total


def angular_separation_rad(ra1: float, dec1: float, ra2: float, dec2: float) -> float:
    cos_sep = math.sin(dec1) * math.sin(dec2) + math.cos(dec1) * math.cos(dec2) * math.cos(ra1 - ra2)
    cos_sep = max(-1.0, min(1.0, cos_sep))
    return math.acos(cos_sep)


def moon_illumination_fraction(dt: datetime.datetime) -> float:
    ra_sun, dec_sun = sun_ra_dec_rad(dt)
    ra_moon, dec_moon = moon_ra_dec_rad(dt)
    elong = angular_separation_rad(ra_sun, dec_sun, ra_moon, dec_moon)
    return (1.0 - math.cos(elong)) / 2.0


class MeeusPositionProvider(PositionProvider):
    name = "meeus"

    def sun_altaz(self, t, location: ObserverLocation) -> HorizontalPosition:
        return self._altaz(*sun_ra_dec_rad(t), location, t)

    def moon_altaz(self, t, location: ObserverLocation) -> HorizontalPosition:
        return self._altaz(*moon_ra_dec_rad(t), location, t)

    def target_altaz(self, t, location: ObserverLocation, ra_deg: float, dec_deg: float) -> HorizontalPosition:
        return self._altaz(math.radians(ra_deg), math.radians(dec_deg), location, t)

    def moon_illumination(self, t) -> float:
        return moon_illumination_fraction(t) * 100.0

    def is_available(self) -> dict:
        return {"ok": True, "detail": "built-in analytic ephemeris"}

    @staticmethod
    def _altaz(ra_rad: float, dec_rad: float, location: ObserverLocation, t) -> HorizontalPosition:
        alt_rad, az_rad = ra_dec_to_alt_az(
            ra_rad,
            dec_rad,
            math.radians(location.latitude_deg),
            location.longitude_deg,
            t,
        )
        return HorizontalPosition(alt_deg=math.degrees(alt_rad), az_deg=math.degrees(az_rad))
