"""Low-precision solar and lunar positions.

Sun: mean longitude plus equation of centre, good to about one arcminute.
Moon: the principal periodic terms of Meeus, *Astronomical Algorithms*
chapter 47 (50 longitude terms, 30 latitude terms), good to a few hundredths
of a degree over the current century. Neither model applies nutation or
aberration; both return geocentric RA/Dec in degrees.
"""

import math
from typing import NamedTuple

from .astro import angular_separation_equatorial, centuries_since_j2000, normalize_deg


class LunarTerm(NamedTuple):
    d: float
    m: float
    mp: float
    f: float
    coefficient: float  # 1e-6 degrees


# (D, M, M', F, coefficient) for the Moon's ecliptic longitude.
LONGITUDE_TERMS: tuple[LunarTerm, ...] = tuple(
    LunarTerm(*row)
    for row in (
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
)

# (D, M, M', F, coefficient) for the Moon's ecliptic latitude.
LATITUDE_TERMS: tuple[LunarTerm, ...] = tuple(
    LunarTerm(*row)
    for row in (
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
)


def _obliquity_deg(t: float) -> float:
    omega = math.radians(125.04 - 1934.136 * t)
    return 23.4393 - 0.01300 * t + 0.00256 * math.cos(omega)


def _ecliptic_to_equatorial(lon_deg: float, lat_deg: float, eps_deg: float) -> tuple[float, float]:
    lon = math.radians(lon_deg)
    lat = math.radians(lat_deg)
    eps = math.radians(eps_deg)
    ra = math.atan2(
        math.sin(lon) * math.cos(eps) - math.tan(lat) * math.sin(eps),
        math.cos(lon),
    )
    sin_dec = math.sin(lat) * math.cos(eps) + math.cos(lat) * math.sin(eps) * math.sin(lon)
    dec = math.asin(max(-1.0, min(1.0, sin_dec)))
    return normalize_deg(math.degrees(ra)), math.degrees(dec)


def sun_position(jd: float) -> tuple[float, float]:
    """Sun RA/Dec in degrees for a Julian date."""
    t = centuries_since_j2000(jd)
    l0 = normalize_deg(280.46646 + 36000.76983 * t + 0.0003032 * t * t)
    m = math.radians(normalize_deg(357.52911 + 35999.05029 * t - 0.0001537 * t * t))
    c = (
        (1.914602 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m)
        + 0.000289 * math.sin(3 * m)
    )
    true_lon = normalize_deg(l0 + c)
    return _ecliptic_to_equatorial(true_lon, 0.0, _obliquity_deg(t))


def _fundamental_arguments(t: float) -> tuple[float, float, float, float, float]:
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t
    lp = normalize_deg(
        218.3164477 + 481267.88123421 * t - 0.0015786 * t2 + t3 / 538841.0 - t4 / 65194000.0
    )
    d = normalize_deg(
        297.8501921 + 445267.1114034 * t - 0.0018819 * t2 + t3 / 545868.0 - t4 / 113065000.0
    )
    m = normalize_deg(357.5291092 + 35999.0502909 * t - 0.0001536 * t2 + t3 / 24490000.0)
    mp = normalize_deg(
        134.9633964 + 477198.8675055 * t + 0.0087414 * t2 + t3 / 69699.0 - t4 / 14712000.0
    )
    f = normalize_deg(
        93.2720950 + 483202.0175233 * t - 0.0036539 * t2 - t3 / 3526000.0 + t4 / 863310000.0
    )
    return lp, d, m, mp, f


def _sum_terms(
    terms: tuple[LunarTerm, ...],
    d: float,
    m: float,
    mp: float,
    f: float,
    e: float,
) -> float:
    total = 0.0
    for term in terms:
        arg = term.d * d + term.m * m + term.mp * mp + term.f * f
        coeff = term.coefficient
        if abs(term.m) == 1:
            coeff *= e
        elif abs(term.m) == 2:
            coeff *= e * e
        total += coeff * math.sin(arg)
    return total


def moon_position(jd: float) -> tuple[float, float]:
    """Moon RA/Dec in degrees for a Julian date."""
    t = centuries_since_j2000(jd)
    lp, d, m, mp, f = _fundamental_arguments(t)
    a1 = normalize_deg(119.75 + 131.849 * t)
    a2 = normalize_deg(53.09 + 479264.290 * t)
    a3 = normalize_deg(313.45 + 481266.484 * t)

    # Eccentricity of the Earth's orbit, applied to terms involving M.
    e = 1.0 - 0.002516 * t - 0.0000074 * t * t

    d_r, m_r, mp_r, f_r = (math.radians(x) for x in (d, m, mp, f))

    sum_l = _sum_terms(LONGITUDE_TERMS, d_r, m_r, mp_r, f_r, e)
    sum_l += (
        3958.0 * math.sin(math.radians(a1))
        + 1962.0 * math.sin(math.radians(lp - f))
        + 318.0 * math.sin(math.radians(a2))
    )

    sum_b = _sum_terms(LATITUDE_TERMS, d_r, m_r, mp_r, f_r, e)
    sum_b += (
        -2235.0 * math.sin(math.radians(lp))
        + 382.0 * math.sin(math.radians(a3))
        + 175.0 * math.sin(math.radians(a1 - f))
        + 175.0 * math.sin(math.radians(a1 + f))
        + 127.0 * math.sin(math.radians(lp - mp))
        - 115.0 * math.sin(math.radians(lp + mp))
    )

    lon = normalize_deg(lp + sum_l / 1_000_000.0)
    lat = sum_b / 1_000_000.0
    return _ecliptic_to_equatorial(lon, lat, _obliquity_deg(t))


def moon_elongation_deg(jd: float) -> float:
    sun_ra, sun_dec = sun_position(jd)
    moon_ra, moon_dec = moon_position(jd)
    return angular_separation_equatorial(moon_ra, moon_dec, sun_ra, sun_dec)


def moon_phase_percent(jd: float) -> float:
    elongation = math.radians(moon_elongation_deg(jd))
    phase = (1.0 - math.cos(elongation)) / 2.0 * 100.0
    return max(0.0, min(100.0, phase))
