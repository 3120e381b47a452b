import datetime
import math

from .types import HorizontalPosition

J2000_JD = 2451545.0
UNIX_EPOCH_JD = 2440587.5
SECONDS_PER_DAY = 86400.0


def julian_date(dt: datetime.datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.timestamp() / SECONDS_PER_DAY + UNIX_EPOCH_JD


def datetime_from_julian_date(jd: float) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(
        (jd - UNIX_EPOCH_JD) * SECONDS_PER_DAY, tz=datetime.timezone.utc
    )


def centuries_since_j2000(jd: float) -> float:
    return (jd - J2000_JD) / 36525.0


def normalize_deg(angle: float) -> float:
    return angle % 360.0


def wrap_deg_180(angle: float) -> float:
    return (angle + 180.0) % 360.0 - 180.0


def _clamp_unit(value: float) -> float:
    return max(-1.0, min(1.0, value))


def greenwich_sidereal_time_deg(jd: float) -> float:
    t = centuries_since_j2000(jd)
    gmst = (
        280.46061837
        + 360.98564736629 * (jd - J2000_JD)
        + 0.000387933 * t * t
        - t * t * t / 38710000.0
    )
    return normalize_deg(gmst)


def local_sidereal_time_deg(jd: float, longitude_deg: float) -> float:
    return normalize_deg(greenwich_sidereal_time_deg(jd) + longitude_deg)


def equatorial_to_horizontal(
    ra_deg: float,
    dec_deg: float,
    jd: float,
    latitude_deg: float,
    longitude_deg: float,
) -> HorizontalPosition:
    lst = local_sidereal_time_deg(jd, longitude_deg)
    ha = math.radians(normalize_deg(lst - ra_deg))
    dec = math.radians(dec_deg)
    lat = math.radians(latitude_deg)

    sin_alt = math.sin(dec) * math.sin(lat) + math.cos(dec) * math.cos(lat) * math.cos(ha)
    alt = math.asin(_clamp_unit(sin_alt))

    denom = math.cos(alt) * math.cos(lat)
    if abs(denom) < 1e-12:
        # Azimuth is undefined at the zenith and at the geographic poles.
        az_deg = 0.0
    else:
        cos_az = (math.sin(dec) - math.sin(alt) * math.sin(lat)) / denom
        az_deg = math.degrees(math.acos(_clamp_unit(cos_az)))
        if math.sin(ha) > 0:
            az_deg = 360.0 - az_deg
    return HorizontalPosition(
        altitude_deg=math.degrees(alt),
        azimuth_deg=normalize_deg(az_deg),
    )


def angular_separation_equatorial(
    ra1_deg: float,
    dec1_deg: float,
    ra2_deg: float,
    dec2_deg: float,
) -> float:
    dec1 = math.radians(dec1_deg)
    dec2 = math.radians(dec2_deg)
    cos_sep = math.sin(dec1) * math.sin(dec2) + math.cos(dec1) * math.cos(dec2) * math.cos(
        math.radians(ra1_deg - ra2_deg)
    )
    return math.degrees(math.acos(_clamp_unit(cos_sep)))


def angular_separation_horizontal(
    alt1_deg: float,
    az1_deg: float,
    alt2_deg: float,
    az2_deg: float,
) -> float:
    alt1 = math.radians(alt1_deg)
    alt2 = math.radians(alt2_deg)
    cos_sep = math.sin(alt1) * math.sin(alt2) + math.cos(alt1) * math.cos(alt2) * math.cos(
        math.radians(az1_deg - az2_deg)
    )
    return math.degrees(math.acos(_clamp_unit(cos_sep)))
