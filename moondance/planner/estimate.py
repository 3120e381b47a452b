"""Geometric first-visibility estimate for browsing large catalogs.

The midnight hour angle of a fixed RA/Dec drifts by about 0.98565° a day.
From the half-width of the arc the target spends above the altitude
threshold, widened by a nighttime margin that stands in for the dusk-to-dawn
span, the number of days until the target is up at some point of the night
follows directly. A short run of direct altitude checks then nudges the
estimate by a few days. Results are advisory and never feed a rating.
"""

import datetime
import enum
import math
from dataclasses import dataclass
from typing import Iterable

from .astro import (
    equatorial_to_horizontal,
    julian_date,
    local_sidereal_time_deg,
    normalize_deg,
    wrap_deg_180,
)
from .night import local_instant, resolve_timezone
from .types import ObserverLocation, Target

SIDEREAL_DRIFT_DEG_PER_DAY = 0.98565
DEFAULT_NIGHTTIME_MARGIN_DEG = 75.0
DEFAULT_MAX_REFINE_DAYS = 10
DEFAULT_MIN_ALTITUDE_DEG = 30.0


class EstimateStatus(enum.Enum):
    VISIBLE_NOW = "visible_now"
    VISIBLE_IN_DAYS = "visible_in_days"
    NEVER_CLEARS = "never_clears"
    NEVER_RISES = "never_rises"


_STATUS_ORDER = {
    EstimateStatus.VISIBLE_NOW: 0,
    EstimateStatus.VISIBLE_IN_DAYS: 1,
    EstimateStatus.NEVER_CLEARS: 2,
    EstimateStatus.NEVER_RISES: 3,
}


@dataclass(frozen=True)
class VisibilityRef:
    """Per-request values shared by every target in a scan."""

    reference_date: datetime.date
    midnight: datetime.datetime
    midnight_jd: float
    lst_midnight_deg: float
    latitude_rad: float
    longitude_deg: float

    @classmethod
    def build(
        cls,
        location: ObserverLocation,
        date: datetime.date,
        tz: datetime.tzinfo | None = None,
    ) -> "VisibilityRef":
        if tz is None:
            tz = resolve_timezone(location.timezone)
        midnight = local_instant(tz, date + datetime.timedelta(days=1), 0)
        jd = julian_date(midnight)
        return cls(
            reference_date=date,
            midnight=midnight,
            midnight_jd=jd,
            lst_midnight_deg=local_sidereal_time_deg(jd, location.longitude_deg),
            latitude_rad=math.radians(location.latitude_deg),
            longitude_deg=location.longitude_deg,
        )

    @property
    def latitude_deg(self) -> float:
        return math.degrees(self.latitude_rad)


@dataclass(frozen=True)
class FirstVisibleEstimate:
    target: Target
    status: EstimateStatus
    max_altitude_deg: float
    days_until: int | None = None
    first_visible_date: datetime.date | None = None
    peak_date: datetime.date | None = None

    @property
    def is_visible_now(self) -> bool:
        return self.status is EstimateStatus.VISIBLE_NOW


def half_width_deg(dec_deg: float, latitude_rad: float, min_altitude_deg: float) -> float:
    """Hour angle at which a declination crosses ``min_altitude_deg``.

    180 for a target that never drops below the threshold, 0 for one that
    never clears it.
    """
    dec = math.radians(dec_deg)
    denom = math.cos(dec) * math.cos(latitude_rad)
    numer = math.sin(math.radians(min_altitude_deg)) - math.sin(dec) * math.sin(latitude_rad)
    if abs(denom) < 1e-12:
        return 180.0 if numer <= 0 else 0.0
    cos_h = numer / denom
    if cos_h <= -1.0:
        return 180.0
    if cos_h >= 1.0:
        return 0.0
    return math.degrees(math.acos(cos_h))


def peak_days(ref: VisibilityRef, ra_deg: float) -> float:
    """Days until the target transits at local midnight."""
    return normalize_deg(ra_deg - ref.lst_midnight_deg) / SIDEREAL_DRIFT_DEG_PER_DAY


def _geometric_days(ref: VisibilityRef, target: Target, window_deg: float) -> int:
    if window_deg >= 180.0:
        return 0
    ha_midnight = wrap_deg_180(ref.lst_midnight_deg - target.ra_deg)
    if abs(ha_midnight) <= window_deg:
        return 0
    if ha_midnight < -window_deg:
        days = (-window_deg - ha_midnight) / SIDEREAL_DRIFT_DEG_PER_DAY
    else:
        days = (360.0 - window_deg - ha_midnight) / SIDEREAL_DRIFT_DEG_PER_DAY
    return max(0, math.ceil(days))


def up_during_night(
    ref: VisibilityRef,
    target: Target,
    day: int,
    min_altitude_deg: float,
    nighttime_margin_deg: float = DEFAULT_NIGHTTIME_MARGIN_DEG,
) -> bool:
    """Altitude check at evening, midnight and predawn of night ``day``."""
    margin_days = nighttime_margin_deg / 15.0 / 24.0
    lat = ref.latitude_deg
    for offset in (-margin_days, 0.0, margin_days):
        jd = ref.midnight_jd + day + offset
        alt = equatorial_to_horizontal(target.ra_deg, target.dec_deg, jd, lat, ref.longitude_deg).altitude_deg
        if alt >= min_altitude_deg:
            return True
    return False


def estimate_first_visible(
    ref: VisibilityRef,
    target: Target,
    min_altitude_deg: float = DEFAULT_MIN_ALTITUDE_DEG,
    nighttime_margin_deg: float = DEFAULT_NIGHTTIME_MARGIN_DEG,
    max_refine_days: int = DEFAULT_MAX_REFINE_DAYS,
) -> FirstVisibleEstimate:
    max_alt = target.max_altitude_at(ref.latitude_deg)
    if max_alt < 0.0:
        return FirstVisibleEstimate(target=target, status=EstimateStatus.NEVER_RISES, max_altitude_deg=max_alt)
    if max_alt < min_altitude_deg:
        peak = ref.reference_date + datetime.timedelta(days=round(peak_days(ref, target.ra_deg)))
        return FirstVisibleEstimate(
            target=target,
            status=EstimateStatus.NEVER_CLEARS,
            max_altitude_deg=max_alt,
            peak_date=peak,
        )

    window = half_width_deg(target.dec_deg, ref.latitude_rad, min_altitude_deg) + nighttime_margin_deg
    estimate = _geometric_days(ref, target, window)

    def check(day: int) -> bool:
        return up_during_night(ref, target, day, min_altitude_deg, nighttime_margin_deg)

    days = estimate
    if check(days):
        for _ in range(max_refine_days):
            if days == 0 or not check(days - 1):
                break
            days -= 1
    else:
        for step in range(1, max_refine_days + 1):
            if check(estimate + step):
                days = estimate + step
                break

    peak = ref.reference_date + datetime.timedelta(days=round(peak_days(ref, target.ra_deg)))
    return FirstVisibleEstimate(
        target=target,
        status=EstimateStatus.VISIBLE_NOW if days == 0 else EstimateStatus.VISIBLE_IN_DAYS,
        max_altitude_deg=max_alt,
        days_until=days,
        first_visible_date=ref.reference_date + datetime.timedelta(days=days),
        peak_date=peak,
    )


def scan_catalog(
    ref: VisibilityRef,
    targets: Iterable[Target],
    min_altitude_deg: float = DEFAULT_MIN_ALTITUDE_DEG,
    nighttime_margin_deg: float = DEFAULT_NIGHTTIME_MARGIN_DEG,
) -> list[FirstVisibleEstimate]:
    estimates = [
        estimate_first_visible(ref, target, min_altitude_deg, nighttime_margin_deg)
        for target in targets
    ]
    estimates.sort(
        key=lambda e: (
            _STATUS_ORDER[e.status],
            e.days_until if e.days_until is not None else 0,
            e.target.name,
        )
    )
    return estimates
