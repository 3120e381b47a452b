import datetime
import logging
from dataclasses import dataclass
from typing import Sequence

import pytz

from .astro import angular_separation_equatorial, angular_separation_horizontal, equatorial_to_horizontal, julian_date
from .ephemeris import moon_phase_percent, moon_position
from .events import (
    SUN_ALTITUDE_THRESHOLD_DEG,
    calculate_imaging_window,
    find_moon_visibility,
    find_sunrise,
    find_sunset,
    find_target_visibility,
    moon_altitude_profile,
    sun_altitude_deg,
)
from .horizon import DirectionalAltitudeProfile
from .rating import MoonTierConfig
from .types import (
    MoonOverlap,
    NightResult,
    NightWindow,
    ObserverLocation,
    Target,
    TargetNightResult,
    VisibilitySpan,
)

from moondance.util.format import round_tenths

logger = logging.getLogger(__name__)

SUNSET_GUESS_HOUR = 18
SUNRISE_GUESS_HOUR = 6
OVERLAP_BUCKET_MIN = 10


def resolve_timezone(name: str) -> datetime.tzinfo:
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def local_instant(tz: datetime.tzinfo, date: datetime.date, hour: int) -> datetime.datetime:
    """``date`` at ``hour``:00 site time, as an aware UTC datetime."""
    naive = datetime.datetime.combine(date, datetime.time(hour=hour))
    # is_dst=False picks standard time for ambiguous or skipped wall-clock hours.
    return tz.localize(naive, is_dst=False).astimezone(pytz.utc)


@dataclass(frozen=True)
class NightAnchors:
    observation_time: datetime.datetime
    sunset_guess: datetime.datetime
    sunrise_guess: datetime.datetime
    midnight: datetime.datetime


def night_anchors(date: datetime.date, tz: datetime.tzinfo, observation_hour: int) -> NightAnchors:
    next_day = date + datetime.timedelta(days=1)
    return NightAnchors(
        observation_time=local_instant(tz, date, observation_hour),
        sunset_guess=local_instant(tz, date, SUNSET_GUESS_HOUR),
        sunrise_guess=local_instant(tz, next_day, SUNRISE_GUESS_HOUR),
        midnight=local_instant(tz, next_day, 0),
    )


def build_night_window(
    anchors: NightAnchors,
    location: ObserverLocation,
    buffer_hours: float,
) -> NightWindow | None:
    lat, lon = location.latitude_deg, location.longitude_deg
    sunset = find_sunset(anchors.sunset_guess, lat, lon)
    sunrise = find_sunrise(anchors.sunrise_guess, lat, lon)
    buffer = datetime.timedelta(hours=buffer_hours)
    darkness_start = sunset + buffer
    darkness_end = sunrise - buffer
    dark_hours = max(0.0, (darkness_end - darkness_start).total_seconds() / 3600.0)

    window = NightWindow(
        sunset_time=sunset,
        sunrise_time=sunrise,
        darkness_start=darkness_start,
        darkness_end=darkness_end,
        dark_hours=round_tenths(dark_hours),
        midnight=anchors.midnight,
    )
    if window.is_degenerate:
        return None
    # Both event searches fall back to their guesses under a midnight sun.
    midpoint = darkness_start + (darkness_end - darkness_start) / 2
    if sun_altitude_deg(midpoint, lat, lon) > SUN_ALTITUDE_THRESHOLD_DEG:
        return None
    return window


def moon_phase_at(t: datetime.datetime) -> float:
    return moon_phase_percent(julian_date(t))


def analyze_moon_overlap(
    target: Target,
    target_span: VisibilitySpan | None,
    moon_span: VisibilitySpan | None,
) -> MoonOverlap:
    """Split a target's visible interval into moon-down and moon-up hours.

    Buckets are 10 minutes wide (the last one is cut at the set time) and
    classified by their start instant.
    """
    if target_span is None:
        return MoonOverlap(hours_moon_down=0.0, hours_moon_up=0.0, avg_separation_moon_up_deg=None)

    step = datetime.timedelta(minutes=OVERLAP_BUCKET_MIN)
    hours_down = 0.0
    hours_up = 0.0
    separations: list[float] = []

    t = target_span.rise_time
    while t < target_span.set_time:
        bucket_end = min(t + step, target_span.set_time)
        hours = (bucket_end - t).total_seconds() / 3600.0
        if moon_span is not None and moon_span.contains(t):
            hours_up += hours
            moon_ra, moon_dec = moon_position(julian_date(t))
            separations.append(
                angular_separation_equatorial(target.ra_deg, target.dec_deg, moon_ra, moon_dec)
            )
        else:
            hours_down += hours
        t = bucket_end

    avg_sep = sum(separations) / len(separations) if separations else None
    return MoonOverlap(
        hours_moon_down=hours_down,
        hours_moon_up=hours_up,
        avg_separation_moon_up_deg=avg_sep,
    )


def evaluate_target(
    target: Target,
    location: ObserverLocation,
    window: NightWindow,
    observation_time: datetime.datetime,
    moon_phase: float,
    moon_ra_dec: tuple[float, float],
    moon_span: VisibilitySpan | None,
    horizon: DirectionalAltitudeProfile,
    moon_tiers: MoonTierConfig,
    imaging_altitude_deg: float,
) -> TargetNightResult:
    lat, lon = location.latitude_deg, location.longitude_deg
    jd = julian_date(observation_time)
    target_pos = equatorial_to_horizontal(target.ra_deg, target.dec_deg, jd, lat, lon)
    moon_pos = equatorial_to_horizontal(moon_ra_dec[0], moon_ra_dec[1], jd, lat, lon)
    separation = angular_separation_horizontal(
        moon_pos.altitude_deg, moon_pos.azimuth_deg, target_pos.altitude_deg, target_pos.azimuth_deg
    )

    imaging = calculate_imaging_window(
        target.ra_deg, target.dec_deg, lat, lon, observation_time, imaging_altitude_deg
    )
    span = find_target_visibility(
        target.ra_deg, target.dec_deg, lat, lon, window.darkness_start, window.darkness_end, horizon
    )
    overlap = analyze_moon_overlap(target, span, moon_span)
    rating, reason = moon_tiers.evaluate_moon_aware_with_reason(
        moon_phase,
        overlap.hours_moon_down,
        overlap.hours_moon_up,
        overlap.avg_separation_moon_up_deg,
    )
    return TargetNightResult(
        target=target,
        target_position=target_pos,
        angular_separation_deg=separation,
        imaging_window=imaging,
        visibility=span,
        moon_overlap=overlap,
        rating=rating,
        rating_reason=reason,
    )


def build_night(
    date: datetime.date,
    location: ObserverLocation,
    targets: Sequence[Target],
    horizon: DirectionalAltitudeProfile,
    buffer_hours: float,
    observation_hour: int,
    moon_tiers: MoonTierConfig,
    imaging_altitude_deg: float = 30.0,
    tz: datetime.tzinfo | None = None,
) -> NightResult | None:
    """Everything the planner reports for the night starting on ``date``.

    Returns None when the night has no usable darkness.
    """
    if tz is None:
        tz = resolve_timezone(location.timezone)
    anchors = night_anchors(date, tz, observation_hour)
    window = build_night_window(anchors, location, buffer_hours)
    if window is None:
        logger.debug("Skipping %s: no usable darkness at %.3f, %.3f", date, location.latitude_deg, location.longitude_deg)
        return None

    lat, lon = location.latitude_deg, location.longitude_deg
    obs_time = anchors.observation_time
    obs_jd = julian_date(obs_time)
    moon_ra, moon_dec = moon_position(obs_jd)
    moon_alt = equatorial_to_horizontal(moon_ra, moon_dec, obs_jd, lat, lon).altitude_deg
    phase = moon_phase_percent(obs_jd)
    moon_span = find_moon_visibility(lat, lon, window.darkness_start, window.darkness_end)
    profile = moon_altitude_profile(lat, lon, window.darkness_start, window.darkness_end)

    results = [
        evaluate_target(
            target,
            location,
            window,
            obs_time,
            phase,
            (moon_ra, moon_dec),
            moon_span,
            horizon,
            moon_tiers,
            imaging_altitude_deg,
        )
        for target in targets
    ]
    return NightResult(
        date=date,
        moon_altitude_deg=moon_alt,
        moon_phase=phase,
        night_window=window,
        moon_visibility=moon_span,
        moon_altitude_profile=tuple(profile),
        target_results=tuple(results),
    )
