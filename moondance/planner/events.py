import datetime
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator

from .astro import equatorial_to_horizontal, julian_date
from .ephemeris import moon_position, sun_position
from .horizon import DirectionalAltitudeProfile
from .types import HorizontalPosition, ImagingWindow, MoonAltitudeSample, VisibilitySpan

from moondance.util.format import round_tenths

logger = logging.getLogger(__name__)

# Refraction plus the solar semi-diameter.
SUN_ALTITUDE_THRESHOLD_DEG = -0.5
MOON_HORIZON_DEG = 0.0
DEFAULT_IMAGING_ALTITUDE_DEG = 30.0

SUN_SEARCH_STEP_MIN = 5
SUNSET_SEARCH_RANGE_MIN = (-240, 120)
SUNRISE_SEARCH_RANGE_MIN = (-120, 240)
VISIBILITY_STEP_MIN = 10
IMAGING_STEP_MIN = 15
IMAGING_SUNRISE_LOOKAHEAD_H = 10
IMAGING_SUNRISE_MARGIN_H = 1
MOON_PROFILE_STEP_MIN = 20

PositionFn = Callable[[datetime.datetime], HorizontalPosition]
Threshold = DirectionalAltitudeProfile | float


def _walk(
    start: datetime.datetime,
    end: datetime.datetime,
    step_min: int,
) -> Iterator[datetime.datetime]:
    step = datetime.timedelta(minutes=step_min)
    t = start
    while t <= end:
        yield t
        t += step


def _threshold_at(threshold: Threshold, azimuth_deg: float) -> float:
    if isinstance(threshold, DirectionalAltitudeProfile):
        return threshold.minimum_altitude(azimuth_deg)
    return float(threshold)


def target_position_fn(
    ra_deg: float,
    dec_deg: float,
    latitude_deg: float,
    longitude_deg: float,
) -> PositionFn:
    def position_at(t: datetime.datetime) -> HorizontalPosition:
        return equatorial_to_horizontal(ra_deg, dec_deg, julian_date(t), latitude_deg, longitude_deg)

    return position_at


def moon_position_fn(latitude_deg: float, longitude_deg: float) -> PositionFn:
    # The Moon moves about half a degree per hour, so its RA/Dec is
    # recomputed for every instant.
    def position_at(t: datetime.datetime) -> HorizontalPosition:
        jd = julian_date(t)
        ra, dec = moon_position(jd)
        return equatorial_to_horizontal(ra, dec, jd, latitude_deg, longitude_deg)

    return position_at


def sun_altitude_deg(t: datetime.datetime, latitude_deg: float, longitude_deg: float) -> float:
    jd = julian_date(t)
    ra, dec = sun_position(jd)
    return equatorial_to_horizontal(ra, dec, jd, latitude_deg, longitude_deg).altitude_deg


def find_sunset(
    approx: datetime.datetime,
    latitude_deg: float,
    longitude_deg: float,
) -> datetime.datetime:
    """Last 5-minute sample with the Sun above the horizon before it drops below.

    Falls back to ``approx`` when the scan window holds no crossing (polar day
    or night); callers treat a resulting empty darkness window as unusable.
    """
    last_above: datetime.datetime | None = None
    lo, hi = SUNSET_SEARCH_RANGE_MIN
    for minutes in range(lo, hi + 1, SUN_SEARCH_STEP_MIN):
        t = approx + datetime.timedelta(minutes=minutes)
        if sun_altitude_deg(t, latitude_deg, longitude_deg) > SUN_ALTITUDE_THRESHOLD_DEG:
            last_above = t
        elif last_above is not None:
            return last_above
    logger.debug("No sunset crossing near %s, using the initial guess", approx.isoformat())
    return approx


def find_sunrise(
    approx: datetime.datetime,
    latitude_deg: float,
    longitude_deg: float,
) -> datetime.datetime:
    """First 5-minute sample with the Sun back above the horizon.

    Falls back to ``approx`` when the scan window holds no crossing.
    """
    seen_below = False
    lo, hi = SUNRISE_SEARCH_RANGE_MIN
    for minutes in range(lo, hi + 1, SUN_SEARCH_STEP_MIN):
        t = approx + datetime.timedelta(minutes=minutes)
        if sun_altitude_deg(t, latitude_deg, longitude_deg) > SUN_ALTITUDE_THRESHOLD_DEG:
            if seen_below:
                return t
        else:
            seen_below = True
    logger.debug("No sunrise crossing near %s, using the initial guess", approx.isoformat())
    return approx


class _SpanState(enum.Enum):
    BELOW = "below"
    ABOVE = "above"


@dataclass(frozen=True)
class _Crossing:
    time: datetime.datetime
    azimuth_deg: float
    min_alt_deg: float


class _SpanTracker:
    """Two-state machine recording the first rise and the first set."""

    def __init__(self) -> None:
        self.state = _SpanState.BELOW
        self.crossings: list[_Crossing] = []

    @property
    def rise(self) -> _Crossing | None:
        return self.crossings[0] if self.crossings else None

    @property
    def set(self) -> _Crossing | None:
        return self.crossings[1] if len(self.crossings) > 1 else None

    def observe(self, t: datetime.datetime, position: HorizontalPosition, min_alt_deg: float) -> bool:
        """Feed one sample; returns True once the first rise→set cycle is complete."""
        above = position.altitude_deg >= min_alt_deg
        if self.state is _SpanState.BELOW and above:
            self.crossings.append(_Crossing(t, position.azimuth_deg, min_alt_deg))
            self.state = _SpanState.ABOVE
        elif self.state is _SpanState.ABOVE and not above:
            self.crossings.append(_Crossing(t, position.azimuth_deg, min_alt_deg))
            self.state = _SpanState.BELOW
            return True
        return False


def find_visibility_span(
    position_at: PositionFn,
    start: datetime.datetime,
    end: datetime.datetime,
    threshold: Threshold,
    step_min: int = VISIBILITY_STEP_MIN,
) -> VisibilitySpan | None:
    """First continuous interval in [start, end] with the body above threshold.

    A body that sets and rises again later in the same window only reports
    its first interval.
    """
    if end <= start:
        return None

    tracker = _SpanTracker()
    for t in _walk(start, end, step_min):
        position = position_at(t)
        if tracker.observe(t, position, _threshold_at(threshold, position.azimuth_deg)):
            break

    rise = tracker.rise
    if rise is None:
        return None
    set_ = tracker.set
    still_up = set_ is None
    if still_up:
        end_position = position_at(end)
        set_ = _Crossing(end, end_position.azimuth_deg, _threshold_at(threshold, end_position.azimuth_deg))
    if set_.time <= rise.time:
        return None

    return VisibilitySpan(
        rise_time=rise.time,
        set_time=set_.time,
        rise_azimuth_deg=rise.azimuth_deg,
        set_azimuth_deg=set_.azimuth_deg,
        rise_min_alt_deg=rise.min_alt_deg,
        set_min_alt_deg=set_.min_alt_deg,
        already_up_at_start=rise.time == start,
        still_up_at_end=still_up,
        rise_offset_hours=round_tenths((rise.time - start).total_seconds() / 3600.0),
        set_offset_hours=round_tenths((set_.time - start).total_seconds() / 3600.0),
    )


def find_target_visibility(
    ra_deg: float,
    dec_deg: float,
    latitude_deg: float,
    longitude_deg: float,
    darkness_start: datetime.datetime,
    darkness_end: datetime.datetime,
    horizon: Threshold,
) -> VisibilitySpan | None:
    return find_visibility_span(
        target_position_fn(ra_deg, dec_deg, latitude_deg, longitude_deg),
        darkness_start,
        darkness_end,
        horizon,
    )


def find_moon_visibility(
    latitude_deg: float,
    longitude_deg: float,
    darkness_start: datetime.datetime,
    darkness_end: datetime.datetime,
) -> VisibilitySpan | None:
    return find_visibility_span(
        moon_position_fn(latitude_deg, longitude_deg),
        darkness_start,
        darkness_end,
        MOON_HORIZON_DEG,
    )


def calculate_imaging_window(
    ra_deg: float,
    dec_deg: float,
    latitude_deg: float,
    longitude_deg: float,
    obs_time: datetime.datetime,
    altitude_threshold_deg: float = DEFAULT_IMAGING_ALTITUDE_DEG,
) -> ImagingWindow:
    position_at = target_position_fn(ra_deg, dec_deg, latitude_deg, longitude_deg)
    if position_at(obs_time).altitude_deg < altitude_threshold_deg:
        return ImagingWindow(duration_hours=0.0, start_time=obs_time, end_time=None)

    sunrise = find_sunrise(
        obs_time + datetime.timedelta(hours=IMAGING_SUNRISE_LOOKAHEAD_H),
        latitude_deg,
        longitude_deg,
    )
    cutoff = sunrise - datetime.timedelta(hours=IMAGING_SUNRISE_MARGIN_H)
    step = datetime.timedelta(minutes=IMAGING_STEP_MIN)

    current = obs_time
    end_time = cutoff
    while current < cutoff:
        current += step
        if current >= cutoff:
            end_time = cutoff
            break
        if position_at(current).altitude_deg < altitude_threshold_deg:
            end_time = current
            break

    duration = max(0.0, (end_time - obs_time).total_seconds() / 3600.0)
    return ImagingWindow(duration_hours=round_tenths(duration), start_time=obs_time, end_time=end_time)


def moon_altitude_profile(
    latitude_deg: float,
    longitude_deg: float,
    darkness_start: datetime.datetime,
    darkness_end: datetime.datetime,
    step_min: int = MOON_PROFILE_STEP_MIN,
) -> list[MoonAltitudeSample]:
    position_at = moon_position_fn(latitude_deg, longitude_deg)
    samples: list[MoonAltitudeSample] = []
    for t in _walk(darkness_start, darkness_end, step_min):
        samples.append(
            MoonAltitudeSample(
                time=t,
                offset_hours=(t - darkness_start).total_seconds() / 3600.0,
                altitude_deg=position_at(t).altitude_deg,
            )
        )
    return samples
