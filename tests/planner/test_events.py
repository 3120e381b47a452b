import datetime

import pytest
import pytz

from moondance.planner.astro import julian_date, local_sidereal_time_deg
from moondance.planner.events import (
    calculate_imaging_window,
    find_moon_visibility,
    find_sunrise,
    find_sunset,
    find_target_visibility,
    find_visibility_span,
    moon_altitude_profile,
    sun_altitude_deg,
)
from moondance.planner.horizon import DirectionalAltitudeProfile
from moondance.planner.types import HorizontalPosition

ATLANTA = (33.749, -84.388)
NEW_YORK_TZ = pytz.timezone("America/New_York")
START = datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
END = START + datetime.timedelta(hours=6)


def _local(year, month, day, hour, minute=0):
    naive = datetime.datetime(year, month, day, hour, minute)
    return NEW_YORK_TZ.localize(naive).astimezone(pytz.utc)


def _scripted(altitude_for_hours, azimuth_deg=180.0):
    def position_at(t):
        hours = (t - START).total_seconds() / 3600.0
        return HorizontalPosition(altitude_deg=altitude_for_hours(hours), azimuth_deg=azimuth_deg)

    return position_at


@pytest.fixture
def winter_darkness():
    sunset = find_sunset(_local(2024, 12, 21, 18), *ATLANTA)
    sunrise = find_sunrise(_local(2024, 12, 22, 6), *ATLANTA)
    buffer = datetime.timedelta(hours=1)
    return sunset + buffer, sunrise - buffer


def test_winter_sunset_and_sunrise_in_atlanta():
    sunset = find_sunset(_local(2024, 12, 21, 18), *ATLANTA).astimezone(NEW_YORK_TZ)
    sunrise = find_sunrise(_local(2024, 12, 22, 6), *ATLANTA).astimezone(NEW_YORK_TZ)

    assert (sunset.hour, sunset.minute) >= (17, 15)
    assert (sunset.hour, sunset.minute) <= (17, 45)
    assert (sunrise.hour, sunrise.minute) >= (7, 25)
    assert (sunrise.hour, sunrise.minute) <= (7, 55)


def test_sunset_brackets_the_threshold():
    sunset = find_sunset(_local(2024, 12, 21, 18), *ATLANTA)
    assert sun_altitude_deg(sunset, *ATLANTA) > -0.5
    assert sun_altitude_deg(sunset + datetime.timedelta(minutes=5), *ATLANTA) <= -0.5


def test_midnight_sun_falls_back_to_guess():
    approx = datetime.datetime(2024, 6, 21, 16, tzinfo=datetime.timezone.utc)
    assert find_sunset(approx, 78.2, 15.6) == approx
    assert find_sunrise(approx, 78.2, 15.6) == approx


def test_span_rise_and_set():
    span = find_visibility_span(_scripted(lambda h: 40.0 if 1.0 <= h < 3.0 else 10.0), START, END, 30.0)

    assert span.rise_time == START + datetime.timedelta(hours=1)
    assert span.set_time == START + datetime.timedelta(hours=3)
    assert span.rise_offset_hours == 1.0
    assert span.set_offset_hours == 3.0
    assert span.duration_hours == pytest.approx(2.0)
    assert not span.already_up_at_start
    assert not span.still_up_at_end


def test_span_already_up_and_still_up():
    span = find_visibility_span(_scripted(lambda h: 50.0), START, END, 30.0)

    assert span.rise_time == START
    assert span.set_time == END
    assert span.already_up_at_start
    assert span.still_up_at_end


def test_span_reports_only_first_interval():
    span = find_visibility_span(
        _scripted(lambda h: 40.0 if 1.0 <= h < 2.0 or 4.0 <= h < 5.0 else 0.0),
        START,
        END,
        30.0,
    )
    assert span.set_time == START + datetime.timedelta(hours=2)


def test_span_never_above_is_absent():
    assert find_visibility_span(_scripted(lambda h: 10.0), START, END, 30.0) is None


def test_span_rising_on_last_sample_is_absent():
    assert find_visibility_span(_scripted(lambda h: 40.0 if h >= 6.0 else 0.0), START, END, 30.0) is None


def test_span_empty_window_is_absent():
    assert find_visibility_span(_scripted(lambda h: 50.0), END, START, 30.0) is None


def test_span_uses_directional_threshold():
    horizon = DirectionalAltitudeProfile(values=(20.0, 80.0, 80.0, 80.0, 80.0, 80.0, 80.0, 80.0))

    north = find_visibility_span(_scripted(lambda h: 25.0, azimuth_deg=0.0), START, END, horizon)
    south = find_visibility_span(_scripted(lambda h: 25.0, azimuth_deg=180.0), START, END, horizon)

    assert north is not None
    assert north.rise_min_alt_deg == pytest.approx(20.0)
    assert south is None


def test_target_span_is_confined_to_darkness(winter_darkness):
    start, end = winter_darkness
    span = find_target_visibility(83.822, -5.391, *ATLANTA, start, end, DirectionalAltitudeProfile())

    assert span is not None
    assert start <= span.rise_time <= span.set_time <= end


def test_moon_span_is_confined_to_darkness(winter_darkness):
    start, end = winter_darkness
    span = find_moon_visibility(*ATLANTA, start, end)
    if span is not None:
        assert start <= span.rise_time <= span.set_time <= end
        assert span.duration_hours > 0


def test_imaging_window_zero_when_below_threshold():
    obs = _local(2024, 12, 21, 22)
    window = calculate_imaging_window(0.0, -80.0, *ATLANTA, obs)

    assert window.duration_hours == 0.0
    assert window.end_time is None


def test_imaging_window_walks_until_target_drops():
    obs = _local(2024, 12, 21, 22)
    # Transiting overhead at the observation time.
    ra = local_sidereal_time_deg(julian_date(obs), ATLANTA[1])
    window = calculate_imaging_window(ra, ATLANTA[0], *ATLANTA, obs)

    assert window.duration_hours == pytest.approx(5.0, abs=0.25)
    assert window.start_time == obs
    assert window.end_time > obs


def test_moon_profile_cadence(winter_darkness):
    start, _ = winter_darkness
    end = start + datetime.timedelta(hours=6)
    samples = moon_altitude_profile(*ATLANTA, start, end)

    assert len(samples) == 19
    assert samples[0].time == start
    assert samples[-1].time == end
    assert samples[1].offset_hours == pytest.approx(1.0 / 3.0)
    assert all(-90.0 <= s.altitude_deg <= 90.0 for s in samples)
