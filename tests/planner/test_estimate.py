import datetime
import math

import pytest

from moondance.planner.estimate import (
    EstimateStatus,
    VisibilityRef,
    estimate_first_visible,
    half_width_deg,
    peak_days,
    scan_catalog,
    up_during_night,
)
from moondance.planner.events import find_target_visibility
from moondance.planner.horizon import DirectionalAltitudeProfile
from moondance.planner.night import build_night_window, night_anchors, resolve_timezone
from moondance.planner.types import ObserverLocation, Target

ATLANTA = ObserverLocation(latitude_deg=33.749, longitude_deg=-84.388, timezone="America/New_York")
REF_DATE = datetime.date(2024, 12, 21)

M42 = Target(id="m42", name="Orion Nebula", ra_deg=83.822, dec_deg=-5.391)
SUMMER = Target(id="summer", name="Summer Field", ra_deg=270.0, dec_deg=30.0)
LOW = Target(id="low", name="Low South", ra_deg=120.0, dec_deg=-50.0)
DEEP = Target(id="deep", name="Deep South", ra_deg=80.0, dec_deg=-80.0)


@pytest.fixture
def ref():
    return VisibilityRef.build(ATLANTA, REF_DATE)


def test_reference_values(ref):
    assert ref.reference_date == REF_DATE
    assert ref.latitude_deg == pytest.approx(ATLANTA.latitude_deg)
    assert 0.0 <= ref.lst_midnight_deg < 360.0
    assert 0.0 <= peak_days(ref, 200.0) < 366.0


def test_half_width_limits():
    lat = ATLANTA.latitude_deg
    assert half_width_deg(89.26, math.radians(lat), 30.0) == 180.0
    assert half_width_deg(-50.0, math.radians(lat), 30.0) == 0.0
    assert 0.0 < half_width_deg(30.0, math.radians(lat), 30.0) < 180.0


def test_never_rises(ref):
    estimate = estimate_first_visible(ref, DEEP)
    assert estimate.status is EstimateStatus.NEVER_RISES
    assert estimate.days_until is None
    assert estimate.first_visible_date is None
    assert estimate.peak_date is None


def test_never_clears_reports_peak(ref):
    estimate = estimate_first_visible(ref, LOW)
    assert estimate.status is EstimateStatus.NEVER_CLEARS
    assert estimate.max_altitude_deg == pytest.approx(90.0 - (33.749 + 50.0))
    assert estimate.peak_date is not None
    assert estimate.days_until is None


def test_winter_target_is_visible_now(ref):
    estimate = estimate_first_visible(ref, M42)
    assert estimate.status is EstimateStatus.VISIBLE_NOW
    assert estimate.is_visible_now
    assert estimate.days_until == 0
    assert estimate.first_visible_date == REF_DATE


def test_summer_target_becomes_visible_later(ref):
    estimate = estimate_first_visible(ref, SUMMER)

    assert estimate.status is EstimateStatus.VISIBLE_IN_DAYS
    assert 30 <= estimate.days_until <= 50
    assert estimate.first_visible_date == REF_DATE + datetime.timedelta(days=estimate.days_until)
    assert up_during_night(ref, SUMMER, estimate.days_until, 30.0)
    assert not up_during_night(ref, SUMMER, estimate.days_until - 1, 30.0)


def test_estimate_agrees_with_event_finder(ref):
    estimate = estimate_first_visible(ref, SUMMER)
    tz = resolve_timezone(ATLANTA.timezone)
    window = build_night_window(night_anchors(estimate.first_visible_date, tz, 22), ATLANTA, 1.0)

    span = find_target_visibility(
        SUMMER.ra_deg,
        SUMMER.dec_deg,
        ATLANTA.latitude_deg,
        ATLANTA.longitude_deg,
        window.darkness_start,
        window.darkness_end,
        DirectionalAltitudeProfile.uniform(30.0),
    )
    assert span is not None


def test_scan_catalog_ordering(ref):
    estimates = scan_catalog(ref, [DEEP, SUMMER, LOW, M42])
    assert [e.target.id for e in estimates] == ["m42", "summer", "low", "deep"]
