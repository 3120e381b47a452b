import datetime

import pytest
import pytz

from moondance.util.format import (
    deg_to_dms,
    deg_to_hms,
    format_angle,
    format_clock,
    format_duration,
    round_tenths,
)


def test_deg_to_hms_zero():
    assert deg_to_hms(0.0) == "00:00:00.0"


def test_deg_to_hms_wrap():
    # 360 degrees -> 24h -> wrapped to 00
    assert deg_to_hms(360.0) == "00:00:00.0"


def test_deg_to_hms_one_hour():
    assert deg_to_hms(15.0, precision=2) == "01:00:00.00"


def test_deg_to_hms_catalog_value():
    assert deg_to_hms(83.822, precision=0) == "05:35:17"


def test_deg_to_hms_rounding_carry():
    # 23:59:59.96 with 1 decimal should round to 00:00:00.0
    seconds = (24 * 3600) - 0.04
    assert deg_to_hms(seconds / 240.0, precision=1) == "00:00:00.0"


def test_deg_to_dms_positive():
    assert deg_to_dms(10.0) == "+10:00:00"


def test_deg_to_dms_negative():
    assert deg_to_dms(-10.0, precision=2) == "-10:00:00.00"


def test_deg_to_dms_catalog_value():
    assert deg_to_dms(-5.391) == "-05:23:28"


def test_deg_to_dms_small_negative():
    assert deg_to_dms(-0.0001, precision=2).startswith("-00:00:")


def test_format_angle_styles():
    assert format_angle(12.345) == "12.3°"
    assert format_angle(15.0, style="hms") == "01:00:00.0"
    assert format_angle(-10.0, style="dms", precision=0) == "-10:00:00"


def test_format_angle_unknown_style():
    with pytest.raises(ValueError):
        format_angle(1.0, style="rad")


@pytest.mark.parametrize(
    "hours, expected",
    [
        (3.2, "3h12m"),
        (0.75, "45m"),
        (0.0, "0m"),
        (-1.0, "0m"),
        (10.0, "10h00m"),
    ],
)
def test_format_duration(hours, expected):
    assert format_duration(hours) == expected


def test_format_clock_converts_to_site_time():
    dt = datetime.datetime(2024, 1, 1, 3, 5, tzinfo=datetime.timezone.utc)
    assert format_clock(dt) == "03:05"
    assert format_clock(dt, pytz.timezone("America/New_York")) == "22:05"


def test_format_clock_missing():
    assert format_clock(None) == "-"


@pytest.mark.parametrize(
    "value, expected",
    [(10.25, 10.3), (0.05, 0.1), (2.5, 2.5), (4.34, 4.3), (0.0, 0.0), (-1.25, -1.3)],
)
def test_round_tenths_rounds_halves_up(value, expected):
    assert round_tenths(value) == expected
