import datetime
import math
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


def deg_to_hms(deg: float, precision: int = 1) -> str:
    h, m, s = _split_hms(deg / 15.0, precision)
    width = 3 + precision if precision else 2
    s_fmt = f"{s:0{width}.{precision}f}"
    return f"{h:02d}:{m:02d}:{s_fmt}"


def deg_to_dms(deg: float, precision: int = 0) -> str:
    sign_val, d, m, s = _split_dms(deg, precision)
    sign = "-" if sign_val < 0 else "+"
    width = 3 + precision if precision else 2
    s_fmt = f"{s:0{width}.{precision}f}"
    return f"{sign}{d:02d}:{m:02d}:{s_fmt}"


def format_angle(deg: float, style: str = "deg", precision: int = 1) -> str:
    if style == "deg":
        return f"{deg:.{precision}f}°"
    if style == "hms":
        return deg_to_hms(deg, precision=precision)
    if style == "dms":
        return deg_to_dms(deg, precision=precision)
    raise ValueError(f"Unknown angle style: {style}")


def round_tenths(value: float) -> float:
    """Round to 0.1 with halves going away from zero (10.25 -> 10.3)."""
    return math.copysign(math.floor(abs(value) * 10.0 + 0.5) / 10.0, value)


def format_duration(hours: float) -> str:
    total_minutes = int(round(max(0.0, hours) * 60.0))
    h, m = divmod(total_minutes, 60)
    if h == 0:
        return f"{m}m"
    return f"{h}h{m:02d}m"


def format_clock(dt: datetime.datetime | None, tz: datetime.tzinfo | None = None) -> str:
    if dt is None:
        return "-"
    if tz is not None:
        dt = dt.astimezone(tz)
    return dt.strftime("%H:%M")
