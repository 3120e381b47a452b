import csv
import datetime
import enum
import io
import json
from dataclasses import asdict
from typing import Sequence

from .estimate import EstimateStatus, FirstVisibleEstimate
from .night import resolve_timezone
from .rating import MoonTierConfig
from .types import CalculationResult, NightResult, SuggestionCandidate, TargetNightResult, VisibilitySpan

from moondance.util.format import deg_to_dms, deg_to_hms, format_clock, format_duration

CSV_COLUMNS = (
    "Date",
    "Target",
    "MoonPhase%",
    "MoonAlt",
    "TargetAlt",
    "AngularSeparation",
    "VisibilityHours",
    "MoonFreeHours",
    "MoonUpHours",
    "AvgSepMoonUp",
    "Rating",
)


def _json_default(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


def to_jsonable(obj) -> dict:
    return json.loads(json.dumps(asdict(obj), default=_json_default))


def format_json(result: CalculationResult) -> str:
    return json.dumps(asdict(result), indent=2, default=_json_default)


def format_csv(result: CalculationResult) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for night in result.nights:
        for tr in night.target_results:
            writer.writerow(_csv_row(night, tr))
    return buf.getvalue()


def _csv_row(night: NightResult, tr: TargetNightResult) -> list[str]:
    overlap = tr.moon_overlap
    visible = tr.visibility.duration_hours if tr.visibility is not None else 0.0
    avg_sep = overlap.avg_separation_moon_up_deg
    return [
        night.date.isoformat(),
        tr.target.name,
        f"{night.moon_phase:.0f}",
        f"{night.moon_altitude_deg:.1f}",
        f"{tr.target_alt_deg:.1f}",
        f"{tr.angular_separation_deg:.1f}",
        f"{visible:.1f}",
        f"{overlap.hours_moon_down:.1f}",
        f"{overlap.hours_moon_up:.1f}",
        f"{avg_sep:.1f}" if avg_sep is not None else "",
        tr.rating.label,
    ]


def format_text(
    result: CalculationResult,
    verbose: bool = False,
    moon_tiers: MoonTierConfig | None = None,
) -> str:
    lines: list[str] = []
    tz = resolve_timezone(result.location.timezone)
    lines.append("Moondance Planner")
    lines.append("=================")
    if result.location.name:
        lines.append(f"Site: {result.location.name}")
    lines.append(
        f"Location: lat {result.location.latitude_deg:.3f}°, lon {result.location.longitude_deg:.3f}° "
        f"({result.location.timezone})"
    )
    lines.append(
        f"Dates: {result.start_date.isoformat()} +{result.days}d, "
        f"buffer {result.dusk_dawn_buffer_hours:.1f}h, horizon avg {result.min_altitude_threshold_deg:.0f}°"
    )
    if result.message:
        lines.append("")
        lines.append(result.message)
        return "\n".join(lines)

    name_w = min(32, max((len(n) for n in result.target_names), default=8))
    for night in result.nights:
        window = night.night_window
        lines.append("")
        header = (
            f"{night.date.isoformat()}  dark {format_clock(window.darkness_start, tz)}-{format_clock(window.darkness_end, tz)} "
            f"({window.dark_hours:.1f}h)  moon {night.moon_phase:.0f}% alt {night.moon_altitude_deg:.0f}°"
        )
        if verbose and moon_tiers is not None:
            header += f"  [{_tier_text(moon_tiers, night.moon_phase)}]"
        lines.append(header)
        lines.append("-" * len(header))
        moon = night.moon_visibility
        lines.append(f"  Moon up: {_span_text(moon, tz)}")
        for tr in night.target_results:
            name = _pad(_truncate(tr.target.name, name_w), name_w)
            overlap = tr.moon_overlap
            line = (
                f"  {name}  {_span_text(tr.visibility, tz):<11}  "
                f"free {overlap.hours_moon_down:4.1f}h  moon {overlap.hours_moon_up:4.1f}h  "
                f"{tr.rating.label}"
            )
            if verbose:
                line += (
                    f"  alt {tr.target_alt_deg:.0f}°  sep {tr.angular_separation_deg:.0f}°  "
                    f"window {format_duration(tr.imaging_window.duration_hours)}"
                )
                if tr.rating_reason:
                    line += f"  ({tr.rating_reason})"
            lines.append(line)
    return "\n".join(lines)


def _tier_text(moon_tiers: MoonTierConfig, moon_phase: float) -> str:
    if moon_phase >= moon_tiers.max_moon_phase:
        return f"above {moon_tiers.max_moon_phase:.0f}% cutoff"
    tier = moon_tiers.tier_for(moon_phase)
    return f"{tier.name}, sep >= {tier.min_separation_deg:.0f}°"


def format_suggestions_text(
    candidates: Sequence[SuggestionCandidate],
    timezone: str = "UTC",
) -> str:
    if not candidates:
        return "No suggestions: the current selection already covers the night."
    tz = resolve_timezone(timezone)
    lines = ["Suggested targets", "-----------------"]
    name_w = min(32, max(len(c.target.name) for c in candidates))
    for idx, c in enumerate(candidates, start=1):
        name = _pad(_truncate(c.target.name, name_w), name_w)
        window = f"{format_clock(c.visible_from, tz)}-{format_clock(c.visible_to, tz)}"
        line = (
            f"{idx:>2}. {name}  {_pad(c.target.type, 18)}  {window}  "
            f"fills {c.gap_coverage_hours:.1f}h  {c.rating.label}"
        )
        if c.available_from is not None:
            line += f"  from {c.available_from.strftime('%b %d')}"
        if c.reason:
            line += f"  ({c.reason})"
        lines.append(line)
    return "\n".join(lines)


def format_scan_text(estimates: Sequence[FirstVisibleEstimate], limit: int | None = None) -> str:
    rows = list(estimates if limit is None else estimates[:limit])
    if not rows:
        return "No targets in catalog."
    name_w = min(32, max(len(e.target.name) for e in rows))
    lines = ["First visibility", "----------------"]
    for e in rows:
        name = _pad(_truncate(e.target.name, name_w), name_w)
        lines.append(
            f"{name}  {deg_to_hms(e.target.ra_deg, precision=0)} {deg_to_dms(e.target.dec_deg)}  "
            f"max {e.max_altitude_deg:5.1f}°  {_status_text(e)}"
        )
    return "\n".join(lines)


def _status_text(e: FirstVisibleEstimate) -> str:
    if e.status is EstimateStatus.VISIBLE_NOW:
        return "up tonight"
    if e.status is EstimateStatus.VISIBLE_IN_DAYS:
        return f"up in ~{e.days_until}d ({e.first_visible_date.isoformat()})"
    if e.status is EstimateStatus.NEVER_CLEARS:
        return f"never clears threshold (peaks {e.peak_date.isoformat()})"
    return "never rises"


def _span_text(span: VisibilitySpan | None, tz: datetime.tzinfo) -> str:
    if span is None:
        return "not visible"
    return f"{format_clock(span.rise_time, tz)}-{format_clock(span.set_time, tz)}"


def _truncate(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return value[: width - 3] + "..."


def _pad(value: str, width: int) -> str:
    if len(value) >= width:
        return value
    return value + (" " * (width - len(value)))
