import datetime
import functools
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .events import find_moon_visibility, find_target_visibility
from .horizon import DirectionalAltitudeProfile
from .night import (
    analyze_moon_overlap,
    build_night_window,
    moon_phase_at,
    night_anchors,
    resolve_timezone,
)
from .rating import MoonTierConfig
from .types import (
    ImagingRating,
    ObserverLocation,
    SuggestionCandidate,
    Target,
    VisibilitySpan,
)

from moondance.util.format import round_tenths

logger = logging.getLogger(__name__)

MIN_GAP_HOURS = 0.5
COVERAGE_TIE_HOURS = 0.5
MAX_SUGGESTIONS = 12
SHORT_RANGE_DAYS = 30
EDGE_SAMPLE_OFFSET_DAYS = 10

Interval = tuple[datetime.datetime, datetime.datetime]


@dataclass(frozen=True)
class _NightContext:
    date: datetime.date
    darkness_start: datetime.datetime
    darkness_end: datetime.datetime
    moon_phase: float
    moon_span: VisibilitySpan | None
    gaps: tuple[Interval, ...]

    @property
    def total_gap_hours(self) -> float:
        return sum((end - start).total_seconds() for start, end in self.gaps) / 3600.0


@dataclass
class _BestNight:
    context: _NightContext
    span: VisibilitySpan
    gap_hours: float
    rating: ImagingRating
    reason: str


def sample_offsets(date_range_days: int) -> list[int]:
    if date_range_days <= SHORT_RANGE_DAYS:
        return [date_range_days // 2]
    middle = date_range_days // 2
    return [
        EDGE_SAMPLE_OFFSET_DAYS,
        middle,
        max(date_range_days - EDGE_SAMPLE_OFFSET_DAYS, middle + 1),
    ]


def find_gaps(
    start: datetime.datetime,
    end: datetime.datetime,
    spans: Iterable[VisibilitySpan],
) -> list[Interval]:
    """Parts of [start, end] not covered by any span."""
    merged: list[list[datetime.datetime]] = []
    for span in sorted(spans, key=lambda s: s.rise_time):
        if merged and span.rise_time <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], span.set_time)
        else:
            merged.append([span.rise_time, span.set_time])

    gaps: list[Interval] = []
    current = start
    for covered_start, covered_end in merged:
        gap_end = min(covered_start, end)
        if gap_end > current:
            gaps.append((current, gap_end))
        current = max(current, covered_end)
    if current < end:
        gaps.append((current, end))
    return gaps


def overlap_hours(span: VisibilitySpan, gaps: Iterable[Interval]) -> float:
    total = 0.0
    for gap_start, gap_end in gaps:
        overlap_start = max(span.rise_time, gap_start)
        overlap_end = min(span.set_time, gap_end)
        if overlap_end > overlap_start:
            total += (overlap_end - overlap_start).total_seconds()
    return round_tenths(total / 3600.0)


def _compare_candidates(a: SuggestionCandidate, b: SuggestionCandidate) -> int:
    if a.available_now != b.available_now:
        return -1 if a.available_now else 1
    if abs(a.gap_coverage_hours - b.gap_coverage_hours) > COVERAGE_TIE_HOURS:
        return -1 if a.gap_coverage_hours > b.gap_coverage_hours else 1
    return a.rating.order - b.rating.order


class SuggestionEngine:
    """Ranks catalog targets by how much uncovered darkness they would fill."""

    def __init__(self, catalog: Sequence[Target]) -> None:
        self._catalog = tuple(catalog)

    @property
    def catalog(self) -> tuple[Target, ...]:
        return self._catalog

    def suggest(
        self,
        selected: Sequence[Target],
        location: ObserverLocation,
        start_date: datetime.date,
        date_range_days: int,
        horizon: DirectionalAltitudeProfile,
        moon_tiers: MoonTierConfig,
        buffer_hours: float,
        observation_hour: int = 22,
    ) -> list[SuggestionCandidate]:
        tz = resolve_timezone(location.timezone)
        contexts = []
        for offset in sample_offsets(date_range_days):
            date = start_date + datetime.timedelta(days=offset)
            ctx = self._night_context(date, tz, selected, location, horizon, buffer_hours, observation_hour)
            if ctx is not None:
                contexts.append(ctx)

        usable = [ctx for ctx in contexts if ctx.total_gap_hours >= MIN_GAP_HOURS]
        if not usable:
            logger.debug("No sampled night has %.1fh of uncovered darkness", MIN_GAP_HOURS)
            return []

        selected_ids = {target.id for target in selected}
        lat = location.latitude_deg
        pool = [
            target
            for target in self._catalog
            if target.id not in selected_ids and target.max_altitude_at(lat) >= 0.0
        ]
        logger.debug("Scoring %d candidates over %d sampled nights", len(pool), len(usable))

        first_date = contexts[0].date
        candidates = []
        for target in pool:
            candidate = self._score(target, usable, location, horizon, moon_tiers, first_date)
            if candidate is not None:
                candidates.append(candidate)

        candidates.sort(key=functools.cmp_to_key(_compare_candidates))
        return candidates[:MAX_SUGGESTIONS]

    def _night_context(
        self,
        date: datetime.date,
        tz: datetime.tzinfo,
        selected: Sequence[Target],
        location: ObserverLocation,
        horizon: DirectionalAltitudeProfile,
        buffer_hours: float,
        observation_hour: int,
    ) -> _NightContext | None:
        anchors = night_anchors(date, tz, observation_hour)
        window = build_night_window(anchors, location, buffer_hours)
        if window is None:
            return None
        lat, lon = location.latitude_deg, location.longitude_deg
        spans = []
        for target in selected:
            span = find_target_visibility(
                target.ra_deg, target.dec_deg, lat, lon, window.darkness_start, window.darkness_end, horizon
            )
            if span is not None:
                spans.append(span)
        return _NightContext(
            date=date,
            darkness_start=window.darkness_start,
            darkness_end=window.darkness_end,
            moon_phase=moon_phase_at(anchors.observation_time),
            moon_span=find_moon_visibility(lat, lon, window.darkness_start, window.darkness_end),
            gaps=tuple(find_gaps(window.darkness_start, window.darkness_end, spans)),
        )

    def _score(
        self,
        target: Target,
        contexts: Sequence[_NightContext],
        location: ObserverLocation,
        horizon: DirectionalAltitudeProfile,
        moon_tiers: MoonTierConfig,
        first_date: datetime.date,
    ) -> SuggestionCandidate | None:
        lat, lon = location.latitude_deg, location.longitude_deg
        best: _BestNight | None = None
        first_available: datetime.date | None = None

        for ctx in contexts:
            span = find_target_visibility(
                target.ra_deg, target.dec_deg, lat, lon, ctx.darkness_start, ctx.darkness_end, horizon
            )
            if span is None:
                continue
            gap_hours = overlap_hours(span, ctx.gaps)
            if gap_hours < MIN_GAP_HOURS:
                continue
            if first_available is None:
                first_available = ctx.date

            overlap = analyze_moon_overlap(target, span, ctx.moon_span)
            rating, reason = moon_tiers.evaluate_moon_aware_with_reason(
                ctx.moon_phase,
                overlap.hours_moon_down,
                overlap.hours_moon_up,
                overlap.avg_separation_moon_up_deg,
            )
            if rating is ImagingRating.NO_IMAGING:
                continue
            if (
                best is None
                or gap_hours > best.gap_hours
                or (gap_hours == best.gap_hours and rating.order < best.rating.order)
            ):
                best = _BestNight(ctx, span, gap_hours, rating, reason)

        if best is None:
            return None
        return SuggestionCandidate(
            target=target,
            visibility_hours=best.span.duration_hours,
            gap_coverage_hours=best.gap_hours,
            rating=best.rating,
            reason=best.reason,
            visible_from=best.span.rise_time,
            visible_to=best.span.set_time,
            available_from=first_available if first_available != first_date else None,
        )
