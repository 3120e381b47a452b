import datetime
import logging
from typing import Sequence

from .estimate import DEFAULT_NIGHTTIME_MARGIN_DEG, FirstVisibleEstimate, VisibilityRef, scan_catalog
from .horizon import DirectionalAltitudeProfile
from .night import build_night, resolve_timezone
from .providers import get_catalog_providers
from .rating import MoonTierConfig
from .suggestions import SuggestionEngine
from .types import (
    CalculationResult,
    NightResult,
    ObserverLocation,
    PlannerRequest,
    SuggestionCandidate,
    Target,
)

logger = logging.getLogger(__name__)

DEFAULT_OBSERVATION_HOUR = 22
DEFAULT_BUFFER_HOURS = 1.0
DEFAULT_IMAGING_ALT_DEG = 30.0
MAX_DAYS = 366


class Planner:
    def __init__(self, config, catalog: Sequence[Target] | None = None):
        self._config = config
        if catalog is None:
            catalog = self._load_targets()
        self._catalog = tuple(catalog)
        self._suggestions = SuggestionEngine(self._catalog)

    @property
    def catalog(self) -> tuple[Target, ...]:
        return self._catalog

    def find_target(self, target_id: str) -> Target | None:
        key = target_id.strip().lower()
        for target in self._catalog:
            if target.id.lower() == key or target.name.lower() == key:
                return target
        return None

    def calculate(self, request: PlannerRequest) -> CalculationResult:
        _validate_request(request)
        tz = resolve_timezone(request.location.timezone)
        horizon = request.horizon or DirectionalAltitudeProfile()
        moon_tiers = request.moon_tiers or MoonTierConfig.default()

        nights: list[NightResult] = []
        for offset in range(request.days):
            date = request.start_date + datetime.timedelta(days=offset)
            night = build_night(
                date,
                request.location,
                request.targets,
                horizon,
                request.dusk_dawn_buffer_hours,
                request.observation_hour,
                moon_tiers,
                request.imaging_altitude_deg,
                tz=tz,
            )
            if night is not None:
                nights.append(night)

        message = None
        if not nights:
            message = _build_no_night_message(request)
        return CalculationResult(
            location=request.location,
            start_date=request.start_date,
            days=request.days,
            dusk_dawn_buffer_hours=request.dusk_dawn_buffer_hours,
            min_altitude_threshold_deg=horizon.mean,
            target_names=tuple(target.name for target in request.targets),
            nights=tuple(nights),
            message=message,
        )

    def suggest(
        self,
        request: PlannerRequest,
        selected: Sequence[Target] | None = None,
    ) -> list[SuggestionCandidate]:
        _validate_request(request)
        return self._suggestions.suggest(
            selected=request.targets if selected is None else selected,
            location=request.location,
            start_date=request.start_date,
            date_range_days=request.days,
            horizon=request.horizon or DirectionalAltitudeProfile(),
            moon_tiers=request.moon_tiers or MoonTierConfig.default(),
            buffer_hours=request.dusk_dawn_buffer_hours,
            observation_hour=request.observation_hour,
        )

    def scan(
        self,
        location: ObserverLocation,
        date: datetime.date,
        min_altitude_deg: float = DEFAULT_IMAGING_ALT_DEG,
        nighttime_margin_deg: float = DEFAULT_NIGHTTIME_MARGIN_DEG,
    ) -> list[FirstVisibleEstimate]:
        _validate_location(location)
        ref = VisibilityRef.build(location, date)
        return scan_catalog(ref, self._catalog, min_altitude_deg, nighttime_margin_deg)

    @staticmethod
    def default_request(config, targets: Sequence[Target] = ()) -> PlannerRequest:
        location = config.site_location()
        if location is None:
            raise ValueError("Observer location is required (lat/lon)")
        return PlannerRequest(
            location=location,
            targets=tuple(targets),
            start_date=datetime.date.today(),
            days=1,
            observation_hour=config.planner_observation_hour,
            horizon=config.horizon_profile(),
            dusk_dawn_buffer_hours=config.planner_dusk_dawn_buffer_hours,
            moon_tiers=config.moon_tiers(),
            imaging_altitude_deg=config.planner_imaging_altitude_deg,
        )

    def _load_targets(self) -> list[Target]:
        targets: list[Target] = []
        for provider in get_catalog_providers(self._config):
            targets.extend(provider.list_targets())
        return targets


def _validate_location(location: ObserverLocation) -> None:
    if location.latitude_deg is None or location.longitude_deg is None:
        raise ValueError("Observer location is required (lat/lon)")
    if not -90.0 <= location.latitude_deg <= 90.0:
        raise ValueError(f"Latitude must be within -90..90, got {location.latitude_deg}")
    if not -180.0 <= location.longitude_deg <= 180.0:
        raise ValueError(f"Longitude must be within -180..180, got {location.longitude_deg}")
    resolve_timezone(location.timezone)


def _validate_request(request: PlannerRequest) -> None:
    _validate_location(request.location)
    if request.days < 1:
        raise ValueError("Days must be at least 1")
    if request.days > MAX_DAYS:
        raise ValueError(f"Days must be at most {MAX_DAYS}")
    if not 0 <= request.observation_hour <= 23:
        raise ValueError("Observation hour must be within 0..23")
    if request.dusk_dawn_buffer_hours < 0:
        raise ValueError("Dusk/dawn buffer must not be negative")
    if not 0.0 <= request.imaging_altitude_deg <= 90.0:
        raise ValueError("Imaging altitude must be within 0..90")


def _build_no_night_message(request: PlannerRequest) -> str:
    parts = ["No usable dark nights in this range."]
    if abs(request.location.latitude_deg) > 60.0:
        parts.append("The Sun may not set far enough at this latitude and season.")
    if request.dusk_dawn_buffer_hours > 0:
        parts.append(f"Try a dusk/dawn buffer below {request.dusk_dawn_buffer_hours:.1f}h.")
    return " ".join(parts)
