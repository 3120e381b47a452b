from dataclasses import dataclass, field
import datetime
import enum
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .horizon import DirectionalAltitudeProfile
    from .rating import MoonTierConfig


@dataclass(frozen=True)
class ObserverLocation:
    latitude_deg: float
    longitude_deg: float
    elevation_m: float | None = None
    timezone: str = "UTC"
    name: str | None = None


@dataclass(frozen=True)
class Target:
    id: str
    name: str
    ra_deg: float
    dec_deg: float
    type: str = "Custom"
    mag: float | None = None
    surface_brightness: float | None = None
    size: str | None = None

    def max_altitude_at(self, latitude_deg: float) -> float:
        return 90.0 - abs(latitude_deg - self.dec_deg)

    @property
    def brightness_label(self) -> str:
        if self.mag is not None:
            return f"Mag {self.mag:.1f}"
        if self.surface_brightness is not None:
            return f"SB {self.surface_brightness:.1f}"
        return "-"


@dataclass(frozen=True)
class HorizontalPosition:
    altitude_deg: float
    azimuth_deg: float


@dataclass(frozen=True)
class NightWindow:
    sunset_time: datetime.datetime
    sunrise_time: datetime.datetime
    darkness_start: datetime.datetime  # sunset + dusk buffer
    darkness_end: datetime.datetime  # sunrise - dawn buffer
    dark_hours: float
    midnight: datetime.datetime  # 00:00 local of the following calendar day

    @property
    def is_degenerate(self) -> bool:
        return self.darkness_end <= self.darkness_start


@dataclass(frozen=True)
class VisibilitySpan:
    rise_time: datetime.datetime
    set_time: datetime.datetime
    rise_azimuth_deg: float
    set_azimuth_deg: float
    rise_min_alt_deg: float
    set_min_alt_deg: float
    already_up_at_start: bool = False
    still_up_at_end: bool = False
    # Offsets relative to darkness start, used for bar positioning.
    rise_offset_hours: float = 0.0
    set_offset_hours: float = 0.0

    @property
    def duration_hours(self) -> float:
        return (self.set_time - self.rise_time).total_seconds() / 3600.0

    def contains(self, t: datetime.datetime) -> bool:
        return self.rise_time <= t < self.set_time


@dataclass(frozen=True)
class ImagingWindow:
    duration_hours: float
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None


@dataclass(frozen=True)
class MoonOverlap:
    hours_moon_down: float
    hours_moon_up: float
    avg_separation_moon_up_deg: float | None = None

    @property
    def total_hours(self) -> float:
        return self.hours_moon_down + self.hours_moon_up


@dataclass(frozen=True)
class MoonAltitudeSample:
    time: datetime.datetime
    offset_hours: float
    altitude_deg: float


class ImagingRating(enum.Enum):
    GOOD = "good"
    ALLOWABLE = "allowable"
    MIXED = "mixed"
    NO_IMAGING = "no_imaging"

    @property
    def label(self) -> str:
        return _RATING_LABELS[self]

    @property
    def order(self) -> int:
        return _RATING_ORDER[self]


_RATING_LABELS = {
    ImagingRating.GOOD: "Good",
    ImagingRating.ALLOWABLE: "Allowable",
    ImagingRating.MIXED: "Mixed",
    ImagingRating.NO_IMAGING: "No Imaging",
}

_RATING_ORDER = {
    ImagingRating.GOOD: 0,
    ImagingRating.ALLOWABLE: 1,
    ImagingRating.MIXED: 2,
    ImagingRating.NO_IMAGING: 3,
}


@dataclass(frozen=True)
class TargetNightResult:
    target: Target
    target_position: HorizontalPosition
    angular_separation_deg: float
    imaging_window: ImagingWindow
    visibility: Optional[VisibilitySpan]
    moon_overlap: MoonOverlap
    rating: ImagingRating
    rating_reason: str = ""

    @property
    def target_alt_deg(self) -> float:
        return self.target_position.altitude_deg


@dataclass(frozen=True)
class NightResult:
    date: datetime.date
    moon_altitude_deg: float
    moon_phase: float
    night_window: NightWindow
    moon_visibility: Optional[VisibilitySpan]
    moon_altitude_profile: Sequence[MoonAltitudeSample]
    target_results: Sequence[TargetNightResult]


@dataclass(frozen=True)
class PlannerRequest:
    location: ObserverLocation
    targets: Sequence[Target]
    start_date: datetime.date
    days: int = 1
    observation_hour: int = 22
    horizon: "DirectionalAltitudeProfile | None" = None
    dusk_dawn_buffer_hours: float = 1.0
    moon_tiers: "MoonTierConfig | None" = None
    imaging_altitude_deg: float = 30.0


@dataclass(frozen=True)
class CalculationResult:
    location: ObserverLocation
    start_date: datetime.date
    days: int
    dusk_dawn_buffer_hours: float
    min_altitude_threshold_deg: float
    target_names: Sequence[str]
    nights: Sequence[NightResult] = field(default_factory=tuple)
    message: Optional[str] = None


@dataclass(frozen=True)
class SuggestionCandidate:
    target: Target
    visibility_hours: float
    gap_coverage_hours: float
    rating: ImagingRating
    reason: str
    visible_from: datetime.datetime
    visible_to: datetime.datetime
    available_from: datetime.date | None = None

    @property
    def available_now(self) -> bool:
        return self.available_from is None
