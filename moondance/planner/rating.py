from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .types import ImagingRating

TIER_NAMES = ("New Tier", "Crescent Tier", "Quarter Tier", "Gibbous Tier")
TIER_LOWER_BOUNDS = (0.0, 11.0, 26.0, 51.0)
# The last tier ends at max_moon_phase.
TIER_UPPER_BOUNDS = (10.0, 25.0, 50.0)
DEFAULT_MIN_SEPARATIONS = (10.0, 30.0, 60.0, 90.0)
DEFAULT_MAX_MOON_PHASE = 75.0


@dataclass(frozen=True)
class MoonTier:
    name: str
    lower_bound_pct: float
    min_separation_deg: float


@dataclass(frozen=True)
class MoonTierConfig:
    """Moon tolerance policy: a minimum Moon separation per phase tier.

    A phase belongs to the first tier whose upper bound it does not exceed
    (10, 25 and 50 %), so 10.6 % is already Crescent. The last tier runs up to
    ``max_moon_phase``, at and above which imaging is ruled out whatever the
    separation.
    """

    min_separations: tuple[float, ...] = DEFAULT_MIN_SEPARATIONS
    max_moon_phase: float = DEFAULT_MAX_MOON_PHASE

    def __post_init__(self) -> None:
        separations = tuple(float(v) for v in self.min_separations)
        if len(separations) != len(TIER_NAMES):
            raise ValueError(
                f"Moon tiers need {len(TIER_NAMES)} minimum separations, got {len(separations)}"
            )
        if any(v < 0.0 or v > 180.0 for v in separations):
            raise ValueError("Minimum separations must be within 0..180 degrees")
        max_phase = float(self.max_moon_phase)
        if max_phase < TIER_LOWER_BOUNDS[-1] or max_phase > 100.0:
            raise ValueError(
                f"max_moon_phase must be within {TIER_LOWER_BOUNDS[-1]:.0f}..100, got {max_phase}"
            )
        object.__setattr__(self, "min_separations", separations)
        object.__setattr__(self, "max_moon_phase", max_phase)

    @classmethod
    def default(cls) -> "MoonTierConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "MoonTierConfig":
        if not data:
            return cls()
        separations: Sequence[float] = data.get("min_separations_deg", DEFAULT_MIN_SEPARATIONS)
        max_phase = data.get("max_moon_phase", DEFAULT_MAX_MOON_PHASE)
        return cls(min_separations=tuple(separations), max_moon_phase=max_phase)

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_separations_deg": list(self.min_separations),
            "max_moon_phase": self.max_moon_phase,
        }

    @property
    def tiers(self) -> tuple[MoonTier, ...]:
        return tuple(
            MoonTier(name, lower, sep)
            for name, lower, sep in zip(TIER_NAMES, TIER_LOWER_BOUNDS, self.min_separations)
        )

    def upper_bounds(self) -> tuple[float, ...]:
        return TIER_UPPER_BOUNDS + (self.max_moon_phase,)

    def tier_index(self, moon_phase: float) -> int:
        uppers = self.upper_bounds()
        for i, upper in enumerate(uppers):
            if moon_phase <= upper:
                return i
        return len(uppers) - 1

    def tier_for(self, moon_phase: float) -> MoonTier:
        return self.tiers[self.tier_index(moon_phase)]

    def tier_range_label(self, index: int) -> str:
        lower = int(TIER_LOWER_BOUNDS[index])
        upper = int(self.upper_bounds()[index])
        return f"{lower}–{upper}%"

    def evaluate(self, moon_phase: float, angular_separation: float) -> ImagingRating:
        """Rating for a single Moon separation, ignoring whether the Moon is up."""
        if moon_phase >= self.max_moon_phase:
            return ImagingRating.NO_IMAGING
        index = self.tier_index(moon_phase)
        if angular_separation < self.min_separations[index]:
            return ImagingRating.NO_IMAGING
        return ImagingRating.GOOD if index == 0 else ImagingRating.ALLOWABLE

    def evaluate_moon_aware(
        self,
        moon_phase: float,
        hours_moon_down: float,
        hours_moon_up: float,
        avg_separation_moon_up: float | None,
    ) -> ImagingRating:
        rating, _ = self.evaluate_moon_aware_with_reason(
            moon_phase, hours_moon_down, hours_moon_up, avg_separation_moon_up
        )
        return rating

    def evaluate_moon_aware_with_reason(
        self,
        moon_phase: float,
        hours_moon_down: float,
        hours_moon_up: float,
        avg_separation_moon_up: float | None,
    ) -> tuple[ImagingRating, str]:
        if moon_phase >= self.max_moon_phase:
            return ImagingRating.NO_IMAGING, f"Moon {moon_phase:.0f}% exceeds {self.max_moon_phase:.0f}% limit"
        if hours_moon_down <= 0 and hours_moon_up <= 0:
            return ImagingRating.NO_IMAGING, "Target not visible"
        if hours_moon_up <= 0:
            return ImagingRating.GOOD, f"Moon below horizon ({hours_moon_down:.1f}h moon-free)"

        sep = avg_separation_moon_up if avg_separation_moon_up is not None else 0.0
        moon_up = self.evaluate(moon_phase, sep)

        if hours_moon_down <= 0:
            if moon_up is ImagingRating.GOOD:
                return moon_up, f"Sep {sep:.0f}° OK at {moon_phase:.0f}% moon"
            if moon_up is ImagingRating.ALLOWABLE:
                return moon_up, f"Sep {sep:.0f}° meets settings at {moon_phase:.0f}% moon"
            return moon_up, f"Sep {sep:.0f}° doesn't meet settings at {moon_phase:.0f}% moon"

        if moon_up is ImagingRating.GOOD:
            return moon_up, f"{hours_moon_down:.1f}h moon-free + sep {sep:.0f}° OK"
        if moon_up is ImagingRating.ALLOWABLE:
            return (
                moon_up,
                f"{hours_moon_down:.1f}h moon-free + {hours_moon_up:.1f}h allowable at {moon_phase:.0f}% moon",
            )
        return (
            ImagingRating.MIXED,
            f"{hours_moon_down:.1f}h moon-free, {hours_moon_up:.1f}h at {moon_phase:.0f}% moon",
        )
