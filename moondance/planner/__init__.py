from .estimate import EstimateStatus, FirstVisibleEstimate, VisibilityRef, estimate_first_visible, scan_catalog
from .horizon import CardinalDirection, DirectionalAltitudeProfile
from .planner import Planner
from .rating import MoonTier, MoonTierConfig
from .suggestions import SuggestionEngine, find_gaps, overlap_hours
from .types import (
    CalculationResult,
    HorizontalPosition,
    ImagingRating,
    ImagingWindow,
    MoonOverlap,
    NightResult,
    NightWindow,
    ObserverLocation,
    PlannerRequest,
    SuggestionCandidate,
    Target,
    TargetNightResult,
    VisibilitySpan,
)

__all__ = [
    "Planner",
    "PlannerRequest",
    "CalculationResult",
    "NightResult",
    "NightWindow",
    "TargetNightResult",
    "ObserverLocation",
    "Target",
    "HorizontalPosition",
    "VisibilitySpan",
    "ImagingWindow",
    "MoonOverlap",
    "ImagingRating",
    "MoonTier",
    "MoonTierConfig",
    "CardinalDirection",
    "DirectionalAltitudeProfile",
    "SuggestionEngine",
    "SuggestionCandidate",
    "find_gaps",
    "overlap_hours",
    "EstimateStatus",
    "FirstVisibleEstimate",
    "VisibilityRef",
    "estimate_first_visible",
    "scan_catalog",
]
