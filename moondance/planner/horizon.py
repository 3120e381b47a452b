from dataclasses import dataclass
import enum
from typing import Iterable

SECTOR_WIDTH_DEG = 45.0
DEFAULT_MIN_ALTITUDE_DEG = 30.0


class CardinalDirection(enum.IntEnum):
    N = 0
    NE = 1
    E = 2
    SE = 3
    S = 4
    SW = 5
    W = 6
    NW = 7

    @property
    def azimuth_deg(self) -> float:
        return self.value * SECTOR_WIDTH_DEG


@dataclass(frozen=True)
class DirectionalAltitudeProfile:
    """Minimum usable altitude towards N, NE, E, SE, S, SW, W, NW.

    Between two compass points the threshold is interpolated linearly, and the
    NW→N sector wraps around so the profile is continuous over 360°.
    """

    values: tuple[float, ...] = (DEFAULT_MIN_ALTITUDE_DEG,) * 8

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in self.values)
        if len(values) != len(CardinalDirection):
            raise ValueError(
                f"Horizon profile needs {len(CardinalDirection)} values (N..NW), got {len(values)}"
            )
        if any(v < 0.0 or v > 90.0 for v in values):
            raise ValueError("Horizon altitudes must be within 0..90 degrees")
        object.__setattr__(self, "values", values)

    @classmethod
    def uniform(cls, altitude_deg: float) -> "DirectionalAltitudeProfile":
        return cls(values=(altitude_deg,) * len(CardinalDirection))

    @classmethod
    def from_sequence(cls, values: Iterable[float] | None) -> "DirectionalAltitudeProfile":
        if values is None:
            return cls()
        return cls(values=tuple(values))

    def minimum_altitude(self, azimuth_deg: float) -> float:
        az = azimuth_deg % 360.0
        sector = az / SECTOR_WIDTH_DEG
        lower = int(sector) % 8
        upper = (lower + 1) % 8
        blend = sector - int(sector)
        return self.values[lower] * (1.0 - blend) + self.values[upper] * blend

    def for_direction(self, direction: CardinalDirection) -> float:
        return self.values[direction]

    @property
    def lowest(self) -> float:
        return min(self.values)

    @property
    def mean(self) -> float:
        return sum(self.values) / len(self.values)

    def as_list(self) -> list[float]:
        return list(self.values)

