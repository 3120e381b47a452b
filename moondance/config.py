from pathlib import Path
import tomllib

from moondance.errors import ConfigError
from moondance.planner.horizon import DirectionalAltitudeProfile
from moondance.planner.rating import MoonTierConfig
from moondance.planner.types import ObserverLocation

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "moondance" / "config.toml"


class Config:
    def __init__(self, data: dict):
        self._data = data

    def _section(self, name: str) -> dict:
        section = self._data.get(name, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{name}] must be a table")
        return section

    @property
    def site_name(self):
        return self._section("site").get("name", None)

    @property
    def site_latitude_deg(self):
        return self._section("site").get("latitude_deg", None)

    @property
    def site_longitude_deg(self):
        return self._section("site").get("longitude_deg", None)

    @property
    def site_elevation_m(self):
        return self._section("site").get("elevation_m", None)

    @property
    def site_timezone(self):
        return self._section("site").get("timezone", "UTC")

    @property
    def planner_observation_hour(self):
        return self._section("planner").get("observation_hour", 22)

    @property
    def planner_dusk_dawn_buffer_hours(self):
        return self._section("planner").get("dusk_dawn_buffer_hours", 1.0)

    @property
    def planner_horizon_deg(self):
        return self._section("planner").get("horizon_deg", None)

    @property
    def planner_imaging_altitude_deg(self):
        return self._section("planner").get("imaging_altitude_deg", 30.0)

    @property
    def catalog_path(self):
        path = self._section("catalog").get("path", None)
        if not path:
            return None
        return Path(path).expanduser()

    @property
    def catalog_custom_targets(self):
        path = self._section("catalog").get("custom_targets", None)
        if not path:
            return None
        return Path(path).expanduser()

    def site_location(self) -> ObserverLocation | None:
        lat = self.site_latitude_deg
        lon = self.site_longitude_deg
        if lat is None or lon is None:
            return None
        try:
            return ObserverLocation(
                latitude_deg=float(lat),
                longitude_deg=float(lon),
                elevation_m=float(self.site_elevation_m) if self.site_elevation_m is not None else None,
                timezone=str(self.site_timezone),
                name=self.site_name,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid [site] values: {exc}") from exc

    def horizon_profile(self) -> DirectionalAltitudeProfile:
        values = self.planner_horizon_deg
        try:
            if isinstance(values, (int, float)):
                return DirectionalAltitudeProfile.uniform(values)
            return DirectionalAltitudeProfile.from_sequence(values)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid planner.horizon_deg: {exc}") from exc

    def moon_tiers(self) -> MoonTierConfig:
        try:
            return MoonTierConfig.from_dict(self._section("moon"))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid [moon] settings: {exc}") from exc


def load_config(path: Path | None = None) -> Config:
    explicit_path = path
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit_path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        # Return default config if default file missing
        return Config({})

    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    return Config(data)
