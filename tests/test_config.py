from pathlib import Path

import pytest

from moondance.config import Config, load_config
from moondance.errors import ConfigError

SAMPLE = """
[site]
name = "Backyard"
latitude_deg = 33.749
longitude_deg = -84.388
elevation_m = 320
timezone = "America/New_York"

[planner]
observation_hour = 21
dusk_dawn_buffer_hours = 1.5
horizon_deg = [20, 25, 30, 35, 40, 35, 30, 25]
imaging_altitude_deg = 35

[moon]
min_separations_deg = [15, 35, 65, 95]
max_moon_phase = 80

[catalog]
custom_targets = "~/moondance/custom.csv"
"""


def test_load_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SAMPLE, encoding="utf-8")
    config = load_config(path)

    location = config.site_location()
    assert location.name == "Backyard"
    assert location.latitude_deg == 33.749
    assert location.elevation_m == 320.0
    assert location.timezone == "America/New_York"
    assert config.planner_observation_hour == 21
    assert config.planner_dusk_dawn_buffer_hours == 1.5
    assert config.planner_imaging_altitude_deg == 35
    assert config.horizon_profile().values == (20.0, 25.0, 30.0, 35.0, 40.0, 35.0, 30.0, 25.0)
    assert config.moon_tiers().min_separations == (15.0, 35.0, 65.0, 95.0)
    assert config.moon_tiers().max_moon_phase == 80.0
    assert config.catalog_custom_targets == Path("~/moondance/custom.csv").expanduser()


def test_defaults():
    config = Config({})
    assert config.site_location() is None
    assert config.site_timezone == "UTC"
    assert config.planner_observation_hour == 22
    assert config.planner_dusk_dawn_buffer_hours == 1.0
    assert config.horizon_profile().values == (30.0,) * 8
    assert config.catalog_path is None
    assert config.catalog_custom_targets is None


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.toml")


def test_missing_default_file(tmp_path, monkeypatch):
    monkeypatch.setattr("moondance.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.toml")
    assert load_config().site_location() is None


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[site\nlatitude_deg = ", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize(
    "data, method",
    [
        ({"planner": {"horizon_deg": [30, 30]}}, "horizon_profile"),
        ({"planner": {"horizon_deg": -5}}, "horizon_profile"),
        ({"moon": {"max_moon_phase": 20}}, "moon_tiers"),
        ({"moon": {"min_separations_deg": [10, 20, 30]}}, "moon_tiers"),
        ({"site": {"latitude_deg": "north", "longitude_deg": 0}}, "site_location"),
        ({"site": "nowhere"}, "site_location"),
    ],
)
def test_invalid_values_raise_config_error(data, method):
    with pytest.raises(ConfigError):
        getattr(Config(data), method)()
