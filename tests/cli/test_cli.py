import json

import pytest

from moondance.cli.main import build_parser, main

ATLANTA_ARGS = ["--lat", "33.749", "--lon", "-84.388", "--tz", "America/New_York", "--start", "2024-12-21"]

SITE_CONFIG = """
[site]
latitude_deg = 33.749
longitude_deg = -84.388
timezone = "America/New_York"
"""


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setattr("moondance.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.toml")


@pytest.fixture
def site_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(SITE_CONFIG, encoding="utf-8")
    return str(path)


def _json_out(capsys):
    return json.loads(capsys.readouterr().out)


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "Moondance 0.1.0"


def test_parser_defaults():
    args = build_parser().parse_args(["plan", "--target", "m42", "--target", "m31"])
    assert args.target == ["m42", "m31"]
    assert args.days == 1
    assert args.hour is None


def test_plan_json(capsys):
    assert main(["plan", *ATLANTA_ARGS, "--target", "m42", "--json"]) == 0
    payload = _json_out(capsys)

    assert payload["ok"] is True
    assert payload["command"] == "plan"
    assert payload["error"] is None
    nights = payload["data"]["nights"]
    assert len(nights) == 1
    assert nights[0]["target_results"][0]["target"]["id"] == "m42"


def test_plan_csv(capsys):
    assert main(["plan", *ATLANTA_ARGS, "--days", "2", "--target", "m42", "--csv"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("Date,Target,MoonPhase%")
    assert len(lines) == 3


def test_plan_text_with_ad_hoc_target(capsys):
    code = main(["plan", *ATLANTA_ARGS, "--ra", "83.82", "--dec", "-5.39", "--name", "My Orion", "--verbose"])
    assert code == 0
    out = capsys.readouterr().out
    assert "My Orion" in out
    assert "sep" in out


def test_plan_uses_site_from_config(capsys, site_config):
    assert main(["plan", "--config", site_config, "--start", "2024-12-21", "--target", "m42", "--json"]) == 0
    assert _json_out(capsys)["data"]["location"]["latitude_deg"] == 33.749


def test_plan_without_targets(capsys):
    assert main(["plan", *ATLANTA_ARGS]) == 2
    assert "At least one target" in capsys.readouterr().err


def test_plan_unknown_target_json(capsys):
    assert main(["plan", *ATLANTA_ARGS, "--target", "nope", "--json"]) == 2
    payload = _json_out(capsys)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "invalid_input"
    assert "nope" in payload["error"]["message"]


@pytest.mark.parametrize(
    "extra",
    [
        ["--start", "21/12/2024"],
        ["--tz", "Nowhere/Land"],
        ["--days", "0"],
    ],
)
def test_plan_invalid_input(capsys, extra):
    assert main(["plan", *ATLANTA_ARGS, "--target", "m42", *extra]) == 2


def test_plan_needs_both_coordinates(capsys):
    assert main(["plan", "--lat", "33.7", "--target", "m42"]) == 2
    assert "latitude and longitude" in capsys.readouterr().err


def test_suggest_json(capsys):
    assert main(["suggest", *ATLANTA_ARGS, "--selected", "m42", "--json"]) == 0
    payload = _json_out(capsys)
    assert payload["ok"] is True
    suggestions = payload["data"]["suggestions"]
    assert isinstance(suggestions, list)
    assert all(s["target"]["id"] != "m42" for s in suggestions)


def test_scan_json_limit(capsys):
    assert main(["scan", *ATLANTA_ARGS, "--limit", "5", "--json"]) == 0
    estimates = _json_out(capsys)["data"]["estimates"]
    assert len(estimates) == 5
    assert estimates[0]["status"] == "visible_now"


def test_targets_filter_by_type(capsys):
    assert main(["targets", "--type", "galaxy"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines
    assert all("Galaxy" in line for line in lines)


def test_targets_csv_export(capsys):
    assert main(["targets", "--csv"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Name,RA,Dec,Magnitude,Size"
    assert len(lines) > 50


def test_doctor_without_site(capsys):
    assert main(["doctor", "--json"]) == 1
    payload = _json_out(capsys)
    assert payload["ok"] is False
    assert payload["data"]["checks"]["site"]["ok"] is False
    assert payload["data"]["checks"]["catalog (bundled)"]["ok"] is True


def test_doctor_with_site(capsys, site_config):
    assert main(["doctor", "--config", site_config]) == 0
    assert "Ready to plan." in capsys.readouterr().out


def test_doctor_reports_horizon_and_tiers(capsys, site_config):
    assert main(["doctor", "--config", site_config]) == 0
    out = capsys.readouterr().out
    assert "horizon min 30°, moon cutoff 75%" in out
    assert "Horizon: N 30°  NE 30°" in out
    assert "Crescent Tier  11–25%" in out
    assert "No imaging at 75% and above" in out


def test_doctor_json_includes_settings(capsys, site_config):
    assert main(["doctor", "--config", site_config, "--json"]) == 0
    data = _json_out(capsys)["data"]
    assert data["horizon_deg"] == [30.0] * 8
    assert data["moon_tiers"] == {"min_separations_deg": [10.0, 30.0, 60.0, 90.0], "max_moon_phase": 75.0}


def test_targets_csv_ends_with_single_newline(capsys):
    assert main(["targets", "--type", "galaxy", "--csv"]) == 0
    out = capsys.readouterr().out
    assert out.endswith("\n")
    assert not out.endswith("\n\n")
