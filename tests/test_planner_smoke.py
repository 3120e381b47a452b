import dataclasses
import datetime

from moondance.config import Config
from moondance.planner import Planner


def test_planner_smoke():
    # Fixed dates keep this smoke test deterministic: a week of southern
    # winter nights at the configured site, over the whole bundled catalog.
    config = Config(
        {
            "site": {
                "latitude_deg": -34.93,
                "longitude_deg": 138.60,
                "elevation_m": 50,
                "timezone": "Australia/Adelaide",
            },
            "planner": {"horizon_deg": [25, 25, 30, 30, 30, 30, 30, 25]},
        }
    )
    planner = Planner(config)
    request = Planner.default_request(config, targets=planner.catalog)
    request = dataclasses.replace(request, start_date=datetime.date(2024, 7, 1), days=7)

    result = planner.calculate(request)

    assert len(result.nights) == 7
    for night in result.nights:
        window = night.night_window
        assert window.darkness_start < window.darkness_end
        assert 0.0 <= night.moon_phase <= 100.0
        assert len(night.target_results) == len(planner.catalog)
        for tr in night.target_results:
            assert -90.0 <= tr.target_alt_deg <= 90.0
            assert 0.0 <= tr.angular_separation_deg <= 180.0
            if tr.visibility is None:
                assert tr.moon_overlap.total_hours == 0.0
                continue
            assert window.darkness_start <= tr.visibility.rise_time <= tr.visibility.set_time
            assert tr.visibility.set_time <= window.darkness_end
            assert tr.moon_overlap.total_hours <= tr.visibility.duration_hours + 1e-9
