import pytest

from moondance.config import Config
from moondance.errors import CatalogError
from moondance.planner.providers import (
    BundledCatalogProvider,
    CustomTargetsProvider,
    get_catalog_providers,
)


def test_bundled_catalog_loads():
    targets = BundledCatalogProvider().list_targets()
    by_id = {t.id: t for t in targets}

    assert len(targets) >= 50
    assert len(by_id) == len(targets)
    m42 = by_id["m42"]
    assert m42.ra_deg == pytest.approx(83.822)
    assert m42.dec_deg == pytest.approx(-5.391)
    assert all(0.0 <= t.ra_deg <= 360.0 and -90.0 <= t.dec_deg <= 90.0 for t in targets)


def test_bundled_catalog_surface_brightness_only():
    by_id = {t.id: t for t in BundledCatalogProvider().list_targets()}
    horsehead = by_id["ic434"]
    assert horsehead.mag is None
    assert horsehead.surface_brightness is not None
    assert horsehead.brightness_label.startswith("SB ")


def test_catalog_path_override(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(
        "id,name,type,ra_deg,dec_deg,mag,surface_brightness,size\n"
        "t1,Test One,Galaxy,10.0,20.0,9.5,,5'\n",
        encoding="utf-8",
    )
    targets = BundledCatalogProvider(catalog_path=path).list_targets()
    assert [t.name for t in targets] == ["Test One"]
    assert targets[0].size == "5'"


def test_catalog_missing_file(tmp_path):
    with pytest.raises(CatalogError):
        BundledCatalogProvider(catalog_path=tmp_path / "missing.csv").list_targets()


def test_catalog_bad_row_reports_line(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(
        "id,name,type,ra_deg,dec_deg,mag,surface_brightness,size\n"
        "t1,Test One,Galaxy,10.0,20.0,,,\n"
        "t2,Test Two,Galaxy,400.0,20.0,,,\n",
        encoding="utf-8",
    )
    with pytest.raises(CatalogError, match=r"catalog\.csv:3"):
        BundledCatalogProvider(catalog_path=path).list_targets()


def test_providers_from_config(tmp_path):
    assert [p.name for p in get_catalog_providers(Config({}))] == ["bundled"]

    custom = tmp_path / "mine.csv"
    providers = get_catalog_providers(Config({"catalog": {"custom_targets": str(custom)}}))
    assert [p.name for p in providers] == ["bundled", "custom"]
    assert isinstance(providers[1], CustomTargetsProvider)
    assert providers[1].path == custom
