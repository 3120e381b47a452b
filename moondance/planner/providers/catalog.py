from dataclasses import dataclass
import csv
from pathlib import Path

from .base import CatalogProvider
from moondance.errors import CatalogError
from moondance.planner.types import Target


@dataclass
class BundledCatalogProvider(CatalogProvider):
    name: str = "bundled"
    catalog_path: Path | None = None

    def _resolve_path(self) -> Path:
        if self.catalog_path is not None:
            return self.catalog_path
        package_root = Path(__file__).resolve().parents[2]
        return package_root / "data" / "catalog.csv"

    def list_targets(self):
        path = self._resolve_path()
        if not path.exists():
            raise CatalogError(f"Catalog not found: {path}")
        targets: list[Target] = []
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            for line_no, row in enumerate(reader, start=2):
                try:
                    targets.append(_target_from_row(row))
                except (KeyError, ValueError) as exc:
                    raise CatalogError(f"{path}:{line_no}: invalid catalog row ({exc})") from exc
        return targets


def _target_from_row(row: dict) -> Target:
    ra = float(row["ra_deg"])
    dec = float(row["dec_deg"])
    if not 0.0 <= ra <= 360.0 or not -90.0 <= dec <= 90.0:
        raise ValueError(f"RA/Dec out of range: {ra}, {dec}")
    return Target(
        id=row["id"].strip(),
        name=row["name"].strip(),
        type=(row.get("type") or "").strip() or "Unknown",
        ra_deg=ra,
        dec_deg=dec,
        mag=_parse_float(row.get("mag")),
        surface_brightness=_parse_float(row.get("surface_brightness")),
        size=_parse_optional(row.get("size")),
    )


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return float(value)


def _parse_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
