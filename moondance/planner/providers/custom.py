from dataclasses import dataclass, field
import csv
import logging
from pathlib import Path
from typing import Iterable
import uuid

from .base import CatalogProvider
from moondance.errors import CatalogError
from moondance.planner.types import Target

logger = logging.getLogger(__name__)

CUSTOM_TYPE = "Custom"
EXPORT_HEADER = "Name,RA,Dec,Magnitude,Size"


@dataclass(frozen=True)
class ImportResult:
    imported: tuple[Target, ...] = ()
    skipped: int = 0


def _parse_number(value: str) -> float | None:
    try:
        return float(value.strip())
    except ValueError:
        return None


def _new_id() -> str:
    return f"custom_{uuid.uuid4().hex[:8]}"


def parse_targets(text: str) -> ImportResult:
    """Parse ``Name, RA, Dec[, Magnitude[, Size]]`` rows (degrees).

    A first row whose RA field is not numeric is taken as a header. Rows with
    fewer than three fields or RA/Dec out of range are skipped and counted.
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return ImportResult()

    rows = list(csv.reader(lines, skipinitialspace=True))
    first = rows[0]
    if len(first) >= 2 and _parse_number(first[1]) is None:
        rows = rows[1:]

    imported: list[Target] = []
    skipped = 0
    for fields in rows:
        if len(fields) < 3:
            skipped += 1
            continue
        ra = _parse_number(fields[1])
        dec = _parse_number(fields[2])
        if ra is None or dec is None or not 0.0 <= ra <= 360.0 or not -90.0 <= dec <= 90.0:
            skipped += 1
            continue

        name = fields[0].strip() or f"Custom ({ra:.4f}°, {dec:.4f}°)"
        mag = _parse_number(fields[3]) if len(fields) >= 4 else None
        size = fields[4].strip() if len(fields) >= 5 else ""
        imported.append(
            Target(
                id=_new_id(),
                name=name,
                ra_deg=ra,
                dec_deg=dec,
                type=CUSTOM_TYPE,
                mag=mag,
                size=size or None,
            )
        )
    return ImportResult(imported=tuple(imported), skipped=skipped)


def export_targets(targets: Iterable[Target]) -> str:
    lines = [EXPORT_HEADER]
    for target in targets:
        mag = f"{target.mag:.2f}" if target.mag is not None else ""
        quoted_name = '"' + target.name.replace('"', '""') + '"'
        lines.append(f"{quoted_name},{target.ra_deg},{target.dec_deg},{mag},{target.size or ''}")
    return "\n".join(lines)


@dataclass
class CustomTargetsProvider(CatalogProvider):
    path: Path
    name: str = "custom"
    _cache: tuple[Target, ...] | None = field(default=None, init=False, repr=False)

    def list_targets(self):
        if self._cache is None:
            path = Path(self.path).expanduser()
            if not path.exists():
                raise CatalogError(f"Custom targets file not found: {path}")
            try:
                text = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                text = path.read_text(encoding="latin-1")
            result = parse_targets(text)
            if result.skipped:
                logger.warning("Skipped %d invalid rows in %s", result.skipped, path)
            self._cache = result.imported
        return list(self._cache)
