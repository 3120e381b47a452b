from pathlib import Path

from .base import CatalogProvider
from .catalog import BundledCatalogProvider
from .custom import CustomTargetsProvider, ImportResult, export_targets, parse_targets


def get_catalog_providers(config=None) -> list[CatalogProvider]:
    catalog_path = config.catalog_path if config is not None else None
    providers: list[CatalogProvider] = [BundledCatalogProvider(catalog_path=catalog_path)]
    custom_path: Path | None = config.catalog_custom_targets if config is not None else None
    if custom_path is not None:
        providers.append(CustomTargetsProvider(path=custom_path))
    return providers

__all__ = [
    "CatalogProvider",
    "BundledCatalogProvider",
    "CustomTargetsProvider",
    "ImportResult",
    "export_targets",
    "parse_targets",
    "get_catalog_providers",
]
