"""Bundler stats ingestion for packweight."""

from bundle.assets import map_assets
from bundle.models import AssetModules, BundleStats, ModuleRecord, StatsAsset
from bundle.modules import extract_modules

__all__ = [
    "AssetModules",
    "BundleStats",
    "ModuleRecord",
    "StatsAsset",
    "extract_modules",
    "map_assets",
]
