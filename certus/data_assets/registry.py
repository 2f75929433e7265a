"""Data asset registry — the read-mostly catalog of abstract metrics.

Follows the JSON-definition registry pattern:
- JSON-per-file in definitions/ directory (CERTUS_ASSET_DEFINITIONS_DIR overrides)
- Lazy loading with _loaded guard
- In-memory dict keyed by asset_key
- Global singleton via get_data_asset_registry()

No write operations: assets are authored through admin tooling and only
read here. Listing order is (category, display_name) so prompts and UI
lists are reproducible.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .schemas import AssetCategory, DataAsset, DataAssetSummary

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = os.environ.get("CERTUS_ASSET_DEFINITIONS_DIR", "")


def _sort_key(asset: DataAsset) -> tuple[str, str, str]:
    return (asset.category.value, asset.display_name.lower(), asset.asset_key)


def to_summary(asset: DataAsset) -> DataAssetSummary:
    return DataAssetSummary(
        asset_key=asset.asset_key,
        display_name=asset.display_name,
        description=asset.description,
        category=asset.category,
        synonyms=asset.synonyms,
        output_shapes=asset.output_shapes,
        available_dimensions=asset.available_dimensions,
        is_active=asset.is_active,
    )


class DataAssetRegistry:
    """Registry of data assets loaded from JSON files."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        if definitions_dir is None:
            definitions_dir = (
                Path(DEFINITIONS_DIR)
                if DEFINITIONS_DIR
                else Path(__file__).parent / "definitions"
            )
        self.definitions_dir = definitions_dir
        self._assets: dict[str, DataAsset] = {}
        self._by_id: dict[str, DataAsset] = {}
        self._loaded = False

    def load(self) -> None:
        """Load all data asset definitions from JSON files."""
        if self._loaded:
            return

        if not self.definitions_dir.exists():
            logger.warning(
                f"Data asset definitions directory not found: {self.definitions_dir}"
            )
            self._loaded = True
            return

        for json_file in sorted(self.definitions_dir.glob("*.json")):
            try:
                with open(json_file, "r") as f:
                    data = json.load(f)
                asset = DataAsset.model_validate(data)
            except Exception as e:
                logger.error(f"Failed to load data asset from {json_file}: {e}")
                continue

            if asset.asset_key in self._assets:
                logger.error(
                    f"Duplicate asset_key '{asset.asset_key}' in {json_file}; skipped"
                )
                continue

            self._assets[asset.asset_key] = asset
            self._by_id[asset.id] = asset
            logger.debug(f"Loaded data asset: {asset.asset_key}")

        self._loaded = True
        logger.info(f"Loaded {len(self._assets)} data assets")

    def add(self, asset: DataAsset) -> None:
        """Register an in-memory asset (seeding and tests)."""
        self.load()
        if asset.asset_key in self._assets:
            raise ValueError(f"Data asset '{asset.asset_key}' already registered")
        self._assets[asset.asset_key] = asset
        self._by_id[asset.id] = asset

    def get_asset(self, asset_key: str) -> Optional[DataAsset]:
        """Get an asset by key, active or not."""
        self.load()
        return self._assets.get(asset_key)

    def get_by_id(self, asset_id: str) -> Optional[DataAsset]:
        """Get an asset by its row id."""
        self.load()
        return self._by_id.get(asset_id)

    def list_active_assets(
        self, category: Optional[AssetCategory] = None
    ) -> list[DataAsset]:
        """List active assets ordered by category then display name."""
        self.load()
        assets = [a for a in self._assets.values() if a.is_active]
        if category is not None:
            category = AssetCategory(category)
            assets = [a for a in assets if a.category == category]
        return sorted(assets, key=_sort_key)

    def list_summaries(
        self, category: Optional[AssetCategory] = None
    ) -> list[DataAssetSummary]:
        """List active asset summaries."""
        return [to_summary(a) for a in self.list_active_assets(category)]

    def match_term(self, term: str) -> list[DataAsset]:
        """Match a user term against keys, names and synonyms.

        Exact (case-insensitive) matches come first, then substring matches.
        Anything fuzzier belongs to the assistant layer.
        """
        needle = term.strip().lower()
        if not needle:
            return []

        exact: list[DataAsset] = []
        partial: list[DataAsset] = []
        for asset in self.list_active_assets():
            candidates = [asset.asset_key, asset.display_name, *asset.synonyms]
            lowered = [c.lower() for c in candidates]
            if needle in lowered:
                exact.append(asset)
            elif any(needle in c for c in lowered):
                partial.append(asset)
        return exact + partial

    def list_keys(self) -> list[str]:
        """List all asset keys."""
        self.load()
        return sorted(self._assets.keys())

    def count(self) -> int:
        """Get total number of assets."""
        self.load()
        return len(self._assets)

    def reload(self) -> None:
        """Force reload all definitions."""
        self._loaded = False
        self._assets.clear()
        self._by_id.clear()
        self.load()


# Global registry instance
_registry: Optional[DataAssetRegistry] = None


def get_data_asset_registry() -> DataAssetRegistry:
    """Get the global data asset registry instance."""
    global _registry
    if _registry is None:
        _registry = DataAssetRegistry()
        _registry.load()
    return _registry
