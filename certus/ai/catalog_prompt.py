"""Catalog sections of the assistant system prompt.

The assistant may only reference assets and widget types listed here, so
the text is built straight from the two registries in their own
deterministic order.
"""

from typing import Optional

from certus.data_assets.registry import DataAssetRegistry, get_data_asset_registry
from certus.widgets.registry import WidgetRegistry, get_widget_registry


def format_asset_section(registry: DataAssetRegistry) -> str:
    blocks = []
    for asset in registry.list_active_assets():
        lines = [f"[{asset.asset_key}]: {asset.display_name}"]
        if asset.description:
            lines.append(f"  Description: {asset.description}")
        if asset.synonyms:
            lines.append(f"  Synonyms: {', '.join(asset.synonyms)}")
        lines.append(f"  Shapes: {', '.join(s.value for s in asset.output_shapes)}")
        if asset.available_dimensions:
            lines.append(f"  Dimensions: {', '.join(asset.available_dimensions)}")
        blocks.append("\n".join(lines))
    return "## Available Data Assets\n" + "\n\n".join(blocks)


def format_widget_section(widget_registry: WidgetRegistry) -> str:
    lines = [
        f"- {e.widget_type} ({e.expected_shape.value}): {e.label}: {e.description}. "
        f"Default size: {e.default_size.w}x{e.default_size.h}"
        for e in widget_registry.list_entries()
    ]
    return "## Available Widget Types\n" + "\n".join(lines)


def build_catalog_prompt(
    registry: Optional[DataAssetRegistry] = None,
    widget_registry: Optional[WidgetRegistry] = None,
) -> str:
    """Data asset and widget type sections, plus the pairing rule."""
    registry = registry or get_data_asset_registry()
    widget_registry = widget_registry or get_widget_registry()
    sections = [
        format_asset_section(registry),
        format_widget_section(widget_registry),
        "## Pairing Rules\n"
        "- Only use data assets listed above; list anything else as unmatched terms.\n"
        "- A widget type may only be paired with an asset that lists its shape.\n"
        "- Never generate SQL; all data access goes through data assets.",
    ]
    return "\n\n".join(sections)
