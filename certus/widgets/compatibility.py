"""Widget compatibility — which widget types may display a given asset.

A widget type is compatible with an asset exactly when its expected shape
is one of the asset's output shapes. Used to filter widget pickers and to
reject pairings at widget creation, manual or AI-proposed.
"""

from typing import Optional, Protocol

from certus.executor.errors import UnknownWidgetTypeError, UnsupportedShapeError
from certus.shapes.schemas import ShapeKind

from .registry import WidgetRegistry, get_widget_registry
from .schemas import WidgetRegistryEntry


class ShapedAsset(Protocol):
    asset_key: str
    output_shapes: list[ShapeKind]


def compatible_widget_types(
    asset: ShapedAsset, registry: Optional[WidgetRegistry] = None
) -> list[WidgetRegistryEntry]:
    """Registry entries whose expected shape the asset can produce, in registry order."""
    registry = registry or get_widget_registry()
    shapes = set(asset.output_shapes)
    return [e for e in registry.list_entries() if e.expected_shape in shapes]


def is_compatible(
    asset: ShapedAsset, widget_type: str, registry: Optional[WidgetRegistry] = None
) -> bool:
    registry = registry or get_widget_registry()
    shape = registry.expected_shape(widget_type)
    return shape is not None and shape in asset.output_shapes


def ensure_compatible(
    asset: ShapedAsset, widget_type: str, registry: Optional[WidgetRegistry] = None
) -> WidgetRegistryEntry:
    """Return the registry entry, or raise if the pairing cannot render."""
    registry = registry or get_widget_registry()
    entry = registry.get_entry(widget_type)
    if entry is None:
        raise UnknownWidgetTypeError(widget_type)
    if entry.expected_shape not in asset.output_shapes:
        raise UnsupportedShapeError(
            asset.asset_key, entry.expected_shape, list(asset.output_shapes)
        )
    return entry
