"""Widget registry — the static catalog of renderable widget types.

Each widget type consumes exactly one shape. The table is declared in code,
validated once at construction (unique keys) and exposed read-only; it is
never persisted. Renderer bindings live with the consumer app.

Global singleton via get_widget_registry().
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from certus.shapes.schemas import ShapeKind

from .schemas import WidgetRegistryEntry, WidgetSize

logger = logging.getLogger(__name__)

DEFAULT_CHART_COLOR = "#3b82f6"

WIDGET_ENTRIES: tuple[WidgetRegistryEntry, ...] = (
    WidgetRegistryEntry(
        widget_type="kpi_card",
        expected_shape=ShapeKind.SINGLE_VALUE,
        label="KPI Card",
        description="Single metric with comparison",
        default_size=WidgetSize(w=3, h=2, min_w=2, min_h=2),
        config_defaults={"color_scheme": "teal", "icon": "activity"},
    ),
    WidgetRegistryEntry(
        widget_type="time_series_chart",
        expected_shape=ShapeKind.TIME_SERIES,
        label="Time Series Chart",
        description="Line or area chart showing trends over time",
        default_size=WidgetSize(w=6, h=4, min_w=4, min_h=3),
        config_defaults={"chart_type": "area", "color": DEFAULT_CHART_COLOR},
    ),
    WidgetRegistryEntry(
        widget_type="bar_chart",
        expected_shape=ShapeKind.CATEGORICAL,
        label="Bar Chart",
        description="Vertical or horizontal bar chart",
        default_size=WidgetSize(w=6, h=4, min_w=4, min_h=3),
        config_defaults={"orientation": "vertical", "color": DEFAULT_CHART_COLOR},
    ),
    WidgetRegistryEntry(
        widget_type="donut_chart",
        expected_shape=ShapeKind.CATEGORICAL,
        label="Donut/Pie Chart",
        description="Circular chart showing proportions",
        default_size=WidgetSize(w=6, h=4, min_w=4, min_h=3),
        config_defaults={"chart_type": "donut"},
    ),
    WidgetRegistryEntry(
        widget_type="target_gauge",
        expected_shape=ShapeKind.SINGLE_VALUE,
        label="Target Gauge",
        description="Radial gauge showing progress towards target",
        default_size=WidgetSize(w=3, h=3, min_w=2, min_h=2),
        config_defaults={"target_value": 100},
    ),
    WidgetRegistryEntry(
        widget_type="leaderboard",
        expected_shape=ShapeKind.CATEGORICAL,
        label="Leaderboard",
        description="Animated ranked list with medal icons",
        default_size=WidgetSize(w=6, h=5, min_w=4, min_h=3),
    ),
    WidgetRegistryEntry(
        widget_type="combo_chart",
        expected_shape=ShapeKind.TIME_SERIES,
        label="Combo Chart",
        description="Bar chart with moving average line overlay",
        default_size=WidgetSize(w=6, h=4, min_w=4, min_h=3),
        config_defaults={"bar_color": DEFAULT_CHART_COLOR, "line_color": "#ef4444"},
    ),
    WidgetRegistryEntry(
        widget_type="conversion_indicator",
        expected_shape=ShapeKind.SINGLE_VALUE,
        label="Conversion Indicator",
        description="Small card showing conversion percentage",
        default_size=WidgetSize(w=3, h=2, min_w=2, min_h=2),
        config_defaults={"title": "Conversion", "color_scheme": "teal"},
    ),
    WidgetRegistryEntry(
        widget_type="data_table",
        expected_shape=ShapeKind.TABULAR,
        label="Data Table",
        description="Sortable, paginated table with drill-through",
        default_size=WidgetSize(w=12, h=5, min_w=6, min_h=3),
        config_defaults={"page_size": 10},
    ),
    WidgetRegistryEntry(
        widget_type="heatmap",
        expected_shape=ShapeKind.MATRIX,
        label="Heatmap",
        description="Color-coded matrix grid (consultant x activity)",
        default_size=WidgetSize(w=12, h=5, min_w=6, min_h=4),
        config_defaults={"height": 400},
    ),
    WidgetRegistryEntry(
        widget_type="stacked_bar_chart",
        expected_shape=ShapeKind.CATEGORICAL,
        label="Stacked Bar Chart",
        description="Multi-series stacked bar chart",
        default_size=WidgetSize(w=6, h=4, min_w=4, min_h=3),
    ),
)


class WidgetRegistry:
    """Read-only lookup over widget registry entries, in declaration order."""

    def __init__(self, entries: Optional[Iterable[WidgetRegistryEntry]] = None):
        table: dict[str, WidgetRegistryEntry] = {}
        for entry in WIDGET_ENTRIES if entries is None else entries:
            if entry.widget_type in table:
                raise ValueError(f"Duplicate widget type '{entry.widget_type}'")
            table[entry.widget_type] = entry
        self._entries: Mapping[str, WidgetRegistryEntry] = MappingProxyType(table)
        logger.debug(f"Widget registry built with {len(table)} widget types")

    @property
    def entries(self) -> Mapping[str, WidgetRegistryEntry]:
        return self._entries

    def get_entry(self, widget_type: str) -> Optional[WidgetRegistryEntry]:
        """Get a registry entry, or None for an unknown widget type."""
        return self._entries.get(widget_type)

    def expected_shape(self, widget_type: str) -> Optional[ShapeKind]:
        entry = self._entries.get(widget_type)
        return entry.expected_shape if entry else None

    def list_entries(self) -> list[WidgetRegistryEntry]:
        return list(self._entries.values())

    def list_types(self) -> list[str]:
        return list(self._entries.keys())

    def for_shape(self, shape: ShapeKind) -> list[WidgetRegistryEntry]:
        """Entries that consume the given shape."""
        shape = ShapeKind(shape)
        return [e for e in self._entries.values() if e.expected_shape == shape]

    def count(self) -> int:
        return len(self._entries)


# Global registry instance
_registry: Optional[WidgetRegistry] = None


def get_widget_registry() -> WidgetRegistry:
    """Get the global widget registry instance."""
    global _registry
    if _registry is None:
        _registry = WidgetRegistry()
        logger.info(f"Loaded {_registry.count()} widget types")
    return _registry
