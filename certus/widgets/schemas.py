"""Widget schemas — registry entries, stored widgets, filter context, props.

The registry describes what a widget type needs (one shape, a default size,
presentational defaults). It holds no renderer binding; consumer apps map
widget_type to their own components.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from certus.data_assets.schemas import AssetCategory
from certus.executor.schemas import DateRange, QueryParameters
from certus.shapes.schemas import ShapeKind


class WidgetSize(BaseModel):
    """Default grid size in layout units (12-column grid)."""

    model_config = ConfigDict(frozen=True)

    w: int = Field(..., ge=1, le=12)
    h: int = Field(..., ge=1)
    min_w: int = Field(..., ge=1, le=12)
    min_h: int = Field(..., ge=1)


class WidgetRegistryEntry(BaseModel):
    """One renderable widget type and the single shape it consumes."""

    model_config = ConfigDict(frozen=True)

    widget_type: str
    expected_shape: ShapeKind
    label: str
    description: str
    default_size: WidgetSize
    config_defaults: dict[str, Any] = Field(
        default_factory=dict,
        description="Presentational defaults (chart_type, color, page_size, ...)",
    )


class WidgetParameters(BaseModel):
    """Data-fetching parameters stored with a widget."""

    dimension: Optional[str] = Field(
        default=None, description="'consultant', 'team', 'region', 'activity_type'"
    )
    dimensions: Optional[list[str]] = None
    limit: Optional[int] = Field(default=None, description="Top N")
    filters: dict[str, Any] = Field(default_factory=dict)

    def dimension_list(self) -> Optional[list[str]]:
        if self.dimensions:
            return list(self.dimensions)
        if self.dimension:
            return [self.dimension]
        return None


class WidgetPosition(BaseModel):
    x: int = 0
    y: int = 0
    w: Optional[int] = None
    h: Optional[int] = None


class DataAssetRef(BaseModel):
    """The slice of a data asset joined onto a stored widget."""

    id: str
    asset_key: str
    display_name: str
    output_shapes: list[ShapeKind]
    category: AssetCategory
    is_active: bool = True


class DashboardWidget(BaseModel):
    """A persisted dashboard element: asset + widget type + display config."""

    id: str
    dashboard_id: str
    data_asset_id: Optional[str] = None
    widget_type: str
    parameters: WidgetParameters = Field(default_factory=WidgetParameters)
    widget_config: dict[str, Any] = Field(default_factory=dict)
    position: WidgetPosition = Field(default_factory=WidgetPosition)
    data_asset: Optional[DataAssetRef] = None


class HierarchyScope(str, Enum):
    """Organizational breadth a dashboard is filtered to."""

    SELF = "self"
    MY_TEAM = "my_team"
    REGION = "region"
    NATIONAL = "national"


DATE_PRESETS = ("7d", "30d", "90d", "quarter", "year")
DEFAULT_DATE_PRESET = "30d"


def preset_date_range(preset: str, today: Optional[date] = None) -> DateRange:
    """Date range for a filter-bar preset. Unknown presets fall back to 30d."""
    end = today or date.today()
    if preset == "7d":
        start = end - timedelta(days=7)
    elif preset == "90d":
        start = end - timedelta(days=90)
    elif preset == "quarter":
        start = date(end.year, (end.month - 1) // 3 * 3 + 1, 1)
    elif preset == "year":
        start = date(end.year, 1, 1)
    else:
        start = end - timedelta(days=30)
    return DateRange(start=start.isoformat(), end=end.isoformat())


class FilterContext(BaseModel):
    """Dashboard-wide filters, passed explicitly to the resolver."""

    date_range: DateRange
    hierarchy_scope: HierarchyScope = HierarchyScope.MY_TEAM
    consultant_id: Optional[str] = None
    team_id: Optional[str] = None
    region_id: Optional[str] = None

    @field_validator("hierarchy_scope", mode="before")
    @classmethod
    def _normalize_scope(cls, v: Any) -> Any:
        # URLs and older clients send "my-team"
        if isinstance(v, str):
            return v.replace("-", "_")
        return v

    @classmethod
    def from_preset(
        cls,
        preset: str = DEFAULT_DATE_PRESET,
        today: Optional[date] = None,
        **kwargs: Any,
    ) -> "FilterContext":
        return cls(date_range=preset_date_range(preset, today), **kwargs)


class WidgetLayout(BaseModel):
    """Effective grid placement after merging defaults with the stored position."""

    x: int
    y: int
    w: int
    h: int
    min_w: int
    min_h: int


class WidgetProps(BaseModel):
    """Everything a renderer needs for one widget, minus the data itself."""

    widget_id: str
    widget_type: str
    expected_shape: ShapeKind
    size: WidgetLayout
    config: dict[str, Any]
    query: Optional[QueryParameters] = Field(
        default=None,
        description="Query the render step runs; None for widgets without an asset",
    )
    date_range: DateRange
    hierarchy_scope: HierarchyScope


class ResolvedWidget(BaseModel):
    """Per-widget resolution outcome: props, or an error for this widget only."""

    widget_id: str
    widget_type: str
    props: Optional[WidgetProps] = None
    error: Optional[dict[str, Any]] = None
