"""Widget resolver — builds renderer props from a stored widget.

Values merge in three layers, later layers winning:

1. registry defaults (size, config_defaults, title fallback)
2. the widget's stored widget_config and position
3. the dashboard filter context, for date and scope fields only

The resolver never queries data. It returns the QueryParameters the render
step will run, already narrowed by the filter context.
"""

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from certus.executor.errors import (
    AssetNotFoundError,
    DataLayerError,
    InvalidFilterError,
    UnknownWidgetTypeError,
    UnsupportedShapeError,
)
from certus.executor.schemas import NAMED_FILTERS, QueryFilters, QueryParameters
from certus.shapes.schemas import ShapeKind

from .registry import WidgetRegistry, get_widget_registry
from .schemas import (
    DashboardWidget,
    FilterContext,
    HierarchyScope,
    ResolvedWidget,
    WidgetLayout,
    WidgetProps,
    WidgetRegistryEntry,
)

logger = logging.getLogger(__name__)

# Keys the filter context always owns
CONTEXT_CONFIG_KEYS = ("date_range", "start_date", "end_date", "hierarchy_scope")


def _filter_id(name: str, value: Any) -> Optional[str]:
    """Stored filter ids are strings; numeric ids from older rows are accepted."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise InvalidFilterError(f"parameters.filters.{name}", value, "expected an id string")


def _layout(entry: WidgetRegistryEntry, widget: DashboardWidget) -> WidgetLayout:
    size = entry.default_size
    position = widget.position
    w = position.w if position.w is not None else size.w
    h = position.h if position.h is not None else size.h
    return WidgetLayout(
        x=position.x,
        y=position.y,
        w=min(12, max(w, size.min_w)),
        h=max(h, size.min_h),
        min_w=size.min_w,
        min_h=size.min_h,
    )


def _config(
    entry: WidgetRegistryEntry, widget: DashboardWidget, context: FilterContext
) -> dict[str, Any]:
    config: dict[str, Any] = dict(entry.config_defaults)
    if "title" not in config:
        config["title"] = (
            widget.data_asset.display_name if widget.data_asset else entry.label
        )
    for key, value in widget.widget_config.items():
        if value is not None:
            config[key] = value

    config["date_range"] = context.date_range.model_dump()
    config["start_date"] = context.date_range.start
    config["end_date"] = context.date_range.end
    config["hierarchy_scope"] = context.hierarchy_scope.value
    if context.consultant_id:
        config["consultant_id"] = context.consultant_id
    return config


def _filters(widget: DashboardWidget, context: FilterContext) -> QueryFilters:
    stored = dict(widget.parameters.filters)
    named = {
        name: _filter_id(name, stored.pop(name))
        for name in NAMED_FILTERS
        if name in stored
    }

    if context.consultant_id:
        named["consultant_id"] = context.consultant_id
    scope = context.hierarchy_scope
    if scope == HierarchyScope.MY_TEAM and context.team_id:
        named["team_id"] = context.team_id
    elif scope == HierarchyScope.REGION and context.region_id:
        named["region_id"] = context.region_id
    elif scope == HierarchyScope.NATIONAL:
        named.pop("team_id", None)
        named.pop("region_id", None)

    return QueryFilters(
        date_range=context.date_range, additional_filters=stored, **named
    )


def _query(
    entry: WidgetRegistryEntry,
    widget: DashboardWidget,
    context: FilterContext,
    config: dict[str, Any],
) -> QueryParameters:
    limit = widget.parameters.limit
    if limit is None and entry.expected_shape == ShapeKind.TABULAR:
        limit = config.get("page_size")
    return QueryParameters(
        asset_key=widget.data_asset.asset_key,
        shape=entry.expected_shape,
        filters=_filters(widget, context),
        dimensions=widget.parameters.dimension_list(),
        limit=limit,
    )


def build_widget_props(
    widget: DashboardWidget,
    context: FilterContext,
    registry: Optional[WidgetRegistry] = None,
) -> WidgetProps:
    """Merge registry defaults, stored config and filter context into props.

    Raises:
        UnknownWidgetTypeError: widget_type is not in the registry.
        AssetNotFoundError: the widget references an asset that is gone or inactive.
        UnsupportedShapeError: the asset no longer offers the widget's shape.
        InvalidFilterError: stored parameters cannot form a query.
    """
    registry = registry or get_widget_registry()
    entry = registry.get_entry(widget.widget_type)
    if entry is None:
        raise UnknownWidgetTypeError(widget.widget_type)

    asset = widget.data_asset
    if widget.data_asset_id and asset is None:
        raise AssetNotFoundError(widget.data_asset_id)
    if asset is not None:
        if not asset.is_active:
            raise AssetNotFoundError(asset.asset_key)
        if entry.expected_shape not in asset.output_shapes:
            raise UnsupportedShapeError(
                asset.asset_key, entry.expected_shape, asset.output_shapes
            )

    config = _config(entry, widget, context)
    try:
        query = _query(entry, widget, context, config) if asset else None
    except ValidationError as e:
        raise InvalidFilterError(
            "parameters", widget.parameters, e.errors()[0]["msg"]
        ) from e
    return WidgetProps(
        widget_id=widget.id,
        widget_type=widget.widget_type,
        expected_shape=entry.expected_shape,
        size=_layout(entry, widget),
        config=config,
        query=query,
        date_range=context.date_range,
        hierarchy_scope=context.hierarchy_scope,
    )


def resolve_widgets(
    widgets: Iterable[DashboardWidget],
    context: FilterContext,
    registry: Optional[WidgetRegistry] = None,
) -> list[ResolvedWidget]:
    """Resolve every widget; a failing widget carries its error, siblings are unaffected."""
    registry = registry or get_widget_registry()
    resolved = []
    for widget in widgets:
        try:
            props = build_widget_props(widget, context, registry)
        except DataLayerError as e:
            logger.warning(f"Widget {widget.id} ({widget.widget_type}) not resolved: {e}")
            resolved.append(
                ResolvedWidget(
                    widget_id=widget.id, widget_type=widget.widget_type, error=e.to_dict()
                )
            )
            continue
        resolved.append(
            ResolvedWidget(widget_id=widget.id, widget_type=widget.widget_type, props=props)
        )
    return resolved
