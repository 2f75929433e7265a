"""Dashboard widget store.

The resolver only reads from here; the dashboard builder owns real writes,
so save_dashboard_widget exists for seeding and tests. Rows are joined
with their data asset through the catalog so the resolver can check the
widget's shape against what the asset currently offers.
"""

import logging
from typing import Optional

from certus.data_assets.registry import DataAssetRegistry, get_data_asset_registry
from certus.executor import db
from certus.widgets.schemas import DashboardWidget, DataAssetRef

logger = logging.getLogger(__name__)


def _asset_ref(registry: DataAssetRegistry, asset_id: Optional[str]) -> Optional[DataAssetRef]:
    if not asset_id:
        return None
    asset = registry.get_by_id(asset_id)
    if asset is None:
        logger.warning(f"Widget references unknown data asset id '{asset_id}'")
        return None
    return DataAssetRef(
        id=asset.id,
        asset_key=asset.asset_key,
        display_name=asset.display_name,
        output_shapes=asset.output_shapes,
        category=asset.category,
        is_active=asset.is_active,
    )


def _row_to_widget(row: dict, registry: DataAssetRegistry) -> DashboardWidget:
    return DashboardWidget(
        id=row["id"],
        dashboard_id=row["dashboard_id"],
        data_asset_id=row.get("data_asset_id"),
        widget_type=row["widget_type"],
        parameters=db._json_loads(row.get("parameters")),
        widget_config=db._json_loads(row.get("widget_config")),
        position=db._json_loads(row.get("position")),
        data_asset=_asset_ref(registry, row.get("data_asset_id")),
    )


def load_dashboard_widgets(
    dashboard_id: str, registry: Optional[DataAssetRegistry] = None
) -> list[DashboardWidget]:
    """Load a dashboard's widgets in layout order (top-left first)."""
    db.init_db()
    registry = registry or get_data_asset_registry()
    rows = db.execute(
        "SELECT id, dashboard_id, data_asset_id, widget_type, parameters, "
        "widget_config, position FROM dashboard_widgets "
        "WHERE dashboard_id = %s ORDER BY created_at, id",
        (dashboard_id,),
        fetch="all",
    )
    widgets = []
    for row in rows:
        # ValidationError and JSONDecodeError are both ValueErrors
        try:
            widgets.append(_row_to_widget(row, registry))
        except ValueError as e:
            logger.error(f"Skipping malformed widget row {row.get('id')}: {e}")
    widgets.sort(key=lambda w: (w.position.y, w.position.x))
    logger.debug(f"Loaded {len(widgets)} widgets for dashboard {dashboard_id}")
    return widgets


def save_dashboard_widget(widget: DashboardWidget) -> None:
    """Insert a widget row (seeding and tests; the builder owns real writes)."""
    db.init_db()
    db.execute(
        "INSERT INTO dashboard_widgets (id, dashboard_id, data_asset_id, widget_type, "
        "parameters, widget_config, position) VALUES (%s, %s, %s, %s, %s, %s, %s)",
        (
            widget.id,
            widget.dashboard_id,
            widget.data_asset_id,
            widget.widget_type,
            db._json_dumps(widget.parameters.model_dump(exclude_none=True)),
            db._json_dumps(widget.widget_config),
            db._json_dumps(widget.position.model_dump(exclude_none=True)),
        ),
    )


def attach_asset(
    widget: DashboardWidget, registry: Optional[DataAssetRegistry] = None
) -> DashboardWidget:
    """Join the data asset onto a widget that arrived without one."""
    if widget.data_asset is not None or not widget.data_asset_id:
        return widget
    registry = registry or get_data_asset_registry()
    return widget.model_copy(
        update={"data_asset": _asset_ref(registry, widget.data_asset_id)}
    )
