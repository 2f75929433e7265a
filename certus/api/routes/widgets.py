"""API routes for widget types, compatibility checks and prop resolution."""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from certus.api.errors import http_error
from certus.dashboards.store import attach_asset
from certus.data_assets.registry import get_data_asset_registry
from certus.executor.errors import AssetNotFoundError, DataLayerError, UnknownWidgetTypeError
from certus.shapes.schemas import ShapeKind
from certus.widgets.compatibility import ensure_compatible
from certus.widgets.registry import get_widget_registry
from certus.widgets.resolver import build_widget_props
from certus.widgets.schemas import (
    DashboardWidget,
    FilterContext,
    WidgetProps,
    WidgetRegistryEntry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/widgets", tags=["widgets"])


class CompatibilityCheckRequest(BaseModel):
    asset_key: str
    widget_type: str


class CompatibilityCheckResponse(BaseModel):
    asset_key: str
    widget_type: str
    compatible: bool
    expected_shape: Optional[ShapeKind] = None
    reason: Optional[str] = None


class ResolveRequest(BaseModel):
    widget: DashboardWidget
    context: FilterContext


@router.get("", response_model=list[WidgetRegistryEntry])
async def list_widget_types(shape: Optional[ShapeKind] = None):
    """List widget types in registry order, optionally only those for one shape."""
    registry = get_widget_registry()
    if shape is not None:
        return registry.for_shape(shape)
    return registry.list_entries()


@router.post("/check", response_model=CompatibilityCheckResponse)
async def check_compatibility(request: CompatibilityCheckRequest):
    """Check whether an asset can feed a widget type.

    Unknown assets and widget types are 404s; a shape mismatch is a
    normal answer with compatible=false.
    """
    asset = get_data_asset_registry().get_asset(request.asset_key)
    if asset is None or not asset.is_active:
        raise http_error(AssetNotFoundError(request.asset_key))
    entry = get_widget_registry().get_entry(request.widget_type)
    if entry is None:
        raise http_error(UnknownWidgetTypeError(request.widget_type))

    try:
        ensure_compatible(asset, request.widget_type)
    except DataLayerError as e:
        return CompatibilityCheckResponse(
            asset_key=asset.asset_key,
            widget_type=entry.widget_type,
            compatible=False,
            expected_shape=entry.expected_shape,
            reason=e.message,
        )
    return CompatibilityCheckResponse(
        asset_key=asset.asset_key,
        widget_type=entry.widget_type,
        compatible=True,
        expected_shape=entry.expected_shape,
    )


@router.post("/resolve", response_model=WidgetProps)
async def resolve_widget(request: ResolveRequest):
    """Build renderer props for one widget under a filter context."""
    widget = attach_asset(request.widget)
    try:
        return build_widget_props(widget, request.context)
    except DataLayerError as e:
        raise http_error(e)


@router.get("/{widget_type}", response_model=WidgetRegistryEntry)
async def get_widget_type(widget_type: str):
    """Get one widget registry entry."""
    entry = get_widget_registry().get_entry(widget_type)
    if entry is None:
        raise http_error(UnknownWidgetTypeError(widget_type))
    return entry
