"""API routes for the data asset catalog and queries.

Consumer apps list assets to populate pickers, match user terms, look up
the widget types an asset can feed, and run shape-typed queries.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from certus.api.errors import http_error
from certus.data_assets.registry import get_data_asset_registry, to_summary
from certus.data_assets.schemas import AssetCategory, DataAsset, DataAssetSummary
from certus.executor.errors import AssetNotFoundError, DataLayerError
from certus.executor.query_executor import get_query_executor
from certus.executor.schemas import QueryParameters, QueryResult
from certus.widgets.compatibility import compatible_widget_types
from certus.widgets.schemas import WidgetRegistryEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data-assets", tags=["data-assets"])


def _get_or_404(asset_key: str) -> DataAsset:
    """Get an asset by key or raise 404."""
    asset = get_data_asset_registry().get_asset(asset_key)
    if asset is None:
        raise http_error(AssetNotFoundError(asset_key))
    return asset


# -- List endpoints --


@router.get("", response_model=list[DataAssetSummary])
async def list_data_assets(category: Optional[AssetCategory] = None):
    """List active data assets, ordered by category then display name."""
    return get_data_asset_registry().list_summaries(category)


@router.get("/match", response_model=list[DataAssetSummary])
async def match_data_assets(term: str = Query(..., min_length=1)):
    """Match a user term against asset keys, names and synonyms."""
    return [to_summary(a) for a in get_data_asset_registry().match_term(term)]


# -- Query endpoint --


@router.post("/query", response_model=QueryResult)
async def query_data_asset(params: QueryParameters):
    """Serialize a data asset into the requested shape."""
    try:
        return await get_query_executor().query(params)
    except DataLayerError as e:
        raise http_error(e)


# -- Single asset endpoints --


@router.get("/{asset_key}", response_model=DataAsset)
async def get_data_asset(asset_key: str):
    """Get the full data asset definition."""
    return _get_or_404(asset_key)


@router.get("/{asset_key}/compatible-widgets", response_model=list[WidgetRegistryEntry])
async def get_compatible_widgets(asset_key: str):
    """Widget types that can display this asset."""
    return compatible_widget_types(_get_or_404(asset_key))
