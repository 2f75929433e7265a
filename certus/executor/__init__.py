"""Data asset query executor — rows in, shape payloads out."""

from .errors import (
    AssetNotFoundError,
    DataLayerError,
    InvalidFilterError,
    QueryExecutionError,
    UnknownWidgetTypeError,
    UnsupportedShapeError,
)
from .query_executor import DataAssetQueryExecutor, get_query_executor, query_data_asset
from .schemas import DateRange, QueryFilters, QueryParameters, QueryResult, SortSpec

__all__ = [
    "AssetNotFoundError",
    "DataLayerError",
    "InvalidFilterError",
    "QueryExecutionError",
    "UnknownWidgetTypeError",
    "UnsupportedShapeError",
    "DataAssetQueryExecutor",
    "get_query_executor",
    "query_data_asset",
    "DateRange",
    "QueryFilters",
    "QueryParameters",
    "QueryResult",
    "SortSpec",
]
