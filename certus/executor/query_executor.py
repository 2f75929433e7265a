"""Data asset query executor.

Turns QueryParameters into a shape-conformant payload. Steps run in a
fixed order and each failure stops the query:

1. resolve the asset (missing or inactive -> AssetNotFoundError)
2. check the requested shape against output_shapes (before any fetch)
3. validate filters (dates, limit/offset, interval, dimensions)
4. translate filters/dimensions the asset declares; ignore the rest
5. fetch rows (current and, for single values, the prior period)
6. shape the rows
7. verify the payload against its guard

The executor holds no state between calls and caches nothing.
"""

import asyncio
import logging
import os
import time
from datetime import date, datetime, timezone
from typing import Optional

from certus.data_assets.registry import DataAssetRegistry, get_data_asset_registry
from certus.data_assets.schemas import DataAsset
from certus.shapes.guards import guard_for
from certus.shapes.schemas import ShapeKind, TimeInterval

from . import shaping
from .errors import (
    AssetNotFoundError,
    InvalidFilterError,
    QueryExecutionError,
    UnsupportedShapeError,
)
from .schemas import NAMED_FILTERS, QueryMetadata, QueryParameters, QueryResult, RowQuery
from .sources import RowSource, SqlRowSource

logger = logging.getLogger(__name__)

QUERY_TIMEOUT_SECONDS = float(os.environ.get("CERTUS_QUERY_TIMEOUT_SECONDS", "15"))


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(field, value, "expected an ISO date (YYYY-MM-DD)")


class _Plan:
    """Validated, translated form of one query."""

    def __init__(self):
        self.start: Optional[date] = None
        self.end: Optional[date] = None
        self.interval = TimeInterval.DAY
        self.dimensions: list[str] = []
        self.current: Optional[RowQuery] = None
        self.previous: Optional[RowQuery] = None
        self.period_days: Optional[int] = None


class DataAssetQueryExecutor:
    """Serializes data assets into shape payloads."""

    def __init__(
        self,
        registry: Optional[DataAssetRegistry] = None,
        row_source: Optional[RowSource] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.registry = registry or get_data_asset_registry()
        self.row_source = row_source or SqlRowSource()
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else QUERY_TIMEOUT_SECONDS
        )

    # -- Steps --

    def resolve_asset(self, asset_key: str) -> DataAsset:
        asset = self.registry.get_asset(asset_key)
        if asset is None or not asset.is_active:
            raise AssetNotFoundError(asset_key)
        return asset

    def _plan(self, asset: DataAsset, params: QueryParameters) -> _Plan:
        plan = _Plan()
        filters = params.filters

        if filters.date_range is not None:
            plan.start = _parse_date(filters.date_range.start, "date_range.start")
            plan.end = _parse_date(filters.date_range.end, "date_range.end")
            if plan.start > plan.end:
                raise InvalidFilterError(
                    "date_range", filters.date_range.model_dump(), "start is after end"
                )

        if params.limit is not None and params.limit < 1:
            raise InvalidFilterError("limit", params.limit, "must be a positive integer")
        if params.offset is not None and params.offset < 0:
            raise InvalidFilterError("offset", params.offset, "must not be negative")

        if params.interval is not None:
            try:
                plan.interval = TimeInterval(params.interval)
            except ValueError:
                raise InvalidFilterError(
                    "interval", params.interval, "expected day, week or month"
                )

        plan.dimensions = shaping.usable_dimensions(asset, params.dimensions)
        if params.shape == ShapeKind.CATEGORICAL and not plan.dimensions:
            plan.dimensions = asset.available_dimensions[:1]
        if params.shape == ShapeKind.MATRIX:
            for name in asset.available_dimensions:
                if len(plan.dimensions) >= 2:
                    break
                if name not in plan.dimensions:
                    plan.dimensions.append(name)
            if len(plan.dimensions) < 2:
                raise InvalidFilterError(
                    "dimensions", params.dimensions, "matrix needs two dimensions"
                )

        translated = {}
        for name in NAMED_FILTERS:
            value = getattr(filters, name)
            if value is not None and name in asset.available_filters:
                translated[name] = value
        for name, value in filters.additional_filters.items():
            if name in asset.available_filters and value is not None:
                translated[name] = value
            else:
                logger.debug(f"Asset {asset.asset_key}: ignoring filter '{name}'")

        activity_types = list(asset.metadata.get("activity_types", []))
        plan.current = RowQuery(
            start=plan.start.isoformat() if plan.start else None,
            end=plan.end.isoformat() if plan.end else None,
            activity_types=activity_types,
            filters=translated,
        )

        if params.shape == ShapeKind.SINGLE_VALUE and plan.start and plan.end:
            prev_start, prev_end, plan.period_days = shaping.previous_period(
                plan.start, plan.end
            )
            plan.previous = plan.current.model_copy(
                update={"start": prev_start.isoformat(), "end": prev_end.isoformat()}
            )
        return plan

    async def _fetch(self, asset: DataAsset, plan: _Plan):
        fetch = self.row_source.fetch_rows
        if plan.previous is None:
            return await fetch(asset.query_template, plan.current), None
        current, previous = await asyncio.gather(
            fetch(asset.query_template, plan.current),
            fetch(asset.query_template, plan.previous),
        )
        return current, previous

    def _shape(self, asset: DataAsset, params: QueryParameters, plan: _Plan, rows, previous):
        shape = params.shape
        if shape == ShapeKind.SINGLE_VALUE:
            return shaping.shape_single_value(asset, rows, previous, plan.period_days)
        if shape == ShapeKind.CATEGORICAL:
            return shaping.shape_categorical(asset, rows, plan.dimensions, params.limit)
        if shape == ShapeKind.TIME_SERIES:
            return shaping.shape_time_series(
                asset,
                rows,
                plan.start,
                plan.end,
                plan.interval,
                plan.dimensions[0] if plan.dimensions else None,
            )
        if shape == ShapeKind.FUNNEL_STAGES:
            return shaping.shape_funnel(asset, rows)
        if shape == ShapeKind.MATRIX:
            return shaping.shape_matrix(asset, rows, plan.dimensions, params.limit)
        return shaping.shape_tabular(
            asset, rows, params.sort, params.limit, params.offset
        )

    # -- Entry point --

    async def query(self, params: QueryParameters) -> QueryResult:
        """Run one query. Raises a DataLayerError subclass on failure."""
        started = time.monotonic()

        asset = self.resolve_asset(params.asset_key)
        if not asset.supports_shape(params.shape):
            raise UnsupportedShapeError(asset.asset_key, params.shape, asset.output_shapes)
        plan = self._plan(asset, params)

        try:
            rows, previous = await asyncio.wait_for(
                self._fetch(asset, plan), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Query for {asset.asset_key} timed out after {self.timeout_seconds}s"
            )
            raise QueryExecutionError(asset.asset_key, "timed out") from e
        except Exception as e:
            logger.error(f"Row fetch failed for {asset.asset_key}: {e}")
            raise QueryExecutionError(asset.asset_key, str(e)) from e

        try:
            data = self._shape(asset, params, plan, rows, previous)
        except (ValueError, TypeError, KeyError, AttributeError, ArithmeticError) as e:
            logger.error(f"Shaping {asset.asset_key} as {params.shape.value} failed: {e}")
            raise QueryExecutionError(asset.asset_key, str(e)) from e

        if not guard_for(params.shape)(data):
            logger.error(
                f"Payload for {asset.asset_key} failed the {params.shape.value} guard"
            )
            raise QueryExecutionError(asset.asset_key, "payload failed shape guard")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        count = shaping.record_count(data)
        logger.info(
            f"Queried {asset.asset_key} as {params.shape.value}: "
            f"{count} items in {elapsed_ms}ms"
        )
        return QueryResult(
            data=data,
            metadata=QueryMetadata(
                asset_key=asset.asset_key,
                record_count=count,
                query_time_ms=elapsed_ms,
                generated_at=datetime.now(timezone.utc),
            ),
        )


# Global executor instance
_executor: Optional[DataAssetQueryExecutor] = None


def get_query_executor() -> DataAssetQueryExecutor:
    """Get the global query executor instance."""
    global _executor
    if _executor is None:
        _executor = DataAssetQueryExecutor()
    return _executor


async def query_data_asset(params: QueryParameters) -> QueryResult:
    """Query a data asset with the global executor."""
    return await get_query_executor().query(params)
