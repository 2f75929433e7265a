"""Schemas for data asset queries."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from certus.shapes.schemas import DataShape, ShapeKind


class DateRange(BaseModel):
    """Inclusive ISO date range. Parsed and checked by the executor."""

    start: str
    end: str


class QueryFilters(BaseModel):
    date_range: Optional[DateRange] = None
    consultant_id: Optional[str] = None
    team_id: Optional[str] = None
    region_id: Optional[str] = None
    hierarchy_node_id: Optional[str] = None
    additional_filters: dict[str, Any] = Field(default_factory=dict)


# Filters carried as QueryFilters fields; everything else arrives via additional_filters
NAMED_FILTERS: tuple[str, ...] = tuple(
    name
    for name in QueryFilters.model_fields
    if name not in ("date_range", "additional_filters")
)


class SortSpec(BaseModel):
    key: str
    direction: Literal["asc", "desc"] = "desc"


class QueryParameters(BaseModel):
    """A request to serialize one data asset into one shape."""

    asset_key: str
    shape: ShapeKind
    filters: QueryFilters = Field(default_factory=QueryFilters)
    dimensions: Optional[list[str]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    interval: Optional[str] = Field(
        default=None, description="day | week | month (time_series only)"
    )
    sort: Optional[SortSpec] = None


class QueryMetadata(BaseModel):
    asset_key: str
    record_count: int = Field(
        ..., description="Items in the shaped payload (categories, points, stages, rows)"
    )
    query_time_ms: int
    generated_at: datetime


class QueryResult(BaseModel):
    data: DataShape
    metadata: QueryMetadata

    def to_payload(self) -> dict:
        return {
            "data": self.data.to_payload(),
            "metadata": self.metadata.model_dump(mode="json"),
        }


class RowQuery(BaseModel):
    """Translated, storage-facing query handed to a RowSource.

    Only filters the asset declares end up here; dates are already parsed.
    """

    start: Optional[str] = None
    end: Optional[str] = None
    activity_types: list[str] = Field(default_factory=list)
    filters: dict[str, Any] = Field(default_factory=dict)
