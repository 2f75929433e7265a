"""Data asset schemas — named abstract metrics.

A DataAsset is a reusable business measure decoupled from any visualization.
It declares the shapes it can produce, the synonyms the assistant uses to
match natural-language terms, the dimensions and filters it understands,
and an opaque query template the row source resolves.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from certus.shapes.schemas import ShapeKind


class AssetCategory(str, Enum):
    """Business area an asset belongs to."""

    REVENUE = "revenue"
    ACTIVITY = "activity"
    PIPELINE = "pipeline"
    PERFORMANCE = "performance"
    ENGAGEMENT = "engagement"


class DataAsset(BaseModel):
    """A named, synonym-tagged abstract metric."""

    # Identity
    id: str = Field(..., description="Stable row id referenced by dashboard widgets")
    asset_key: str = Field(
        ...,
        description="Unique snake_case key. Immutable once created: widgets "
        "and assistant output reference assets by this key.",
    )
    display_name: str = Field(..., description="Human-readable name")
    description: Optional[str] = Field(default=None)
    category: AssetCategory

    # Natural-language matching
    synonyms: list[str] = Field(
        default_factory=list,
        description="Alternative terms users say for this metric",
    )

    # Shape contract
    output_shapes: list[ShapeKind] = Field(
        ...,
        min_length=1,
        description="Shapes this asset can be serialized into",
    )

    # Query surface
    available_dimensions: list[str] = Field(
        default_factory=list,
        description="Group-by dimensions, e.g. 'consultant', 'team', 'activity_type'",
    )
    available_filters: list[str] = Field(
        default_factory=list,
        description="Filter names this asset honours, e.g. 'consultant_id'",
    )
    query_template: str = Field(
        ...,
        description="Opaque template name resolved by the row source",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Template parameters: activity_types, measure, value_field, "
        "format, stages (funnel), columns (tabular)",
    )

    # Lifecycle
    is_active: bool = Field(
        default=True,
        description="Soft-disable flag; inactive assets are never queried",
    )

    @field_validator("output_shapes")
    @classmethod
    def _unique_shapes(cls, v: list[ShapeKind]) -> list[ShapeKind]:
        if len(set(v)) != len(v):
            raise ValueError("output_shapes must not repeat a shape")
        return v

    def supports_shape(self, shape: ShapeKind) -> bool:
        """Check whether this asset can produce the given shape."""
        return ShapeKind(shape) in self.output_shapes


class DataAssetSummary(BaseModel):
    """Lightweight summary for listing endpoints."""

    asset_key: str
    display_name: str
    description: Optional[str] = None
    category: AssetCategory
    synonyms: list[str] = []
    output_shapes: list[ShapeKind] = []
    available_dimensions: list[str] = []
    is_active: bool = True
