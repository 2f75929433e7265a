"""Shape contract schemas — the canonical payload formats widgets consume.

Data assets produce data in these shapes and widgets consume them, so the
two never need to know about each other. Every shape carries a `_shape`
discriminator (the `shape` field, serialized by alias) and that tag is the
only thing used to tell shapes apart.

Numeric values are plain floats. Percentage-like values use a 0-1 scale and
are only turned into strings at the presentation boundary (see formatting.py).
"""

import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SHAPE_FIELD = "_shape"


class ShapeKind(str, Enum):
    """The closed set of canonical data shapes."""

    SINGLE_VALUE = "single_value"
    CATEGORICAL = "categorical"
    TIME_SERIES = "time_series"
    FUNNEL_STAGES = "funnel_stages"
    MATRIX = "matrix"
    TABULAR = "tabular"


class ValueFormat(str, Enum):
    """Presentation hint for numeric values."""

    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    DURATION = "duration"


class TimeInterval(str, Enum):
    """Bucket size for time series points."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ShapeModel(BaseModel):
    """Common base: accepts `shape` or `_shape` on input, emits `_shape`."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict carrying the `_shape` tag."""
        return self.model_dump(mode="json", by_alias=True)


# -- Single value --


class Comparison(BaseModel):
    """Period-over-period comparison attached to a single value."""

    direction: Literal["up", "down", "neutral"]
    value: float = Field(description="Magnitude of the change, 0-1 scale")
    label: str


class SingleValue(ShapeModel):
    """One number with an optional comparison (KPI cards, gauges)."""

    shape: Literal["single_value"] = Field(default="single_value", alias=SHAPE_FIELD)
    label: str
    value: float
    format: Optional[ValueFormat] = None
    comparison: Optional[Comparison] = None


# -- Categorical --


class CategoryItem(BaseModel):
    label: str
    value: float
    metadata: Optional[dict[str, Any]] = None


class CategorySeriesPoint(BaseModel):
    label: Optional[str] = None
    value: float


class CategorySeries(BaseModel):
    name: str
    data: list[CategorySeriesPoint] = Field(default_factory=list)


class Categorical(ShapeModel):
    """Labelled values (bar, donut, leaderboard).

    `series` is only present for the multi-series (stacked) variant.
    """

    shape: Literal["categorical"] = Field(default="categorical", alias=SHAPE_FIELD)
    categories: list[CategoryItem] = Field(default_factory=list)
    format: Optional[ValueFormat] = None
    series: Optional[list[CategorySeries]] = None


# -- Time series --


class TimeSeriesPoint(BaseModel):
    date: str = Field(description="ISO date (YYYY-MM-DD)")
    value: float

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        datetime.date.fromisoformat(v)
        return v


class TimeSeriesLine(BaseModel):
    name: str
    data: list[TimeSeriesPoint] = Field(default_factory=list)


class TimeSeries(ShapeModel):
    """One or more dated series (line, area, combo charts)."""

    shape: Literal["time_series"] = Field(default="time_series", alias=SHAPE_FIELD)
    series: list[TimeSeriesLine] = Field(default_factory=list)
    format: Optional[ValueFormat] = None
    interval: Optional[TimeInterval] = None


# -- Funnel --


class FunnelStage(BaseModel):
    label: str
    value: float
    order: int
    conversion_rate: Optional[float] = Field(
        default=None,
        description="Share of the previous stage that reached this one (0-1)",
    )


class FunnelStages(ShapeModel):
    """Ordered conversion stages."""

    shape: Literal["funnel_stages"] = Field(default="funnel_stages", alias=SHAPE_FIELD)
    stages: list[FunnelStage] = Field(default_factory=list)
    format: Optional[ValueFormat] = None


# -- Matrix --


class Matrix(ShapeModel):
    """2D grid of values (heatmaps)."""

    shape: Literal["matrix"] = Field(default="matrix", alias=SHAPE_FIELD)
    rows: list[str] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    values: list[list[float]] = Field(default_factory=list)
    format: Optional[ValueFormat] = None

    @model_validator(mode="after")
    def _check_dimensions(self) -> "Matrix":
        if len(self.values) != len(self.rows):
            raise ValueError(
                f"matrix has {len(self.rows)} rows but {len(self.values)} value rows"
            )
        for i, row in enumerate(self.values):
            if len(row) != len(self.columns):
                raise ValueError(
                    f"matrix row {i} has {len(row)} values, expected {len(self.columns)}"
                )
        return self


# -- Tabular --


class TabularColumn(BaseModel):
    key: str
    label: str
    type: Optional[Literal["string", "number", "date", "boolean"]] = None
    format: Optional[str] = Field(
        default=None,
        description="'currency', 'percentage', 'date', 'datetime'",
    )


class Pagination(BaseModel):
    page: int
    page_size: int
    total_pages: int


class Tabular(ShapeModel):
    """Rows and columns (data tables)."""

    shape: Literal["tabular"] = Field(default="tabular", alias=SHAPE_FIELD)
    columns: list[TabularColumn] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: Optional[int] = None
    pagination: Optional[Pagination] = None


DataShape = Annotated[
    Union[SingleValue, Categorical, TimeSeries, FunnelStages, Matrix, Tabular],
    Field(discriminator="shape"),
]

SHAPE_MODELS: dict[ShapeKind, type[ShapeModel]] = {
    ShapeKind.SINGLE_VALUE: SingleValue,
    ShapeKind.CATEGORICAL: Categorical,
    ShapeKind.TIME_SERIES: TimeSeries,
    ShapeKind.FUNNEL_STAGES: FunnelStages,
    ShapeKind.MATRIX: Matrix,
    ShapeKind.TABULAR: Tabular,
}
