"""
Shape contracts for Certus

The six canonical payload formats exchanged between data assets and widgets,
plus the guards that classify dynamic payloads.
"""

from .schemas import (
    SHAPE_FIELD,
    Categorical,
    DataShape,
    FunnelStages,
    Matrix,
    ShapeKind,
    SingleValue,
    Tabular,
    TimeInterval,
    TimeSeries,
    ValueFormat,
)
from .guards import (
    classify_shape,
    guard_for,
    is_categorical,
    is_funnel_stages,
    is_matrix,
    is_single_value,
    is_tabular,
    is_time_series,
    matches_shape,
)
from .formatting import format_value

__all__ = [
    "SHAPE_FIELD",
    "Categorical",
    "DataShape",
    "FunnelStages",
    "Matrix",
    "ShapeKind",
    "SingleValue",
    "Tabular",
    "TimeInterval",
    "TimeSeries",
    "ValueFormat",
    "classify_shape",
    "guard_for",
    "is_categorical",
    "is_funnel_stages",
    "is_matrix",
    "is_single_value",
    "is_tabular",
    "is_time_series",
    "matches_shape",
    "format_value",
]
