"""Type guards that narrow a dynamic payload to one shape contract.

Guards are total: they never raise and return False for anything malformed.
A failed guard means "no renderable data", not an error.

Classification always starts from the `_shape` discriminator. Field checks
only confirm that the tagged payload is well formed; they never decide
which shape a payload is (a payload with `rows` is not a Matrix or a
Tabular until its tag says so).
"""

import datetime
import math
from collections.abc import Mapping
from typing import Any, Callable, Optional

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from .schemas import SHAPE_FIELD, ShapeKind, TimeInterval, ValueFormat

_VALUE_FORMATS = {f.value for f in ValueFormat}
_INTERVALS = {i.value for i in TimeInterval}
_DIRECTIONS = {"up", "down", "neutral"}


# -- Field helpers --


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _optional(value: Any, check: Callable[[Any], bool]) -> bool:
    return value is None or check(value)


def _is_format(value: Any) -> bool:
    return isinstance(value, str) and value in _VALUE_FORMATS


def _all(items: Any, check: Callable[[Any], bool]) -> bool:
    return _is_list(items) and all(check(item) for item in items)


# -- Per-shape structure checks (tag already verified) --


def _check_comparison(c: Any) -> bool:
    return (
        isinstance(c, Mapping)
        and c.get("direction") in _DIRECTIONS
        and _is_number(c.get("value"))
        and _is_str(c.get("label"))
    )


def _check_single_value(p: Mapping) -> bool:
    return (
        _is_str(p.get("label"))
        and _is_number(p.get("value"))
        and _optional(p.get("format"), _is_format)
        and _optional(p.get("comparison"), _check_comparison)
    )


def _check_category(c: Any) -> bool:
    return (
        isinstance(c, Mapping)
        and _is_str(c.get("label"))
        and _is_number(c.get("value"))
        and _optional(c.get("metadata"), lambda m: isinstance(m, Mapping))
    )


def _check_category_series(s: Any) -> bool:
    return (
        isinstance(s, Mapping)
        and _is_str(s.get("name"))
        and _all(
            s.get("data"),
            lambda d: isinstance(d, Mapping)
            and _optional(d.get("label"), _is_str)
            and _is_number(d.get("value")),
        )
    )


def _check_categorical(p: Mapping) -> bool:
    return (
        _all(p.get("categories"), _check_category)
        and _optional(p.get("format"), _is_format)
        and _optional(p.get("series"), lambda s: _all(s, _check_category_series))
    )


def _check_time_line(s: Any) -> bool:
    return (
        isinstance(s, Mapping)
        and _is_str(s.get("name"))
        and _all(
            s.get("data"),
            lambda d: isinstance(d, Mapping)
            and _is_iso_date(d.get("date"))
            and _is_number(d.get("value")),
        )
    )


def _check_time_series(p: Mapping) -> bool:
    return (
        _all(p.get("series"), _check_time_line)
        and _optional(p.get("format"), _is_format)
        and _optional(p.get("interval"), lambda i: i in _INTERVALS)
    )


def _check_stage(s: Any) -> bool:
    return (
        isinstance(s, Mapping)
        and _is_str(s.get("label"))
        and _is_number(s.get("value"))
        and _is_int(s.get("order"))
        and _optional(s.get("conversion_rate"), _is_number)
    )


def _check_funnel_stages(p: Mapping) -> bool:
    return _all(p.get("stages"), _check_stage) and _optional(p.get("format"), _is_format)


def _check_matrix(p: Mapping) -> bool:
    rows, columns, values = p.get("rows"), p.get("columns"), p.get("values")
    if not (_all(rows, _is_str) and _all(columns, _is_str) and _is_list(values)):
        return False
    if len(values) != len(rows):
        return False
    for row in values:
        if not _all(row, _is_number) or len(row) != len(columns):
            return False
    return _optional(p.get("format"), _is_format)


def _check_pagination(pg: Any) -> bool:
    return (
        isinstance(pg, Mapping)
        and _is_int(pg.get("page"))
        and _is_int(pg.get("total_pages"))
        and _optional(pg.get("page_size"), _is_int)
    )


def _check_tabular(p: Mapping) -> bool:
    return (
        _all(
            p.get("columns"),
            lambda c: isinstance(c, Mapping)
            and _is_str(c.get("key"))
            and _is_str(c.get("label")),
        )
        and _all(p.get("rows"), lambda r: isinstance(r, Mapping))
        and _optional(p.get("total_rows"), lambda n: _is_int(n) and n >= 0)
        and _optional(p.get("pagination"), _check_pagination)
    )


_CHECKS: dict[ShapeKind, Callable[[Mapping], bool]] = {
    ShapeKind.SINGLE_VALUE: _check_single_value,
    ShapeKind.CATEGORICAL: _check_categorical,
    ShapeKind.TIME_SERIES: _check_time_series,
    ShapeKind.FUNNEL_STAGES: _check_funnel_stages,
    ShapeKind.MATRIX: _check_matrix,
    ShapeKind.TABULAR: _check_tabular,
}


# -- Public API --


def _as_mapping(payload: Any) -> Optional[Mapping]:
    """Normalize a shape model or mapping into a mapping, else None."""
    if isinstance(payload, BaseModel):
        try:
            return payload.model_dump(mode="json", by_alias=True)
        except PydanticSerializationError:
            return None
    if isinstance(payload, Mapping):
        return payload
    return None


def _shape_tag(payload: Mapping) -> Optional[ShapeKind]:
    tag = payload.get(SHAPE_FIELD)
    if not isinstance(tag, str):
        return None
    try:
        return ShapeKind(tag)
    except ValueError:
        return None


def matches_shape(payload: Any, kind: ShapeKind) -> bool:
    """True iff payload is tagged `kind` and well formed for it."""
    data = _as_mapping(payload)
    if data is None or _shape_tag(data) != kind:
        return False
    return _CHECKS[kind](data)


def classify_shape(payload: Any) -> Optional[ShapeKind]:
    """Return the shape kind of a well-formed payload, or None."""
    data = _as_mapping(payload)
    if data is None:
        return None
    kind = _shape_tag(data)
    if kind is None or not _CHECKS[kind](data):
        return None
    return kind


def is_single_value(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.SINGLE_VALUE)


def is_categorical(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.CATEGORICAL)


def is_time_series(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.TIME_SERIES)


def is_funnel_stages(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.FUNNEL_STAGES)


def is_matrix(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.MATRIX)


def is_tabular(payload: Any) -> bool:
    return matches_shape(payload, ShapeKind.TABULAR)


GUARDS: dict[ShapeKind, Callable[[Any], bool]] = {
    ShapeKind.SINGLE_VALUE: is_single_value,
    ShapeKind.CATEGORICAL: is_categorical,
    ShapeKind.TIME_SERIES: is_time_series,
    ShapeKind.FUNNEL_STAGES: is_funnel_stages,
    ShapeKind.MATRIX: is_matrix,
    ShapeKind.TABULAR: is_tabular,
}


def guard_for(kind: ShapeKind) -> Callable[[Any], bool]:
    """Get the guard predicate for a shape kind."""
    return GUARDS[ShapeKind(kind)]
