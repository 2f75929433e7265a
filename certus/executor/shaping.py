"""Pure functions that turn raw rows into shape payloads.

Everything here is deterministic over its inputs: no I/O, no clock.
Categories sort by value descending then label; matrix axes and
time-series names sort lexically; time buckets are gap-filled with 0.
"""

import calendar
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Optional

from certus.data_assets.schemas import DataAsset
from certus.shapes.schemas import (
    Categorical,
    CategoryItem,
    CategorySeries,
    CategorySeriesPoint,
    Comparison,
    FunnelStage,
    FunnelStages,
    Matrix,
    Pagination,
    ShapeKind,
    SingleValue,
    Tabular,
    TabularColumn,
    TimeInterval,
    TimeSeries,
    TimeSeriesLine,
    TimeSeriesPoint,
    ValueFormat,
)

from .schemas import SortSpec

# Dimension name -> row key holding its label
DIMENSION_COLUMNS = {
    "consultant": "consultant_name",
    "team": "team_name",
    "region": "region_name",
    "activity_type": "activity_type",
}

UNKNOWN_LABEL = "Unknown"
DEFAULT_TABULAR_LIMIT = 50

DEFAULT_COLUMNS = [
    {"key": "activity_date", "label": "Date", "type": "date", "format": "date"},
    {"key": "activity_type", "label": "Type", "type": "string"},
    {"key": "consultant_name", "label": "Consultant", "type": "string"},
    {"key": "notes", "label": "Notes", "type": "string"},
]


# -- Measures --


def value_format(asset: DataAsset) -> ValueFormat:
    fmt = asset.metadata.get("format")
    try:
        return ValueFormat(fmt) if fmt else ValueFormat.NUMBER
    except ValueError:
        return ValueFormat.NUMBER


def row_value(asset: DataAsset, row: dict) -> float:
    """Contribution of one row: 1 for count measures, the value field for sums."""
    if asset.metadata.get("measure", "count") != "sum":
        return 1.0
    raw = row.get(asset.metadata.get("value_field", "amount"))
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def measure(asset: DataAsset, rows: list[dict]) -> float:
    return float(sum(row_value(asset, r) for r in rows))


def dimension_label(row: dict, dimension: str) -> str:
    value = row.get(DIMENSION_COLUMNS.get(dimension, dimension))
    if value is None or value == "":
        return UNKNOWN_LABEL
    return str(value)


def usable_dimensions(asset: DataAsset, requested: Optional[list[str]]) -> list[str]:
    """Requested dimensions the asset declares, in request order, deduplicated."""
    out: list[str] = []
    for name in requested or []:
        if name in asset.available_dimensions and name not in out:
            out.append(name)
    return out


# -- Time buckets --


def bucket_start(day: date, interval: TimeInterval) -> date:
    if interval == TimeInterval.WEEK:
        return day - timedelta(days=day.weekday())
    if interval == TimeInterval.MONTH:
        return day.replace(day=1)
    return day


def _next_bucket(day: date, interval: TimeInterval) -> date:
    if interval == TimeInterval.WEEK:
        return day + timedelta(days=7)
    if interval == TimeInterval.MONTH:
        days_in_month = calendar.monthrange(day.year, day.month)[1]
        return day + timedelta(days=days_in_month - day.day + 1)
    return day + timedelta(days=1)


def date_buckets(start: date, end: date, interval: TimeInterval) -> list[date]:
    """Every bucket start covering [start, end] inclusive."""
    buckets = []
    current = bucket_start(start, interval)
    while current <= end:
        buckets.append(current)
        current = _next_bucket(current, interval)
    return buckets


def previous_period(start: date, end: date) -> tuple[date, date, int]:
    """The immediately preceding period of the same inclusive length."""
    days = (end - start).days + 1
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days - 1)
    return prev_start, prev_end, days


# -- Shapes --


def shape_single_value(
    asset: DataAsset,
    rows: list[dict],
    previous_rows: Optional[list[dict]] = None,
    period_days: Optional[int] = None,
) -> SingleValue:
    current = measure(asset, rows)
    comparison = None
    if previous_rows is not None and period_days:
        prior = measure(asset, previous_rows)
        # No baseline, no comparison
        if prior > 0:
            change = (current - prior) / prior
            if change > 0:
                direction = "up"
            elif change < 0:
                direction = "down"
            else:
                direction = "neutral"
            comparison = Comparison(
                direction=direction,
                value=abs(change),
                label=f"vs previous {period_days} days",
            )
    return SingleValue(
        label=asset.display_name,
        value=current,
        format=value_format(asset),
        comparison=comparison,
    )


def _rank(totals: dict[str, float]) -> list[tuple[str, float]]:
    return sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))


def shape_categorical(
    asset: DataAsset,
    rows: list[dict],
    dimensions: list[str],
    limit: Optional[int] = None,
) -> Categorical:
    """Group by the first dimension; a second one adds stacked series.

    Categories past `limit` are dropped, not folded into an "other" bucket.
    """
    if not dimensions:
        return Categorical(
            categories=[CategoryItem(label=asset.display_name, value=measure(asset, rows))],
            format=value_format(asset),
        )

    primary = dimensions[0]
    totals: dict[str, float] = defaultdict(float)
    for row in rows:
        totals[dimension_label(row, primary)] += row_value(asset, row)

    ranked = _rank(totals)
    if limit is not None:
        ranked = ranked[:limit]
    categories = [CategoryItem(label=label, value=value) for label, value in ranked]

    series = None
    if len(dimensions) > 1:
        secondary = dimensions[1]
        kept = [label for label, _ in ranked]
        cells: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        for row in rows:
            cells[dimension_label(row, secondary)][dimension_label(row, primary)] += (
                row_value(asset, row)
            )
        series = [
            CategorySeries(
                name=name,
                data=[
                    CategorySeriesPoint(label=label, value=cells[name].get(label, 0.0))
                    for label in kept
                ],
            )
            for name in sorted(cells)
        ]

    return Categorical(categories=categories, format=value_format(asset), series=series)


def shape_time_series(
    asset: DataAsset,
    rows: list[dict],
    start: Optional[date],
    end: Optional[date],
    interval: TimeInterval = TimeInterval.DAY,
    dimension: Optional[str] = None,
) -> TimeSeries:
    """One point per bucket across the range, missing buckets filled with 0.

    Without an explicit range the data's own first and last dates bound it.
    """
    dated: list[tuple[date, dict]] = []
    for row in rows:
        try:
            day = date.fromisoformat(str(row.get("activity_date"))[:10])
        except ValueError:
            continue
        dated.append((day, row))

    if start is None or end is None:
        if dated:
            days = [d for d, _ in dated]
            start = start or min(days)
            end = end or max(days)
    buckets = date_buckets(start, end, interval) if start and end else []
    known = set(buckets)

    lines: dict[str, dict[date, float]] = defaultdict(lambda: defaultdict(float))
    for day, row in dated:
        bucket = bucket_start(day, interval)
        if bucket not in known:
            continue
        name = dimension_label(row, dimension) if dimension else asset.display_name
        lines[name][bucket] += row_value(asset, row)

    if not lines:
        lines[asset.display_name] = defaultdict(float)

    series = [
        TimeSeriesLine(
            name=name,
            data=[
                TimeSeriesPoint(date=b.isoformat(), value=lines[name].get(b, 0.0))
                for b in buckets
            ],
        )
        for name in sorted(lines)
    ]
    return TimeSeries(series=series, format=value_format(asset), interval=interval)


def funnel_stage_definitions(asset: DataAsset) -> list[dict[str, Any]]:
    stages = asset.metadata.get("stages")
    if stages:
        return stages
    return [
        {"label": t, "activity_types": [t]}
        for t in asset.metadata.get("activity_types", [])
    ]


def shape_funnel(asset: DataAsset, rows: list[dict]) -> FunnelStages:
    stages = []
    previous: Optional[float] = None
    for order, stage in enumerate(funnel_stage_definitions(asset), start=1):
        types = set(stage.get("activity_types") or [stage["label"]])
        value = measure(asset, [r for r in rows if r.get("activity_type") in types])
        rate = value / previous if previous else None
        stages.append(
            FunnelStage(label=stage["label"], value=value, order=order, conversion_rate=rate)
        )
        previous = value
    return FunnelStages(stages=stages, format=value_format(asset))


def shape_matrix(
    asset: DataAsset,
    rows: list[dict],
    dimensions: list[str],
    limit: Optional[int] = None,
) -> Matrix:
    """Rows are the first dimension, columns the second; absent cells are 0."""
    row_dim, col_dim = dimensions[0], dimensions[1]
    cells: dict[tuple[str, str], float] = defaultdict(float)
    row_labels: set[str] = set()
    col_labels: set[str] = set()
    for row in rows:
        r, c = dimension_label(row, row_dim), dimension_label(row, col_dim)
        row_labels.add(r)
        col_labels.add(c)
        cells[(r, c)] += row_value(asset, row)

    ordered_rows = sorted(row_labels)
    if limit is not None:
        ordered_rows = ordered_rows[:limit]
    ordered_cols = sorted(col_labels)
    values = [[cells.get((r, c), 0.0) for c in ordered_cols] for r in ordered_rows]
    return Matrix(
        rows=ordered_rows,
        columns=ordered_cols,
        values=values,
        format=value_format(asset),
    )


def _sort_value(value: Any) -> tuple:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))


def _sorted_rows(rows: list[dict], key: str, descending: bool) -> list[dict]:
    present = [r for r in rows if r.get(key) is not None]
    missing = [r for r in rows if r.get(key) is None]
    present.sort(key=lambda r: (_sort_value(r.get(key)), str(r.get("id", ""))))
    if descending:
        present.reverse()
    return present + missing


def shape_tabular(
    asset: DataAsset,
    rows: list[dict],
    sort: Optional[SortSpec] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tabular:
    column_defs = asset.metadata.get("columns") or DEFAULT_COLUMNS
    columns = [TabularColumn.model_validate(c) for c in column_defs]
    keys = [c.key for c in columns]

    if sort is not None and sort.key in keys:
        ordered = _sorted_rows(rows, sort.key, sort.direction == "desc")
    else:
        ordered = _sorted_rows(rows, "activity_date", True)

    page_size = limit or DEFAULT_TABULAR_LIMIT
    start = offset or 0
    page_rows = ordered[start : start + page_size]
    total = len(ordered)

    return Tabular(
        columns=columns,
        rows=[{k: r.get(k) for k in keys} for r in page_rows],
        total_rows=total,
        pagination=Pagination(
            page=start // page_size + 1,
            page_size=page_size,
            total_pages=max(1, math.ceil(total / page_size)),
        ),
    )


def record_count(shape: Any) -> int:
    """Number of items in a shaped payload."""
    kind = ShapeKind(shape.shape)
    if kind == ShapeKind.SINGLE_VALUE:
        return 1
    if kind == ShapeKind.CATEGORICAL:
        return len(shape.categories)
    if kind == ShapeKind.TIME_SERIES:
        return len(shape.series[0].data) if shape.series else 0
    if kind == ShapeKind.FUNNEL_STAGES:
        return len(shape.stages)
    if kind == ShapeKind.MATRIX:
        return len(shape.rows)
    return len(shape.rows)
