"""Row sources — where shaped payloads get their raw rows from.

A RowSource turns a named query template plus a translated RowQuery into
a list of plain row dicts. Rows always use the same keys regardless of
backing table:

    id, activity_date (ISO date), activity_type, consultant_id,
    consultant_name, team_id, team_name, region_id, region_name,
    candidate_id, job_order_id, amount, notes

Shaping never sees SQL, and the SQL never sees a shape.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from . import db
from .schemas import RowQuery

logger = logging.getLogger(__name__)

# Filter names a template may be narrowed by, mapped to their column.
FILTER_COLUMNS = {
    "consultant_id": "consultant_id",
    "team_id": "team_id",
    "region_id": "region_id",
    "activity_type": "activity_type",
}

_ROW_COLUMNS = """
    id, {date_column} AS activity_date, {type_expr} AS activity_type,
    consultant_id, consultant_name, team_id, team_name, region_id,
    region_name, candidate_id, job_order_id, {amount_expr} AS amount,
    {notes_column} AS notes
"""

SQL_TEMPLATES: dict[str, dict[str, Any]] = {
    "activity_events": {
        "table": "activities",
        "date_column": "activity_date",
        "type_column": "activity_type",
        "select": _ROW_COLUMNS.format(
            date_column="activity_date",
            type_expr="activity_type",
            amount_expr="0",
            notes_column="notes",
        ),
    },
    "placement_revenue": {
        "table": "placements",
        "date_column": "placed_date",
        "type_column": None,
        "select": _ROW_COLUMNS.format(
            date_column="placed_date",
            type_expr="'Placed'",
            amount_expr="fee_amount",
            notes_column="role_title",
        ),
    },
}


class RowSource(ABC):
    """Async provider of raw rows for a query template."""

    @abstractmethod
    async def fetch_rows(self, template: str, query: RowQuery) -> list[dict]:
        """Return rows for `template` narrowed by `query`."""


def _normalize_row(row: dict) -> dict:
    out = dict(row)
    value = out.get("activity_date")
    if isinstance(value, datetime):
        out["activity_date"] = value.date().isoformat()
    elif isinstance(value, date):
        out["activity_date"] = value.isoformat()
    elif isinstance(value, str):
        out["activity_date"] = value[:10]
    amount = out.get("amount")
    if isinstance(amount, Decimal):
        out["amount"] = float(amount)
    elif amount is None:
        out["amount"] = 0.0
    return out


def build_select(template: str, query: RowQuery) -> tuple[str, tuple]:
    """Build the SELECT for a named template. Column names come only from
    the template table and FILTER_COLUMNS; values are always parameters."""
    spec = SQL_TEMPLATES.get(template)
    if spec is None:
        raise ValueError(f"Unknown query template '{template}'")

    date_column = spec["date_column"]
    clauses: list[str] = []
    params: list[Any] = []

    if query.start:
        clauses.append(f"{date_column} >= %s")
        params.append(query.start)
    if query.end:
        clauses.append(f"{date_column} <= %s")
        params.append(query.end)

    if query.activity_types and spec["type_column"]:
        placeholders = ", ".join(["%s"] * len(query.activity_types))
        clauses.append(f"{spec['type_column']} IN ({placeholders})")
        params.extend(query.activity_types)

    for name, value in sorted(query.filters.items()):
        if name == "hierarchy_node_id":
            clauses.append("(team_id = %s OR region_id = %s)")
            params.extend([value, value])
            continue
        column = FILTER_COLUMNS.get(name)
        if column is None:
            logger.debug(f"Ignoring unsupported filter '{name}'")
            continue
        if column == "activity_type" and not spec["type_column"]:
            continue
        if isinstance(value, (list, tuple)):
            placeholders = ", ".join(["%s"] * len(value))
            clauses.append(f"{column} IN ({placeholders})")
            params.extend(value)
        else:
            clauses.append(f"{column} = %s")
            params.append(value)

    sql = f"SELECT {spec['select'].strip()} FROM {spec['table']}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += f" ORDER BY {date_column}, id"
    return sql, tuple(params)


class SqlRowSource(RowSource):
    """Row source over the certus database (SQLite or Postgres)."""

    def __init__(self, init: bool = True):
        self._init = init

    def _fetch_sync(self, template: str, query: RowQuery) -> list[dict]:
        if self._init:
            db.init_db()
        sql, params = build_select(template, query)
        rows = db.execute(sql, params, fetch="all")
        return [_normalize_row(r) for r in rows]

    async def fetch_rows(self, template: str, query: RowQuery) -> list[dict]:
        return await asyncio.to_thread(self._fetch_sync, template, query)


class StaticRowSource(RowSource):
    """In-memory rows, filtered the same way the SQL source filters them.

    Used for demos and tests where no database is wanted.
    """

    def __init__(self, rows: Optional[dict[str, list[dict]]] = None):
        self.rows: dict[str, list[dict]] = rows or {}
        self.calls: list[tuple[str, RowQuery]] = []

    async def fetch_rows(self, template: str, query: RowQuery) -> list[dict]:
        self.calls.append((template, query))
        out = []
        for row in self.rows.get(template, []):
            row = _normalize_row(row)
            day = row.get("activity_date") or ""
            if query.start and day < query.start:
                continue
            if query.end and day > query.end:
                continue
            if query.activity_types and row.get("activity_type") not in query.activity_types:
                continue
            if not _matches_filters(row, query.filters):
                continue
            out.append(row)
        return out


def _matches_filters(row: dict, filters: dict[str, Any]) -> bool:
    for name, value in filters.items():
        if name == "hierarchy_node_id":
            if value not in (row.get("team_id"), row.get("region_id")):
                return False
            continue
        column = FILTER_COLUMNS.get(name)
        if column is None:
            continue
        allowed = value if isinstance(value, (list, tuple)) else [value]
        if row.get(column) not in allowed:
            return False
    return True
