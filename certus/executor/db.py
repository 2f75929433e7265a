"""Database layer for the data asset executor and dashboard store.

Supports two backends:
- PostgreSQL (production, set CERTUS_DATABASE_URL env var)
- SQLite (local development and tests, default)

Uses raw SQL via psycopg2 (Postgres) or sqlite3 (SQLite). No ORM.

Thread-safety: Postgres uses a ThreadedConnectionPool for connection reuse.
SQLite uses per-call connections with check_same_thread=False, so calls
can run inside asyncio.to_thread workers.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Database URL: postgres://... for Postgres, or empty for SQLite
DATABASE_URL = os.environ.get("CERTUS_DATABASE_URL", "")

# SQLite path (CERTUS_SQLITE_PATH overrides)
SQLITE_PATH = Path(
    os.environ.get("CERTUS_SQLITE_PATH", "")
    or Path(__file__).parent / "certus.db"
)

_initialized = False
_pg_pool = None


def _is_postgres() -> bool:
    """Check if we're using Postgres."""
    return DATABASE_URL.startswith("postgres")


def _get_pg_pool():
    """Get or create the Postgres connection pool (lazy singleton)."""
    global _pg_pool
    if _pg_pool is None:
        import psycopg2.pool
        _pg_pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=5,
            dsn=DATABASE_URL,
        )
        logger.info("PostgreSQL connection pool initialized (1-5 connections)")
    return _pg_pool


@contextmanager
def get_connection():
    """Get a database connection (Postgres or SQLite).

    Usage:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(...)
            conn.commit()
    """
    if _is_postgres():
        pool = _get_pg_pool()
        conn = pool.getconn()
        try:
            yield conn
        finally:
            pool.putconn(conn)
    else:
        conn = sqlite3.connect(str(SQLITE_PATH), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()


def _json_dumps(data: Any) -> str:
    """Serialize data to JSON string for storage."""
    if data is None:
        return "{}"
    return json.dumps(data, ensure_ascii=False, default=str)


def _json_loads(text: Any) -> Any:
    """Deserialize JSON string from storage."""
    if not text:
        return {}
    if isinstance(text, (dict, list)):
        return text  # Already parsed (Postgres JSONB)
    return json.loads(text)


def execute(sql: str, params: tuple = (), fetch: str = "none") -> Any:
    """Execute a SQL statement.

    Args:
        sql: SQL statement with %s placeholders (rewritten to ? for SQLite)
        params: Parameters tuple
        fetch: "none", "one", "all"

    Returns:
        None for "none", dict for "one", list[dict] for "all"
    """
    if _is_postgres():
        adapted_sql = sql
    else:
        adapted_sql = sql.replace("%s", "?")

    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(adapted_sql, params)

        if fetch == "none":
            conn.commit()
            return None
        elif fetch == "one":
            row = cursor.fetchone()
            if row is None:
                return None
            if _is_postgres():
                columns = [desc[0] for desc in cursor.description]
                return dict(zip(columns, row))
            return dict(row)
        elif fetch == "all":
            rows = cursor.fetchall()
            if _is_postgres():
                columns = [desc[0] for desc in cursor.description]
                return [dict(zip(columns, row)) for row in rows]
            return [dict(row) for row in rows]

        conn.commit()
        return None


def init_db():
    """Create tables if they don't exist."""
    global _initialized
    if _initialized:
        return

    if _is_postgres():
        _init_postgres()
    else:
        _init_sqlite()

    _initialized = True
    backend = "PostgreSQL" if _is_postgres() else f"SQLite ({SQLITE_PATH})"
    logger.info(f"Certus database initialized: {backend}")


def _init_postgres():
    """Create Postgres tables."""
    ddl = """
    CREATE TABLE IF NOT EXISTS activities (
        id VARCHAR(100) PRIMARY KEY,
        activity_date DATE NOT NULL,
        activity_type VARCHAR(100) NOT NULL,
        consultant_id VARCHAR(100),
        consultant_name VARCHAR(200),
        team_id VARCHAR(100),
        team_name VARCHAR(200),
        region_id VARCHAR(100),
        region_name VARCHAR(200),
        candidate_id VARCHAR(100),
        job_order_id VARCHAR(100),
        notes TEXT,
        metadata JSONB DEFAULT '{}'
    );

    CREATE INDEX IF NOT EXISTS idx_activities_date
        ON activities(activity_date, activity_type);

    CREATE TABLE IF NOT EXISTS placements (
        id VARCHAR(100) PRIMARY KEY,
        placed_date DATE NOT NULL,
        consultant_id VARCHAR(100),
        consultant_name VARCHAR(200),
        team_id VARCHAR(100),
        team_name VARCHAR(200),
        region_id VARCHAR(100),
        region_name VARCHAR(200),
        candidate_id VARCHAR(100),
        job_order_id VARCHAR(100),
        fee_amount NUMERIC(12, 2) DEFAULT 0,
        role_title VARCHAR(300)
    );

    CREATE TABLE IF NOT EXISTS dashboard_widgets (
        id VARCHAR(100) PRIMARY KEY,
        dashboard_id VARCHAR(100) NOT NULL,
        data_asset_id VARCHAR(100),
        widget_type VARCHAR(100) NOT NULL,
        parameters JSONB DEFAULT '{}',
        widget_config JSONB DEFAULT '{}',
        position JSONB DEFAULT '{}',
        created_at TIMESTAMP DEFAULT NOW()
    );

    CREATE INDEX IF NOT EXISTS idx_dashboard_widgets_dashboard
        ON dashboard_widgets(dashboard_id);

    CREATE TABLE IF NOT EXISTS unmatched_terms (
        id SERIAL PRIMARY KEY,
        unmatched_term VARCHAR(500) NOT NULL,
        user_query TEXT,
        resolution_status VARCHAR(20) DEFAULT 'pending',
        created_at TIMESTAMP DEFAULT NOW()
    );
    """
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(ddl)
        conn.commit()


def _init_sqlite():
    """Create SQLite tables."""
    ddl = """
    CREATE TABLE IF NOT EXISTS activities (
        id TEXT PRIMARY KEY,
        activity_date TEXT NOT NULL,
        activity_type TEXT NOT NULL,
        consultant_id TEXT,
        consultant_name TEXT,
        team_id TEXT,
        team_name TEXT,
        region_id TEXT,
        region_name TEXT,
        candidate_id TEXT,
        job_order_id TEXT,
        notes TEXT,
        metadata TEXT DEFAULT '{}'
    );

    CREATE INDEX IF NOT EXISTS idx_activities_date
        ON activities(activity_date, activity_type);

    CREATE TABLE IF NOT EXISTS placements (
        id TEXT PRIMARY KEY,
        placed_date TEXT NOT NULL,
        consultant_id TEXT,
        consultant_name TEXT,
        team_id TEXT,
        team_name TEXT,
        region_id TEXT,
        region_name TEXT,
        candidate_id TEXT,
        job_order_id TEXT,
        fee_amount REAL DEFAULT 0,
        role_title TEXT
    );

    CREATE TABLE IF NOT EXISTS dashboard_widgets (
        id TEXT PRIMARY KEY,
        dashboard_id TEXT NOT NULL,
        data_asset_id TEXT,
        widget_type TEXT NOT NULL,
        parameters TEXT DEFAULT '{}',
        widget_config TEXT DEFAULT '{}',
        position TEXT DEFAULT '{}',
        created_at TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_dashboard_widgets_dashboard
        ON dashboard_widgets(dashboard_id);

    CREATE TABLE IF NOT EXISTS unmatched_terms (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        unmatched_term TEXT NOT NULL,
        user_query TEXT,
        resolution_status TEXT DEFAULT 'pending',
        created_at TEXT
    );
    """
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.executescript(ddl)
        conn.commit()
