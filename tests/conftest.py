"""
Pytest fixtures for certus tests.
"""
import asyncio
import itertools
from datetime import date, timedelta

import pytest

from certus.data_assets.registry import DataAssetRegistry
from certus.data_assets.schemas import DataAsset
from certus.executor import db
from certus.executor.query_executor import DataAssetQueryExecutor
from certus.executor.sources import StaticRowSource

_ids = itertools.count(1)


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


def make_row(day, activity_type="Candidate Call", consultant="Aroha Ngata", **extra):
    """Build one activity row in the row-source format."""
    if isinstance(day, date):
        day = day.isoformat()
    row = {
        "id": f"row-{next(_ids)}",
        "activity_date": day,
        "activity_type": activity_type,
        "consultant_id": extra.pop("consultant_id", consultant.lower().replace(" ", "-")),
        "consultant_name": consultant,
        "team_id": extra.pop("team_id", "t-akl"),
        "team_name": extra.pop("team_name", "Auckland"),
        "region_id": extra.pop("region_id", "r-north"),
        "region_name": extra.pop("region_name", "Northern"),
        "amount": extra.pop("amount", 0.0),
        "notes": extra.pop("notes", None),
    }
    row.update(extra)
    return row


def rows_on(start: date, offsets, **kwargs):
    """One row per offset (in days) from start."""
    return [make_row(start + timedelta(days=o), **kwargs) for o in offsets]


@pytest.fixture
def asset_registry():
    """Registry over the packaged definitions."""
    registry = DataAssetRegistry()
    registry.load()
    return registry


@pytest.fixture
def make_asset():
    """Factory for synthetic data assets."""

    def _make(asset_key="synthetic_metric", **overrides):
        data = {
            "id": f"da-{asset_key}",
            "asset_key": asset_key,
            "display_name": asset_key.replace("_", " ").title(),
            "category": "activity",
            "synonyms": [],
            "output_shapes": ["single_value"],
            "available_dimensions": ["consultant", "team", "activity_type"],
            "available_filters": ["consultant_id", "team_id"],
            "query_template": "activity_events",
            "metadata": {"measure": "count"},
        }
        data.update(overrides)
        return DataAsset.model_validate(data)

    return _make


@pytest.fixture
def static_source():
    return StaticRowSource()


@pytest.fixture
def executor(asset_registry, static_source):
    """Executor over the packaged assets and an in-memory row source."""
    return DataAssetQueryExecutor(asset_registry, static_source, timeout_seconds=2)


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Point the db layer at a fresh SQLite file."""
    monkeypatch.setattr(db, "DATABASE_URL", "")
    monkeypatch.setattr(db, "SQLITE_PATH", tmp_path / "certus-test.db")
    monkeypatch.setattr(db, "_initialized", False)
    db.init_db()
    yield db


def insert_activity(row: dict):
    db.execute(
        "INSERT INTO activities (id, activity_date, activity_type, consultant_id, "
        "consultant_name, team_id, team_name, region_id, region_name, notes) "
        "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
        (
            row["id"],
            row["activity_date"],
            row["activity_type"],
            row["consultant_id"],
            row["consultant_name"],
            row["team_id"],
            row["team_name"],
            row["region_id"],
            row["region_name"],
            row["notes"],
        ),
    )


def insert_placement(row: dict):
    db.execute(
        "INSERT INTO placements (id, placed_date, consultant_id, consultant_name, "
        "team_id, team_name, region_id, region_name, fee_amount, role_title) "
        "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
        (
            row["id"],
            row["activity_date"],
            row["consultant_id"],
            row["consultant_name"],
            row["team_id"],
            row["team_name"],
            row["region_id"],
            row["region_name"],
            row["amount"],
            row["notes"],
        ),
    )
