#!/usr/bin/env python3
"""Seed the certus database with demo recruitment activity.

Creates consultants across two regions, a few weeks of activities and
placements, and one demo dashboard with a widget for each widget shape.

Usage:
    python scripts/seed_demo_data.py [--days 90] [--seed 7] [--dashboard demo]

Set CERTUS_SQLITE_PATH or CERTUS_DATABASE_URL to choose the target database.
"""

import logging
import math
import random
import uuid
from datetime import date, timedelta

from certus.dashboards.store import save_dashboard_widget
from certus.data_assets.registry import get_data_asset_registry
from certus.executor import db
from certus.widgets.schemas import DashboardWidget, WidgetParameters, WidgetPosition

logger = logging.getLogger(__name__)

CONSULTANTS = [
    # (id, name, team_id, team_name, region_id, region_name)
    ("c-001", "Aroha Ngata", "t-akl-perm", "Auckland Perm", "r-north", "Northern"),
    ("c-002", "Ben Walker", "t-akl-perm", "Auckland Perm", "r-north", "Northern"),
    ("c-003", "Chloe Tan", "t-akl-contract", "Auckland Contract", "r-north", "Northern"),
    ("c-004", "Dev Patel", "t-wlg-perm", "Wellington Perm", "r-central", "Central"),
    ("c-005", "Ella Murphy", "t-wlg-perm", "Wellington Perm", "r-central", "Central"),
]

# Average events per consultant per working day
DAILY_RATES = {
    "BD Call": 4.0,
    "Candidate Call": 6.0,
    "Client Meeting": 0.6,
    "Coffee Catch Up": 0.4,
    "Submittal": 1.2,
    "Interview": 0.6,
    "Client Interview": 0.3,
    "Offer Extended": 0.15,
    "Placed": 0.1,
}

DEMO_WIDGETS = [
    # (asset_key, widget_type, parameters, config, position)
    ("candidate_call_count", "kpi_card", {}, {"icon": "phone"}, (0, 0)),
    ("bd_call_count", "kpi_card", {}, {"icon": "briefcase"}, (3, 0)),
    ("placement_revenue", "target_gauge", {}, {"target_value": 50000}, (6, 0)),
    ("candidate_call_count", "time_series_chart", {}, {}, (0, 2)),
    ("submittal_count", "leaderboard", {"dimension": "consultant", "limit": 5}, {}, (6, 2)),
    ("client_meeting_count", "donut_chart", {"dimension": "activity_type"}, {}, (0, 6)),
    ("consultant_activity_matrix", "heatmap", {"dimensions": ["consultant", "activity_type"]}, {}, (0, 10)),
    ("activity_log", "data_table", {}, {}, (0, 15)),
]


def _poisson(rng: random.Random, rate: float) -> int:
    # Knuth; rates here are small
    threshold = math.exp(-rate)
    k, p = 0, 1.0
    while True:
        p *= rng.random()
        if p <= threshold:
            return k
        k += 1


def seed_activities(rng: random.Random, start: date, days: int) -> tuple[int, int]:
    activities = placements = 0
    for offset in range(days):
        day = start + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for cid, name, team_id, team, region_id, region in CONSULTANTS:
            for activity_type, rate in DAILY_RATES.items():
                for _ in range(_poisson(rng, rate)):
                    db.execute(
                        "INSERT INTO activities (id, activity_date, activity_type, "
                        "consultant_id, consultant_name, team_id, team_name, region_id, "
                        "region_name, candidate_id, job_order_id, notes) "
                        "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                        (
                            str(uuid.uuid4()),
                            day.isoformat(),
                            activity_type,
                            cid,
                            name,
                            team_id,
                            team,
                            region_id,
                            region,
                            f"cand-{rng.randint(1, 400)}",
                            f"job-{rng.randint(1, 60)}",
                            f"{activity_type} logged by {name}",
                        ),
                    )
                    activities += 1
                    if activity_type == "Placed":
                        db.execute(
                            "INSERT INTO placements (id, placed_date, consultant_id, "
                            "consultant_name, team_id, team_name, region_id, region_name, "
                            "candidate_id, job_order_id, fee_amount, role_title) "
                            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                            (
                                str(uuid.uuid4()),
                                day.isoformat(),
                                cid,
                                name,
                                team_id,
                                team,
                                region_id,
                                region,
                                f"cand-{rng.randint(1, 400)}",
                                f"job-{rng.randint(1, 60)}",
                                float(rng.randrange(8000, 32000, 500)),
                                rng.choice(["Accountant", "Developer", "Site Manager", "Nurse"]),
                            ),
                        )
                        placements += 1
    return activities, placements


def seed_dashboard(dashboard_id: str) -> int:
    registry = get_data_asset_registry()
    count = 0
    for asset_key, widget_type, parameters, config, (x, y) in DEMO_WIDGETS:
        asset = registry.get_asset(asset_key)
        if asset is None:
            logger.warning(f"Skipping widget for missing asset {asset_key}")
            continue
        save_dashboard_widget(
            DashboardWidget(
                id=f"{dashboard_id}-w{count + 1}",
                dashboard_id=dashboard_id,
                data_asset_id=asset.id,
                widget_type=widget_type,
                parameters=WidgetParameters(**parameters),
                widget_config=config,
                position=WidgetPosition(x=x, y=y),
            )
        )
        count += 1
    return count


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed certus with demo recruitment data")
    parser.add_argument("--days", type=int, default=90, help="Days of history to generate")
    parser.add_argument("--seed", type=int, default=7, help="Random seed")
    parser.add_argument("--dashboard", default="demo", help="Dashboard id for demo widgets")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    db.init_db()
    rng = random.Random(args.seed)
    start = date.today() - timedelta(days=args.days - 1)
    activities, placements = seed_activities(rng, start, args.days)
    widgets = seed_dashboard(args.dashboard)
    logger.info(
        f"Seeded {activities} activities, {placements} placements, "
        f"{widgets} widgets on dashboard '{args.dashboard}'"
    )
