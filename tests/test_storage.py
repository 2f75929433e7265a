"""
Tests for the SQL row source and the dashboard widget store (SQLite).
"""
import pytest

from conftest import insert_activity, insert_placement, make_row, run
from certus.dashboards.store import attach_asset, load_dashboard_widgets, save_dashboard_widget
from certus.executor.query_executor import DataAssetQueryExecutor
from certus.executor.schemas import DateRange, QueryFilters, QueryParameters, RowQuery
from certus.executor.sources import SqlRowSource, build_select
from certus.shapes.schemas import ShapeKind
from certus.widgets.schemas import DashboardWidget, WidgetParameters, WidgetPosition


class TestBuildSelect:
    def test_unknown_template(self):
        with pytest.raises(ValueError):
            build_select("drop_tables", RowQuery())

    def test_values_are_parameters(self):
        sql, params = build_select(
            "activity_events",
            RowQuery(
                start="2025-03-01",
                activity_types=["BD Call"],
                filters={"consultant_id": "x'; DROP TABLE activities; --"},
            ),
        )
        assert "DROP" not in sql
        assert params == ("2025-03-01", "BD Call", "x'; DROP TABLE activities; --")

    def test_unknown_filter_skipped(self):
        sql, params = build_select("activity_events", RowQuery(filters={"notes": "x"}))
        assert "notes =" not in sql
        assert params == ()

    def test_placements_ignore_activity_type(self):
        sql, params = build_select(
            "placement_revenue",
            RowQuery(activity_types=["Placed"], filters={"activity_type": "Placed"}),
        )
        assert "activity_type IN" not in sql
        assert params == ()


class TestSqlRowSource:
    def _seed(self):
        rows = [
            make_row("2025-03-01", "Candidate Call", consultant="Aroha", consultant_id="c-1"),
            make_row("2025-03-02", "Candidate Call", consultant="Ben", consultant_id="c-2"),
            make_row("2025-03-02", "Candidate Call", consultant="Ben", consultant_id="c-2"),
            make_row("2025-03-05", "BD Call", consultant="Ben", consultant_id="c-2"),
            make_row("2025-02-20", "Candidate Call", consultant="Aroha", consultant_id="c-1"),
        ]
        for row in rows:
            insert_activity(row)

    def test_fetch_rows_filters_in_sql(self, sqlite_db):
        self._seed()
        rows = run(
            SqlRowSource().fetch_rows(
                "activity_events",
                RowQuery(start="2025-03-01", end="2025-03-31", activity_types=["Candidate Call"]),
            )
        )
        assert len(rows) == 3
        assert all(r["activity_type"] == "Candidate Call" for r in rows)
        assert rows[0]["activity_date"] == "2025-03-01"
        assert rows[0]["amount"] == 0

    def test_categorical_query_end_to_end(self, sqlite_db, asset_registry):
        self._seed()
        executor = DataAssetQueryExecutor(asset_registry, SqlRowSource())
        result = run(
            executor.query(
                QueryParameters(
                    asset_key="candidate_call_count",
                    shape=ShapeKind.CATEGORICAL,
                    filters=QueryFilters(date_range=DateRange(start="2025-03-01", end="2025-03-31")),
                    dimensions=["consultant"],
                )
            )
        )
        assert [(c.label, c.value) for c in result.data.categories] == [("Ben", 2), ("Aroha", 1)]

    def test_consultant_filter(self, sqlite_db, asset_registry):
        self._seed()
        executor = DataAssetQueryExecutor(asset_registry, SqlRowSource())
        result = run(
            executor.query(
                QueryParameters(
                    asset_key="candidate_call_count",
                    shape=ShapeKind.SINGLE_VALUE,
                    filters=QueryFilters(
                        date_range=DateRange(start="2025-03-01", end="2025-03-07"),
                        consultant_id="c-1",
                    ),
                )
            )
        )
        assert result.data.value == 1
        # 2025-02-20 falls before the prior period (02-22..02-28)
        assert result.data.comparison is None

    def test_placement_revenue_sums_fees(self, sqlite_db, asset_registry):
        insert_placement(make_row("2025-03-03", "Placed", amount=12000, notes="Developer"))
        insert_placement(make_row("2025-03-09", "Placed", amount=8500, notes="Nurse"))
        executor = DataAssetQueryExecutor(asset_registry, SqlRowSource())
        result = run(
            executor.query(
                QueryParameters(asset_key="placement_revenue", shape=ShapeKind.SINGLE_VALUE)
            )
        )
        assert result.data.value == pytest.approx(20500)

        table = run(
            executor.query(QueryParameters(asset_key="placement_count", shape=ShapeKind.TABULAR))
        )
        assert [r["notes"] for r in table.data.rows] == ["Nurse", "Developer"]


class TestDashboardStore:
    def _widget(self, widget_id, asset_id, widget_type, x=0, y=0, **kwargs):
        return DashboardWidget(
            id=widget_id,
            dashboard_id="dash-1",
            data_asset_id=asset_id,
            widget_type=widget_type,
            position=WidgetPosition(x=x, y=y),
            **kwargs,
        )

    def test_round_trip_with_asset_join(self, sqlite_db, asset_registry):
        asset = asset_registry.get_asset("candidate_call_count")
        save_dashboard_widget(
            self._widget(
                "w-2", asset.id, "bar_chart", x=0, y=4,
                parameters=WidgetParameters(dimension="consultant", limit=5),
                widget_config={"title": "Calls by consultant"},
            )
        )
        save_dashboard_widget(self._widget("w-1", asset.id, "kpi_card", x=3, y=0))
        save_dashboard_widget(
            DashboardWidget(id="other", dashboard_id="dash-2", widget_type="kpi_card")
        )

        widgets = load_dashboard_widgets("dash-1", asset_registry)

        assert [w.id for w in widgets] == ["w-1", "w-2"]
        assert widgets[1].parameters.limit == 5
        assert widgets[1].widget_config == {"title": "Calls by consultant"}
        assert widgets[0].data_asset.asset_key == "candidate_call_count"

    def test_unknown_asset_id_leaves_asset_empty(self, sqlite_db, asset_registry):
        save_dashboard_widget(self._widget("w-1", "da-deleted", "kpi_card"))
        widgets = load_dashboard_widgets("dash-1", asset_registry)
        assert widgets[0].data_asset is None
        assert widgets[0].data_asset_id == "da-deleted"

    def test_attach_asset(self, asset_registry):
        asset = asset_registry.get_asset("bd_call_count")
        widget = attach_asset(self._widget("w-1", asset.id, "kpi_card"), asset_registry)
        assert widget.data_asset.asset_key == "bd_call_count"

    def test_malformed_rows_skipped(self, sqlite_db, asset_registry):
        save_dashboard_widget(self._widget("w-good", "da-0001", "kpi_card"))
        for widget_id, parameters, position in [
            ("w-bad-json", "{not json", "{}"),
            ("w-bad-position", "{}", '{"x": "left"}'),
        ]:
            sqlite_db.execute(
                "INSERT INTO dashboard_widgets (id, dashboard_id, data_asset_id, "
                "widget_type, parameters, widget_config, position) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s)",
                (widget_id, "dash-1", "da-0001", "kpi_card", parameters, "{}", position),
            )

        widgets = load_dashboard_widgets("dash-1", asset_registry)

        assert [w.id for w in widgets] == ["w-good"]
