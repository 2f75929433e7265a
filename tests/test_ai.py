"""
Tests for the assistant helpers: sanitization, mode detection, the catalog
prompt, pairing validation and answer mode.
"""
import pytest
from pydantic import ValidationError

from certus.ai.answer import execute_answer
from certus.ai.catalog_prompt import build_catalog_prompt, format_widget_section
from certus.ai.pairings import (
    BuilderResponse,
    WidgetPairing,
    record_unmatched_terms,
    validate_pairings,
)
from certus.ai.sanitize import MAX_INPUT_LENGTH, AssistantMode, detect_mode, sanitize_input
from certus.executor import db
from certus.executor.schemas import DateRange
from certus.widgets.registry import WidgetRegistry

from conftest import make_row, run


def _pairing(data_asset, widget_type, title="Widget"):
    return WidgetPairing(
        data_asset=data_asset,
        widget_type=widget_type,
        widget_config={"title": title},
        suggested_layout={"w": 6, "h": 4},
    )


class TestSanitize:
    def test_strips_control_characters(self):
        assert sanitize_input("  how many\x00 calls\x1b?\n ") == "how many calls?"

    def test_keeps_tabs_and_newlines_inside(self):
        assert sanitize_input("a\tb\nc") == "a\tb\nc"

    def test_caps_length(self):
        assert len(sanitize_input("x" * (MAX_INPUT_LENGTH + 500))) == MAX_INPUT_LENGTH


class TestDetectMode:
    def test_builder(self):
        assert detect_mode("Build me a dashboard for my team") == AssistantMode.BUILDER

    def test_answer(self):
        assert detect_mode("How many candidate calls did I make?") == AssistantMode.ANSWER

    def test_both_is_ambiguous(self):
        assert detect_mode("Show me how many calls I made") == AssistantMode.AMBIGUOUS

    def test_neither_is_ambiguous(self):
        assert detect_mode("hello there") == AssistantMode.AMBIGUOUS


class TestCatalogPrompt:
    def test_deterministic(self, asset_registry):
        widgets = WidgetRegistry()
        assert build_catalog_prompt(asset_registry, widgets) == build_catalog_prompt(
            asset_registry, widgets
        )

    def test_lists_active_assets_only(self, asset_registry):
        prompt = build_catalog_prompt(asset_registry, WidgetRegistry())
        assert "[candidate_call_count]: Candidate Calls" in prompt
        assert "legacy_job_order_count" not in prompt

    def test_assets_in_category_order(self, asset_registry):
        prompt = build_catalog_prompt(asset_registry, WidgetRegistry())
        # activity < engagement < performance < pipeline < revenue
        assert prompt.index("[bd_call_count]") < prompt.index("[activity_log]")
        assert prompt.index("[activity_log]") < prompt.index("[placement_revenue]")

    def test_widget_section(self):
        section = format_widget_section(WidgetRegistry())
        assert "- heatmap (matrix): Heatmap: " in section
        assert "Default size: 12x5" in section
        assert section.index("kpi_card") < section.index("stacked_bar_chart")


class TestPairingModels:
    def test_builder_response_limits(self):
        with pytest.raises(ValidationError):
            BuilderResponse(pairings=[])
        with pytest.raises(ValidationError):
            BuilderResponse(pairings=[_pairing("bd_call_count", "kpi_card")] * 7)

    def test_layout_bounds(self):
        with pytest.raises(ValidationError):
            WidgetPairing(
                data_asset="bd_call_count",
                widget_type="kpi_card",
                widget_config={"title": "BD"},
                suggested_layout={"w": 1, "h": 4},
            )

    def test_config_extra_keys_kept(self):
        pairing = WidgetPairing(
            data_asset="bd_call_count",
            widget_type="target_gauge",
            widget_config={"title": "BD", "target_value": 40},
            suggested_layout={"w": 3, "h": 3},
        )
        assert pairing.widget_config.model_dump()["target_value"] == 40


class TestValidatePairings:
    def test_accepts_compatible(self, asset_registry):
        result = validate_pairings(
            [
                _pairing("candidate_call_count", "kpi_card"),
                _pairing("consultant_activity_matrix", "heatmap"),
            ],
            asset_registry,
            WidgetRegistry(),
        )
        assert result.all_valid
        assert len(result.accepted) == 2

    def test_rejects_with_reasons(self, asset_registry):
        result = validate_pairings(
            [
                _pairing("candidate_call_count", "heatmap"),
                _pairing("candidate_call_count", "kpi_card"),
                _pairing("made_up_metric", "kpi_card"),
                _pairing("legacy_job_order_count", "kpi_card"),
                _pairing("bd_call_count", "sparkline"),
            ],
            asset_registry,
            WidgetRegistry(),
        )
        assert not result.all_valid
        assert [p.widget_type for p in result.accepted] == ["kpi_card"]
        assert [(r.index, r.error["error"]) for r in result.rejected] == [
            (0, "unsupported_shape"),
            (2, "asset_not_found"),
            (3, "asset_not_found"),
            (4, "unknown_widget_type"),
        ]


class TestUnmatchedTerms:
    def test_records_unique_terms(self, sqlite_db):
        recorded = record_unmatched_terms(
            ["NPS score", "nps SCORE", "  ", "churn"], user_query="show NPS and churn"
        )
        assert recorded == 2
        rows = db.execute(
            "SELECT unmatched_term, user_query, resolution_status FROM unmatched_terms "
            "ORDER BY unmatched_term",
            fetch="all",
        )
        assert [r["unmatched_term"] for r in rows] == ["NPS score", "churn"]
        assert rows[0]["user_query"] == "show NPS and churn"
        assert rows[0]["resolution_status"] == "pending"

    def test_nothing_to_record(self, sqlite_db):
        assert record_unmatched_terms([" ", ""]) == 0


class TestExecuteAnswer:
    def test_formats_value(self, executor, static_source):
        static_source.rows["activity_events"] = [
            make_row("2025-03-03"),
            make_row("2025-03-04"),
            make_row("2025-03-05", activity_type="BD Call"),
        ]
        result = run(
            execute_answer(
                "candidate_call_count",
                date_range=DateRange(start="2025-03-01", end="2025-03-07"),
                executor=executor,
            )
        )
        assert result.error is None
        assert result.value == "Candidate Calls: 2"

    def test_currency(self, executor, static_source):
        static_source.rows["placement_revenue"] = [
            make_row("2025-03-03", activity_type="Placed", amount=12500.0),
            make_row("2025-03-04", activity_type="Placed", amount=8000.4),
        ]
        result = run(execute_answer("placement_revenue", executor=executor))
        assert result.value == "Placement Revenue: $20,500"

    def test_consultant_filter(self, executor, static_source):
        static_source.rows["activity_events"] = [
            make_row("2025-03-03"),
            make_row("2025-03-03", consultant="Mere Tane"),
        ]
        result = run(
            execute_answer("candidate_call_count", consultant_id="mere-tane", executor=executor)
        )
        assert result.value == "Candidate Calls: 1"

    def test_data_layer_error_reported(self, executor):
        result = run(execute_answer("made_up_metric", executor=executor))
        assert result.value == ""
        assert result.error == "Data asset 'made_up_metric' not found"

    def test_unsupported_shape_reported(self, executor):
        result = run(execute_answer("activity_log", executor=executor))
        assert "does not support shape 'single_value'" in result.error
