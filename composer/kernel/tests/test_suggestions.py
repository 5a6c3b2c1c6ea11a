"""
Composer Kernel -- Suggestion Engine Tests

Covers:
  - Low usage: views < 10 AND age > 7 days, exact boundaries
  - All low-usage widgets are pruned in one combined suggestion
  - High engagement: action clicks > 50 adds heuristic quick actions
  - Widgets that already carry actions, or are missing, get no suggestion
  - actionClicks (camelCase) snapshots are accepted
  - The input layout is never mutated
"""

import copy

import pytest

from composer.kernel.layout import iter_widgets
from composer.kernel.suggestions import (
    SuggestionEngine,
    generate_proactive_suggestions,
    suggest_actions_for_widget,
)

CREATED_AT = "2026-01-01T00:00:00Z"


def _layout():
    widgets = [
        {"id": "w-campaigns", "type": "table", "title": "Campaigns", "bind": "tables.campaigns"},
        {"id": "w-reply", "type": "kpi", "title": "Reply Rate", "bind": "metrics.reply_rate"},
        {"id": "w-leads", "type": "table", "title": "Leads", "bind": "crm.leads"},
        {
            "id": "w-workflows",
            "type": "table",
            "title": "Workflows",
            "bind": "tables.workflows",
            "actions": [{"title": "Restart", "bind": "actions.restart_workflow"}],
        },
    ]
    return {
        "version": "1.0",
        "meta": {"title": "Outreach", "product": "outreach", "created_at": CREATED_AT},
        "tabs": [
            {
                "id": "overview",
                "title": "Overview",
                "rows": [{"columns": [{"width": 12, "widgets": widgets}]}],
            }
        ],
    }


def _ids(layout):
    return [w["id"] for _, w in iter_widgets(layout)]


class TestLowUsage:
    @pytest.mark.parametrize(
        "views,age,suggested",
        [
            (9, 8, True),
            (10, 8, False),
            (9, 7, False),
            (0, 7.5, True),
        ],
    )
    def test_thresholds(self, views, age, suggested):
        telemetry = {"widgets": [{"id": "w-reply", "views": views, "age": age, "action_clicks": 0}]}
        assert (len(generate_proactive_suggestions(_layout(), telemetry)) == 1) is suggested

    def test_one_combined_removal(self):
        telemetry = {
            "widgets": [
                {"id": "w-reply", "views": 1, "age": 30, "action_clicks": 0},
                {"id": "w-leads", "views": 2, "age": 30, "action_clicks": 0},
            ]
        }
        suggestions = generate_proactive_suggestions(_layout(), telemetry)
        assert len(suggestions) == 1
        draft = suggestions[0].draft_layout
        assert _ids(draft) == ["w-campaigns", "w-workflows"]
        assert suggestions[0].rationale == (
            "These widgets are rarely viewed: Reply Rate, Leads. "
            "Consider removing them or moving to a separate analytics tab."
        )
        assert [t["id"] for t in suggestions[0].diff.tabs_modified] == ["overview"]

    def test_snapshot_title_wins(self):
        telemetry = {"widgets": [{"id": "w-reply", "title": "RR", "views": 1, "age": 30}]}
        assert "rarely viewed: RR." in generate_proactive_suggestions(_layout(), telemetry)[0].rationale


class TestHighEngagement:
    def test_threshold_is_strict(self):
        telemetry = {"widgets": [{"id": "w-campaigns", "views": 500, "age": 1, "action_clicks": 50}]}
        assert generate_proactive_suggestions(_layout(), telemetry) == []

    def test_adds_heuristic_actions(self):
        telemetry = {"widgets": [{"id": "w-campaigns", "views": 500, "age": 1, "action_clicks": 51}]}
        suggestions = generate_proactive_suggestions(_layout(), telemetry)
        assert len(suggestions) == 1
        widget = next(w for _, w in iter_widgets(suggestions[0].draft_layout) if w["id"] == "w-campaigns")
        assert widget["actions"] == [{"title": "Send Follow-ups", "bind": "actions.send_followups"}]
        assert suggestions[0].rationale == (
            'Widget "Campaigns" has high interaction. Added quick action buttons for common tasks.'
        )

    def test_camel_case_clicks(self):
        telemetry = {"widgets": [{"id": "w-campaigns", "views": 500, "age": 1, "actionClicks": 99}]}
        assert len(generate_proactive_suggestions(_layout(), telemetry)) == 1

    def test_no_heuristic_match_adds_empty_actions(self):
        telemetry = {"widgets": [{"id": "w-reply", "views": 500, "age": 1, "action_clicks": 80}]}
        suggestions = generate_proactive_suggestions(_layout(), telemetry)
        widget = next(w for _, w in iter_widgets(suggestions[0].draft_layout) if w["id"] == "w-reply")
        assert widget["actions"] == []

    def test_widget_with_actions_is_skipped(self):
        telemetry = {"widgets": [{"id": "w-workflows", "views": 500, "age": 1, "action_clicks": 80}]}
        assert generate_proactive_suggestions(_layout(), telemetry) == []

    @pytest.mark.parametrize("empty", [None, []])
    def test_widget_with_empty_actions_is_augmented(self, empty):
        layout = _layout()
        workflows = next(w for _, w in iter_widgets(layout) if w["id"] == "w-workflows")
        workflows["actions"] = empty
        telemetry = {"widgets": [{"id": "w-workflows", "views": 500, "age": 1, "action_clicks": 80}]}

        suggestions = generate_proactive_suggestions(layout, telemetry)

        assert len(suggestions) == 1
        widget = next(w for _, w in iter_widgets(suggestions[0].draft_layout) if w["id"] == "w-workflows")
        assert widget["actions"] == [{"title": "Restart", "bind": "actions.restart_workflow"}]

    def test_unknown_widget_is_skipped(self):
        telemetry = {"widgets": [{"id": "gone", "views": 500, "age": 1, "action_clicks": 80}]}
        assert generate_proactive_suggestions(_layout(), telemetry) == []

    def test_suggest_actions_for_widget(self):
        assert suggest_actions_for_widget({"bind": "insights.weekly"}) == [
            {"title": "Export", "bind": "actions.export_report"}
        ]
        assert suggest_actions_for_widget({"bind": "metrics.x"}) == []


class TestEngine:
    def test_prune_comes_before_augment(self):
        telemetry = {
            "widgets": [
                {"id": "w-campaigns", "views": 500, "age": 1, "action_clicks": 60},
                {"id": "w-reply", "views": 1, "age": 30, "action_clicks": 0},
            ]
        }
        suggestions = generate_proactive_suggestions(_layout(), telemetry)
        assert [s.rationale.split(" ")[0] for s in suggestions] == ["These", "Widget"]

    def test_input_is_not_mutated(self):
        layout = _layout()
        before = copy.deepcopy(layout)
        telemetry = {
            "widgets": [
                {"id": "w-campaigns", "views": 500, "age": 1, "action_clicks": 60},
                {"id": "w-reply", "views": 1, "age": 30, "action_clicks": 0},
            ]
        }
        generate_proactive_suggestions(layout, telemetry)
        assert layout == before

    def test_empty_snapshot(self):
        assert generate_proactive_suggestions(_layout(), {}) == []

    def test_custom_thresholds(self):
        engine = SuggestionEngine(max_views=100, min_age_days=0, min_clicks=5)
        telemetry = {"widgets": [{"id": "w-campaigns", "views": 50, "age": 1, "action_clicks": 6}]}
        assert len(engine.generate_proactive_suggestions(_layout(), telemetry)) == 2
