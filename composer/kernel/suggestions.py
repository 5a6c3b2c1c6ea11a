"""
Composer Kernel — Suggestion Engine

Reads a telemetry snapshot against the current layout and proposes edits:

  low usage        views < 10 and age > 7 days  → one combined removal
  high engagement  action clicks > 50, no actions → one suggestion per widget
                                                    adding quick actions

Telemetry snapshot shape:
    {"widgets": [{"id", "title"?, "views", "age", "action_clicks"}]}
("actionClicks" is accepted for snapshots produced by browser collectors.)

Pure: the input layout is deep-copied for every suggestion.
"""

from __future__ import annotations

import copy
from typing import Any

from composer.kernel.layout import diff, iter_widgets
from composer.kernel.types import DesignerResponse

LOW_USAGE_MAX_VIEWS = 10
LOW_USAGE_MIN_AGE_DAYS = 7
HIGH_ENGAGEMENT_MIN_CLICKS = 50

# bind substring → quick action
ACTION_HEURISTICS: list[tuple[str, dict[str, str]]] = [
    ("campaigns", {"title": "Send Follow-ups", "bind": "actions.send_followups"}),
    ("workflows", {"title": "Restart", "bind": "actions.restart_workflow"}),
    ("insights", {"title": "Export", "bind": "actions.export_report"}),
]


def _clicks(usage: dict[str, Any]) -> int:
    return usage.get("action_clicks", usage.get("actionClicks", 0))


def suggest_actions_for_widget(widget: dict[str, Any]) -> list[dict[str, str]]:
    """Heuristic quick actions from the widget's bind. No match → []."""
    bind = widget.get("bind") or ""
    return [dict(action) for needle, action in ACTION_HEURISTICS if needle in bind]


class SuggestionEngine:
    """Telemetry-driven layout suggestions. Thresholds default to the contract values."""

    def __init__(
        self,
        *,
        max_views: int = LOW_USAGE_MAX_VIEWS,
        min_age_days: float = LOW_USAGE_MIN_AGE_DAYS,
        min_clicks: int = HIGH_ENGAGEMENT_MIN_CLICKS,
    ) -> None:
        self.max_views = max_views
        self.min_age_days = min_age_days
        self.min_clicks = min_clicks

    def generate_proactive_suggestions(
        self,
        layout: dict[str, Any],
        telemetry: dict[str, Any],
    ) -> list[DesignerResponse]:
        usage = telemetry.get("widgets", [])
        suggestions: list[DesignerResponse] = []

        low_usage = [
            w for w in usage if w.get("views", 0) < self.max_views and w.get("age", 0) > self.min_age_days
        ]
        high_engagement = [w for w in usage if _clicks(w) > self.min_clicks]

        if low_usage:
            suggestions.append(self._prune(layout, low_usage))

        for widget_usage in high_engagement:
            suggestion = self._augment(layout, widget_usage)
            if suggestion is not None:
                suggestions.append(suggestion)

        return suggestions

    def _prune(self, layout: dict[str, Any], low_usage: list[dict[str, Any]]) -> DesignerResponse:
        drop = {w.get("id") for w in low_usage}
        draft = copy.deepcopy(layout)
        for tab in draft.get("tabs", []):
            for row in tab.get("rows", []):
                for col in row.get("columns", []):
                    col["widgets"] = [w for w in col["widgets"] if w.get("id") not in drop]

        titles = ", ".join(_title(layout, w) for w in low_usage)
        return DesignerResponse(
            draft_layout=draft,
            rationale=(
                f"These widgets are rarely viewed: {titles}. "
                "Consider removing them or moving to a separate analytics tab."
            ),
            diff=diff(layout, draft),
        )

    def _augment(self, layout: dict[str, Any], widget_usage: dict[str, Any]) -> DesignerResponse | None:
        draft = copy.deepcopy(layout)
        target = next((w for _, w in iter_widgets(draft) if w.get("id") == widget_usage.get("id")), None)
        if target is None or target.get("actions"):
            return None

        target["actions"] = suggest_actions_for_widget(target)
        return DesignerResponse(
            draft_layout=draft,
            rationale=(
                f'Widget "{_title(layout, widget_usage)}" has high interaction. '
                "Added quick action buttons for common tasks."
            ),
            diff=diff(layout, draft),
        )


def _title(layout: dict[str, Any], usage: dict[str, Any]) -> str:
    """Snapshot title, else the layout widget's title, else the id."""
    if usage.get("title"):
        return usage["title"]
    for _, w in iter_widgets(layout):
        if w.get("id") == usage.get("id") and w.get("title"):
            return w["title"]
    return str(usage.get("id"))


def generate_proactive_suggestions(layout: dict[str, Any], telemetry: dict[str, Any]) -> list[DesignerResponse]:
    """Suggestions with the default thresholds."""
    return SuggestionEngine().generate_proactive_suggestions(layout, telemetry)
