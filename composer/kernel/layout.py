"""
Composer Kernel — Layout Document Model

Builder, serializer, per-product templates, and tab-level diff for layout
documents. Documents are plain dicts that map 1:1 onto the persisted JSON:

    {version, meta: {title, product, ...}, tabs: [{id, title, rows: [
        {columns: [{width, widgets: [{id, type, title, bind, ...}]}]}
    ]}], theme?, settings?}

Widget ids are derived from grid coordinates, never random, so building the
same template twice yields the same document (apart from meta.created_at).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from composer.kernel.errors import ParseError
from composer.kernel.types import LAYOUT_VERSION, LayoutDiff, format_metric_name, now_iso
from composer.kernel.validation import validate_layout

# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class LayoutBuilder:
    """
    Fluent builder for layout documents.

    Addressing is by tab id plus row/column index. Calls that address a
    missing tab, row, or column are ignored, matching how the templates are
    written (chained, no error handling).
    """

    def __init__(self, product: str, title: str, created_at: str | None = None) -> None:
        self._layout: dict[str, Any] = {
            "version": LAYOUT_VERSION,
            "meta": {
                "title": title,
                "product": product,
                "created_at": created_at or now_iso(),
            },
            "tabs": [],
        }

    def _tab(self, tab_id: str) -> dict[str, Any] | None:
        for tab in self._layout["tabs"]:
            if tab["id"] == tab_id:
                return tab
        return None

    def add_tab(self, tab_id: str, title: str, icon: str | None = None) -> LayoutBuilder:
        tab: dict[str, Any] = {"id": tab_id, "title": title, "rows": []}
        if icon is not None:
            tab["icon"] = icon
        self._layout["tabs"].append(tab)
        return self

    def add_row(self, tab_id: str, height: str | None = None) -> LayoutBuilder:
        tab = self._tab(tab_id)
        if tab is not None:
            row: dict[str, Any] = {"columns": []}
            if height is not None:
                row["height"] = height
            tab["rows"].append(row)
        return self

    def add_column(self, tab_id: str, row_index: int, width: int) -> LayoutBuilder:
        tab = self._tab(tab_id)
        if tab is not None and 0 <= row_index < len(tab["rows"]):
            tab["rows"][row_index]["columns"].append({"width": width, "widgets": []})
        return self

    def add_widget(
        self,
        tab_id: str,
        row_index: int,
        column_index: int,
        widget: dict[str, Any],
    ) -> LayoutBuilder:
        tab = self._tab(tab_id)
        if tab is None or not 0 <= row_index < len(tab["rows"]):
            return self
        columns = tab["rows"][row_index]["columns"]
        if not 0 <= column_index < len(columns):
            return self

        widgets = columns[column_index]["widgets"]
        widget = dict(widget)
        if not widget.get("id"):
            widget["id"] = f"widget-{tab_id}-{row_index}-{column_index}-{len(widgets)}"
        widgets.append(widget)
        return self

    def set_description(self, description: str) -> LayoutBuilder:
        self._layout["meta"]["description"] = description
        return self

    def set_theme(self, theme: dict[str, Any]) -> LayoutBuilder:
        self._layout["theme"] = theme
        return self

    def set_settings(self, settings: dict[str, Any]) -> LayoutBuilder:
        self._layout["settings"] = settings
        return self

    def build(self) -> dict[str, Any]:
        return self._layout


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def to_json(layout: dict[str, Any]) -> str:
    """Serialize a layout document for the external store."""
    return json.dumps(layout, indent=2)


def from_json(text: str) -> dict[str, Any]:
    """
    Parse a persisted layout document.
    Raises ParseError on malformed JSON or a structurally invalid document.
    """
    try:
        layout = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Malformed layout JSON: {e}") from e

    errors = validate_layout(layout)
    if errors:
        raise ParseError(f"Invalid layout document: {errors}")
    return layout


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_widgets(layout: dict[str, Any]) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
    """Yield (column, widget) pairs in document order."""
    for tab in layout.get("tabs", []):
        for row in tab.get("rows", []):
            for col in row.get("columns", []):
                for widget in col.get("widgets", []):
                    yield col, widget


def first_row(layout: dict[str, Any]) -> dict[str, Any] | None:
    """First row of the first tab, where new KPIs and pinned widgets land."""
    tabs = layout.get("tabs", [])
    if not tabs or not tabs[0].get("rows"):
        return None
    return tabs[0]["rows"][0]


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def _find_tab(tabs: list[dict[str, Any]], tab_id: str) -> dict[str, Any] | None:
    for tab in tabs:
        if tab.get("id") == tab_id:
            return tab
    return None


def diff(old_layout: dict[str, Any], new_layout: dict[str, Any]) -> LayoutDiff:
    """
    Whole-tab comparison keyed by tab id.
    A tab is modified when the same id maps to different serialized content.
    """
    old_tabs = old_layout.get("tabs", [])
    new_tabs = new_layout.get("tabs", [])

    modified: list[dict[str, Any]] = []
    for tab in new_tabs:
        old_tab = _find_tab(old_tabs, tab.get("id"))
        if old_tab is not None and _canonical(old_tab) != _canonical(tab):
            modified.append(tab)

    return LayoutDiff(
        version=old_layout.get("version") != new_layout.get("version"),
        tabs_added=[t for t in new_tabs if _find_tab(old_tabs, t.get("id")) is None],
        tabs_removed=[t for t in old_tabs if _find_tab(new_tabs, t.get("id")) is None],
        tabs_modified=modified,
    )


def widget_diff(old_layout: dict[str, Any], new_layout: dict[str, Any]) -> dict[str, list[str]]:
    """Widget ids present only in the new or only in the old document."""
    old_ids = [w.get("id") for _, w in iter_widgets(old_layout)]
    new_ids = [w.get("id") for _, w in iter_widgets(new_layout)]
    return {
        "widgets_added": [i for i in new_ids if i not in old_ids],
        "widgets_removed": [i for i in old_ids if i not in new_ids],
    }


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def generate_default(product: str, created_at: str | None = None) -> dict[str, Any]:
    """Default layout for a product. Unknown products get a one-widget welcome page."""
    builder = LayoutBuilder(product, f"{product} Dashboard", created_at=created_at)
    template = _TEMPLATES.get(product, _generic_template)
    return template(builder, product).build()


def _chatbot_template(b: LayoutBuilder, product: str) -> LayoutBuilder:
    return (
        b.add_tab("overview", "Overview", "chart-bar")
        .add_row("overview")
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_widget("overview", 0, 0, {"type": "kpi", "title": "Total Conversations", "bind": "metrics.total_conversations"})
        .add_widget("overview", 0, 1, {"type": "kpi", "title": "Active Sessions", "bind": "metrics.active_sessions"})
        .add_widget("overview", 0, 2, {"type": "kpi", "title": "Avg Response Time", "bind": "metrics.response_time"})
        .add_widget("overview", 0, 3, {"type": "kpi", "title": "Satisfaction", "bind": "metrics.satisfaction_score"})
        .add_row("overview")
        .add_column("overview", 1, 8)
        .add_column("overview", 1, 4)
        .add_widget(
            "overview", 1, 0,
            {"type": "chart", "title": "Conversation Trends", "bind": "charts.conversation_trends", "viz": "line"},
        )
        .add_widget(
            "overview", 1, 1,
            {"type": "chart", "title": "Topics", "bind": "charts.topic_distribution", "viz": "pie"},
        )
        .add_tab("conversations", "Conversations", "message-square")
        .add_row("conversations")
        .add_column("conversations", 0, 12)
        .add_widget(
            "conversations", 0, 0,
            {
                "type": "table",
                "title": "Recent Conversations",
                "bind": "tables.conversations",
                "actions": [{"title": "Export", "bind": "actions.export_conversations"}],
            },
        )
    )


def _ops_agent_template(b: LayoutBuilder, product: str) -> LayoutBuilder:
    return (
        b.add_tab("overview", "Overview", "activity")
        .add_row("overview")
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_widget(
            "overview", 0, 0,
            {"type": "kpi", "title": "Active Workflows", "bind": "metrics.active_workflows", "refresh_interval": 5},
        )
        .add_widget("overview", 0, 1, {"type": "kpi", "title": "SLA Compliance", "bind": "metrics.sla_compliance"})
        .add_widget("overview", 0, 2, {"type": "kpi", "title": "Success Rate", "bind": "metrics.success_rate"})
        .add_widget(
            "overview", 0, 3,
            {
                "type": "action",
                "title": "Emergency Stop",
                "bind": "actions.pause_all",
                "config": {"variant": "danger", "confirmation": True},
            },
        )
        .add_row("overview")
        .add_column("overview", 1, 12)
        .add_widget("overview", 1, 0, {"type": "timeline", "title": "Workflow Timeline", "bind": "charts.workflow_timeline"})
        .add_tab("workflows", "Workflows", "layers")
        .add_row("workflows")
        .add_column("workflows", 0, 12)
        .add_widget(
            "workflows", 0, 0,
            {
                "type": "table",
                "title": "Workflow Runs",
                "bind": "tables.workflows",
                "actions": [
                    {"title": "Restart", "bind": "actions.restart_workflow", "confirmation": True},
                    {"title": "Create New", "bind": "actions.create_workflow", "variant": "primary"},
                ],
            },
        )
    )


def _data_insights_template(b: LayoutBuilder, product: str) -> LayoutBuilder:
    return (
        b.add_tab("overview", "Overview", "trending-up")
        .add_row("overview")
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_column("overview", 0, 3)
        .add_widget("overview", 0, 0, {"type": "kpi", "title": "Conversion Rate", "bind": "metrics.conversion_rate"})
        .add_widget("overview", 0, 1, {"type": "kpi", "title": "AOV", "bind": "metrics.average_order_value"})
        .add_widget("overview", 0, 2, {"type": "kpi", "title": "Data Quality", "bind": "metrics.data_quality"})
        .add_widget(
            "overview", 0, 3,
            {
                "type": "action",
                "title": "Generate Insights",
                "bind": "actions.generate_insights",
                "config": {"variant": "primary"},
            },
        )
        .add_row("overview")
        .add_column("overview", 1, 8)
        .add_column("overview", 1, 4)
        .add_widget("overview", 1, 0, {"type": "chart", "title": "KPI Trends", "bind": "charts.kpi_trends", "viz": "line"})
        .add_widget(
            "overview", 1, 1,
            {"type": "chart", "title": "Anomalies", "bind": "charts.anomaly_detection", "viz": "scatter"},
        )
        .add_tab("insights", "AI Insights", "sparkles")
        .add_row("insights")
        .add_column("insights", 0, 12)
        .add_widget(
            "insights", 0, 0,
            {
                "type": "table",
                "title": "AI-Generated Insights",
                "bind": "tables.ai_insights",
                "actions": [
                    {"title": "Refresh", "bind": "actions.generate_insights"},
                    {"title": "Export Report", "bind": "actions.export_report"},
                ],
            },
        )
        .add_tab("explorer", "Data Explorer", "search")
        .add_row("explorer")
        .add_column("explorer", 0, 12)
        .add_widget("explorer", 0, 0, {"type": "data_explorer", "title": "Explore Your Data", "bind": "explorer.main"})
    )


def _generic_template(b: LayoutBuilder, product: str) -> LayoutBuilder:
    return (
        b.add_tab("overview", "Overview")
        .add_row("overview")
        .add_column("overview", 0, 12)
        .add_widget(
            "overview", 0, 0,
            {
                "type": "text",
                "title": "Welcome",
                "bind": "static.welcome",
                "config": {"content": f"Welcome to {product}. Customize your dashboard to get started."},
            },
        )
    )


_TEMPLATES = {
    "chatbot": _chatbot_template,
    "ops-agent": _ops_agent_template,
    "data-insights": _data_insights_template,
}


def integration_tab(integration: str) -> dict[str, Any]:
    """A tab with a synced data table for one third-party integration."""
    name = format_metric_name(integration)
    return {
        "id": integration,
        "title": name,
        "rows": [
            {
                "columns": [
                    {
                        "width": 12,
                        "widgets": [
                            {
                                "id": f"widget-{integration}-data",
                                "type": "table",
                                "title": f"{name} Data",
                                "bind": f"{integration}.data",
                                "actions": [{"title": "Sync", "bind": f"actions.sync_{integration}"}],
                            }
                        ],
                    }
                ]
            }
        ],
    }
