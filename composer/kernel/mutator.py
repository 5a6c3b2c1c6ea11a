"""
Composer Kernel — Layout Mutator

(layout, intent) → DesignerResponse(draft_layout, rationale, diff)

modify_layout never touches its input: it deep-copies the document, applies
at most one change selected by intent.action, and diffs the copy against the
original. An instruction that matches nothing is a no-op with a generic
rationale, never an exception, so an interactive editing session cannot be
crashed by a misunderstood sentence.

generate_layout builds a fresh document from the product template, then
layers requested metrics and integration tabs on top.

Metric matching (remove, pin) has two modes:
  substring   legacy: a widget matches when its bind *contains* the metric
              token, so "revenue" also matches "metrics.revenue_growth"
  metric_ref  exact: the widget's metric_ref (or last bind segment) must equal
              the metric slug
"""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import Callable
from typing import Any

from composer.kernel.catalog import CatalogRegistry, namespace_for_product
from composer.kernel.intent import IntentParser
from composer.kernel.layout import diff, first_row, generate_default, integration_tab, iter_widgets
from composer.kernel.types import (
    MATCH_MODES,
    DesignerRequest,
    DesignerResponse,
    Intent,
    format_metric_name,
    metric_bind,
    metric_slug,
    now_iso,
)

logger = logging.getLogger(__name__)

# A KPI column in the first row takes new metrics until it holds this many
MAX_WIDGETS_PER_KPI_COLUMN = 2
NEW_COLUMN_WIDTH = 3


class LayoutMutator:
    """Generates and edits layout documents from structured intents."""

    def __init__(
        self,
        registry: CatalogRegistry,
        *,
        match_mode: str = "substring",
        parser: IntentParser | None = None,
        clock: Callable[[], float] = time.time,
        now: Callable[[], str] = now_iso,
    ) -> None:
        if match_mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode: {match_mode}")
        self._registry = registry
        self._match_mode = match_mode
        self._parser = parser or IntentParser()
        self._clock = clock
        self._now = now

    # -- entry point --

    def propose(self, request: DesignerRequest) -> DesignerResponse:
        """Parse the description, then edit current_layout or generate a new one."""
        intent = self._parser.parse(request.description)
        logger.debug("mutator: parsed %r → %s", request.description, intent)

        if request.current_layout is not None:
            return self.modify_layout(request.current_layout, intent, request.description)
        return self.generate_layout(request.product, request.skills, request.integrations, intent)

    # -- generate --

    def generate_layout(
        self,
        product: str,
        skills: list[str],
        integrations: list[str],
        intent: Intent,
    ) -> DesignerResponse:
        """Fresh document from the product template plus requested metrics and integrations."""
        namespace = namespace_for_product(product)
        available = self._registry.get_available_widgets(namespace)

        layout = generate_default(product, created_at=self._now())

        if intent.action == "add" and intent.metrics:
            self._add_requested_metrics(layout, intent.metrics)

        for integration in integrations:
            layout["tabs"].append(integration_tab(integration))

        return DesignerResponse(
            draft_layout=layout,
            rationale=_generation_rationale(product, skills, integrations, intent),
            suggestions=_authoring_hints(available),
        )

    def _add_requested_metrics(self, layout: dict[str, Any], metrics: list[str]) -> None:
        row = first_row(layout)
        if row is None:
            return

        for metric in metrics:
            widget = {
                "id": f"widget-metric-{metric_slug(metric)}",
                "type": "kpi",
                "title": format_metric_name(metric),
                "bind": metric_bind(metric),
                "metric_ref": metric_slug(metric),
            }
            for col in row["columns"]:
                if len(col["widgets"]) < MAX_WIDGETS_PER_KPI_COLUMN:
                    col["widgets"].append(widget)
                    break
            else:
                row["columns"].append({"width": NEW_COLUMN_WIDTH, "widgets": [widget]})

    # -- modify --

    def modify_layout(
        self,
        current_layout: dict[str, Any],
        intent: Intent,
        description: str,
    ) -> DesignerResponse:
        """
        Apply one intent to a copy of current_layout.
        The returned draft never shares structure with the input.
        """
        layout = copy.deepcopy(current_layout)

        handler = _HANDLERS.get(intent.action)
        rationale = handler(self, layout, intent) if handler is not None else None

        return DesignerResponse(
            draft_layout=layout,
            rationale=rationale or f'Applied changes based on: "{description}"',
            diff=diff(current_layout, layout),
        )

    def _apply_add(self, layout: dict[str, Any], intent: Intent) -> str | None:
        if not intent.metrics:
            return None

        if "tab" in intent.targets:
            timestamp = int(self._clock() * 1000)
            tab_id = f"tab-{timestamp}"
            title = format_metric_name(intent.metrics[0])
            layout["tabs"].append(
                {
                    "id": tab_id,
                    "title": title,
                    "rows": [
                        {
                            "columns": [
                                {
                                    "width": 12,
                                    "widgets": _widgets_for_metrics(tab_id, intent.metrics, intent.widgets, intent.viz),
                                }
                            ]
                        }
                    ],
                }
            )
            return f'Added new tab "{title}" with requested widgets'

        if "kpi" in intent.widgets:
            row = first_row(layout)
            if row is None:
                return None
            metric = intent.metrics[0]
            widget = {
                "id": f"widget-{metric_slug(metric)}-{int(self._clock() * 1000)}",
                "type": "kpi",
                "title": format_metric_name(metric),
                "bind": metric_bind(metric),
                "metric_ref": metric_slug(metric),
            }
            row["columns"].append({"width": NEW_COLUMN_WIDTH, "widgets": [widget]})
            return f"Added {widget['title']} KPI to overview"

        return None

    def _apply_remove(self, layout: dict[str, Any], intent: Intent) -> str | None:
        if not intent.metrics:
            return None

        for tab in layout["tabs"]:
            for row in tab.get("rows", []):
                for col in row.get("columns", []):
                    col["widgets"] = [w for w in col["widgets"] if not self._matches_any(w, intent.metrics)]

        return f"Removed widgets related to: {', '.join(intent.metrics)}"

    def _apply_pin(self, layout: dict[str, Any], intent: Intent) -> str | None:
        if not intent.metrics or not intent.position:
            return None

        if intent.position not in ("left", "right"):
            # top/bottom are parsed but have no placement rule
            logger.warning("mutator: pin position %r is not supported", intent.position)
            return f"Pinning to {intent.position} is not supported; layout unchanged"

        found = next(
            ((col, w) for col, w in iter_widgets(layout) if self._matches_any(w, intent.metrics)),
            None,
        )
        row = first_row(layout)
        if found is None or row is None or not row.get("columns"):
            return None

        source, widget = found
        target = row["columns"][0] if intent.position == "left" else row["columns"][-1]

        source["widgets"].remove(widget)
        target["widgets"].insert(0, widget)
        return f"Pinned {widget.get('title', widget.get('bind'))} to {intent.position}"

    # -- matching --

    def _matches_any(self, widget: dict[str, Any], metrics: list[str]) -> bool:
        bind = widget.get("bind") or ""
        if self._match_mode == "substring":
            return any(m in bind for m in metrics)

        ref = widget.get("metric_ref") or bind.rsplit(".", 1)[-1]
        return any(ref == metric_slug(m) for m in metrics)


_HANDLERS: dict[str, Callable[[LayoutMutator, dict[str, Any], Intent], str | None]] = {
    "add": LayoutMutator._apply_add,
    "remove": LayoutMutator._apply_remove,
    "pin": LayoutMutator._apply_pin,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _widgets_for_metrics(
    tab_id: str,
    metrics: list[str],
    widget_types: list[str],
    viz: str | None,
) -> list[dict[str, Any]]:
    """One widget per metric × requested widget type (kpi when none requested)."""
    widgets: list[dict[str, Any]] = []
    for metric in metrics:
        for widget_type in widget_types or ["kpi"]:
            widget: dict[str, Any] = {
                "id": f"{tab_id}-{metric_slug(metric)}-{widget_type}",
                "type": widget_type,
                "title": format_metric_name(metric),
                "bind": metric_bind(metric),
                "metric_ref": metric_slug(metric),
            }
            if widget_type == "chart":
                widget["viz"] = viz or "line"
            widgets.append(widget)
    return widgets


def _generation_rationale(product: str, skills: list[str], integrations: list[str], intent: Intent) -> str:
    parts = [f"Created dashboard for {product} with {len(skills)} skills."]
    if intent.metrics:
        parts.append(f"Added requested metrics: {', '.join(intent.metrics)}.")
    if integrations:
        parts.append(f"Integrated with: {', '.join(integrations)}.")
    parts.append("Layout includes overview KPIs, trend charts, and action buttons for common tasks.")
    return " ".join(parts)


def _authoring_hints(available_widgets: list[str]) -> list[str]:
    return [
        f"You can add any of {len(available_widgets)} available widgets.",
        'Try: "Add a chart showing weekly trends"',
        'Try: "Pin conversion rate to the left"',
        'Try: "Add a new tab for revenue"',
    ]
