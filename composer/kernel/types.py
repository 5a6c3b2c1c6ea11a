"""
Composer Kernel — Shared Types

Data classes and vocabularies used across layout, catalog, resolver,
intent, mutator, and suggestions. These are the contracts that bind the
kernel together.

Layout documents themselves stay plain JSON-compatible dicts so they
serialize 1:1; the dataclasses here wrap the values that travel around them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

LAYOUT_VERSION = "1.0"

GRID_COLUMNS = 12

WIDGET_TYPES: set[str] = {
    "kpi",
    "table",
    "chart",
    "form",
    "text",
    "log",
    "timeline",
    "iframe",
    "action",
    "segment_picker",
    "data_explorer",
}

VIZ_TYPES: set[str] = {"line", "bar", "area", "pie", "scatter", "heatmap"}

ACTION_VARIANTS: set[str] = {"primary", "secondary", "danger"}

READ_SOURCES: set[str] = {"db", "analytics", "integration", "skill"}

AUTH_TYPES: set[str] = {"oauth2", "api_key", "basic"}

INTENT_ACTIONS: set[str] = {"add", "remove", "move", "pin", "unknown"}

POSITIONS: set[str] = {"top", "bottom", "left", "right"}

# Metric matching used by remove/pin
MATCH_MODES: set[str] = {"substring", "metric_ref"}

IntentAction = Literal["add", "remove", "move", "pin", "unknown"]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Intent:
    """
    Structured result of parsing a free-form edit instruction.
    The mutator depends only on this shape, never on the raw text.
    """

    action: IntentAction = "unknown"
    targets: list[str] = field(default_factory=list)
    widgets: list[str] = field(default_factory=list)
    metrics: list[str] = field(default_factory=list)
    viz: str | None = None
    position: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "action": self.action,
            "targets": list(self.targets),
            "widgets": list(self.widgets),
            "metrics": list(self.metrics),
        }
        if self.viz is not None:
            d["viz"] = self.viz
        if self.position is not None:
            d["position"] = self.position
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Intent:
        """Raises ValueError for an action, viz, or position outside the vocabularies."""
        action = d.get("action", "unknown")
        if action not in INTENT_ACTIONS:
            raise ValueError(f"Unknown intent action: {action!r}")
        viz = d.get("viz")
        if viz is not None and viz not in VIZ_TYPES:
            raise ValueError(f"Unknown viz: {viz!r}")
        position = d.get("position")
        if position is not None and position not in POSITIONS:
            raise ValueError(f"Unknown position: {position!r}")
        return cls(
            action=action,
            targets=list(d.get("targets", [])),
            widgets=list(d.get("widgets", [])),
            metrics=list(d.get("metrics", [])),
            viz=viz,
            position=position,
        )


@dataclass
class LayoutDiff:
    """Tab-granularity comparison between two layout documents."""

    version: bool = False
    tabs_added: list[dict[str, Any]] = field(default_factory=list)
    tabs_removed: list[dict[str, Any]] = field(default_factory=list)
    tabs_modified: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.version or self.tabs_added or self.tabs_removed or self.tabs_modified)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "tabs_added": self.tabs_added,
            "tabs_removed": self.tabs_removed,
            "tabs_modified": self.tabs_modified,
        }


@dataclass
class DesignerRequest:
    """What a caller hands to LayoutMutator.propose()."""

    description: str
    product: str
    skills: list[str] = field(default_factory=list)
    integrations: list[str] = field(default_factory=list)
    current_layout: dict[str, Any] | None = None


@dataclass
class DesignerResponse:
    """
    A candidate layout for review. Produced by generate/modify/propose and
    by the suggestion engine. Never published by the kernel itself.
    """

    draft_layout: dict[str, Any]
    rationale: str
    diff: LayoutDiff | None = None
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "draft_layout": self.draft_layout,
            "rationale": self.rationale,
            "diff": self.diff.to_dict() if self.diff is not None else None,
            "suggestions": self.suggestions,
        }


@dataclass
class Warning:
    """A non-fatal layout issue. The engine reports these, never fixes them."""

    code: str
    message: str
    details: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WHITESPACE = re.compile(r"\s+")
_WORD_SPLIT = re.compile(r"[\s_]+")


def metric_slug(metric: str) -> str:
    """'reply rate' → 'reply_rate'"""
    return _WHITESPACE.sub("_", metric)


def metric_bind(metric: str) -> str:
    """Bind key for a metric KPI: 'reply rate' → 'metrics.reply_rate'"""
    return f"metrics.{metric_slug(metric)}"


def format_metric_name(metric: str) -> str:
    """'reply rate' / 'reply_rate' → 'Reply Rate'"""
    return " ".join(w[:1].upper() + w[1:] for w in _WORD_SPLIT.split(metric) if w)


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
