"""
Usage tracker — aggregates telemetry events per widget.

snapshot() yields the shape the suggestion engine reads:
    {"widgets": [{"id", "views", "age", "action_clicks", "errors"}]}
where age is days since the widget was first seen.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from backend.models.telemetry import TelemetryEvent

_SECONDS_PER_DAY = 86_400


def _aware(ts: datetime) -> datetime:
    """Naive timestamps from clients are taken as UTC."""
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


@dataclass
class WidgetUsage:
    widget_id: str
    widget_type: str | None
    first_seen: datetime
    views: int = 0
    action_clicks: int = 0
    errors: int = 0

    def to_dict(self, now: datetime) -> dict[str, Any]:
        return {
            "id": self.widget_id,
            "type": self.widget_type,
            "views": self.views,
            "age": (now - self.first_seen).total_seconds() / _SECONDS_PER_DAY,
            "action_clicks": self.action_clicks,
            "errors": self.errors,
        }


class UsageTracker:
    """In-process per-widget counters, keyed by tenant."""

    def __init__(self) -> None:
        self._usage: dict[str, dict[str, WidgetUsage]] = {}

    def record(self, events: list[TelemetryEvent]) -> int:
        """Fold events into the counters. Events without a widget_id are ignored."""
        recorded = 0
        for event in events:
            if not event.widget_id:
                continue
            seen = _aware(event.timestamp)
            widgets = self._usage.setdefault(event.tenant_id, {})
            usage = widgets.get(event.widget_id)
            if usage is None:
                usage = WidgetUsage(event.widget_id, event.widget_type, first_seen=seen)
                widgets[event.widget_id] = usage
            elif seen < usage.first_seen:
                usage.first_seen = seen

            if event.event_type == "view":
                usage.views += 1
            elif event.event_type in ("action", "interaction"):
                usage.action_clicks += 1
            elif event.event_type == "error":
                usage.errors += 1
            recorded += 1
        return recorded

    def snapshot(self, tenant_id: str, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(UTC)
        widgets = self._usage.get(tenant_id, {})
        return {"widgets": [usage.to_dict(now) for usage in widgets.values()]}

    def reset(self, tenant_id: str | None = None) -> None:
        if tenant_id is None:
            self._usage.clear()
        else:
            self._usage.pop(tenant_id, None)


# Singleton instance
usage_tracker = UsageTracker()
