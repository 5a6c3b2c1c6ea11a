"""Tests for per-widget usage aggregation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from backend.models.telemetry import TelemetryEvent
from backend.services.usage import UsageTracker

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _event(event_type, widget_id="w1", tenant_id="t1", at=None):
    return TelemetryEvent(
        event_type=event_type,
        widget_id=widget_id,
        widget_type="kpi",
        user_id="u1",
        tenant_id=tenant_id,
        session_id="s1",
        timestamp=at or NOW,
    )


def test_counts_by_event_type():
    tracker = UsageTracker()
    tracker.record([_event("view"), _event("view"), _event("action"), _event("interaction"), _event("error")])

    [usage] = tracker.snapshot("t1", now=NOW)["widgets"]
    assert usage == {"id": "w1", "type": "kpi", "views": 2, "age": 0.0, "action_clicks": 2, "errors": 1}


def test_age_is_days_since_first_seen():
    tracker = UsageTracker()
    tracker.record([_event("view", at=NOW - timedelta(days=3))])
    tracker.record([_event("view", at=NOW - timedelta(days=10))])
    tracker.record([_event("view", at=NOW - timedelta(days=1))])

    [usage] = tracker.snapshot("t1", now=NOW)["widgets"]
    assert usage["age"] == 10.0


def test_naive_timestamps_are_utc():
    tracker = UsageTracker()
    tracker.record([_event("view", at=datetime(2026, 2, 28))])
    [usage] = tracker.snapshot("t1", now=NOW)["widgets"]
    assert usage["age"] == 1.0


def test_tenants_are_separate():
    tracker = UsageTracker()
    tracker.record([_event("view", tenant_id="t1"), _event("view", widget_id="w2", tenant_id="t2")])
    assert [w["id"] for w in tracker.snapshot("t1", now=NOW)["widgets"]] == ["w1"]
    assert [w["id"] for w in tracker.snapshot("t2", now=NOW)["widgets"]] == ["w2"]
    assert tracker.snapshot("t3", now=NOW) == {"widgets": []}


def test_events_without_widget_are_skipped():
    tracker = UsageTracker()
    assert tracker.record([_event("performance", widget_id=None)]) == 0
    assert tracker.snapshot("t1", now=NOW) == {"widgets": []}


def test_reset():
    tracker = UsageTracker()
    tracker.record([_event("view", tenant_id="t1"), _event("view", tenant_id="t2")])
    tracker.reset("t1")
    assert tracker.snapshot("t1", now=NOW) == {"widgets": []}
    assert tracker.snapshot("t2", now=NOW)["widgets"]
    tracker.reset()
    assert tracker.snapshot("t2", now=NOW) == {"widgets": []}
