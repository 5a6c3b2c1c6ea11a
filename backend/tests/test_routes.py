"""Integration tests for designer, gateway, and telemetry routes."""

from __future__ import annotations

import importlib
import warnings

import pytest

from backend.routes import designer as designer_routes
from backend.routes import gateway as gateway_routes
from composer.kernel.collaborators import FunctionSkill
from composer.kernel.errors import FetchError, ParseError, SkillMissingError
from composer.kernel.layout import generate_default

pytestmark = pytest.mark.asyncio(loop_scope="session")

CREATED_AT = "2026-01-01T00:00:00Z"


def _counting_skill(calls: list):
    async def run(params):
        calls.append(params)
        return {"success": True, "data": {"count": len(calls)}, "metadata": {}}

    return FunctionSkill(run)


async def test_health(async_client):
    res = await async_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


# ── designer ────────────────────────────────────────────────────────────────


class TestDesignerRoutes:
    """Tests for /api/ui/designer and /api/ui/catalog endpoints."""

    async def test_propose_generates_layout(self, async_client):
        """POST propose without current_layout → fresh template draft."""
        res = await async_client.post(
            "/api/ui/designer/propose",
            json={"description": "A support dashboard", "product": "chatbot", "skills": ["A"]},
        )
        assert res.status_code == 200
        data = res.json()
        assert [t["id"] for t in data["draft_layout"]["tabs"]] == ["overview", "conversations"]
        assert data["diff"] is None
        assert data["rationale"].startswith("Created dashboard for chatbot with 1 skills.")
        assert data["warnings"] == []

    async def test_propose_modifies_layout(self, async_client):
        """POST propose with current_layout → draft plus tab diff."""
        layout = generate_default("chatbot", created_at=CREATED_AT)
        res = await async_client.post(
            "/api/ui/designer/propose",
            json={"description": "Add a new tab for reply rate", "product": "chatbot", "current_layout": layout},
        )
        assert res.status_code == 200
        data = res.json()
        assert len(data["diff"]["tabs_added"]) == 1
        assert data["diff"]["tabs_added"][0]["rows"][0]["columns"][0]["widgets"][0]["bind"] == "metrics.reply_rate"

    async def test_propose_reports_row_overflow(self, async_client):
        """Adding a 5th KPI column overflows the 12-column grid: warned, not rejected."""
        layout = generate_default("chatbot", created_at=CREATED_AT)
        res = await async_client.post(
            "/api/ui/designer/propose",
            json={"description": "Add a KPI for conversion", "product": "chatbot", "current_layout": layout},
        )
        assert res.status_code == 200
        assert any("spans 15 of 12 columns" in w for w in res.json()["warnings"])

    async def test_propose_rejects_invalid_layout(self, async_client):
        res = await async_client.post(
            "/api/ui/designer/propose",
            json={"description": "Add revenue", "product": "chatbot", "current_layout": {"tabs": "nope"}},
        )
        assert res.status_code == 422
        assert res.json()["detail"]["message"] == "Invalid current_layout"

    async def test_propose_rejects_unknown_fields(self, async_client):
        res = await async_client.post(
            "/api/ui/designer/propose",
            json={"description": "x", "product": "chatbot", "publish": True},
        )
        assert res.status_code == 422

    async def test_suggestions_from_request_telemetry(self, async_client):
        layout = generate_default("chatbot", created_at=CREATED_AT)
        res = await async_client.post(
            "/api/ui/designer/suggestions",
            json={
                "layout": layout,
                "telemetry": {"widgets": [{"id": "widget-overview-0-1-0", "views": 2, "age": 14, "action_clicks": 0}]},
            },
        )
        assert res.status_code == 200
        suggestions = res.json()["suggestions"]
        assert len(suggestions) == 1
        assert "Active Sessions" in suggestions[0]["rationale"]

    async def test_suggestions_from_ingested_telemetry(self, async_client):
        """Without telemetry in the request, usage aggregated by /api/ui/telemetry is used."""
        layout = generate_default("ops-agent", created_at=CREATED_AT)
        layout["meta"]["tenant_id"] = "t1"
        events = [
            {
                "eventType": "action",
                "widgetId": "widget-workflows-0-0-0",
                "widgetType": "table",
                "action": "actions.restart_workflow",
                "userId": "u1",
                "tenantId": "t1",
                "sessionId": "s1",
            }
        ] * 51
        res = await async_client.post(
            "/api/ui/telemetry",
            json={"events": events, "sessionId": "s1", "userId": "u1", "tenantId": "t1"},
        )
        assert res.status_code == 202
        assert res.json() == {"accepted": 51}

        res = await async_client.post("/api/ui/designer/suggestions", json={"layout": layout})
        assert res.status_code == 200
        # the workflows table already has actions, so nothing to augment
        assert res.json()["suggestions"] == []

    async def test_available_widgets(self, async_client):
        res = await async_client.get("/api/ui/catalog/outreach/widgets")
        assert res.status_code == 200
        data = res.json()
        assert data["namespace"] == "outreach"
        assert "crm.leads" in data["widgets"]
        assert "action:actions.send_followups" in data["widgets"]

    async def test_available_widgets_unknown_namespace(self, async_client):
        res = await async_client.get("/api/ui/catalog/nope/widgets")
        assert res.status_code == 404


# ── gateway ─────────────────────────────────────────────────────────────────


class TestGatewayRoutes:
    """Tests for /api/ui/data, /api/ui/actions, /api/ui/resolve."""

    async def test_fetch_skill_read_is_cached(self, async_client, skill_registry):
        calls = []
        skill_registry.register("WorkflowMonitor", _counting_skill(calls))
        body = {"namespace": "ops-agent", "bind": "metrics.active_workflows", "params": {"agentId": "a1"}}

        first = await async_client.post("/api/ui/data", json=body)
        second = await async_client.post("/api/ui/data", json=body)

        assert first.status_code == second.status_code == 200
        assert first.json()["data"] == {"success": True, "data": {"count": 1}, "metadata": {}}
        assert second.json() == first.json()
        assert len(calls) == 1

    async def test_fetch_unknown_bind_is_404(self, async_client):
        res = await async_client.post("/api/ui/data", json={"namespace": "chatbot", "bind": "metrics.nope"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Read metrics.nope not found in chatbot"

    async def test_fetch_without_backing_service_is_502(self, async_client):
        """ANALYTICS_URL is unset in tests, so analytics reads fail."""
        res = await async_client.post(
            "/api/ui/data", json={"namespace": "chatbot", "bind": "metrics.total_conversations"}
        )
        assert res.status_code == 502
        assert "no analytics client configured" in res.json()["detail"]

    async def test_action_requires_confirmation(self, async_client, telemetry_cleanup):
        res = await async_client.post(
            "/api/ui/actions",
            json={"namespace": "ops-agent", "action": "actions.pause_all", "user_id": "u1"},
        )
        assert res.status_code == 409

    async def test_confirmed_action_with_missing_skill_is_404(self, async_client, telemetry_cleanup):
        res = await async_client.post(
            "/api/ui/actions",
            json={"namespace": "ops-agent", "action": "actions.pause_all", "user_id": "u1", "confirmed": True},
        )
        assert res.status_code == 404
        assert "WorkflowManagementSkill" in res.json()["detail"]

    async def test_action_failure_is_502(self, async_client, skill_registry, telemetry_cleanup):
        async def refuse(params):
            return {"success": False, "error": "mailbox full", "metadata": {}}

        skill_registry.register("EmailSenderSkill", FunctionSkill(refuse))
        res = await async_client.post(
            "/api/ui/actions",
            json={"namespace": "outreach", "action": "actions.send_followups", "user_id": "u1"},
        )
        assert res.status_code == 502
        assert "mailbox full" in res.json()["detail"]

    async def test_action_runs_skill_and_is_tracked(self, async_client, skill_registry, telemetry_cleanup):
        calls = []
        skill_registry.register("EmailSenderSkill", _counting_skill(calls))
        res = await async_client.post(
            "/api/ui/actions",
            json={
                "namespace": "outreach",
                "action": "actions.send_followups",
                "params": {"campaignId": "c1", "tenantId": "t9"},
                "user_id": "u1",
            },
        )
        assert res.status_code == 200
        assert res.json()["result"]["success"] is True
        assert calls == [{"template": "followup_v1", "campaignId": "c1", "tenantId": "t9"}]

        metrics = telemetry_cleanup.get_collector("u1", "t9").session_metrics()
        assert metrics["top_actions"] == [("actions.send_followups", 1)]

    async def test_clear_cache_action_drops_cached_reads(self, async_client, skill_registry, telemetry_cleanup):
        calls = []
        skill_registry.register("WorkflowMonitor", _counting_skill(calls))
        body = {"namespace": "ops-agent", "bind": "metrics.active_workflows"}

        await async_client.post("/api/ui/data", json=body)
        res = await async_client.post(
            "/api/ui/actions",
            json={
                "namespace": "chatbot",
                "action": "actions.clear_cache",
                "params": {"target": "ops-agent"},
                "user_id": "u1",
            },
        )
        assert res.status_code == 200
        assert res.json()["result"]["data"] == {"cleared": "ops-agent"}

        await async_client.post("/api/ui/data", json=body)
        assert len(calls) == 2

    async def test_resolve_layout_reports_per_widget(self, async_client):
        layout = generate_default("support-desk", created_at=CREATED_AT)
        layout["tabs"][0]["rows"][0]["columns"][0]["widgets"].append(
            {"id": "kpi", "type": "kpi", "title": "Total", "bind": "metrics.total_conversations"}
        )
        res = await async_client.post("/api/ui/resolve", json={"namespace": "chatbot", "layout": layout})
        assert res.status_code == 200
        widgets = res.json()["widgets"]
        assert widgets["widget-overview-0-0-0"]["data"].startswith("Welcome to support-desk.")
        assert widgets["kpi"]["error_type"] == "FetchError"

    async def test_resolve_unknown_namespace_is_404(self, async_client):
        layout = generate_default("chatbot", created_at=CREATED_AT)
        res = await async_client.post("/api/ui/resolve", json={"namespace": "nope", "layout": layout})
        assert res.status_code == 404


# ── telemetry ───────────────────────────────────────────────────────────────


class TestTelemetryRoute:
    async def test_ingest_accepts_snake_case(self, async_client):
        res = await async_client.post(
            "/api/ui/telemetry",
            json={
                "events": [
                    {"event_type": "view", "widget_id": "w1", "user_id": "u", "tenant_id": "t", "session_id": "s"},
                    {"event_type": "performance", "user_id": "u", "tenant_id": "t", "session_id": "s", "duration": 12.5},
                ],
                "session_id": "s",
                "user_id": "u",
                "tenant_id": "t",
            },
        )
        assert res.status_code == 202
        # events without a widget are not attributed
        assert res.json() == {"accepted": 1}

    async def test_ingest_rejects_unknown_event_type(self, async_client):
        res = await async_client.post(
            "/api/ui/telemetry",
            json={
                "events": [{"eventType": "click", "userId": "u", "tenantId": "t", "sessionId": "s"}],
                "sessionId": "s",
                "userId": "u",
                "tenantId": "t",
            },
        )
        assert res.status_code == 422


# ── error mapping ───────────────────────────────────────────────────────────


class TestErrorStatus:
    async def test_route_modules_import_without_deprecated_status_constants(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            importlib.reload(gateway_routes)
            importlib.reload(designer_routes)
        assert [str(w.message) for w in caught if "422" in str(w.message)] == []

    async def test_parse_error_is_422(self):
        assert gateway_routes._http_error(ParseError("bad layout")).status_code == 422
        assert gateway_routes._http_error(SkillMissingError("gone")).status_code == 404
        assert gateway_routes._http_error(FetchError("ns", "metrics.x", "down")).status_code == 502
