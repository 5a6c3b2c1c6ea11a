"""
Composer Kernel — Catalog Registry

Maps a namespace (one product surface) to its named read, action, and
integration definitions. Widgets refer to these entries by bind key.

Registries are explicit instances injected into the resolver and mutator.
Catalogs are registered once at startup and treated as read-only afterwards.
"""

from __future__ import annotations

import logging
from typing import Any

from composer.kernel.validation import validate_catalog

logger = logging.getLogger(__name__)

# Product names the designer accepts that live under a different namespace
PRODUCT_NAMESPACES: dict[str, str] = {
    "ops": "ops-agent",
    "insights": "data-insights",
}


def namespace_for_product(product: str) -> str:
    """'ops' → 'ops-agent'; products without an alias are their own namespace."""
    return PRODUCT_NAMESPACES.get(product, product)


class CatalogRegistry:
    """In-memory map from namespace name to catalog definition."""

    def __init__(self, catalogs: list[dict[str, Any]] | None = None) -> None:
        self._catalogs: dict[str, dict[str, Any]] = {}
        for catalog in catalogs or []:
            self.register_catalog(catalog)

    def register_catalog(self, definition: dict[str, Any]) -> None:
        """
        Upsert a namespace definition. Last write wins; nothing is merged.
        Raises ValueError for a structurally invalid definition.
        """
        errors = validate_catalog(definition)
        if errors:
            raise ValueError(f"Invalid catalog definition: {errors}")

        namespace = definition["namespace"]
        if namespace in self._catalogs:
            logger.info("catalog: replacing namespace %s", namespace)
        self._catalogs[namespace] = {
            "namespace": namespace,
            "reads": dict(definition.get("reads", {})),
            "actions": dict(definition.get("actions", {})),
            "integrations": dict(definition.get("integrations", {})),
        }

    def get_catalog(self, namespace: str) -> dict[str, Any] | None:
        """Namespace definition, or None when not registered."""
        return self._catalogs.get(namespace)

    def get_available_widgets(self, namespace: str) -> list[str]:
        """Read keys plus 'action:<key>' for every action. Empty for unknown namespaces."""
        catalog = self.get_catalog(namespace)
        if catalog is None:
            return []
        return list(catalog["reads"]) + [f"action:{key}" for key in catalog["actions"]]

    def namespaces(self) -> list[str]:
        return list(self._catalogs)


# ---------------------------------------------------------------------------
# Built-in catalogs
# ---------------------------------------------------------------------------

CHATBOT_CATALOG: dict[str, Any] = {
    "namespace": "chatbot",
    "reads": {
        "tables.conversations": {
            "source": "db",
            "query": "SELECT * FROM chatbot_logs WHERE product_key = :productKey ORDER BY created_at DESC",
            "filters": ["date_range", "topic", "sentiment"],
            "cache_ttl": 30,
        },
        "metrics.total_conversations": {"source": "analytics", "metric": "conversation_count", "window": "30d"},
        "metrics.active_sessions": {"source": "analytics", "metric": "active_sessions", "window": "1h"},
        "metrics.response_time": {"source": "analytics", "metric": "avg_response_time", "window": "7d"},
        "metrics.satisfaction_score": {"source": "analytics", "metric": "avg_satisfaction", "window": "30d"},
        "charts.conversation_trends": {
            "source": "analytics",
            "metric": "conversations",
            "group_by": "day",
            "window": "30d",
        },
        "charts.topic_distribution": {"source": "analytics", "metric": "topics", "group_by": "topic", "window": "7d"},
    },
    "actions": {
        "actions.export_conversations": {
            "skill": "DataExportSkill",
            "args": {"format": "csv", "entity": "conversations"},
        },
        "actions.train_model": {
            "skill": "ChatbotKnowledgeManagerSkill",
            "args": {"action": "train"},
            "confirmation_required": True,
        },
        "actions.clear_cache": {"skill": "CacheManagementSkill", "args": {"target": "chatbot"}},
    },
    "integrations": {},
}

OPS_AGENT_CATALOG: dict[str, Any] = {
    "namespace": "ops-agent",
    "reads": {
        "tables.workflows": {
            "source": "db",
            "query": "SELECT * FROM workflow_runs WHERE agent_id = :agentId ORDER BY start_time DESC",
            "filters": ["status", "date_range", "workflow_type"],
            "cache_ttl": 10,
        },
        "metrics.active_workflows": {"source": "skill", "skill": "WorkflowMonitor", "cache_ttl": 5},
        "metrics.sla_compliance": {"source": "analytics", "metric": "sla_compliance_rate", "window": "24h"},
        "metrics.success_rate": {"source": "analytics", "metric": "workflow_success_rate", "window": "7d"},
        "charts.workflow_timeline": {"source": "skill", "skill": "WorkflowVisualizationSkill"},
        "charts.exception_trends": {
            "source": "analytics",
            "metric": "exceptions",
            "group_by": "hour",
            "window": "24h",
        },
    },
    "actions": {
        "actions.restart_workflow": {
            "skill": "WorkflowManagementSkill",
            "args": {"action": "restart"},
            "confirmation_required": True,
            "audit_log": True,
        },
        "actions.pause_all": {
            "skill": "WorkflowManagementSkill",
            "args": {"action": "pause_all"},
            "confirmation_required": True,
            "audit_log": True,
        },
        "actions.create_workflow": {
            "skill": "WorkflowBuilderSkill",
            "args_schema": {"name": "string", "steps": "array", "trigger": "string"},
        },
    },
    "integrations": {},
}

DATA_INSIGHTS_CATALOG: dict[str, Any] = {
    "namespace": "data-insights",
    "reads": {
        "tables.datasets": {
            "source": "db",
            "query": "SELECT * FROM datasets WHERE agent_id = :agentId",
            "filters": ["status", "type"],
            "cache_ttl": 60,
        },
        "metrics.conversion_rate": {"source": "analytics", "metric": "conversion_rate", "window": "30d"},
        "metrics.average_order_value": {"source": "analytics", "metric": "aov", "window": "30d"},
        "metrics.data_quality": {"source": "skill", "skill": "DataQualitySkill"},
        "charts.kpi_trends": {"source": "analytics", "metric": "kpis", "group_by": "day", "window": "90d"},
        "tables.ai_insights": {"source": "skill", "skill": "AIInsightsGeneratorSkill", "cache_ttl": 300},
        "charts.anomaly_detection": {"source": "skill", "skill": "AnomalyDetectionSkill"},
    },
    "actions": {
        "actions.generate_insights": {
            "skill": "AIInsightsGeneratorSkill",
            "args": {"depth": "deep"},
            "confirmation_required": False,
            "audit_log": True,
        },
        "actions.export_report": {
            "skill": "ReportGenerationSkill",
            "args_schema": {"format": "string", "metrics": "array", "date_range": "string"},
        },
        "actions.refresh_data": {
            "skill": "DataIngestionSkill",
            "args": {"source": "all"},
            "confirmation_required": True,
        },
    },
    "integrations": {},
}

OUTREACH_CATALOG: dict[str, Any] = {
    "namespace": "outreach",
    "reads": {
        "tables.campaigns": {
            "source": "db",
            "query": "SELECT * FROM campaigns WHERE tenant_id = :tenantId",
            "filters": ["status", "owner"],
            "cache_ttl": 30,
        },
        "metrics.reply_rate.weekly": {"source": "analytics", "metric": "reply_rate", "window": "7d"},
        "metrics.replies_over_time": {"source": "analytics", "metric": "replies", "group_by": "week"},
        "crm.leads": {
            "source": "integration",
            "integration": "salesforce",
            "endpoint": "/query",
            "fields": ["Name", "Email", "Status"],
        },
        "shopify.orders": {
            "source": "integration",
            "endpoint": "/orders",
            "fields": ["id", "customer", "total", "status"],
        },
    },
    "actions": {
        "actions.send_followups": {"skill": "EmailSenderSkill", "args": {"template": "followup_v1"}},
        "actions.start_onboarding_flow": {"skill": "WorkflowManagementSkill", "args": {"flow": "onboarding"}},
        "actions.create_sf_opportunity": {
            "skill": "CRMIntegrationSkill",
            "integration": "salesforce",
            "args_schema": {"accountId": "string", "amount": "number"},
        },
        "actions.sync_gmail": {"skill": "EmailIntegrationSkill", "integration": "gmail"},
    },
    "integrations": {
        "salesforce": {"scopes": ["read:leads", "write:opportunities"], "auth_type": "oauth2"},
        "shopify": {"scopes": ["read:orders", "read:customers"], "auth_type": "api_key"},
        "gmail": {"scopes": ["send:email", "read:inbox"], "auth_type": "oauth2"},
    },
}

DEFAULT_CATALOGS: list[dict[str, Any]] = [
    CHATBOT_CATALOG,
    OPS_AGENT_CATALOG,
    DATA_INSIGHTS_CATALOG,
    OUTREACH_CATALOG,
]


def default_registry() -> CatalogRegistry:
    """A fresh registry holding the built-in product catalogs."""
    return CatalogRegistry(DEFAULT_CATALOGS)
