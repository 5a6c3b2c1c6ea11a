"""
Composer kernel test configuration.

Kernel tests are pure: in-memory registries, fake collaborators, and a
manual clock. Nothing here needs a database or network.
"""

from __future__ import annotations

import pytest

from composer.kernel.catalog import CatalogRegistry, default_registry
from composer.kernel.collaborators import (
    AnalyticsClient,
    Database,
    FunctionSkill,
    IntegrationAdapter,
    MemoryAuditSink,
    MemoryIntegrationRegistry,
    MemorySkillRegistry,
)

CREATED_AT = "2026-01-01T00:00:00Z"


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingDatabase(Database):
    def __init__(self, rows=None) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.rows = rows if rows is not None else [{"id": 1}]

    async def query(self, sql, params):
        self.calls.append((sql, params))
        return self.rows


class CountingAnalytics(AnalyticsClient):
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def query(self, metric, window, group_by, params):
        self.calls.append((metric, window, group_by, params))
        return {"metric": metric, "value": 42}


class RecordingAdapter(IntegrationAdapter):
    def __init__(self) -> None:
        self.fetches: list[tuple[str, dict]] = []

    async def fetch_data(self, endpoint, params):
        self.fetches.append((endpoint, params))
        return [{"Name": "Ada"}]

    async def push_data(self, endpoint, data):
        return {"ok": True}


@pytest.fixture
def registry() -> CatalogRegistry:
    return default_registry()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def database() -> CountingDatabase:
    return CountingDatabase()


@pytest.fixture
def analytics() -> CountingAnalytics:
    return CountingAnalytics()


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def integrations(adapter) -> MemoryIntegrationRegistry:
    return MemoryIntegrationRegistry({"salesforce": adapter, "shopify": adapter})


@pytest.fixture
def audit() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture
def skills() -> MemorySkillRegistry:
    """Skills that echo their params back in the envelope."""

    async def echo(params):
        return {"success": True, "data": params, "metadata": {}}

    registry = MemorySkillRegistry()
    for name in ("WorkflowManagementSkill", "WorkflowMonitor", "EmailSenderSkill", "DataExportSkill"):
        registry.register(name, FunctionSkill(echo))
    return registry


@pytest.fixture
def chatbot_layout() -> dict:
    from composer.kernel.layout import generate_default

    return generate_default("chatbot", created_at=CREATED_AT)
