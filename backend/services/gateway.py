"""
Gateway wiring — the process-wide composer kernel instances.

Catalogs, skills, and collaborators are registered once at import/startup
and shared by every request. The Postgres-backed collaborators are only
attached when DATABASE_URL is set; without it 'db' reads fail with a
FetchError and audited actions log a warning instead of writing an entry.
"""

from __future__ import annotations

import logging
from typing import Any

from backend.config import settings
from backend.repos.audit_repo import PostgresAuditSink
from backend.repos.query_repo import PostgresDatabase
from backend.services.analytics_client import HttpAnalyticsClient
from backend.services.integrations import build_integration_registry
from composer.kernel.catalog import default_registry
from composer.kernel.collaborators import MemorySkillRegistry, Skill
from composer.kernel.mutator import LayoutMutator
from composer.kernel.resolver import BindingResolver
from composer.kernel.suggestions import SuggestionEngine

logger = logging.getLogger(__name__)


class CacheManagementSkill(Skill):
    """Built-in skill: drops cached reads for params['target'] (or everything)."""

    def __init__(self, resolver: BindingResolver) -> None:
        self._resolver = resolver

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        target = params.get("target")
        self._resolver.clear_cache(target)
        logger.info("gateway: cache cleared for %s", target or "all namespaces")
        return {"success": True, "data": {"cleared": target or "all"}, "metadata": {}}


catalog_registry = default_registry()
skill_registry = MemorySkillRegistry()

resolver = BindingResolver(
    catalog_registry,
    skills=skill_registry,
    database=PostgresDatabase() if settings.DATABASE_URL else None,
    analytics=HttpAnalyticsClient() if settings.ANALYTICS_URL else None,
    integrations=build_integration_registry(),
    audit=PostgresAuditSink() if settings.DATABASE_URL else None,
    default_cache_ttl=settings.GATEWAY_CACHE_TTL_SECONDS,
)

skill_registry.register("CacheManagementSkill", CacheManagementSkill(resolver))

mutator = LayoutMutator(catalog_registry, match_mode=settings.MUTATOR_MATCH_MODE)

suggestion_engine = SuggestionEngine()
