"""
Composer Kernel — Collaborator Contracts

Abstract interfaces for everything the resolver talks to but does not own:
skills, the query database, analytics, integration adapters, and the audit
sink. Implement with Postgres/HTTP for production (see backend/), or use the
in-memory versions below for tests and local wiring.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


class Skill:
    """
    One unit of business logic.

    execute() returns an envelope: {success, data?, error?, metadata}.
    Retries and backoff are the skill's own business.
    """

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError


class FunctionSkill(Skill):
    """Adapts an async callable to the Skill interface."""

    def __init__(self, fn: Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]) -> None:
        self._fn = fn

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self._fn(params)


class SkillRegistry:
    """Lookup of skills by name."""

    def get_skill(self, name: str) -> Skill | None:
        raise NotImplementedError


class MemorySkillRegistry(SkillRegistry):
    """In-memory skill registry."""

    def __init__(self, skills: dict[str, Skill] | None = None) -> None:
        self._skills: dict[str, Skill] = dict(skills or {})

    def register(self, name: str, skill: Skill) -> None:
        self._skills[name] = skill

    def unregister(self, name: str) -> None:
        self._skills.pop(name, None)

    def names(self) -> list[str]:
        return list(self._skills)

    def get_skill(self, name: str) -> Skill | None:
        return self._skills.get(name)


# ---------------------------------------------------------------------------
# Read backends
# ---------------------------------------------------------------------------


class Database:
    """Runs a catalog query template with named parameters (':name')."""

    async def query(self, sql: str, params: dict[str, Any]) -> Any:
        raise NotImplementedError


class AnalyticsClient:
    """Fetches a named metric over a window, optionally grouped."""

    async def query(
        self,
        metric: str,
        window: str | None,
        group_by: str | None,
        params: dict[str, Any],
    ) -> Any:
        raise NotImplementedError


class IntegrationAdapter:
    """Third-party integration (CRM, commerce, mail, ...)."""

    async def fetch_data(self, endpoint: str, params: dict[str, Any]) -> Any:
        raise NotImplementedError

    async def push_data(self, endpoint: str, data: Any) -> Any:
        raise NotImplementedError


class IntegrationRegistry:
    """Lookup of integration adapters by name."""

    def get_adapter(self, name: str) -> IntegrationAdapter | None:
        raise NotImplementedError


class MemoryIntegrationRegistry(IntegrationRegistry):
    """In-memory integration registry."""

    def __init__(self, adapters: dict[str, IntegrationAdapter] | None = None) -> None:
        self._adapters: dict[str, IntegrationAdapter] = dict(adapters or {})

    def register(self, name: str, adapter: IntegrationAdapter) -> None:
        self._adapters[name] = adapter

    def get_adapter(self, name: str) -> IntegrationAdapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return list(self._adapters)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class AuditSink:
    """
    Append-only audit trail for actions.
    Entries: {namespace, action, params, user_id, timestamp}
    """

    async def append(self, entry: dict[str, Any]) -> None:
        raise NotImplementedError


class MemoryAuditSink(AuditSink):
    """In-memory audit sink for testing."""

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    async def append(self, entry: dict[str, Any]) -> None:
        self.entries.append(entry)
