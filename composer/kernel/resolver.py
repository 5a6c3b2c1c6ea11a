"""
Composer Kernel — Binding Resolver (Gateway)

Resolves a widget's bind key through the catalog to a live value (read) or
triggers a side effect (action).

Reads:
  catalog lookup → TTL cache → dispatch by source (db | skill | analytics |
  integration) → cache on success. Collaborator failures surface as
  FetchError; failed results are never cached.

Actions:
  catalog lookup → skill lookup → audit append (if requested) → skill.execute
  with {**args, **params}. The audit entry is written before the skill runs
  and is never retracted.

The cache is process-local shared state. No locks: the runtime is a single
asyncio loop. Concurrent reads of the same uncached key share one dispatch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from composer.kernel.catalog import CatalogRegistry
from composer.kernel.collaborators import (
    AnalyticsClient,
    AuditSink,
    Database,
    IntegrationRegistry,
    SkillRegistry,
)
from composer.kernel.errors import (
    ActionError,
    ComposerError,
    FetchError,
    NotFoundError,
    SkillMissingError,
)
from composer.kernel.layout import iter_widgets
from composer.kernel.types import now_iso

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60

STATIC_BIND_PREFIX = "static."

CacheKey = tuple[str, str, str]


@dataclass
class _CacheEntry:
    data: Any
    expires: float


def cache_key(namespace: str, bind_key: str, params: dict[str, Any]) -> CacheKey:
    """Params are serialized with sorted keys so equal dicts share an entry."""
    return (namespace, bind_key, json.dumps(params, sort_keys=True, default=str))


class BindingResolver:
    """
    Gateway between widgets and the collaborators that back them.
    All collaborators are injected; any may be None if no catalog entry needs it.
    """

    def __init__(
        self,
        registry: CatalogRegistry,
        *,
        skills: SkillRegistry | None = None,
        database: Database | None = None,
        analytics: AnalyticsClient | None = None,
        integrations: IntegrationRegistry | None = None,
        audit: AuditSink | None = None,
        default_cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], str] = now_iso,
    ) -> None:
        self._registry = registry
        self._skills = skills
        self._database = database
        self._analytics = analytics
        self._integrations = integrations
        self._audit = audit
        self._default_cache_ttl = default_cache_ttl
        self._clock = clock
        self._now = now
        self._cache: dict[CacheKey, _CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}

    # -- lookup --

    def _catalog(self, namespace: str) -> dict[str, Any]:
        catalog = self._registry.get_catalog(namespace)
        if catalog is None:
            raise NotFoundError(f"Catalog {namespace} not found")
        return catalog

    def _read_definition(self, namespace: str, bind_key: str) -> dict[str, Any]:
        read_def = self._catalog(namespace)["reads"].get(bind_key)
        if read_def is None:
            raise NotFoundError(f"Read {bind_key} not found in {namespace}")
        return read_def

    # -- reads --

    async def fetch_data(
        self,
        namespace: str,
        bind_key: str,
        params: dict[str, Any] | None = None,
        cache_ttl: float | None = None,
    ) -> Any:
        """
        Resolve a read bind key to a value.

        TTL precedence: explicit cache_ttl, then the read definition's
        cache_ttl, then the resolver default.

        Raises NotFoundError for unknown namespace/key, FetchError when the
        backing collaborator fails.
        """
        read_def = self._read_definition(namespace, bind_key)
        params = params or {}
        key = cache_key(namespace, bind_key, params)

        entry = self._cache.get(key)
        if entry is not None and entry.expires > self._clock():
            return entry.data

        task = self._inflight.get(key)
        if task is None:
            if cache_ttl is None:
                cache_ttl = read_def.get("cache_ttl")
            if cache_ttl is None:
                cache_ttl = self._default_cache_ttl
            task = asyncio.ensure_future(self._load(key, namespace, bind_key, read_def, params, cache_ttl))
            self._inflight[key] = task
        else:
            logger.debug("resolver: joining in-flight fetch for %s:%s", namespace, bind_key)

        return await asyncio.shield(task)

    async def _load(
        self,
        key: CacheKey,
        namespace: str,
        bind_key: str,
        read_def: dict[str, Any],
        params: dict[str, Any],
        cache_ttl: float,
    ) -> Any:
        try:
            data = await self._dispatch(namespace, bind_key, read_def, params)
            self._cache[key] = _CacheEntry(data=data, expires=self._clock() + cache_ttl)
            return data
        finally:
            self._inflight.pop(key, None)

    async def _dispatch(
        self,
        namespace: str,
        bind_key: str,
        read_def: dict[str, Any],
        params: dict[str, Any],
    ) -> Any:
        source = read_def.get("source")
        try:
            if source == "db":
                if self._database is None:
                    raise RuntimeError("no database configured")
                return await self._database.query(read_def["query"], params)

            if source == "skill":
                skill_name = read_def["skill"]
                skill = self._skills.get_skill(skill_name) if self._skills is not None else None
                if skill is None:
                    raise SkillMissingError(f"Skill {skill_name} not found")
                envelope = await skill.execute(params)
                if isinstance(envelope, dict) and envelope.get("success") is False:
                    raise RuntimeError(envelope.get("error") or f"Skill {skill_name} reported failure")
                return envelope

            if source == "analytics":
                if self._analytics is None:
                    raise RuntimeError("no analytics client configured")
                return await self._analytics.query(
                    read_def["metric"],
                    read_def.get("window"),
                    read_def.get("group_by"),
                    params,
                )

            if source == "integration":
                name = read_def.get("integration") or bind_key.split(".", 1)[0]
                adapter = self._integrations.get_adapter(name) if self._integrations is not None else None
                if adapter is None:
                    raise LookupError(f"Integration {name} not configured")
                return await adapter.fetch_data(read_def["endpoint"], params)

            raise ValueError(f"Unknown source type: {source}")

        except Exception as e:
            logger.warning("resolver: fetch failed for %s:%s (%s): %s", namespace, bind_key, source, e)
            raise FetchError(namespace, bind_key, str(e)) from e

    def clear_cache(self, namespace: str | None = None) -> None:
        """Drop cached reads for one namespace, or everything."""
        if namespace is None:
            self._cache.clear()
            return
        for key in [k for k in self._cache if k[0] == namespace]:
            del self._cache[key]

    # -- actions --

    async def execute_action(
        self,
        namespace: str,
        action_key: str,
        params: dict[str, Any] | None,
        user_id: str,
    ) -> dict[str, Any]:
        """
        Run a catalog action through its skill.

        confirmation_required is honored by the caller before this is called;
        once called, the action runs unconditionally.

        Raises NotFoundError, SkillMissingError, or ActionError.
        """
        action_def = self._catalog(namespace)["actions"].get(action_key)
        if action_def is None:
            raise NotFoundError(f"Action {action_key} not found in {namespace}")

        params = params or {}

        if action_def.get("audit_log"):
            if self._audit is None:
                logger.warning("resolver: audit requested for %s:%s but no audit sink configured", namespace, action_key)
            else:
                await self._audit.append(
                    {
                        "namespace": namespace,
                        "action": action_key,
                        "params": params,
                        "user_id": user_id,
                        "timestamp": self._now(),
                    }
                )

        # The audit entry is written for every attempt, including one whose skill is missing
        skill_name = action_def["skill"]
        skill = self._skills.get_skill(skill_name) if self._skills is not None else None
        if skill is None:
            raise SkillMissingError(f"Skill {skill_name} not found")

        effective_params = {**action_def.get("args", {}), **params}

        try:
            envelope = await skill.execute(effective_params)
        except Exception as e:
            logger.warning("resolver: action %s:%s raised: %s", namespace, action_key, e)
            raise ActionError(namespace, action_key, str(e)) from e

        if isinstance(envelope, dict) and envelope.get("success") is False:
            raise ActionError(namespace, action_key, str(envelope.get("error") or "skill reported failure"))

        logger.info("resolver: user %s executed %s:%s", user_id, namespace, action_key)
        return envelope

    # -- whole document --

    async def resolve_layout(
        self,
        namespace: str,
        layout: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, dict[str, Any]]:
        """
        Resolve every widget in a document, one bind at a time.

        Returns {widget_id: {"data": ...}} or {widget_id: {"error", "error_type"}}.
        A failing bind is reported in place and does not stop the others.
        Action widgets are triggers, not reads, and are skipped.
        """
        results: dict[str, dict[str, Any]] = {}

        for _, widget in iter_widgets(layout):
            if widget.get("type") == "action":
                continue

            widget_id = widget.get("id") or widget.get("bind", "")
            bind = widget.get("bind", "")
            config = widget.get("config") or {}

            if bind.startswith(STATIC_BIND_PREFIX):
                results[widget_id] = {"data": config.get("content", "")}
                continue

            try:
                data = await self.fetch_data(namespace, bind, params, config.get("cache_ttl"))
            except ComposerError as e:
                results[widget_id] = {"error": str(e), "error_type": type(e).__name__}
            else:
                results[widget_id] = {"data": data}

        return results
