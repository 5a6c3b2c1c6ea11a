"""
Telemetry service — batches widget usage events and ships them to a sink.

Usage:
    collector = telemetry_manager.get_collector(user_id, tenant_id)
    collector.track_view("widget-1", "kpi")
    collector.track_action("widget-7", "action", "pause_campaign")
    ...
    await telemetry_manager.stop_all()   # on shutdown

Events are buffered in memory and flushed when the buffer reaches the batch
size, on a periodic background timer, or right away (scheduled, never
awaited by the caller) when an error is tracked. A failed flush puts its
events back at the front of the buffer; the buffer is bounded and drops the
oldest events when it overflows.

All track_* methods must be called from inside the running event loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import Counter, OrderedDict
from collections.abc import Callable
from typing import Any

import httpx

from backend.config import settings
from backend.models.telemetry import EventType, TelemetryBatch, TelemetryEvent

logger = logging.getLogger(__name__)

# Engagement weights per event type
_VIEW_WEIGHT = 1
_ACTION_WEIGHT = 5
_ERROR_PENALTY = -10


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class TelemetrySink:
    """Where flushed batches go. send() raises on failure."""

    async def send(self, batch: TelemetryBatch) -> None:
        raise NotImplementedError


class HttpTelemetrySink(TelemetrySink):
    """POSTs batches as JSON (camelCase keys) to a telemetry endpoint."""

    def __init__(self, endpoint: str, timeout: float = 10.0) -> None:
        self._endpoint = endpoint
        self._timeout = timeout

    async def send(self, batch: TelemetryBatch) -> None:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                self._endpoint,
                json=batch.model_dump(mode="json", by_alias=True),
            )
            response.raise_for_status()


class LogTelemetrySink(TelemetrySink):
    """Fallback when no TELEMETRY_ENDPOINT is configured: logs batch sizes only."""

    async def send(self, batch: TelemetryBatch) -> None:
        logger.info("telemetry: %d events for session %s (no endpoint configured)", len(batch.events), batch.session_id)


# ---------------------------------------------------------------------------
# TelemetryCollector
# ---------------------------------------------------------------------------


class TelemetryCollector:
    """Per-user, per-tenant event buffer with batched, retrying delivery."""

    def __init__(
        self,
        user_id: str,
        tenant_id: str,
        sink: TelemetrySink,
        *,
        batch_size: int = settings.TELEMETRY_BATCH_SIZE,
        flush_interval: float = settings.TELEMETRY_FLUSH_INTERVAL_SECONDS,
        max_buffer: int = settings.TELEMETRY_MAX_BUFFER,
        session_id: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.session_id = session_id or f"session-{uuid.uuid4().hex[:12]}"
        self._sink = sink
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._max_buffer = max_buffer
        self._events: list[TelemetryEvent] = []
        self._timer: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def buffered(self) -> int:
        return len(self._events)

    # -- lifecycle --

    def start(self) -> None:
        """Start the periodic flush timer. Idempotent."""
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._auto_flush())

    async def _auto_flush(self) -> None:
        while True:
            await asyncio.sleep(self._flush_interval)
            await self.flush()

    async def stop(self) -> None:
        """Cancel the timer, wait for scheduled flushes, then flush what is left."""
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None

        if self._pending:
            await asyncio.gather(*self._pending)

        await self.flush()

    # -- tracking --

    def track_view(self, widget_id: str, widget_type: str, metadata: dict[str, Any] | None = None) -> None:
        self._add("view", widget_id, widget_type, metadata=metadata)

    def track_action(
        self,
        widget_id: str,
        widget_type: str,
        action: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._add("action", widget_id, widget_type, action=action, metadata=metadata)

    def track_error(
        self,
        widget_id: str,
        widget_type: str,
        error: BaseException | str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Errors are shipped immediately rather than waiting for the batch."""
        message = str(error)
        meta = {**(metadata or {}), "errorMessage": message}
        if isinstance(error, BaseException):
            meta["errorType"] = type(error).__name__
        self._add("error", widget_id, widget_type, metadata=meta, error=message, flush=True)

    def track_performance(
        self,
        widget_id: str,
        widget_type: str,
        duration: float,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._add("performance", widget_id, widget_type, duration=duration, metadata=metadata)

    def track_interaction(
        self,
        widget_id: str,
        widget_type: str,
        interaction_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._add("interaction", widget_id, widget_type, action=interaction_type, metadata=metadata)

    def _add(
        self,
        event_type: EventType,
        widget_id: str,
        widget_type: str,
        *,
        action: str | None = None,
        duration: float | None = None,
        metadata: dict[str, Any] | None = None,
        error: str | None = None,
        flush: bool = False,
    ) -> None:
        self._events.append(
            TelemetryEvent(
                event_type=event_type,
                widget_id=widget_id,
                widget_type=widget_type,
                action=action,
                user_id=self.user_id,
                tenant_id=self.tenant_id,
                session_id=self.session_id,
                duration=duration,
                metadata=metadata or {},
                error=error,
            )
        )
        self._trim()

        if flush or len(self._events) >= self._batch_size:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        task = asyncio.create_task(self.flush())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # -- delivery --

    async def flush(self) -> None:
        """
        Send everything buffered as one batch.

        On failure the events go back to the front of the buffer for the next
        attempt. Never raises.
        """
        if not self._events:
            return

        to_send = self._events
        self._events = []

        batch = TelemetryBatch(
            events=to_send,
            session_id=self.session_id,
            user_id=self.user_id,
            tenant_id=self.tenant_id,
        )
        try:
            await self._sink.send(batch)
        except Exception as e:
            logger.warning("telemetry: failed to send %d events, re-queued: %s", len(to_send), e)
            self._events = to_send + self._events
            self._trim()
        else:
            logger.debug("telemetry: sent %d events for %s", len(to_send), self.session_id)

    def _trim(self) -> None:
        overflow = len(self._events) - self._max_buffer
        if overflow > 0:
            del self._events[:overflow]
            logger.warning("telemetry: buffer full (%d), dropped %d oldest events", self._max_buffer, overflow)

    # -- metrics --

    def session_metrics(self) -> dict[str, Any]:
        """Summary of the events currently buffered for this session."""
        widget_counts = Counter(e.widget_id for e in self._events if e.widget_id)
        action_counts = Counter(e.action for e in self._events if e.event_type == "action" and e.action)

        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "event_count": len(self._events),
            "unique_widgets": len(widget_counts),
            "top_widgets": widget_counts.most_common(5),
            "top_actions": action_counts.most_common(5),
            "error_count": sum(1 for e in self._events if e.event_type == "error"),
        }

    def engagement_score(self) -> float:
        """
        0-100 score over buffered events: views +1, actions and interactions
        +5, errors -10, averaged per event and scaled by 10.
        """
        if not self._events:
            return 0.0

        score = 0
        for event in self._events:
            if event.event_type == "view":
                score += _VIEW_WEIGHT
            elif event.event_type in ("action", "interaction"):
                score += _ACTION_WEIGHT
            elif event.event_type == "error":
                score += _ERROR_PENALTY

        return max(0.0, min(100.0, score / len(self._events) * 10))


# ---------------------------------------------------------------------------
# TelemetryManager
# ---------------------------------------------------------------------------


def default_sink() -> TelemetrySink:
    if settings.TELEMETRY_ENDPOINT:
        return HttpTelemetrySink(settings.TELEMETRY_ENDPOINT)
    return LogTelemetrySink()


class TelemetryManager:
    """
    One collector per (user_id, tenant_id), created on first use.

    Collectors are kept in least-recently-used order. Each get_collector()
    call stops and drops collectors idle longer than idle_timeout, and the
    least recently used ones beyond max_collectors. Stopping an evicted
    collector flushes it in the background; stop_all() waits for those.
    """

    def __init__(
        self,
        sink: TelemetrySink | None = None,
        *,
        idle_timeout: float = settings.TELEMETRY_IDLE_TIMEOUT_SECONDS,
        max_collectors: int = settings.TELEMETRY_MAX_COLLECTORS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self._idle_timeout = idle_timeout
        self._max_collectors = max_collectors
        self._clock = clock
        self._collectors: OrderedDict[tuple[str, str], TelemetryCollector] = OrderedDict()
        self._last_used: dict[tuple[str, str], float] = {}
        self._stopping: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._collectors)

    def get_collector(self, user_id: str, tenant_id: str) -> TelemetryCollector:
        key = (user_id, tenant_id)
        now = self._clock()
        collector = self._collectors.get(key)
        if collector is None:
            if self._sink is None:
                self._sink = default_sink()
            collector = TelemetryCollector(user_id, tenant_id, self._sink)
            collector.start()
            self._collectors[key] = collector
        else:
            self._collectors.move_to_end(key)
        self._last_used[key] = now
        self._evict(now)
        return collector

    def _evict(self, now: float) -> None:
        while len(self._collectors) > 1:
            key, collector = next(iter(self._collectors.items()))
            idle = now - self._last_used[key]
            if idle <= self._idle_timeout and len(self._collectors) <= self._max_collectors:
                break
            del self._collectors[key]
            del self._last_used[key]
            task = asyncio.create_task(collector.stop())
            self._stopping.add(task)
            task.add_done_callback(self._stopped)
            logger.debug("telemetry: evicted collector %s/%s (idle %.0fs)", key[0], key[1], idle)

    def _stopped(self, task: asyncio.Task) -> None:
        self._stopping.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("telemetry: evicted collector failed to stop: %s", task.exception())

    async def stop_all(self) -> None:
        """Stop and flush every collector, then forget them."""
        collectors = list(self._collectors.values())
        self._collectors.clear()
        self._last_used.clear()
        for collector in collectors:
            await collector.stop()
        if self._stopping:
            await asyncio.gather(*self._stopping, return_exceptions=True)
        if collectors:
            logger.info("telemetry: stopped %d collectors", len(collectors))


# Singleton instance
telemetry_manager = TelemetryManager()
