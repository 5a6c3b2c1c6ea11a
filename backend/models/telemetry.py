"""Pydantic models for widget telemetry events."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


EventType = Literal["view", "action", "error", "performance", "interaction"]


class TelemetryEvent(BaseModel):
    """
    A single widget telemetry event.

    Browser collectors send camelCase keys (eventType, widgetId, ...);
    both spellings are accepted.
    """

    model_config = {"extra": "forbid", "populate_by_name": True}

    event_type: EventType = Field(alias="eventType")
    widget_id: str | None = Field(default=None, alias="widgetId")
    widget_type: str | None = Field(default=None, alias="widgetType")
    action: str | None = None  # action key, or interaction type for 'interaction'
    user_id: str = Field(alias="userId")
    tenant_id: str = Field(alias="tenantId")
    session_id: str = Field(alias="sessionId")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration: float | None = None  # ms, for 'performance'
    metadata: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class TelemetryBatch(BaseModel):
    """What a collector sends to POST /api/ui/telemetry."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    events: list[TelemetryEvent]
    session_id: str = Field(alias="sessionId")
    user_id: str = Field(alias="userId")
    tenant_id: str = Field(alias="tenantId")


class TelemetryIngestResponse(BaseModel):
    accepted: int
