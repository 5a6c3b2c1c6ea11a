"""Gateway models: widget reads, actions, and whole-layout resolution."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class FetchRequest(BaseModel):
    """What a widget sends to POST /api/ui/data."""

    model_config = {"extra": "forbid"}

    namespace: str = Field(min_length=1)
    bind: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    cache_ttl: float | None = Field(default=None, ge=0)


class FetchResponse(BaseModel):
    namespace: str
    bind: str
    data: Any


class ActionRequest(BaseModel):
    """
    What an action widget sends to POST /api/ui/actions.

    confirmed must be true for actions whose catalog definition requires
    confirmation; the client is expected to have asked the user first.
    """

    model_config = {"extra": "forbid"}

    namespace: str = Field(min_length=1)
    action: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    user_id: str = Field(min_length=1)
    confirmed: bool = False


class ActionResponse(BaseModel):
    namespace: str
    action: str
    result: dict[str, Any]


class ResolveRequest(BaseModel):
    """What the renderer sends to POST /api/ui/resolve for a whole document."""

    model_config = {"extra": "forbid"}

    namespace: str = Field(min_length=1)
    layout: dict[str, Any]
    params: dict[str, Any] = Field(default_factory=dict)


class ResolveResponse(BaseModel):
    """Per-widget results: {"data": ...} or {"error": ..., "error_type": ...}."""

    namespace: str
    widgets: dict[str, dict[str, Any]]
