"""
Pydantic models for the composer API.

All request/response shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.designer import (
    AvailableWidgetsResponse,
    ProposalResponse,
    ProposeRequest,
    SuggestionsRequest,
    SuggestionsResponse,
)
from backend.models.gateway import (
    ActionRequest,
    ActionResponse,
    FetchRequest,
    FetchResponse,
    ResolveRequest,
    ResolveResponse,
)
from backend.models.telemetry import TelemetryBatch, TelemetryEvent, TelemetryIngestResponse

__all__ = [
    # Designer models
    "ProposeRequest",
    "SuggestionsRequest",
    "ProposalResponse",
    "SuggestionsResponse",
    "AvailableWidgetsResponse",
    # Gateway models
    "FetchRequest",
    "FetchResponse",
    "ActionRequest",
    "ActionResponse",
    "ResolveRequest",
    "ResolveResponse",
    # Telemetry models
    "TelemetryEvent",
    "TelemetryBatch",
    "TelemetryIngestResponse",
]
