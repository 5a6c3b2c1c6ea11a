"""Telemetry ingest — collectors post batched widget events here."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from backend.models.telemetry import TelemetryBatch, TelemetryIngestResponse
from backend.services.usage import usage_tracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ui", tags=["telemetry"])


@router.post("/telemetry", status_code=202)
async def ingest(batch: TelemetryBatch) -> TelemetryIngestResponse:
    """Fold a batch into per-widget usage. Feeds /api/ui/designer/suggestions."""
    accepted = usage_tracker.record(batch.events)
    errors = sum(1 for e in batch.events if e.event_type == "error")
    if errors:
        logger.warning("telemetry: session %s reported %d widget errors", batch.session_id, errors)
    return TelemetryIngestResponse(accepted=accepted)
