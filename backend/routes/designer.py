"""Designer routes — propose a layout, suggest edits from telemetry, list widgets."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from backend.models.designer import (
    AvailableWidgetsResponse,
    ProposalResponse,
    ProposeRequest,
    SuggestionsRequest,
    SuggestionsResponse,
)
from backend.services.gateway import catalog_registry, mutator, suggestion_engine
from backend.services.usage import usage_tracker
from composer.kernel.types import DesignerRequest
from composer.kernel.validation import layout_warnings, validate_layout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ui", tags=["designer"])


def _check_layout(layout: dict, field: str) -> None:
    errors = validate_layout(layout)
    if errors:
        raise HTTPException(
            status_code=422,
            detail={"message": f"Invalid {field}", "errors": errors},
        )


def _warning_messages(layout: dict) -> list[str]:
    return [w.message for w in layout_warnings(layout)]


@router.post("/designer/propose", status_code=200)
async def propose(req: ProposeRequest) -> ProposalResponse:
    """
    Draft a layout from a natural-language description.

    With current_layout: one edit applied to a copy of it.
    Without: a fresh layout from the product template.
    The draft is never published here.
    """
    if req.current_layout is not None:
        _check_layout(req.current_layout, "current_layout")

    response = mutator.propose(
        DesignerRequest(
            description=req.description,
            product=req.product,
            skills=req.skills,
            integrations=req.integrations,
            current_layout=req.current_layout,
        )
    )
    logger.info("designer: proposal for %s: %s", req.product, response.rationale)
    return ProposalResponse.from_kernel(response, _warning_messages(response.draft_layout))


@router.post("/designer/suggestions", status_code=200)
async def suggestions(req: SuggestionsRequest) -> SuggestionsResponse:
    """
    Proactive suggestions from widget usage.

    Uses the telemetry snapshot in the request, or the server's aggregated
    usage for the layout's tenant (meta.tenant_id, default 'default').
    """
    _check_layout(req.layout, "layout")

    telemetry = req.telemetry
    if telemetry is None:
        tenant_id = req.layout.get("meta", {}).get("tenant_id", "default")
        telemetry = usage_tracker.snapshot(tenant_id)

    drafts = suggestion_engine.generate_proactive_suggestions(req.layout, telemetry)
    return SuggestionsResponse(
        suggestions=[ProposalResponse.from_kernel(d, _warning_messages(d.draft_layout)) for d in drafts]
    )


@router.get("/catalog/{namespace}/widgets", status_code=200)
async def available_widgets(namespace: str) -> AvailableWidgetsResponse:
    """All bind keys (reads and actions) a layout in this namespace may use."""
    if catalog_registry.get_catalog(namespace) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Catalog {namespace} not found")
    return AvailableWidgetsResponse(namespace=namespace, widgets=catalog_registry.get_available_widgets(namespace))
