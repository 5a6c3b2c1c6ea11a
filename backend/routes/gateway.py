"""Gateway routes — widget reads, audited actions, and whole-layout resolution."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from backend.models.gateway import (
    ActionRequest,
    ActionResponse,
    FetchRequest,
    FetchResponse,
    ResolveRequest,
    ResolveResponse,
)
from backend.services.gateway import catalog_registry, resolver
from backend.services.telemetry import telemetry_manager
from composer.kernel.errors import (
    ActionError,
    ComposerError,
    FetchError,
    NotFoundError,
    ParseError,
    SkillMissingError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ui", tags=["gateway"])

_STATUS_FOR_ERROR: dict[type[ComposerError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SkillMissingError: status.HTTP_404_NOT_FOUND,
    FetchError: status.HTTP_502_BAD_GATEWAY,
    ActionError: status.HTTP_502_BAD_GATEWAY,
    ParseError: 422,
}


def _http_error(e: ComposerError) -> HTTPException:
    code = _STATUS_FOR_ERROR.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=code, detail=str(e))


def _tenant(params: dict) -> str:
    return str(params.get("tenantId", "default"))


@router.post("/data", status_code=200)
async def fetch_data(req: FetchRequest) -> FetchResponse:
    """Resolve one read bind key to its current value (cached per TTL)."""
    try:
        data = await resolver.fetch_data(req.namespace, req.bind, req.params, req.cache_ttl)
    except ComposerError as e:
        raise _http_error(e) from e
    return FetchResponse(namespace=req.namespace, bind=req.bind, data=data)


@router.post("/actions", status_code=200)
async def execute_action(req: ActionRequest) -> ActionResponse:
    """
    Run a catalog action.

    Actions marked confirmation_required are refused (409) unless the request
    says the user confirmed. Audited actions are logged before they run.
    """
    catalog = catalog_registry.get_catalog(req.namespace)
    action_def = catalog["actions"].get(req.action) if catalog is not None else None
    if action_def is not None and action_def.get("confirmation_required") and not req.confirmed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Action {req.action} requires confirmation",
        )

    collector = telemetry_manager.get_collector(req.user_id, _tenant(req.params))
    try:
        result = await resolver.execute_action(req.namespace, req.action, req.params, req.user_id)
    except ComposerError as e:
        collector.track_error(req.action, "action", e, {"namespace": req.namespace})
        raise _http_error(e) from e

    collector.track_action(req.action, "action", req.action, {"namespace": req.namespace})
    return ActionResponse(namespace=req.namespace, action=req.action, result=result)


@router.post("/resolve", status_code=200)
async def resolve_layout(req: ResolveRequest) -> ResolveResponse:
    """Resolve every widget in a layout. Failing widgets are reported in place."""
    if catalog_registry.get_catalog(req.namespace) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Catalog {req.namespace} not found")

    widgets = await resolver.resolve_layout(req.namespace, req.layout, req.params)
    failed = [wid for wid, result in widgets.items() if "error" in result]
    if failed:
        logger.info("gateway: %d of %d widgets failed to resolve in %s", len(failed), len(widgets), req.namespace)
    return ResolveResponse(namespace=req.namespace, widgets=widgets)
