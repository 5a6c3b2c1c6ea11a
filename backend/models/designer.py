"""Designer models: layout proposals and telemetry-driven suggestions."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from composer.kernel.types import DesignerResponse


class ProposeRequest(BaseModel):
    """What the client sends to POST /api/ui/designer/propose."""

    model_config = {"extra": "forbid"}

    description: str = Field(min_length=1, max_length=2000)
    product: str = Field(min_length=1, max_length=100)
    skills: list[str] = Field(default_factory=list)
    integrations: list[str] = Field(default_factory=list)
    current_layout: dict[str, Any] | None = None


class SuggestionsRequest(BaseModel):
    """
    What the client sends to POST /api/ui/designer/suggestions.

    telemetry is optional; without it the server uses the usage it has
    aggregated from ingested telemetry events.
    """

    model_config = {"extra": "forbid"}

    layout: dict[str, Any]
    telemetry: dict[str, Any] | None = None


class LayoutDiffResponse(BaseModel):
    version: bool
    tabs_added: list[dict[str, Any]]
    tabs_removed: list[dict[str, Any]]
    tabs_modified: list[dict[str, Any]]


class ProposalResponse(BaseModel):
    """A draft layout for review. Publishing is the caller's decision."""

    draft_layout: dict[str, Any]
    rationale: str
    diff: LayoutDiffResponse | None = None
    suggestions: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_kernel(cls, response: DesignerResponse, warnings: list[str] | None = None) -> ProposalResponse:
        """Convert a kernel DesignerResponse to the API shape."""
        return cls(**response.to_dict(), warnings=warnings or [])


class SuggestionsResponse(BaseModel):
    suggestions: list[ProposalResponse]


class AvailableWidgetsResponse(BaseModel):
    namespace: str
    widgets: list[str]
