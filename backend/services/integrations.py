"""HTTP integration adapters (CRM, commerce, mail, ...) configured from INTEGRATION_URLS."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from backend import config
from composer.kernel.collaborators import IntegrationAdapter, MemoryIntegrationRegistry

logger = logging.getLogger(__name__)


class HttpIntegrationAdapter(IntegrationAdapter):
    """
    Proxies an integration through an internal connector service.

    fetch_data: GET  {base_url}/{endpoint}?{params}
    push_data:  POST {base_url}/{endpoint} with the data as JSON
    """

    def __init__(self, name: str, base_url: str, timeout: float = 10.0) -> None:
        self.name = name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    async def fetch_data(self, endpoint: str, params: dict[str, Any]) -> Any:
        query = {k: v for k, v in params.items() if isinstance(v, (str, int, float, bool))}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self._url(endpoint), params=query)
            response.raise_for_status()
            return response.json()

    async def push_data(self, endpoint: str, data: Any) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url(endpoint), json=data)
            response.raise_for_status()
            logger.info("integrations: pushed to %s/%s", self.name, endpoint)
            return response.json()


def build_integration_registry(urls: dict[str, str] | None = None) -> MemoryIntegrationRegistry:
    """One HttpIntegrationAdapter per configured integration name."""
    if urls is None:
        urls = config.settings.integration_urls
    registry = MemoryIntegrationRegistry()
    for name, base_url in urls.items():
        registry.register(name, HttpIntegrationAdapter(name, base_url))
    if urls:
        logger.info("integrations: configured %s", ", ".join(sorted(urls)))
    return registry
