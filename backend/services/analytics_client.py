"""HTTP client for the analytics service backing 'analytics' catalog reads."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from backend import config
from composer.kernel.collaborators import AnalyticsClient

logger = logging.getLogger(__name__)


class HttpAnalyticsClient(AnalyticsClient):
    """
    Queries named metrics from the analytics service.

    POST {ANALYTICS_URL}/query with {metric, window, group_by, params}.
    The response body is returned as the widget's data.
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None) -> None:
        self._base_url = (base_url if base_url is not None else config.settings.ANALYTICS_URL).rstrip("/")
        self._api_key = api_key if api_key is not None else config.settings.ANALYTICS_API_KEY
        self._timeout = config.settings.ANALYTICS_TIMEOUT_SECONDS

    async def query(
        self,
        metric: str,
        window: str | None,
        group_by: str | None,
        params: dict[str, Any],
    ) -> Any:
        """
        Fetch one metric.

        Raises:
            httpx.HTTPError: If the analytics service is unreachable or returns an error
        """
        payload: dict[str, Any] = {"metric": metric, "params": params}
        if window is not None:
            payload["window"] = window
        if group_by is not None:
            payload["group_by"] = group_by

        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(f"{self._base_url}/query", json=payload, headers=headers)
            response.raise_for_status()
            logger.debug("analytics: %s window=%s group_by=%s", metric, window, group_by)
            return response.json()
