"""
Composer configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import json
import os


class Settings:
    """Application settings from environment variables."""

    # Database (catalog 'db' reads + action audit log). Empty disables both.
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Analytics service backing 'analytics' reads
    ANALYTICS_URL: str = os.environ.get("ANALYTICS_URL", "")
    ANALYTICS_API_KEY: str = os.environ.get("ANALYTICS_API_KEY", "")
    ANALYTICS_TIMEOUT_SECONDS: float = float(os.environ.get("ANALYTICS_TIMEOUT_SECONDS", "10"))

    # Integration adapters: JSON object of name → base URL
    # e.g. {"salesforce": "https://crm.internal/salesforce", "shopify": "https://..."}
    INTEGRATION_URLS: str = os.environ.get("INTEGRATION_URLS", "{}")

    # Gateway
    GATEWAY_CACHE_TTL_SECONDS: int = int(os.environ.get("GATEWAY_CACHE_TTL_SECONDS", "60"))

    # Designer: "substring" (legacy) or "metric_ref"
    MUTATOR_MATCH_MODE: str = os.environ.get("MUTATOR_MATCH_MODE", "substring")

    # Telemetry
    TELEMETRY_ENDPOINT: str = os.environ.get("TELEMETRY_ENDPOINT", "")
    TELEMETRY_BATCH_SIZE: int = int(os.environ.get("TELEMETRY_BATCH_SIZE", "100"))
    TELEMETRY_FLUSH_INTERVAL_SECONDS: float = float(os.environ.get("TELEMETRY_FLUSH_INTERVAL_SECONDS", "30"))
    TELEMETRY_MAX_BUFFER: int = int(os.environ.get("TELEMETRY_MAX_BUFFER", "10000"))
    # Collectors unused this long are stopped and dropped; the map is also capped
    TELEMETRY_IDLE_TIMEOUT_SECONDS: float = float(os.environ.get("TELEMETRY_IDLE_TIMEOUT_SECONDS", "600"))
    TELEMETRY_MAX_COLLECTORS: int = int(os.environ.get("TELEMETRY_MAX_COLLECTORS", "1000"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def integration_urls(self) -> dict[str, str]:
        return json.loads(self.INTEGRATION_URLS or "{}")


# Singleton instance
settings = Settings()

if settings.MUTATOR_MATCH_MODE not in ("substring", "metric_ref"):
    raise RuntimeError(f"MUTATOR_MATCH_MODE must be 'substring' or 'metric_ref', got {settings.MUTATOR_MATCH_MODE!r}")

try:
    if not isinstance(settings.integration_urls, dict):
        raise RuntimeError("INTEGRATION_URLS must be a JSON object")
except json.JSONDecodeError as e:
    raise RuntimeError(f"INTEGRATION_URLS is not valid JSON: {e}") from e

if settings.TELEMETRY_BATCH_SIZE < 1:
    raise RuntimeError("TELEMETRY_BATCH_SIZE must be at least 1")
if settings.TELEMETRY_MAX_BUFFER < settings.TELEMETRY_BATCH_SIZE:
    raise RuntimeError("TELEMETRY_MAX_BUFFER must be at least TELEMETRY_BATCH_SIZE")
if settings.TELEMETRY_MAX_COLLECTORS < 1:
    raise RuntimeError("TELEMETRY_MAX_COLLECTORS must be at least 1")
