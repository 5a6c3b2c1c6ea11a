"""
Pytest configuration and fixtures for composer backend tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("ANALYTICS_URL", "")
os.environ.setdefault("TELEMETRY_ENDPOINT", "")
os.environ.setdefault("INTEGRATION_URLS", "{}")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.main import app  # noqa: E402
from backend.services import gateway  # noqa: E402
from backend.services.telemetry import telemetry_manager  # noqa: E402
from backend.services.usage import usage_tracker  # noqa: E402


@pytest_asyncio.fixture(loop_scope="session")
async def async_client():
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture(autouse=True)
def reset_state():
    """Gateway cache and usage counters are process-wide."""
    yield
    gateway.resolver.clear_cache()
    usage_tracker.reset()


@pytest_asyncio.fixture(loop_scope="session")
async def telemetry_cleanup():
    """Stop collectors that routes started during the test."""
    yield telemetry_manager
    await telemetry_manager.stop_all()


@pytest.fixture
def skill_registry():
    """The live gateway skill registry; skills registered in a test are removed after it."""
    before = set(gateway.skill_registry.names())
    yield gateway.skill_registry
    for name in set(gateway.skill_registry.names()) - before:
        gateway.skill_registry.unregister(name)
