"""Integration test fixtures.

Runs the real FastAPI app and the full pipeline against a simulated provider
network, so every stage, the diagnostics trace and the response cache are
exercised together.
"""

import pytest_asyncio

from enrichment.cache import clear_response_cache


@pytest_asyncio.fixture
async def app_client(kind_of_blue, test_settings):
    """httpx AsyncClient for the app, with providers answered by the Kind of Blue stub."""
    from httpx import ASGITransport, AsyncClient

    from config.settings import get_settings
    from core.dependencies import get_http_client, get_posthog_client
    from main import app

    http = kind_of_blue.http_client()
    app.dependency_overrides[get_http_client] = lambda: http
    app.dependency_overrides[get_posthog_client] = lambda: None
    app.dependency_overrides[get_settings] = lambda: test_settings
    clear_response_cache()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    clear_response_cache()
    await http.aclose()
