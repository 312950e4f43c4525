"""Unit tests for main.py."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient


class TestLifespan:
    @pytest.mark.asyncio
    async def test_shutdown_calls_cleanup(self, mock_settings):
        """Lifespan context manager calls shutdown functions on exit."""
        from main import app, lifespan

        with (
            patch("main.shutdown_posthog") as mock_ph_shutdown,
            patch("main.close_http_client", new_callable=AsyncMock) as mock_http_close,
        ):
            async with lifespan(app):
                pass  # startup

            # shutdown should have run
            mock_ph_shutdown.assert_called_once()
            mock_http_close.assert_called_once()


class TestMiddleware:
    @pytest.mark.asyncio
    async def test_posthog_flush_middleware(self, mock_settings):
        """PostHog flush middleware flushes after each request."""
        from config.settings import get_settings
        from core.dependencies import get_posthog_client, get_provider_client
        from main import app

        provider = AsyncMock()
        app.dependency_overrides[get_provider_client] = lambda: provider
        app.dependency_overrides[get_posthog_client] = lambda: None
        app.dependency_overrides[get_settings] = lambda: mock_settings

        try:
            with patch("main.flush_posthog") as mock_flush:
                async with AsyncClient(
                    transport=ASGITransport(app=app), base_url="http://test"
                ) as client:
                    # an empty seed never reaches a provider
                    await client.get("/api/v1/enrich")

                mock_flush.assert_called()
        finally:
            app.dependency_overrides.clear()


class TestAppRouterRegistration:
    def test_routes_registered(self):
        from main import app

        routes = [r.path for r in app.routes]
        assert "/health" in routes
        assert "/api/v1/enrich" in routes

    def test_app_metadata(self):
        from main import app

        assert app.title is not None
        assert app.version is not None
