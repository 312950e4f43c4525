"""Integration tests for the health check endpoint."""

import pytest

pytestmark = pytest.mark.integration


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_partial_network_is_degraded(self, app_client):
        """The Kind of Blue network has no Discogs root route."""
        resp = await app_client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["services"]["discogs"] == "error"
        assert body["services"]["musicbrainz"] == "ok"
        assert body["services"]["wikidata"] == "ok"
        assert body["services"]["wikipedia"] == "ok"

    @pytest.mark.asyncio
    async def test_response_structure(self, app_client):
        resp = await app_client.get("/health")
        body = resp.json()
        assert set(body) == {"status", "version", "services"}
        assert set(body["services"]) == {"discogs", "musicbrainz", "wikidata", "wikipedia"}
