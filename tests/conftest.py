"""Shared test fixtures for pytest."""

import pytest

from config.settings import Settings
from tests.factories import ProviderStub, kind_of_blue_network


@pytest.fixture
def test_settings():
    """Settings with no real tokens, telemetry disabled and no retry delay."""
    return Settings(
        discogs_token="test-token",
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        rate_limit_retry_delay=0.0,
        musicbrainz_warm_related=True,
    )


@pytest.fixture
def provider_stub():
    """Empty simulated provider network; every route answers 404 until added."""
    return ProviderStub()


@pytest.fixture
def kind_of_blue():
    """Simulated network answering every provider for Kind of Blue."""
    return kind_of_blue_network()
