"""FastAPI dependency injection providers."""

import logging

import httpx
from fastapi import Depends
from posthog import Posthog

from config.settings import Settings, get_settings
from core.exceptions import ServiceInitializationError
from providers.client import ProviderClient

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_http_client: httpx.AsyncClient | None = None
_posthog_client: Posthog | None = None


async def get_http_client(settings: Settings = Depends(get_settings)) -> httpx.AsyncClient:
    """Get the shared outbound HTTP client.

    Every request carries the fixed client identifier and asks for JSON.

    Args:
        settings: Application settings

    Returns:
        httpx.AsyncClient: Shared client instance

    Raises:
        ServiceInitializationError: If the client cannot be created
    """
    global _http_client

    if _http_client is None:
        try:
            _http_client = httpx.AsyncClient(
                headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
                timeout=settings.http_timeout,
                follow_redirects=True,
            )
            logger.info(f"HTTP client initialized (timeout: {settings.http_timeout}s)")
        except Exception as e:
            logger.error(f"Failed to initialize HTTP client: {e}")
            raise ServiceInitializationError(f"HTTP client initialization failed: {e}") from e

    return _http_client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _http_client
    if _http_client:
        await _http_client.aclose()
        _http_client = None


def build_credentials(settings: Settings) -> dict[str, dict[str, str]]:
    """Per-endpoint auth headers; providers without credentials are queried anonymously."""
    credentials: dict[str, dict[str, str]] = {}
    if settings.discogs_token:
        credentials[settings.discogs_api_base] = {
            "Authorization": f"Discogs token={settings.discogs_token}"
        }
    else:
        logger.debug("DISCOGS_TOKEN not set - Discogs queried anonymously")
    return credentials


async def get_provider_client(
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> ProviderClient:
    """Get a provider client over the shared HTTP client.

    Args:
        settings: Application settings
        http: Shared HTTP client

    Returns:
        ProviderClient: Client with per-provider credentials attached
    """
    return ProviderClient(
        http,
        retry_delay=settings.rate_limit_retry_delay,
        credentials=build_credentials(settings),
    )


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Args:
        settings: Application settings

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")
