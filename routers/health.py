"""Health check router with real provider connectivity checks."""

import asyncio
import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from core.dependencies import get_http_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0


def probe_urls(settings: Settings) -> dict[str, str]:
    """One cheap JSON endpoint per provider family."""
    return {
        "discogs": f"{settings.discogs_api_base}/",
        "musicbrainz": f"{settings.musicbrainz_api_base}/release/?query=barcode:0&limit=1&fmt=json",
        "wikidata": f"{settings.wikidata_sparql_base}/sparql?query=ASK%7B%7D&format=json",
        "wikipedia": (
            f"{settings.wikipedia_base(settings.default_lang)}"
            "/w/api.php?action=query&meta=siteinfo&format=json"
        ),
    }


async def _check_provider(http: httpx.AsyncClient, url: str) -> str:
    """Ping a provider endpoint."""
    try:
        response = await http.get(url)
    except httpx.HTTPError as e:
        logger.warning(f"Health probe failed for {url}: {type(e).__name__}")
        return "error"
    return "ok" if response.is_success else "error"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (every provider down)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Health check with real connectivity probes for every provider family."""
    urls = probe_urls(settings)
    results = await asyncio.gather(*(_run_check(_check_provider(http, u)) for u in urls.values()))
    services = dict(zip(urls, results))

    up = sum(1 for v in services.values() if v == "ok")
    if up == len(services):
        status = "healthy"
    elif up:
        status = "degraded"
    else:
        status = "unhealthy"

    body = {
        "status": status,
        "version": settings.app_version,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)
