"""Generic JSON client used by every provider resolver.

Each call is recorded in the caller's diagnostics list, in call order. A 429
is retried exactly once after a fixed delay; there is no exponential backoff
and no memory of throttling across calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from core.exceptions import ProviderError
from core.sentry import add_provider_breadcrumb
from providers.models import FetchOutcome, FetchResult, HttpTraceEntry

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_DELAY = 2.0


class ProviderClient:
    """Authenticated JSON fetches over one shared HTTP client.

    Credentials are attached per base endpoint, so the same client can talk to
    Discogs with a token and to the Wikimedia APIs anonymously.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        retry_delay: float = RATE_LIMIT_RETRY_DELAY,
        credentials: dict[str, dict[str, str]] | None = None,
    ):
        """Initialize the client.

        Args:
            http: Shared async HTTP client carrying the user agent and accept headers
            retry_delay: Seconds to wait before retrying a throttled call
            credentials: Extra headers keyed by base endpoint
        """
        self._http = http
        self.retry_delay = retry_delay
        self._credentials = credentials or {}

    async def get_json(
        self,
        base: str,
        path: str,
        trace: list[HttpTraceEntry],
        params: dict[str, Any] | None = None,
        provider: str = "provider",
    ) -> FetchResult:
        """GET ``base + path`` and decode the JSON body.

        Args:
            base: Provider endpoint, e.g. "https://musicbrainz.org/ws/2"
            path: Request path, recorded in the trace
            trace: Diagnostics list the attempt(s) are appended to
            params: Optional query parameters
            provider: Provider family name for breadcrumbs and logs

        Returns:
            FetchResult; ``data`` holds the decoded body on success

        Raises:
            ProviderError: If the provider cannot be reached at all
        """
        query = urlencode(params or {}, doseq=True)
        url = base + path
        if query:
            url += ("&" if "?" in path else "?") + query
        headers = self._credentials.get(base, {})

        response = await self._send(url, headers, provider)
        trace.append(
            HttpTraceEntry(url=path + (f"?{query}" if query else ""), status=response.status_code)
        )
        add_provider_breadcrumb(provider, path, {"status": response.status_code})

        if response.status_code == 429:
            logger.warning(f"{provider} rate limit hit on {path}, retrying in {self.retry_delay}s")
            await asyncio.sleep(self.retry_delay)
            response = await self._send(url, headers, provider)
            trace.append(HttpTraceEntry(url=f"{path} (retry)", status=response.status_code))
            add_provider_breadcrumb(provider, f"{path} (retry)", {"status": response.status_code})
            if response.status_code == 429:
                logger.error(f"{provider} still rate limited on {path}, giving up")
                return FetchResult(FetchOutcome.RATE_LIMITED, status=429)

        if not response.is_success:
            logger.info(f"{provider} returned {response.status_code} for {path}")
            return FetchResult(FetchOutcome.SOFT_FAILURE, status=response.status_code)

        return self._decode(response, path, provider)

    async def _send(self, url: str, headers: dict[str, str], provider: str) -> httpx.Response:
        try:
            return await self._http.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{provider} request failed: {e}")
            add_provider_breadcrumb(provider, url, {"error": type(e).__name__}, level="error")
            raise ProviderError(
                str(e) or type(e).__name__,
                details={"provider": provider, "url": url, "error": type(e).__name__},
            ) from e

    def _decode(self, response: httpx.Response, path: str, provider: str) -> FetchResult:
        try:
            data = response.json()
        except ValueError:
            logger.warning(f"{provider} sent a non-JSON body for {path}")
            return FetchResult(FetchOutcome.SOFT_FAILURE, status=response.status_code)
        return FetchResult(FetchOutcome.OK, status=response.status_code, data=data)
