"""Enrichment API router."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from posthog import Posthog

from config.settings import Settings, get_settings
from core.dependencies import get_posthog_client, get_provider_client
from core.telemetry import RequestTelemetry
from enrichment.cache import get_cached, make_cache_key, store
from enrichment.orchestrator import perform_enrichment
from enrichment.seed import parse_flags, parse_seed, to_bool
from providers.client import ProviderClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["enrichment"])


def cache_directive(settings: Settings, nocache: bool) -> str:
    return "no-store" if nocache else f"public, s-maxage={settings.response_cache_ttl}"


@router.get(
    "/enrich",
    summary="Enrich a release from any one weak identifier",
    description="""
    Resolves a release across Discogs, MusicBrainz, Wikidata and Wikipedia.

    Seed parameters: `upc`/`ean`/`barcode`, `mbid`, `mb_release_mbid`,
    `mb_release_group`, `mb_artist_id`, `discogs`/`discogs_release_id`,
    `discogs_master_id`, `qid`, `artist`, `title`, or a compact `cmd` string
    such as `upc:0888751119215 title:"Kind of Blue"`.

    Flags: `all`, `images` (artist|album|both|none), `lang`, `max_images`
    (1-50) and `nocache`.

    Provider failures never fail the request; they are reported in
    `diagnostics`.
    """,
    responses={200: {"description": "Enrichment document, possibly partial"}},
)
async def handle_enrich(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: ProviderClient = Depends(get_provider_client),
    posthog_client: Posthog | None = Depends(get_posthog_client),
):
    """Process an enrichment request."""
    params = request.query_params
    nocache = to_bool(params.get("nocache"))
    seed = parse_seed(params, params.get("cmd"))
    flags = parse_flags(params, settings)
    headers = {"Cache-Control": cache_directive(settings, nocache)}

    key = make_cache_key(seed, flags)
    if not nocache:
        cached = get_cached(key)
        if cached is not None:
            return JSONResponse(content=cached, headers=headers)

    telemetry = RequestTelemetry()
    out = await perform_enrichment(seed, flags, client, settings, telemetry)
    document = out.model_dump(mode="json", exclude_none=True)

    fatal = any(note.startswith("fatal:") for note in out.diagnostics.notes)
    if not nocache and not fatal:
        store(key, document)

    if posthog_client:
        telemetry.send_to_posthog(
            posthog_client,
            {
                "matched_on": out.diagnostics.matched_on,
                "identifiers": sorted(out.ids),
                "images": len(out.downloads.image_urls),
                "fatal": fatal,
                "had_barcode": bool(seed.barcode),
                "had_text": bool(seed.artist and seed.title),
            },
        )

    return JSONResponse(content=document, headers=headers)
