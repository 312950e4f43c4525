"""Enrichment orchestrator: runs the provider stages in dependency order.

Pipeline: seed normalisation -> Discogs (barcode only) -> MusicBrainz ->
Wikidata -> Wikipedia -> image galleries -> canonical finalisation.

Each stage guards its own preconditions and degrades into diagnostics when its
provider is unreachable. Any other exception is fatal: it is recorded once as
a ``fatal:`` note and the partially built document is still returned.
"""

import logging
from collections.abc import Awaitable, Callable

from config.settings import Settings
from core.exceptions import ProviderError
from core.sentry import capture_exception
from core.telemetry import RequestTelemetry
from discogs.resolver import DiscogsResolver
from enrichment.merge import aggregate_download_list, finalize_canonical
from enrichment.models import EnrichmentOutput, Flags, Seed
from enrichment.seed import normalize_seed
from gallery.builder import GalleryBuilder
from musicbrainz.resolver import MusicBrainzResolver
from providers.client import ProviderClient
from wikidata.resolver import WikidataResolver
from wikipedia.enrichment import ArticleExtractor, WikipediaEnricher
from wikipedia.extract import parse_article

logger = logging.getLogger(__name__)


async def run_stage(
    name: str,
    stage: Callable[[], Awaitable[object]],
    out: EnrichmentOutput,
    telemetry: RequestTelemetry,
) -> None:
    """Run one stage, recording an unreachable provider as a note."""
    with telemetry.track_step(name):
        try:
            await stage()
        except ProviderError as e:
            logger.warning(f"Stage {name} degraded: {e.message}")
            telemetry.mark_degraded()
            out.diagnostics.notes.append(f"{name} unreachable: {e.message}")


async def perform_enrichment(
    seed: Seed,
    flags: Flags,
    client: ProviderClient,
    settings: Settings,
    telemetry: RequestTelemetry,
    extractor: ArticleExtractor = parse_article,
) -> EnrichmentOutput:
    """Orchestrate one enrichment run.

    Steps:
    1. Canonicalise the barcode and adopt explicit IDs
    2. Discogs barcode search (only with a barcode)
    3. MusicBrainz resolution, hydration and link harvesting
    4. Wikidata album/artist/article resolution
    5. Wikipedia summary, infobox, media and article facts
    6. Image galleries (unless images=none)
    7. Default format and aggregate the download list
    """
    out = EnrichmentOutput(flags=flags)
    out.stamp("start")

    try:
        seed = normalize_seed(seed, out)
        wikidata = WikidataResolver(client, settings)

        async def resolve_wikidata():
            await wikidata.resolve(out)
            await wikidata.describe(out)

        if seed.barcode:
            discogs = DiscogsResolver(client, settings)
            await run_stage("discogs", lambda: discogs.resolve(seed, out), out, telemetry)

        musicbrainz = MusicBrainzResolver(client, settings)
        await run_stage("musicbrainz", lambda: musicbrainz.resolve(seed, out), out, telemetry)
        await run_stage("wikidata", resolve_wikidata, out, telemetry)

        wikipedia = WikipediaEnricher(client, settings, extractor=extractor)
        await run_stage("wikipedia", lambda: wikipedia.enrich(out), out, telemetry)

        if flags.images != "none":
            gallery = GalleryBuilder(client, settings, wikidata)
            await run_stage("gallery", lambda: gallery.build(out), out, telemetry)

        finalize_canonical(out)
        aggregate_download_list(out)
    except Exception as e:
        logger.exception(f"Enrichment failed: {e}")
        out.diagnostics.notes.append(f"fatal:{e}")
        capture_exception(e, {"seed": seed.model_dump(exclude_none=True), "ids": list(out.ids)})
    finally:
        out.stamp("done")
        for service, count in out.diagnostics.call_counts().items():
            telemetry.record_api_call(service, count)

    logger.info(
        f"Enrichment done: matched_on={out.diagnostics.matched_on} "
        f"ids={sorted(out.ids)} images={len(out.downloads.image_urls)}"
    )
    return out
