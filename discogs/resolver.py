"""Discogs barcode lookup.

A single search by barcode, first page, one result. A hit contributes the
release and master identifiers and whatever canonical fields are still empty.
"""

import logging

from config.settings import Settings
from discogs.models import DiscogsSearchPage
from enrichment.models import EnrichmentOutput, IdentifierKind, Seed
from providers.client import ProviderClient

logger = logging.getLogger(__name__)

SEARCH_PATH = "/database/search"


class DiscogsResolver:
    """Resolve a barcode to a Discogs release candidate."""

    def __init__(self, client: ProviderClient, settings: Settings):
        self.client = client
        self.base = settings.discogs_api_base

    async def resolve(self, seed: Seed, out: EnrichmentOutput) -> bool:
        """Search Discogs by the seed barcode and merge the first hit.

        Returns:
            True if a release was found and merged
        """
        if not seed.barcode:
            return False

        result = await self.client.get_json(
            self.base,
            SEARCH_PATH,
            out.diagnostics.discogs_http,
            params={"type": "release", "barcode": seed.barcode, "per_page": 1, "page": 1},
            provider="discogs",
        )
        if not result.ok:
            out.diagnostics.notes.append("discogs query failed or rate-limited")
            return False

        page = DiscogsSearchPage.decode(result.data)
        if page is None or not page.results:
            logger.info(f"Discogs has no release for barcode {seed.barcode}")
            out.diagnostics.notes.append(f"discogs: no release for barcode {seed.barcode}")
            return False

        hit = page.results[0]
        canonical = out.canonical

        out.set_identifier(IdentifierKind.DISCOGS_RELEASE, hit.id)
        out.set_identifier(IdentifierKind.DISCOGS_MASTER, hit.master_id)

        canonical.add_genres([*hit.genre, *hit.style])
        canonical.add_formats(hit.format)

        artist, title = hit.split_title()
        written = canonical.fill(
            country=hit.country,
            label=hit.label,
            title=title,
            artist=artist,
            year=hit.year,
            cover_url=hit.thumb,
            barcode=seed.barcode,
        )
        logger.info(f"Discogs matched release {hit.id} for {seed.barcode}, filled {written}")
        return True
