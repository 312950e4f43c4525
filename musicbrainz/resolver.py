"""MusicBrainz release resolution.

Strategies run in order and the first that yields a release wins:

1. barcode search, one query per barcode variant ("upc")
2. direct hydration of an explicit release MBID ("mbid")
3. full-text search on title and artist ("artist+title")

The winning release is then hydrated with relations, tags, credits, labels
and its release group. Identifiers discovered here never replace ones an
earlier stage already set.
"""

import logging
import re
from urllib.parse import unquote

from config.settings import Settings
from enrichment.models import EnrichmentOutput, IdentifierKind, Seed, dedupe
from musicbrainz.models import MBRelease, MBReleaseSearch, MusicBrainzSummary
from providers.client import ProviderClient

logger = logging.getLogger(__name__)

RELEASE_INCLUDES = "url-rels+tags+artist-credits+labels+release-groups"

DISCOGS_RELEASE_LINK = re.compile(r"discogs\.com/(?:[^/]+/)?release/(\d+)")
WIKIDATA_LINK = re.compile(r"wikidata\.org/wiki/(Q\d+)")
WIKIPEDIA_LINK = re.compile(r"^https?://([a-z0-9-]+)\.wikipedia\.org/wiki/(.+)$")

WORD_START = re.compile(r"\b\w")


def title_case(tag: str) -> str:
    """Upper-case the first letter of every word ("hard bop" -> "Hard Bop")."""
    return WORD_START.sub(lambda m: m.group(0).upper(), tag)


def lucene_phrase(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class MusicBrainzResolver:
    """Find and hydrate the MusicBrainz release for a seed."""

    def __init__(self, client: ProviderClient, settings: Settings):
        self.client = client
        self.base = settings.musicbrainz_api_base
        self.warm_related = settings.musicbrainz_warm_related

    async def _get(self, path: str, out: EnrichmentOutput, params: dict):
        return await self.client.get_json(
            self.base,
            path,
            out.diagnostics.mb_http,
            params={**params, "fmt": "json"},
            provider="musicbrainz",
        )

    async def search(self, query: str, out: EnrichmentOutput) -> MBRelease | None:
        """First release of a /release search, or None."""
        result = await self._get("/release/", out, {"query": query})
        if not result.ok:
            return None
        page = MBReleaseSearch.decode(result.data)
        if page is None or not page.releases:
            return None
        return page.releases[0]

    async def hydrate(
        self, release_id: str, out: EnrichmentOutput
    ) -> tuple[MBRelease | None, dict]:
        """Fetch a release with everything the merge needs.

        Returns:
            (release, raw payload); release is None on any failure
        """
        result = await self._get(f"/release/{release_id}", out, {"inc": RELEASE_INCLUDES})
        if not result.ok:
            out.diagnostics.notes.append(
                f"musicbrainz release detail failed with status {result.status}"
            )
            return None, {}
        release = MBRelease.decode(result.data)
        if release is None:
            out.diagnostics.notes.append(f"musicbrainz release {release_id} was malformed")
            return None, {}
        return release, result.data

    async def find_release(
        self, seed: Seed, out: EnrichmentOutput
    ) -> tuple[MBRelease | None, dict]:
        """Run the strategies in order; the first hit wins."""
        if seed.barcode:
            for barcode in dedupe(out.diagnostics.tried_barcodes):
                stub = await self.search(f"barcode:{barcode}", out)
                if stub is not None:
                    out.diagnostics.matched_on = "upc"
                    logger.info(f"MusicBrainz matched barcode {barcode} to release {stub.id}")
                    return await self.hydrate(stub.id, out)

        for release_id in (seed.mbid, seed.mb_release_mbid):
            if not release_id:
                continue
            release, raw = await self.hydrate(release_id, out)
            if release is not None:
                out.diagnostics.matched_on = "mbid"
                return release, raw

        artist = seed.artist or out.canonical.artist
        title = seed.title or out.canonical.title
        if artist and title:
            query = f"release:{lucene_phrase(title)} AND artist:{lucene_phrase(artist)}"
            stub = await self.search(query, out)
            if stub is not None:
                out.diagnostics.matched_on = "artist+title"
                logger.info(f"MusicBrainz matched '{artist} - {title}' to release {stub.id}")
                return await self.hydrate(stub.id, out)

        return None, {}

    async def resolve(self, seed: Seed, out: EnrichmentOutput) -> bool:
        """Resolve, hydrate and merge a MusicBrainz release.

        Returns:
            True if a hydrated release was merged
        """
        release, raw = await self.find_release(seed, out)
        if release is None:
            logger.info("MusicBrainz found no release for seed")
            return False

        self.merge(release, out)
        out.musicbrainz = MusicBrainzSummary(
            release_id=release.id,
            title=release.title,
            status=release.status,
            date=release.date,
            country=release.country,
            barcode=release.barcode,
            artist=release.artist_name(),
            release_group_id=release.release_group.id if release.release_group else None,
            release_group_title=release.release_group.title if release.release_group else None,
            primary_type=release.release_group.primary_type if release.release_group else None,
            tags=[tag.name for tag in release.tags if tag.name],
            urls=release.url_resources(),
            raw=raw if out.flags.all else None,
        )

        if self.warm_related:
            await self.warm(out)
        return True

    def merge(self, release: MBRelease, out: EnrichmentOutput) -> None:
        """Contribute identifiers and canonical fields from a hydrated release."""
        out.set_identifier(IdentifierKind.MB_RELEASE, release.id)
        if release.release_group:
            out.set_identifier(IdentifierKind.MB_RELEASE_GROUP, release.release_group.id)
        artist = release.primary_artist
        if artist:
            out.set_identifier(IdentifierKind.MB_ARTIST, artist.id)

        label_info = release.label_info[0] if release.label_info else None
        written = out.canonical.fill(
            title=release.title,
            artist=release.artist_name(),
            country=release.country,
            year=release.date[:4] if release.date else None,
            label=label_info.label.name if label_info and label_info.label else None,
            catalog_number=label_info.catalog_number if label_info else None,
        )
        out.canonical.add_genres(title_case(tag.name) for tag in release.tags if tag.name)
        logger.info(f"MusicBrainz release {release.id} filled {written}")

        self.harvest_links(release, out)

    def harvest_links(self, release: MBRelease, out: EnrichmentOutput) -> None:
        """Adopt the first Discogs, Wikidata and Wikipedia link among the URL relations."""
        discogs = wikidata = wikipedia = None
        for resource in release.url_resources():
            if discogs is None and (m := DISCOGS_RELEASE_LINK.search(resource)):
                discogs = m.group(1)
            elif wikidata is None and (m := WIKIDATA_LINK.search(resource)):
                wikidata = m.group(1)
            elif wikipedia is None and (m := WIKIPEDIA_LINK.match(resource)):
                if m.group(1) == out.flags.lang:
                    wikipedia = (wiki_title(m.group(2)), resource)

        out.set_identifier(IdentifierKind.DISCOGS_RELEASE, discogs)
        out.set_identifier(IdentifierKind.WIKIDATA_ALBUM, wikidata)
        if wikipedia:
            out.set_identifier(IdentifierKind.WIKIPEDIA, wikipedia[0], url=wikipedia[1])

    async def warm(self, out: EnrichmentOutput) -> None:
        """Fetch the release group and artist so downstream caches are primed.

        Response bodies are discarded; only the trace entries remain.
        """
        group_id = out.identifier(IdentifierKind.MB_RELEASE_GROUP)
        if group_id:
            await self._get(f"/release-group/{group_id}", out, {})
        artist_id = out.identifier(IdentifierKind.MB_ARTIST)
        if artist_id:
            await self._get(f"/artist/{artist_id}", out, {})


def wiki_title(path_segment: str) -> str:
    """Article title from the last path segment of a Wikipedia URL."""
    return unquote(path_segment).replace("_", " ")
