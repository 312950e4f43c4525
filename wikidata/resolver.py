"""Wikidata entity discovery and hydration.

Album and artist items are found through the MusicBrainz identifiers already
known (release-group ID P436, artist ID P434), falling back to an exact label
match for the album and the album's performer claim for the artist. The
album's site link then names the Wikipedia article.

One resolver lives for one enrichment run; hydrated entities are memoised on
it and shared with the gallery builder.
"""

import logging
import re
from urllib.parse import quote

from config.settings import Settings
from enrichment.models import EnrichmentOutput, IdentifierKind
from providers.client import ProviderClient
from wikidata.models import (
    IMAGE,
    MB_ARTIST_ID,
    MB_RELEASE_GROUP_ID,
    PERFORMER,
    PUBLICATION_DATE,
    EntitySummary,
    WikidataEntity,
    first_binding,
)

logger = logging.getLogger(__name__)

SPARQL_PATH = "/sparql"
QID_RE = re.compile(r"^Q\d+$")


def sparql_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def external_id_query(prop: str, value: str) -> str:
    return f"SELECT ?item WHERE {{ ?item wdt:{prop} {sparql_literal(value)} . }} LIMIT 1"


def label_match_query(title: str, artist: str, lang: str) -> str:
    return (
        "SELECT ?item WHERE { "
        f"?item rdfs:label {sparql_literal(title)}@{lang} ; wdt:{PERFORMER} ?performer . "
        f"?performer rdfs:label {sparql_literal(artist)}@{lang} . "
        "} LIMIT 1"
    )


def wikipedia_url(base: str, title: str) -> str:
    return f"{base}/wiki/{quote(title.replace(' ', '_'))}"


class WikidataResolver:
    """Resolve album/artist QIDs and the Wikipedia title for one run."""

    def __init__(self, client: ProviderClient, settings: Settings):
        self.client = client
        self.settings = settings
        self._entities: dict[str, WikidataEntity | None] = {}
        self._raw: dict[str, dict] = {}

    async def get_entity(self, qid: str, out: EnrichmentOutput) -> WikidataEntity | None:
        """Hydrate an item's claims and site links, at most once per run."""
        if qid in self._entities:
            return self._entities[qid]

        result = await self.client.get_json(
            self.settings.wikidata_entity_base,
            f"/{qid}.json",
            out.diagnostics.wd_http,
            provider="wikidata",
        )
        entity = WikidataEntity.from_entity_data(result.data, qid) if result.ok else None
        if entity is None:
            logger.info(f"Wikidata entity {qid} unavailable (status {result.status})")
        else:
            entities = result.data["entities"]
            self._raw[qid] = entities.get(qid) or entities.get(entity.id) or {}
        self._entities[qid] = entity
        return entity

    async def query_item(self, query: str, out: EnrichmentOutput) -> str | None:
        """Run a single-binding SPARQL query and return the bound item's QID."""
        result = await self.client.get_json(
            self.settings.wikidata_sparql_base,
            SPARQL_PATH,
            out.diagnostics.wd_http,
            params={"query": query, "format": "json"},
            provider="wikidata",
        )
        if not result.ok:
            return None
        uri = first_binding(result.data, "item")
        if not uri:
            return None
        qid = uri.rsplit("/", 1)[-1]
        return qid if QID_RE.match(qid) else None

    async def resolve(self, out: EnrichmentOutput) -> None:
        """Fill the album QID, artist QID and Wikipedia title where unknown."""
        album_qid = out.identifier(IdentifierKind.WIKIDATA_ALBUM)
        artist_qid = out.identifier(IdentifierKind.WIKIDATA_ARTIST)
        wiki_title = out.identifier(IdentifierKind.WIKIPEDIA)
        if album_qid and artist_qid and wiki_title:
            logger.debug("Wikidata identifiers already known, skipping resolution")
            return

        lang = out.flags.lang
        canonical = out.canonical

        if not album_qid:
            group_id = out.identifier(IdentifierKind.MB_RELEASE_GROUP)
            if group_id:
                album_qid = await self.query_item(
                    external_id_query(MB_RELEASE_GROUP_ID, group_id), out
                )
            if not album_qid and canonical.title and canonical.artist:
                album_qid = await self.query_item(
                    label_match_query(canonical.title, canonical.artist, lang), out
                )
            out.set_identifier(IdentifierKind.WIKIDATA_ALBUM, album_qid)

        if not artist_qid:
            mb_artist = out.identifier(IdentifierKind.MB_ARTIST)
            if mb_artist:
                artist_qid = await self.query_item(external_id_query(MB_ARTIST_ID, mb_artist), out)
            if not artist_qid and album_qid:
                album = await self.get_entity(album_qid, out)
                performers = album.entity_ids(PERFORMER) if album else []
                artist_qid = performers[0] if performers else None
            out.set_identifier(IdentifierKind.WIKIDATA_ARTIST, artist_qid)

        if not wiki_title and album_qid:
            album = await self.get_entity(album_qid, out)
            title = album.sitelink_title(lang) if album else None
            if title:
                out.set_identifier(
                    IdentifierKind.WIKIPEDIA,
                    title,
                    url=wikipedia_url(self.settings.wikipedia_base(lang), title),
                )

        logger.info(
            f"Wikidata resolved album={out.identifier(IdentifierKind.WIKIDATA_ALBUM)} "
            f"artist={out.identifier(IdentifierKind.WIKIDATA_ARTIST)} "
            f"wikipedia={out.identifier(IdentifierKind.WIKIPEDIA)}"
        )

    async def describe(self, out: EnrichmentOutput) -> None:
        """Summarise the resolved entities and take the album's release year."""
        lang = out.flags.lang
        album_qid = out.identifier(IdentifierKind.WIKIDATA_ALBUM)
        if album_qid:
            album = await self.get_entity(album_qid, out)
            if album:
                out.wikidata.album = self.summarize(album_qid, album, lang, out.flags.all)
                out.canonical.fill(year=album.first_year(PUBLICATION_DATE))

        artist_qid = out.identifier(IdentifierKind.WIKIDATA_ARTIST)
        if artist_qid:
            artist = await self.get_entity(artist_qid, out)
            if artist:
                out.wikidata.artist = self.summarize(artist_qid, artist, lang, out.flags.all)

    def summarize(
        self, qid: str, entity: WikidataEntity, lang: str, include_raw: bool
    ) -> EntitySummary:
        return EntitySummary(
            qid=qid,
            label=entity.label(lang),
            description=entity.description(lang),
            sitelink=entity.sitelink_title(lang),
            images=entity.string_values(IMAGE),
            raw=self._raw.get(qid) if include_raw else None,
        )
