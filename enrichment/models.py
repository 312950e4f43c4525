"""Models for the enrichment document.

Every model here is created fresh per enrichment run. ``EnrichmentOutput``
is the single accumulator each stage writes into; the write rules live on the
models themselves so no stage can bypass them:

- canonical scalar fields are filled at most once (``CanonicalRecord.fill``)
- ``genre`` and ``format`` never hold duplicates
- an identifier kind, once set, is never overwritten (``set_identifier``)
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from musicbrainz.models import MusicBrainzSummary
from providers.models import HttpTraceEntry
from wikidata.models import WikidataSummary
from wikipedia.models import WikipediaDocument

SCHEMA_VERSION = "1.0"
DEFAULT_FORMAT = "Album"

ImagesMode = Literal["artist", "album", "both", "none"]


def dedupe(items: Iterable[str | None]) -> list[str]:
    """Drop empty and repeated entries, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


class Seed(BaseModel):
    """Caller-supplied weak identifiers."""

    model_config = ConfigDict(frozen=True)

    barcode: str | None = None
    mbid: str | None = None
    mb_release_mbid: str | None = None
    mb_release_group: str | None = None
    mb_artist_id: str | None = None
    discogs_release_id: str | None = None
    discogs_master_id: str | None = None
    qid: str | None = None
    artist: str | None = None
    title: str | None = None


class Flags(BaseModel):
    all: bool = False
    images: ImagesMode = "both"
    lang: str = "en"
    max_images: int = Field(default=12, ge=1, le=50)

    @property
    def wants_artist_images(self) -> bool:
        return self.images in ("artist", "both")

    @property
    def wants_album_images(self) -> bool:
        return self.images in ("album", "both")


class IdentifierKind(StrEnum):
    DISCOGS_RELEASE = "discogs_release_id"
    DISCOGS_MASTER = "discogs_master_id"
    MB_RELEASE = "mb_release_mbid"
    MB_RELEASE_GROUP = "mb_release_group"
    MB_ARTIST = "mb_artist_id"
    WIKIDATA_ALBUM = "wikidata_album_qid"
    WIKIDATA_ARTIST = "wikidata_artist_qid"
    WIKIPEDIA = "wikipedia_title"


IDENTIFIER_URLS = {
    IdentifierKind.DISCOGS_RELEASE: "https://www.discogs.com/release/{id}",
    IdentifierKind.DISCOGS_MASTER: "https://www.discogs.com/master/{id}",
    IdentifierKind.MB_RELEASE: "https://musicbrainz.org/release/{id}",
    IdentifierKind.MB_RELEASE_GROUP: "https://musicbrainz.org/release-group/{id}",
    IdentifierKind.MB_ARTIST: "https://musicbrainz.org/artist/{id}",
    IdentifierKind.WIKIDATA_ALBUM: "https://www.wikidata.org/wiki/{id}",
    IdentifierKind.WIKIDATA_ARTIST: "https://www.wikidata.org/wiki/{id}",
}


class IdentifierRef(BaseModel):
    id: str
    url: str


class CanonicalRecord(BaseModel):
    """The merged release description."""

    model_config = ConfigDict(validate_assignment=True)

    title: str | None = None
    artist: str | None = None
    label: str | None = None
    catalog_number: str | None = None
    year: str | None = None
    country: str | None = None
    format: list[str] = []
    genre: list[str] = []
    cover_url: str | None = None
    barcode: str | None = None

    @field_validator("format", "genre")
    @classmethod
    def _as_set(cls, v: list[str]) -> list[str]:
        return dedupe(v)

    def fill(self, **values: str | None) -> list[str]:
        """Set each field that is still empty; later values never win.

        Returns:
            Names of the fields actually written
        """
        written = []
        for name, value in values.items():
            if name in ("format", "genre"):
                raise ValueError(f"{name} is a set field; use add_{name}s()")
            if not value or getattr(self, name):
                continue
            setattr(self, name, value)
            written.append(name)
        return written

    def add_genres(self, tags: Iterable[str | None]) -> None:
        self.genre = [*self.genre, *(t for t in tags if t)]

    def add_formats(self, formats: Iterable[str | None]) -> None:
        self.format = [*self.format, *(f for f in formats if f)]


class ImageCredit(BaseModel):
    license: str | None = None
    artist: str | None = None
    caption: str | None = None


class GalleryItem(BaseModel):
    """One candidate image and where it came from."""

    source: str
    role: str
    title: str | None = None
    url: str
    width: int | None = None
    height: int | None = None
    mime: str | None = None
    credit: ImageCredit | None = None


class Galleries(BaseModel):
    article_gallery: list[GalleryItem] = []
    album_gallery: list[GalleryItem] = []
    artist_gallery: list[GalleryItem] = []

    def in_download_order(self) -> list[list[GalleryItem]]:
        return [self.article_gallery, self.album_gallery, self.artist_gallery]


class Downloads(BaseModel):
    image_urls: list[str] = []


class Diagnostics(BaseModel):
    """Per-run audit trail: every provider attempt plus soft/fatal notes."""

    matched_on: str | None = None
    notes: list[str] = []
    tried_barcodes: list[str] = []
    discogs_http: list[HttpTraceEntry] = []
    mb_http: list[HttpTraceEntry] = []
    wd_http: list[HttpTraceEntry] = []
    wiki_http: list[HttpTraceEntry] = []

    def call_counts(self) -> dict[str, int]:
        return {
            "discogs": len(self.discogs_http),
            "musicbrainz": len(self.mb_http),
            "wikidata": len(self.wd_http),
            "wikipedia": len(self.wiki_http),
        }


class EnrichmentOutput(BaseModel):
    """Top-level envelope returned for every enrichment run."""

    schema_version: str = SCHEMA_VERSION
    flags: Flags = Field(default_factory=Flags)
    canonical: CanonicalRecord = Field(default_factory=CanonicalRecord)
    ids: dict[str, IdentifierRef] = {}
    musicbrainz: MusicBrainzSummary | None = None
    wikidata: WikidataSummary = Field(default_factory=WikidataSummary)
    wikipedia: WikipediaDocument = Field(default_factory=WikipediaDocument)
    wiki: Galleries = Field(default_factory=Galleries)
    downloads: Downloads = Field(default_factory=Downloads)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    ts_start: datetime | None = None
    ts_done: datetime | None = None

    def identifier(self, kind: IdentifierKind) -> str | None:
        ref = self.ids.get(kind.value)
        return ref.id if ref else None

    def set_identifier(
        self, kind: IdentifierKind, value: str | int | None, url: str | None = None
    ) -> bool:
        """Record an identifier unless that kind is already known.

        Returns:
            True if the identifier was recorded
        """
        if value in (None, "") or kind.value in self.ids:
            return False
        value = str(value)
        if url is None:
            url = IDENTIFIER_URLS[kind].format(id=value)
        self.ids[kind.value] = IdentifierRef(id=value, url=url)
        return True

    def stamp(self, name: Literal["start", "done"]) -> None:
        setattr(self, f"ts_{name}", datetime.now(UTC))
