"""Wikipedia article enrichment.

Four independent fetches run concurrently for the resolved article: the page
summary, the lead-section infobox, the media list and the full rendered
article. A failure in one never blocks the others. Results are merged in a
fixed order once all four have settled.
"""

import asyncio
import logging
from collections.abc import Callable
from urllib.parse import quote

from config.settings import Settings
from core.exceptions import ContentExtractionError, ProviderError
from enrichment.models import EnrichmentOutput, GalleryItem, IdentifierKind, ImageCredit
from providers.client import ProviderClient
from providers.models import HttpTraceEntry
from wikipedia.extract import parse_article, parse_infobox
from wikipedia.models import ArticleFacts, MediaList, PageSummary, ParsedPage, SummaryExtract

logger = logging.getLogger(__name__)

MEDIA_LIST_SOURCE = "wikipedia:media-list"
PARTS = ("summary", "infobox", "media-list", "article")

ArticleExtractor = Callable[[str], ArticleFacts]


def rest_title(title: str) -> str:
    """Title as a REST path segment: underscores for spaces, fully escaped."""
    return quote(title.replace(" ", "_"), safe="")


class WikipediaEnricher:
    """Pull summary, infobox, media and article facts for one article."""

    def __init__(
        self,
        client: ProviderClient,
        settings: Settings,
        extractor: ArticleExtractor = parse_article,
    ):
        self.client = client
        self.settings = settings
        self.extractor = extractor

    async def _get(
        self, base: str, path: str, trace: list[HttpTraceEntry], params: dict | None = None
    ):
        return await self.client.get_json(base, path, trace, params=params, provider="wikipedia")

    async def fetch_summary(
        self, base: str, title: str, trace: list[HttpTraceEntry]
    ) -> PageSummary | None:
        result = await self._get(base, f"/api/rest_v1/page/summary/{rest_title(title)}", trace)
        return PageSummary.decode(result.data) if result.ok else None

    async def fetch_parsed(
        self, base: str, title: str, trace: list[HttpTraceEntry], section: int | None = None
    ) -> ParsedPage | None:
        params = {
            "action": "parse",
            "page": title,
            "prop": "text",
            "format": "json",
            "formatversion": 2,
            "redirects": 1,
        }
        if section is not None:
            params["section"] = section
        result = await self._get(base, "/w/api.php", trace, params=params)
        return ParsedPage.from_response(result.data) if result.ok else None

    async def fetch_infobox(
        self, base: str, title: str, trace: list[HttpTraceEntry]
    ) -> dict | None:
        page = await self.fetch_parsed(base, title, trace, section=0)
        if page is None or not page.text:
            return None
        return parse_infobox(page.text)

    async def fetch_media(
        self, base: str, title: str, trace: list[HttpTraceEntry]
    ) -> MediaList | None:
        result = await self._get(base, f"/api/rest_v1/page/media-list/{rest_title(title)}", trace)
        return MediaList.decode(result.data) if result.ok else None

    async def fetch_facts(
        self, base: str, title: str, trace: list[HttpTraceEntry]
    ) -> ArticleFacts | None:
        page = await self.fetch_parsed(base, title, trace)
        if page is None or not page.text:
            return None
        return self.extractor(page.text)

    async def enrich(self, out: EnrichmentOutput) -> bool:
        """Enrich ``out`` from the resolved Wikipedia article.

        Each fetch records into its own trace; the traces are appended to
        ``wiki_http`` in part order once every fetch has settled, so the log
        does not depend on which response arrived first.

        Returns:
            False when no article title was resolved
        """
        title = out.identifier(IdentifierKind.WIKIPEDIA)
        if not title:
            logger.info("No Wikipedia article resolved, skipping enrichment")
            return False

        lang = out.flags.lang
        base = self.settings.wikipedia_base(lang)
        doc = out.wikipedia
        doc.title = title
        doc.lang = lang
        doc.url = out.ids[IdentifierKind.WIKIPEDIA.value].url

        traces: dict[str, list[HttpTraceEntry]] = {part: [] for part in PARTS}
        results = await asyncio.gather(
            self.fetch_summary(base, title, traces["summary"]),
            self.fetch_infobox(base, title, traces["infobox"]),
            self.fetch_media(base, title, traces["media-list"]),
            self.fetch_facts(base, title, traces["article"]),
            return_exceptions=True,
        )
        for part in PARTS:
            out.diagnostics.wiki_http.extend(traces[part])
        summary, infobox, media, facts = (
            self._settle(part, value, out) for part, value in zip(PARTS, results)
        )

        if summary is not None:
            thumbnail = summary.thumbnail.source if summary.thumbnail else None
            doc.summary = SummaryExtract(
                description=summary.description, extract=summary.extract, thumbnail=thumbnail
            )
            out.canonical.fill(cover_url=thumbnail)
        if infobox:
            doc.infobox = infobox
        # media-list images belong to neither single-gallery mode
        if media is not None and out.flags.images == "both":
            out.wiki.article_gallery = self.media_gallery(media, out.flags.max_images)
        if facts is not None:
            doc.apply_facts(facts)

        logger.info(f"Wikipedia enrichment of '{title}' complete")
        return True

    def _settle(self, part: str, value, out: EnrichmentOutput):
        """Turn one gathered result into data, recording expected failures as notes."""
        if isinstance(value, ProviderError | ContentExtractionError):
            logger.warning(f"Wikipedia {part} failed: {value.message}")
            out.diagnostics.notes.append(f"wikipedia {part} failed: {value.message}")
            return None
        if isinstance(value, BaseException):
            raise value
        return value

    @staticmethod
    def media_gallery(media: MediaList, limit: int) -> list[GalleryItem]:
        """Largest variant of each image in the media list, up to ``limit``."""
        gallery: list[GalleryItem] = []
        for item in media.items:
            if item.type not in (None, "image"):
                continue
            url = item.largest_source()
            if not url:
                continue
            caption = item.caption_text
            gallery.append(
                GalleryItem(
                    source=MEDIA_LIST_SOURCE,
                    role="article",
                    title=item.title,
                    url=url,
                    credit=ImageCredit(caption=caption) if caption else None,
                )
            )
            if len(gallery) >= limit:
                break
        return gallery
