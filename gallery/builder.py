"""Image galleries built from Wikidata image claims.

Each P18 file name on the album or artist item is looked up on Wikimedia
Commons for its URL, size, MIME type and license metadata. Files Commons
cannot describe are skipped.
"""

import logging

from bs4 import BeautifulSoup

from config.settings import Settings
from enrichment.models import EnrichmentOutput, GalleryItem, IdentifierKind, ImageCredit
from gallery.models import CommonsResponse, ImageInfo
from providers.client import ProviderClient
from wikidata.models import IMAGE
from wikidata.resolver import WikidataResolver

logger = logging.getLogger(__name__)

IMAGE_CLAIM_SOURCE = f"wikidata:{IMAGE}"
IMAGE_INFO_PROPS = "url|size|mime|extmetadata"


def strip_markup(value: str | None) -> str | None:
    """Plain text of an extmetadata value, which may carry HTML links."""
    if not value:
        return None
    text = " ".join(BeautifulSoup(value, "html.parser").get_text(" ", strip=True).split())
    return text or None


def credit_for(info: ImageInfo) -> ImageCredit | None:
    credit = ImageCredit(
        license=info.meta("LicenseShortName"),
        artist=strip_markup(info.meta("Artist")),
        caption=strip_markup(info.meta("ImageDescription")),
    )
    if not (credit.license or credit.artist or credit.caption):
        return None
    return credit


class GalleryBuilder:
    """Build the album and artist galleries requested by the images flag."""

    def __init__(self, client: ProviderClient, settings: Settings, wikidata: WikidataResolver):
        self.client = client
        self.base = settings.commons_api_base
        self.wikidata = wikidata

    async def file_info(self, filename: str, out: EnrichmentOutput) -> ImageInfo | None:
        """Commons image info for a file name as stored in a P18 claim."""
        result = await self.client.get_json(
            self.base,
            "/w/api.php",
            out.diagnostics.wiki_http,
            params={
                "action": "query",
                "titles": f"File:{filename}",
                "prop": "imageinfo",
                "iiprop": IMAGE_INFO_PROPS,
                "format": "json",
                "formatversion": 2,
            },
            provider="wikipedia",
        )
        if not result.ok:
            return None
        response = CommonsResponse.decode(result.data)
        return response.first_image() if response else None

    async def gallery_for(
        self, kind: IdentifierKind, role: str, out: EnrichmentOutput
    ) -> list[GalleryItem]:
        """Gallery items for the entity recorded under ``kind``, capped at max_images."""
        qid = out.identifier(kind)
        if not qid:
            return []
        entity = await self.wikidata.get_entity(qid, out)
        if entity is None:
            return []

        items: list[GalleryItem] = []
        for filename in entity.string_values(IMAGE)[: out.flags.max_images]:
            info = await self.file_info(filename, out)
            if info is None or not info.url:
                logger.debug(f"No Commons metadata for {filename}, skipping")
                continue
            items.append(
                GalleryItem(
                    source=IMAGE_CLAIM_SOURCE,
                    role=role,
                    title=filename,
                    url=info.url,
                    width=info.width,
                    height=info.height,
                    mime=info.mime,
                    credit=credit_for(info),
                )
            )
        return items

    async def build(self, out: EnrichmentOutput) -> None:
        flags = out.flags
        if flags.images == "none":
            return
        if flags.wants_album_images:
            out.wiki.album_gallery = await self.gallery_for(
                IdentifierKind.WIKIDATA_ALBUM, "album", out
            )
        if flags.wants_artist_images:
            out.wiki.artist_gallery = await self.gallery_for(
                IdentifierKind.WIKIDATA_ARTIST, "artist", out
            )
        logger.info(
            f"Galleries built: album={len(out.wiki.album_gallery)} "
            f"artist={len(out.wiki.artist_gallery)}"
        )
