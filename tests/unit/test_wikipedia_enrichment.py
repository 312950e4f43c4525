"""Unit tests for wikipedia/enrichment.py."""

import asyncio

import httpx
import pytest

from core.exceptions import ContentExtractionError
from enrichment.models import IdentifierKind
from providers.client import ProviderClient
from tests.factories import (
    ARTICLE_HTML,
    INFOBOX_HTML,
    make_output,
    media_list_payload,
    summary_payload,
)
from wikipedia.enrichment import WikipediaEnricher, rest_title
from wikipedia.models import ArticleFacts, MediaList

WIKI = "en.wikipedia.org"
SUMMARY = "/api/rest_v1/page/summary/Kind_of_Blue"
MEDIA = "/api/rest_v1/page/media-list/Kind_of_Blue"


def with_article(out, title="Kind of Blue"):
    out.set_identifier(
        IdentifierKind.WIKIPEDIA, title, url="https://en.wikipedia.org/wiki/Kind_of_Blue"
    )
    return out


def add_article_routes(stub):
    stub.add(WIKI, SUMMARY, summary_payload())
    stub.add(WIKI, MEDIA, media_list_payload())
    stub.add(WIKI, "/w/api.php", {"parse": {"text": INFOBOX_HTML}}, contains="section=0")
    stub.add(WIKI, "/w/api.php", {"parse": {"text": ARTICLE_HTML}})
    return stub


def test_rest_title():
    assert rest_title("Kind of Blue") == "Kind_of_Blue"
    assert rest_title("AC/DC") == "AC%2FDC"


class TestEnrich:
    @pytest.mark.asyncio
    async def test_no_title_skips(self, provider_stub, test_settings):
        out = make_output()
        enricher = WikipediaEnricher(provider_stub.provider_client(), test_settings)

        assert await enricher.enrich(out) is False
        assert provider_stub.requests == []

    @pytest.mark.asyncio
    async def test_full_article(self, provider_stub, test_settings):
        add_article_routes(provider_stub)
        out = with_article(make_output())

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        doc = out.wikipedia
        assert doc.title == "Kind of Blue"
        assert doc.lang == "en"
        assert doc.url == "https://en.wikipedia.org/wiki/Kind_of_Blue"
        assert doc.summary.description == "1959 studio album by Miles Davis"
        assert doc.infobox["Label"] == "Columbia"
        assert [t.title for t in doc.tracklist] == ["So What", "Freddie Freeloader"]
        assert doc.personnel[0] == "Miles Davis – trumpet, bandleader"
        assert out.canonical.cover_url == summary_payload()["thumbnail"]["source"]
        assert [item.url for item in out.wiki.article_gallery] == [
            "https://upload.wikimedia.org/kob-640.jpg"
        ]
        assert len(out.diagnostics.wiki_http) == 4

    @pytest.mark.asyncio
    async def test_parse_requests(self, provider_stub, test_settings):
        add_article_routes(provider_stub)
        out = with_article(make_output())

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        parse_calls = [
            dict(r.url.params) for r in provider_stub.requests if r.url.path == "/w/api.php"
        ]
        assert len(parse_calls) == 2
        for params in parse_calls:
            assert params["action"] == "parse"
            assert params["page"] == "Kind of Blue"
            assert params["formatversion"] == "2"
            assert params["redirects"] == "1"
        assert sorted(p.get("section", "-") for p in parse_calls) == ["-", "0"]

    @pytest.mark.asyncio
    async def test_cover_not_overwritten(self, provider_stub, test_settings):
        add_article_routes(provider_stub)
        out = with_article(make_output())
        out.canonical.fill(cover_url="https://i.discogs.com/kind-of-blue-150.jpg")

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        assert out.canonical.cover_url == "https://i.discogs.com/kind-of-blue-150.jpg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "images,gallery_size", [("both", 1), ("album", 0), ("artist", 0), ("none", 0)]
    )
    async def test_article_gallery_only_for_both(
        self, provider_stub, test_settings, images, gallery_size
    ):
        add_article_routes(provider_stub)
        out = with_article(make_output(images=images))

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        assert len(out.wiki.article_gallery) == gallery_size
        assert out.wikipedia.tracklist is not None

    @pytest.mark.asyncio
    async def test_trace_order_is_fixed(self, provider_stub, test_settings):
        add_article_routes(provider_stub)

        async def slow_summary(request):
            if request.url.path == SUMMARY:
                await asyncio.sleep(0.05)
            return provider_stub.handler(request)

        client = ProviderClient(
            httpx.AsyncClient(transport=httpx.MockTransport(slow_summary)), retry_delay=0.0
        )
        out = with_article(make_output())

        await WikipediaEnricher(client, test_settings).enrich(out)

        urls = [entry.url for entry in out.diagnostics.wiki_http]
        assert len(urls) == 4
        assert urls[0].startswith(SUMMARY)
        assert urls[1].startswith("/w/api.php") and "section=0" in urls[1]
        assert urls[2].startswith(MEDIA)
        assert urls[3].startswith("/w/api.php") and "section=0" not in urls[3]

    @pytest.mark.asyncio
    async def test_soft_failures_leave_other_parts(self, provider_stub, test_settings):
        provider_stub.add(WIKI, SUMMARY, 404)
        provider_stub.add(WIKI, MEDIA, 500)
        provider_stub.add(
            WIKI, "/w/api.php", {"parse": {"text": INFOBOX_HTML}}, contains="section=0"
        )
        provider_stub.add(WIKI, "/w/api.php", "<html>not json</html>")
        out = with_article(make_output())

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        assert out.wikipedia.summary is None
        assert out.wikipedia.infobox["Released"] == "August 17, 1959"
        assert out.wikipedia.tracklist is None
        assert out.wiki.article_gallery == []
        assert out.diagnostics.notes == []

    @pytest.mark.asyncio
    async def test_unreachable_part_is_noted(self, provider_stub, test_settings):
        add_article_routes(provider_stub)
        provider_stub.routes.insert(
            0, (WIKI, MEDIA, None, [httpx.ConnectError("connection refused")])
        )
        out = with_article(make_output())

        await WikipediaEnricher(provider_stub.provider_client(), test_settings).enrich(out)

        assert any(n.startswith("wikipedia media-list failed:") for n in out.diagnostics.notes)
        assert out.wikipedia.summary is not None
        assert out.wikipedia.tracklist is not None

    @pytest.mark.asyncio
    async def test_extraction_error_is_noted(self, provider_stub, test_settings):
        add_article_routes(provider_stub)

        def broken(html):
            raise ContentExtractionError("unreadable article")

        out = with_article(make_output())
        enricher = WikipediaEnricher(provider_stub.provider_client(), test_settings, broken)

        await enricher.enrich(out)

        assert "wikipedia article failed: unreadable article" in out.diagnostics.notes
        assert out.wikipedia.infobox is not None

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, provider_stub, test_settings):
        add_article_routes(provider_stub)

        def broken(html):
            raise RuntimeError("boom")

        out = with_article(make_output())
        enricher = WikipediaEnricher(provider_stub.provider_client(), test_settings, broken)

        with pytest.raises(RuntimeError):
            await enricher.enrich(out)

    @pytest.mark.asyncio
    async def test_custom_extractor(self, provider_stub, test_settings):
        add_article_routes(provider_stub)
        out = with_article(make_output())
        enricher = WikipediaEnricher(
            provider_stub.provider_client(),
            test_settings,
            lambda html: ArticleFacts(awards=["Custom award"]),
        )

        await enricher.enrich(out)

        assert out.wikipedia.awards == ["Custom award"]
        assert out.wikipedia.tracklist is None


class TestMediaGallery:
    def test_images_only_largest_variant(self):
        gallery = WikipediaEnricher.media_gallery(MediaList.decode(media_list_payload()), 10)

        assert len(gallery) == 1
        item = gallery[0]
        assert item.source == "wikipedia:media-list"
        assert item.role == "article"
        assert item.url == "https://upload.wikimedia.org/kob-640.jpg"
        assert item.credit.caption == "Original LP cover"

    def test_limit(self):
        media = MediaList.decode(
            {
                "items": [
                    {"title": f"File:{i}.jpg", "type": "image", "srcset": [{"src": f"//u/{i}.jpg"}]}
                    for i in range(5)
                ]
            }
        )
        assert len(WikipediaEnricher.media_gallery(media, 3)) == 3

    def test_source_without_src_is_skipped(self):
        media = MediaList.decode(
            {
                "items": [
                    {
                        "title": "File:Cover.jpg",
                        "type": "image",
                        "srcset": [
                            {"src": None, "scale": "2x"},
                            {"src": "//upload.wikimedia.org/cover.jpg", "scale": "1x"},
                        ],
                    },
                    {"title": "File:Blank.jpg", "type": "image", "srcset": [{"scale": "1x"}]},
                ]
            }
        )

        assert media is not None
        gallery = WikipediaEnricher.media_gallery(media, 10)
        assert [item.url for item in gallery] == ["https://upload.wikimedia.org/cover.jpg"]
