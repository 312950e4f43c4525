"""Unit tests for discogs/resolver.py and discogs/models.py."""

import pytest

from discogs.models import DiscogsSearchHit, DiscogsSearchPage
from discogs.resolver import DiscogsResolver
from tests.factories import (
    DISCOGS_MASTER,
    DISCOGS_RELEASE,
    discogs_search_payload,
    make_output,
    make_seed,
)


class TestDiscogsModels:
    def test_split_title_on_en_dash(self):
        hit = DiscogsSearchHit(title="Miles Davis – Kind Of Blue")
        assert hit.split_title() == ("Miles Davis", "Kind Of Blue")

    def test_split_title_without_separator(self):
        hit = DiscogsSearchHit(title="Kind Of Blue")
        assert hit.split_title() == (None, "Kind Of Blue")

    def test_split_title_hyphen_is_not_separator(self):
        hit = DiscogsSearchHit(title="Miles Davis - Kind Of Blue")
        assert hit.split_title() == (None, "Miles Davis - Kind Of Blue")

    def test_split_title_more_than_two_parts(self):
        hit = DiscogsSearchHit(title="A – B – C")
        assert hit.split_title() == (None, "A – B – C")

    def test_year_stringified(self):
        assert DiscogsSearchHit(year=1959).year == "1959"

    def test_first_label(self):
        assert DiscogsSearchHit(label=["Columbia", "Legacy"]).label == "Columbia"

    def test_placeholder_thumb_dropped(self):
        hit = DiscogsSearchHit(thumb="https://s.discogs.com/images/spacer.gif")
        assert hit.thumb is None

    def test_malformed_page_decodes_to_none(self):
        assert DiscogsSearchPage.decode({"results": "nope"}) is None


class TestDiscogsResolver:
    @pytest.mark.asyncio
    async def test_no_barcode_makes_no_call(self, provider_stub, test_settings):
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        assert await resolver.resolve(make_seed(artist="Miles Davis"), out) is False
        assert provider_stub.requests == []
        assert out.diagnostics.discogs_http == []

    @pytest.mark.asyncio
    async def test_hit_populates_ids_and_canonical(self, provider_stub, test_settings):
        provider_stub.add("api.discogs.com", "/database/search", discogs_search_payload())
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        assert await resolver.resolve(make_seed(barcode="888751119215"), out) is True

        assert out.ids["discogs_release_id"].id == str(DISCOGS_RELEASE)
        assert out.ids["discogs_master_id"].url == (
            f"https://www.discogs.com/master/{DISCOGS_MASTER}"
        )
        canonical = out.canonical
        assert canonical.title == "Kind Of Blue"
        assert canonical.artist == "Miles Davis"
        assert canonical.label == "Columbia"
        assert canonical.country == "Europe"
        assert canonical.year == "2015"
        assert canonical.barcode == "888751119215"
        assert canonical.cover_url == "https://i.discogs.com/kind-of-blue-150.jpg"
        assert canonical.genre == ["Jazz", "Modal"]
        assert canonical.format == ["Vinyl", "LP", "Album"]

    @pytest.mark.asyncio
    async def test_search_parameters(self, provider_stub, test_settings):
        provider_stub.add("api.discogs.com", "/database/search", discogs_search_payload())
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        await resolver.resolve(make_seed(barcode="888751119215"), out)

        params = provider_stub.requests[0].url.params
        assert params["type"] == "release"
        assert params["barcode"] == "888751119215"
        assert params["per_page"] == "1"
        assert out.diagnostics.discogs_http[0].url.startswith("/database/search?")

    @pytest.mark.asyncio
    async def test_does_not_overwrite_filled_fields(self, provider_stub, test_settings):
        provider_stub.add("api.discogs.com", "/database/search", discogs_search_payload())
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()
        out.canonical.fill(title="Kind of Blue", label="CBS")

        await resolver.resolve(make_seed(barcode="888751119215"), out)

        assert out.canonical.title == "Kind of Blue"
        assert out.canonical.label == "CBS"

    @pytest.mark.asyncio
    async def test_title_without_separator_leaves_artist_empty(self, provider_stub, test_settings):
        provider_stub.add(
            "api.discogs.com", "/database/search", discogs_search_payload(title="Kind Of Blue")
        )
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        await resolver.resolve(make_seed(barcode="888751119215"), out)

        assert out.canonical.title == "Kind Of Blue"
        assert out.canonical.artist is None

    @pytest.mark.asyncio
    async def test_empty_results_soft_failure(self, provider_stub, test_settings):
        provider_stub.add("api.discogs.com", "/database/search", {"results": []})
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        assert await resolver.resolve(make_seed(barcode="123"), out) is False
        assert out.ids == {}
        assert out.diagnostics.notes == ["discogs: no release for barcode 123"]

    @pytest.mark.asyncio
    async def test_rate_limited_soft_failure(self, provider_stub, test_settings):
        provider_stub.add("api.discogs.com", "/database/search", 429)
        resolver = DiscogsResolver(provider_stub.provider_client(), test_settings)
        out = make_output()

        assert await resolver.resolve(make_seed(barcode="123"), out) is False
        assert len(out.diagnostics.discogs_http) == 2
        assert out.diagnostics.notes == ["discogs query failed or rate-limited"]
