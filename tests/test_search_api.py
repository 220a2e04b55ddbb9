#!/usr/bin/env python3
"""
End-to-end tests for ListingSearchAPI.
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from listing_search import ListingSearchAPI
from listing_search.config import Config
from listing_search.events import HookPoint
from listing_search.fields import FieldDefinition
from listing_search.filters import CheckboxFilter, DateRangeFilter, RangeFilter, SelectFilter, TagFilter
from listing_search.request import SearchRequest


@pytest_asyncio.fixture
async def populated_api(api):
    """API with a category tree, a tag and four listings."""
    restaurants = await api.add_term("category", "Restaurants")
    pizza = await api.add_term("category", "Pizza", parent=restaurants)
    hotels = await api.add_term("category", "Hotels")
    wifi = await api.add_term("tag", "Wifi")

    ids = {
        "luigi": await api.add_listing(
            "Luigi's Pizza", content="Wood fired",
            meta={"city": "Naples", "price": 25000, "cuisine": "it", "views_count": 10},
            terms=[pizza, wifi], created_at="2024-01-01 00:00:00",
        ),
        "grand": await api.add_listing(
            "Grand Hotel", content="Rooms",
            meta={"city": "Pizza Town", "price": 150000, "views_count": 50},
            terms=[hotels, wifi], created_at="2024-02-01 00:00:00",
        ),
        "sushi": await api.add_listing(
            "Sushi Bar", content="Fresh fish",
            meta={"city": "Osaka", "price": 40000, "cuisine": "jp"},
            terms=[restaurants], created_at="2024-03-01 00:00:00",
        ),
        "draft": await api.add_listing("Pizza Draft", status="draft", created_at="2024-04-01 00:00:00"),
    }
    terms = {"restaurants": restaurants, "pizza": pizza, "hotels": hotels, "wifi": wifi}
    return api, ids, terms


class TestInitialization:
    """Test filter registration during initialize."""

    @pytest.mark.asyncio
    async def test_default_and_field_filters(self, api):
        names = [f.get_name() for f in api.registry.list()]
        assert names == ["keyword", "category", "price", "cuisine", "tag"]

    @pytest.mark.asyncio
    async def test_field_filter_kinds(self, api):
        assert isinstance(api.registry.get("price"), RangeFilter)
        assert api.registry.get("price").config["step"] == 1000
        assert isinstance(api.registry.get("cuisine"), SelectFilter)
        assert isinstance(api.registry.get("tag"), TagFilter)

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, api):
        await api.initialize()
        assert api.registry.count() == 5

    @pytest.mark.asyncio
    async def test_register_filters_hook_and_yaml(self, tmp_path):
        filters_path = tmp_path / "filters.yaml"
        filters_path.write_text("filters:\n  - name: opened\n    type: date_range\n")

        api = ListingSearchAPI(**Config.for_testing(str(tmp_path / "hook.db"), str(filters_path)))
        api.hooks.subscribe(
            HookPoint.REGISTER_FILTERS,
            lambda registry: registry.register(CheckboxFilter(name="amenities", options={"pool": "Pool"})),
        )
        await api.initialize()

        assert isinstance(api.registry.get("amenities"), CheckboxFilter)
        assert isinstance(api.registry.get("opened"), DateRangeFilter)
        await api.close()

    @pytest.mark.asyncio
    async def test_without_defaults(self, tmp_path):
        api = ListingSearchAPI(db_path=str(tmp_path / "bare.db"), register_defaults=False)
        await api.initialize()
        assert api.registry.count() == 0
        await api.close()

    def test_unmapped_field_type(self):
        assert ListingSearchAPI.build_field_filter(FieldDefinition("notes", type="textarea")) is None

    def test_from_env(self, monkeypatch):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = str(Path(tmpdir) / "env.db")
            monkeypatch.setenv("LISTING_SEARCH_DB_PATH", db_path)
            monkeypatch.setenv("LISTING_SEARCH_PER_PAGE", "5")
            monkeypatch.delenv("LISTING_SEARCH_FILTERS", raising=False)

            api = ListingSearchAPI.from_env()

            assert api.db_path == db_path
            assert api.orchestrator.per_page == 5


class TestSearch:
    """Test embedded searches."""

    @pytest.mark.asyncio
    async def test_keyword_and_range(self, populated_api):
        api, ids, terms = populated_api
        results = await api.search(SearchRequest.from_query_string("keyword=pizza&price_max=100000"))
        assert results.ids == [ids["luigi"]]

    @pytest.mark.asyncio
    async def test_keyword_matches_searchable_fields(self, populated_api):
        api, ids, terms = populated_api
        results = await api.search(SearchRequest({"keyword": "pizza", "orderby": "title", "order": "asc"}))
        assert results.ids == [ids["grand"], ids["luigi"]]

    @pytest.mark.asyncio
    async def test_category_includes_children(self, populated_api):
        api, ids, terms = populated_api
        results = await api.search(SearchRequest({"category": str(terms["restaurants"])}))
        assert set(results.ids) == {ids["luigi"], ids["sushi"]}

    @pytest.mark.asyncio
    async def test_tag_and_select(self, populated_api):
        api, ids, terms = populated_api
        request = SearchRequest.from_query_string(f"tag[]={terms['wifi']}&cuisine=it")
        assert (await api.search(request)).ids == [ids["luigi"]]

    @pytest.mark.asyncio
    async def test_invalid_values_are_ignored(self, populated_api):
        api, ids, terms = populated_api
        request = SearchRequest({"cuisine": "fr", "price_min": "cheap", "orderby": "secret", "paged": "-1"})

        results = await api.search(request)

        assert results.ids == [ids["sushi"], ids["grand"], ids["luigi"]]
        assert results.page == 1

    @pytest.mark.asyncio
    async def test_views_sort_and_paging(self, populated_api):
        api, ids, terms = populated_api
        results = await api.search(SearchRequest({"orderby": "views", "paged": "2"}), per_page=2)
        assert results.ids == [ids["sushi"]]
        assert results.total == 3
        assert results.pages == 2


class TestArchive:
    """Test the main-query path."""

    @pytest.mark.asyncio
    async def test_archive_resolves_request(self, populated_api):
        api, ids, terms = populated_api
        results = await api.archive(SearchRequest({"price_min": "30000", "orderby": "date", "order": "asc"}))
        assert results.ids == [ids["grand"], ids["sushi"]]

    @pytest.mark.asyncio
    async def test_archive_without_filters_lists_published(self, populated_api):
        api, ids, terms = populated_api
        results = await api.archive(SearchRequest())
        assert results.total == 3
        assert ids["draft"] not in results.ids

    @pytest.mark.asyncio
    async def test_no_results_markup(self, populated_api):
        api, ids, terms = populated_api
        results = await api.archive(SearchRequest({"keyword": "zzzz"}))
        assert not results.has_results
        assert "No listings found" in api.renderer.render_no_results()


class TestRendering:
    """Test markup built from live term data."""

    @pytest.mark.asyncio
    async def test_form_uses_store_terms(self, populated_api):
        api, ids, terms = populated_api
        html = api.renderer.render_search_form(SearchRequest({"category": str(terms["pizza"])}))

        assert f'<option value="{terms["pizza"]}" selected>&nbsp;&nbsp;Pizza</option>' in html
        assert f'value="{terms["wifi"]}"' in html
        assert 'name="price_min"' in html

    @pytest.mark.asyncio
    async def test_active_filter_chips(self, populated_api):
        api, ids, terms = populated_api
        request = SearchRequest({"category": str(terms["hotels"]), "price_min": "1000"})

        html = api.renderer.render_active_filters(request)

        assert '<span class="ls-active-filters__value">Hotels</span>' in html
        assert '<span class="ls-active-filters__value">1000 or more</span>' in html
