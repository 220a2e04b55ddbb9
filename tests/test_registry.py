"""
Tests for FilterRegistry.
"""

import logging

from listing_search.events import HookPoint
from listing_search.filters import KeywordFilter, RangeFilter, SelectFilter
from listing_search.request import SearchRequest


class TestRegistration:
    """Test registering and removing filters."""

    def test_register(self, registry, price_filter):
        assert registry.register(price_filter)
        assert registry.has("price")
        assert "price" in registry
        assert registry.get("price") is price_filter
        assert len(registry) == 1

    def test_register_binds_hooks(self, registry, hooks, price_filter):
        registry.register(price_filter)
        assert price_filter.hooks is hooks

    def test_duplicate_name_is_rejected(self, registry, caplog):
        caplog.set_level(logging.WARNING)
        first = RangeFilter(name="price")

        assert registry.register(first)
        assert not registry.register(RangeFilter(name="price", min=5))
        assert registry.get("price") is first
        assert "Filter 'price' is already registered" in caplog.text

    def test_empty_name_is_rejected(self, registry, caplog):
        caplog.set_level(logging.WARNING)
        assert not registry.register(SelectFilter(name="!!"))
        assert registry.count() == 0
        assert "Filter name cannot be empty" in caplog.text

    def test_unregister(self, populated_registry):
        assert populated_registry.unregister("price")
        assert not populated_registry.unregister("price")
        assert populated_registry.get("price") is None

    def test_reset(self, populated_registry):
        populated_registry.reset()
        assert populated_registry.count() == 0

    def test_registration_events(self, registry, hooks, price_filter):
        events = []
        hooks.subscribe(HookPoint.FILTER_REGISTERED, lambda name, f: events.append(("registered", name)))
        hooks.subscribe(HookPoint.FILTER_UNREGISTERED, lambda name, f: events.append(("unregistered", name)))

        registry.register(price_filter)
        registry.register(RangeFilter(name="price"))
        registry.unregister("price")

        assert events == [("registered", "price"), ("unregistered", "price")]

    def test_default_config_is_a_copy(self, registry):
        config = registry.get_default_config()
        config["priority"] = 99
        assert registry.get_default_config()["priority"] == 10


class TestListing:
    """Test enumeration order and filtering."""

    def _register(self, registry):
        registry.register(SelectFilter(name="a", priority=20, options={"x": "X"}))
        registry.register(SelectFilter(name="b", priority=10, options={"x": "X"}))
        registry.register(RangeFilter(name="c", priority=20))
        registry.register(RangeFilter(name="d", priority=10, active=False))

    def test_priority_order_is_stable(self, registry):
        self._register(registry)
        names = [f.get_name() for f in registry.list(active_only=False)]
        assert names == ["b", "d", "a", "c"]

    def test_descending_keeps_registration_order_for_ties(self, registry):
        self._register(registry)
        names = [f.get_name() for f in registry.list(active_only=False, order="desc")]
        assert names == ["a", "c", "b", "d"]

    def test_inactive_filters_skipped_by_default(self, registry):
        self._register(registry)
        assert [f.get_name() for f in registry.list()] == ["b", "a", "c"]

    def test_filter_by_type(self, registry):
        self._register(registry)
        assert [f.get_name() for f in registry.list(type="range", active_only=False)] == ["d", "c"]

    def test_filter_by_source(self, registry):
        self._register(registry)
        registry.register(SelectFilter(name="e", source="custom", options={"x": "X"}))
        assert [f.get_name() for f in registry.list(source="custom")] == ["e"]

    def test_bad_priority_does_not_break_listing(self, registry):
        """Test that a filter with a non-numeric priority still lists and resolves."""
        registry.register(RangeFilter(name="price", priority="high"))
        registry.register(SelectFilter(name="a", priority=20, options={"x": "X"}))

        assert [f.get_name() for f in registry.list()] == ["price", "a"]
        assert list(registry.resolve_active(SearchRequest({"price_min": "5"}))) == ["price"]

    def test_order_by_name(self, registry):
        self._register(registry)
        names = [f.get_name() for f in registry.list(orderby="name", order="desc", active_only=False)]
        assert names == ["d", "c", "b", "a"]


class TestResolution:
    """Test resolving request values."""

    def test_get_value(self, populated_registry):
        request = SearchRequest({"cuisine": "jp"})
        assert populated_registry.get_value("cuisine", request) == "jp"
        assert populated_registry.get_value("missing", request) is None

    def test_resolve_active_only_returns_active_filters(self, populated_registry):
        request = SearchRequest({"price_min": "100000", "keyword": "a", "cuisine": "fr"})

        active = populated_registry.resolve_active(request)

        assert list(active) == ["price"]
        assert active["price"].value == {"min": "100000", "max": ""}
        assert active["price"].name == "price"

    def test_resolve_active_in_priority_order(self, populated_registry):
        request = SearchRequest({"keyword": "pizza", "cuisine": "it", "price_max": "500"})
        assert list(populated_registry.resolve_active(request)) == ["keyword", "price", "cuisine"]

    def test_empty_request(self, populated_registry):
        assert populated_registry.resolve_active(SearchRequest()) == {}

    def test_keyword_filter_registered_under_keyword(self, registry):
        registry.register(KeywordFilter())
        assert registry.has("keyword")
