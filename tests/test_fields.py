"""
Tests for the field registry and key helpers.
"""

import logging

from listing_search.fields import FieldDefinition, FieldRegistry, meta_key, sanitize_key


class TestKeyHelpers:
    def test_sanitize_key(self):
        assert sanitize_key("Price Range!") == "pricerange"
        assert sanitize_key("opening-hours_2") == "opening-hours_2"
        assert sanitize_key(None) == ""

    def test_meta_key(self):
        assert meta_key("price") == "_ls_price"
        assert meta_key("Views Count") == "_ls_viewscount"


class TestFieldRegistry:
    """Test field registration and lookups."""

    def test_label_derived_from_name(self):
        assert FieldDefinition("opening_hours").label == "Opening Hours"

    def test_duplicate_registration_is_rejected(self, caplog):
        caplog.set_level(logging.WARNING)
        fields = FieldRegistry()
        assert fields.register_field(FieldDefinition("city"))
        assert not fields.register_field(FieldDefinition("city"))
        assert 'Field "city" is already registered.' in caplog.text

    def test_empty_name_is_rejected(self):
        fields = FieldRegistry()
        assert not fields.register_field(FieldDefinition("!!!"))
        assert fields.count() == 0

    def test_searchable_and_filterable_views(self, field_registry):
        assert list(field_registry.get_searchable_fields()) == ["city", "phone"]
        assert list(field_registry.get_filterable_fields()) == ["price"]

    def test_fields_ordered_by_priority(self):
        fields = FieldRegistry()
        fields.register_field(FieldDefinition("late", priority=50))
        fields.register_field(FieldDefinition("early", priority=1))
        assert list(fields.get_fields()) == ["early", "late"]

    def test_lookup_sanitizes_name(self, field_registry):
        assert field_registry.has_field("CITY")
        assert field_registry.get_field("Price").type == "number"
        assert field_registry.get_meta_key("price") == "_ls_price"

    def test_unregister(self, field_registry):
        assert field_registry.unregister_field("phone")
        assert not field_registry.unregister_field("phone")
        assert field_registry.names() == ["city", "price"]
