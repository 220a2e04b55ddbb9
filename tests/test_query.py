"""
Tests for the typed query model.
"""

import pytest

from listing_search.exceptions import InvalidFilterError
from listing_search.query import (
    AttributeClause, ClauseType, Compare, DEFAULT_SORT, QueryBuilder,
    SortDirection, SortSpec, TaxonomyClause
)


class TestCompare:
    def test_from_string(self):
        assert Compare.from_string(">=") == Compare.GTE
        assert Compare.from_string("not in") == Compare.NOT_IN
        assert Compare.from_string("~") is None

    def test_is_valid(self):
        assert Compare.is_valid("BETWEEN")
        assert not Compare.is_valid("between-ish")


class TestAttributeClause:
    """Test clause construction and validation."""

    def test_key_is_sanitized(self):
        clause = AttributeClause("_LS_Price; --", Compare.EQ, "1")
        assert clause.key == "_ls_price--"

    def test_empty_key_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            AttributeClause("';", Compare.EQ, "1")

    def test_between_requires_two_values(self):
        with pytest.raises(InvalidFilterError):
            AttributeClause("_ls_price", Compare.BETWEEN, (1,))

    def test_list_values_become_tuples(self):
        clause = AttributeClause("_ls_price", Compare.BETWEEN, [1, 2], ClauseType.NUMERIC)
        assert clause.value == (1, 2)

    def test_in_wraps_scalar(self):
        clause = AttributeClause("_ls_cuisine", Compare.IN, "it")
        assert clause.value == ("it",)


class TestTaxonomyClause:
    def test_terms_are_ints(self):
        clause = TaxonomyClause("Category", ["3", 5])
        assert clause.taxonomy == "category"
        assert clause.terms == (3, 5)


class TestQueryBuilder:
    """Test the named mutators."""

    def test_defaults(self):
        query = QueryBuilder()
        assert query.post_type == "listing"
        assert query.status == "publish"
        assert query.sort == DEFAULT_SORT
        assert not query.has_clauses()

    def test_identical_attribute_clause_added_once(self):
        query = QueryBuilder()
        query.add_attribute_clause("_ls_price", Compare.GTE, 100.0, ClauseType.NUMERIC)
        query.add_attribute_clause("_ls_price", Compare.GTE, 100.0, ClauseType.NUMERIC)
        assert len(query.attribute_clauses) == 1

    def test_different_clauses_accumulate(self):
        query = QueryBuilder()
        query.add_attribute_clause("_ls_price", Compare.GTE, 100.0, ClauseType.NUMERIC)
        query.add_attribute_clause("_ls_price", Compare.LTE, 500.0, ClauseType.NUMERIC)
        assert len(query.attribute_clauses) == 2
        assert query.has_clauses()

    def test_identical_taxonomy_clause_added_once(self):
        query = QueryBuilder()
        query.add_taxonomy_clause("category", [1], include_children=True)
        query.add_taxonomy_clause("category", [1], include_children=True)
        assert query.taxonomy_clauses == [TaxonomyClause("category", (1,), True)]

    def test_set_search_term_sanitizes_and_dedupes_keys(self):
        query = QueryBuilder()
        query.set_search_term("pizza", ["_ls_city", "_LS_CITY", "", "!!", "_ls_phone"])
        assert query.search_term == "pizza"
        assert query.search_meta_keys == ("_ls_city", "_ls_phone")

    def test_pagination_clamps_to_one(self):
        query = QueryBuilder()
        query.set_pagination(0, -5)
        assert query.page == 1
        assert query.per_page == 1

    def test_offset(self):
        query = QueryBuilder()
        query.set_pagination(3, 10)
        assert query.offset == 20

    def test_set_sort(self):
        query = QueryBuilder()
        sort = SortSpec(key="title", field="title", direction=SortDirection.ASC)
        query.set_sort(sort)
        assert query.sort is sort
        assert not sort.is_random
