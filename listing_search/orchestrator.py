#!/usr/bin/env python3
"""
Search Query Orchestrator
Resolves a request into a listing query: active filters, sort, keyword
search and pagination.

Two entry points share the same steps. ``modify_main_query`` runs as a
PRE_GET_LISTINGS subscriber against the archive query the store is about to
execute; ``build_filtered_query`` resolves a fresh QueryBuilder up front for
embedded searches that never run as the main query.
"""

import logging
from dataclasses import fields
from typing import Any, Dict, List, Optional

from .events import HookPoint, SearchHooks
from .exceptions import QueryError
from .fields import FieldRegistry, meta_key, sanitize_key
from .filters.base import ActiveFilter, FilterType
from .query import QueryBuilder, SortDirection, SortSpec
from .registry import FilterRegistry
from .request import SearchRequest
from .taxonomy import LISTING_TAXONOMIES, LISTING_TYPE


VIEWS_META_KEY = meta_key("views_count")

# Symbolic sort key -> native column or attribute key
ORDERBY_OPTIONS: Dict[str, str] = {
    "date": "created_at",
    "title": "title",
    "views": VIEWS_META_KEY,
    "random": "random",
}

ORDERBY_LABELS: Dict[str, str] = {
    "date": "Newest First",
    "title": "Title A-Z",
    "views": "Most Viewed",
    "random": "Random",
}

PARAM_ORDERBY = "orderby"
PARAM_ORDER = "order"
PARAM_PAGE = "paged"


class SearchQueryOrchestrator:
    """
    Applies the registry's filters and the request's sort, keyword and page
    to a QueryBuilder.
    """

    def __init__(self,
                 registry: FilterRegistry,
                 field_registry: Optional[FieldRegistry] = None,
                 hooks: Optional[SearchHooks] = None,
                 per_page: int = 10,
                 max_per_page: int = 100):
        """
        Initialize the orchestrator.

        Args:
            registry: Filters to resolve against each request
            field_registry: Source of searchable attribute keys
            hooks: Lifecycle hooks (a private instance is created if omitted)
            per_page: Default page size for built queries
            max_per_page: Upper bound for any page size
        """
        self.registry = registry
        self.field_registry = field_registry or FieldRegistry()
        self.hooks = hooks or SearchHooks()
        self.max_per_page = max(1, int(max_per_page))
        self.per_page = min(max(1, int(per_page)), self.max_per_page)
        self.logger = logging.getLogger(__name__)

    def attach(self) -> None:
        """Subscribe to the store's primary-query lifecycle."""
        if self.modify_main_query not in self.hooks.subscribers(HookPoint.PRE_GET_LISTINGS):
            self.hooks.subscribe(HookPoint.PRE_GET_LISTINGS, self.modify_main_query)

    def detach(self) -> None:
        self.hooks.unsubscribe(HookPoint.PRE_GET_LISTINGS, self.modify_main_query)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def modify_main_query(self, query: QueryBuilder, request: SearchRequest) -> None:
        """
        Resolve the request onto the primary listing query.

        Admin queries, secondary queries and queries outside the listing
        collection are left untouched.
        """
        if query.is_admin or not query.is_main_query:
            return

        if not self.is_listing_query(query):
            return

        self.apply_filters(query, request)
        self.apply_orderby(query, request)
        self.apply_keyword_search(query, request)
        self.apply_pagination(query, request)

    def build_filtered_query(self, request: SearchRequest, **args: Any) -> QueryBuilder:
        """
        Build a fully resolved query for an embedded search.

        Args:
            request: Request parameters
            **args: QueryBuilder fields overriding the defaults (post_type,
                status, per_page, ...); passed through the QUERY_ARGS hook

        Returns:
            QueryBuilder with filters, sort, keyword and pagination applied

        Raises:
            QueryError: If an argument is not a QueryBuilder field
        """
        query_args: Dict[str, Any] = {
            "post_type": LISTING_TYPE,
            "status": "publish",
            "per_page": self.per_page,
        }
        query_args.update(args)
        query_args = self.hooks.apply(HookPoint.QUERY_ARGS, query_args, request)

        known = {f.name for f in fields(QueryBuilder)}
        unknown = sorted(set(query_args) - known)
        if unknown:
            raise QueryError(f"Unknown query arguments: {', '.join(unknown)}")

        query = QueryBuilder(**query_args)

        self.apply_keyword_search(query, request)
        self.apply_filters(query, request)
        self.apply_orderby(query, request)
        self.apply_pagination(query, request)

        return query

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def is_listing_query(query: QueryBuilder) -> bool:
        """True for listing queries (the listing archive included) and category/tag views."""
        if query.post_type == LISTING_TYPE:
            return True
        return query.taxonomy in LISTING_TAXONOMIES

    def apply_filters(self, query: QueryBuilder, request: SearchRequest) -> Dict[str, ActiveFilter]:
        """
        Apply every active filter to the query in registry order.

        Returns:
            The active filters that were applied
        """
        active = self.registry.resolve_active(request)

        self.hooks.emit(HookPoint.BEFORE_APPLY_FILTERS, query, active)

        for active_filter in active.values():
            active_filter.filter.modify_query(query, active_filter.value)

        self.hooks.emit(HookPoint.AFTER_APPLY_FILTERS, query, active)

        return active

    def resolve_sort(self, request: SearchRequest) -> SortSpec:
        """
        Resolve the request's sort against the allowlist.

        Unknown keys fall back to date, unknown directions to descending.
        """
        key = self.get_current_orderby(request)
        direction = SortDirection(self.get_current_order(request))

        if key == "views":
            return SortSpec(key=key, field=VIEWS_META_KEY, direction=direction,
                            meta_key=VIEWS_META_KEY, numeric=True)
        return SortSpec(key=key, field=ORDERBY_OPTIONS[key], direction=direction)

    def apply_orderby(self, query: QueryBuilder, request: SearchRequest) -> SortSpec:
        sort = self.resolve_sort(request)
        query.set_sort(sort)
        return sort

    def apply_keyword_search(self, query: QueryBuilder, request: SearchRequest) -> bool:
        """
        Set the search term and attribute allowlist when the keyword filter is active.

        The backend matches title, excerpt and content, or any allowlisted
        attribute, as one existence condition per listing.

        Returns:
            True if a search term was set
        """
        keyword = self.get_current_keyword(request)
        if not keyword:
            return False

        query.set_search_term(keyword, self.get_searchable_meta_keys())
        self.logger.debug(
            f"Keyword search '{keyword}' over {len(query.search_meta_keys)} attribute keys"
        )
        return True

    def apply_pagination(self, query: QueryBuilder, request: SearchRequest) -> None:
        per_page = min(query.per_page or self.per_page, self.max_per_page)
        query.set_pagination(self.get_current_page(request), per_page)

    def get_searchable_meta_keys(self) -> List[str]:
        """
        Attribute keys eligible for keyword matching.

        Keys from searchable fields and keys added by SEARCHABLE_META_KEYS
        subscribers go through the same sanitization; empties are dropped
        and duplicates collapsed.
        """
        keys = [
            sanitize_key(self.field_registry.get_meta_key(name))
            for name in self.field_registry.get_searchable_fields()
        ]

        keys = self.hooks.apply(HookPoint.SEARCHABLE_META_KEYS, keys)

        allowlist: List[str] = []
        for key in keys or []:
            key = sanitize_key(key)
            if key and key not in allowlist:
                allowlist.append(key)
        return allowlist

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def get_orderby_options(self) -> Dict[str, str]:
        return self.hooks.apply(HookPoint.ORDERBY_OPTIONS, dict(ORDERBY_LABELS))

    def get_current_orderby(self, request: SearchRequest) -> str:
        orderby = sanitize_key(request.get_str(PARAM_ORDERBY))
        return orderby if orderby in ORDERBY_OPTIONS else "date"

    def get_current_order(self, request: SearchRequest) -> str:
        order = request.get_str(PARAM_ORDER).strip().upper()
        return order if order in (SortDirection.ASC.value, SortDirection.DESC.value) else SortDirection.DESC.value

    def get_current_keyword(self, request: SearchRequest) -> str:
        """Sanitized keyword if the keyword filter is registered and active, else ''."""
        keyword_filters = self.registry.list(type=FilterType.KEYWORD.value)
        if not keyword_filters:
            return ""

        value = keyword_filters[0].get_value_from_request(request)
        if value is None or not keyword_filters[0].is_active(value):
            return ""
        return value

    def get_current_page(self, request: SearchRequest) -> int:
        try:
            page = int(request.get_str(PARAM_PAGE, "1").strip())
        except ValueError:
            return 1
        return page if page > 0 else 1
