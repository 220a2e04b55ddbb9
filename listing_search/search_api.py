"""
Listing search API that wires the engine together.
This is the main entry point for filtering and searching listings.
"""

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from .config import Config, DEFAULT_ARCHIVE_URL, DEFAULT_DB_PATH, DEFAULT_MAX_PER_PAGE, DEFAULT_PER_PAGE
from .db.listing_store import ListingStore, SearchResults
from .events import HookPoint, SearchHooks
from .fields import FieldDefinition, FieldRegistry
from .filters import (
    AbstractFilter, CategoryFilter, CheckboxFilter, DateRangeFilter, FilterSource,
    KeywordFilter, RangeFilter, SelectFilter, TagFilter, load_filters
)
from .orchestrator import SearchQueryOrchestrator
from .query import QueryBuilder
from .registry import FilterRegistry
from .renderer import FilterRenderer
from .request import SearchRequest
from .taxonomy import TermCatalog


# Field type -> (filter class, extra config)
FIELD_FILTERS = {
    "number": (RangeFilter, {"step": 1}),
    "decimal": (RangeFilter, {"step": 0.01}),
    "currency": (RangeFilter, {"step": 0.01}),
    "date": (DateRangeFilter, {}),
    "select": (SelectFilter, {}),
    "radio": (SelectFilter, {}),
    "multiselect": (CheckboxFilter, {}),
    "checkbox": (CheckboxFilter, {}),
}


class ListingSearchAPI:
    """
    Composition root for listing search.

    Owns one instance of each component and shares a single SearchHooks
    between them:
    - FilterRegistry with the default and configured filters
    - SearchQueryOrchestrator attached to the store's main-query hook
    - FilterRenderer for the search UI
    - ListingStore for persistence and execution
    """

    def __init__(self,
                 db_path: Optional[str] = None,
                 per_page: int = DEFAULT_PER_PAGE,
                 max_per_page: int = DEFAULT_MAX_PER_PAGE,
                 archive_url: str = DEFAULT_ARCHIVE_URL,
                 filters_path: Optional[str] = None,
                 field_registry: Optional[FieldRegistry] = None,
                 register_defaults: bool = True):
        """
        Initialize the API.

        Args:
            db_path: Path to SQLite database
            per_page: Listings per results page
            max_per_page: Upper bound for any page size
            archive_url: Base URL of the listing archive
            filters_path: Optional YAML file with extra filter definitions
            field_registry: Listing fields (searchable/filterable flags)
            register_defaults: Register keyword, category and tag filters on initialize
        """
        self.db_path = db_path if db_path is not None else os.path.expanduser(DEFAULT_DB_PATH)
        self.filters_path = filters_path
        self.register_defaults = register_defaults
        self.logger = logging.getLogger(__name__)

        self.hooks = SearchHooks()
        self.fields = field_registry or FieldRegistry()
        self.terms = TermCatalog()

        self.registry = FilterRegistry(self.hooks)
        self.orchestrator = SearchQueryOrchestrator(
            self.registry,
            field_registry=self.fields,
            hooks=self.hooks,
            per_page=per_page,
            max_per_page=max_per_page,
        )
        self.renderer = FilterRenderer(self.registry, self.orchestrator, self.hooks, archive_url)
        self.store = ListingStore(self.db_path, self.hooks)

        self.orchestrator.attach()
        self._initialized = False

    @classmethod
    def from_env(cls):
        """
        Create API instance from environment variables.

        Uses Config helper to read environment variables.
        """
        config = Config.from_env()
        return cls(**config)

    async def initialize(self):
        """
        Ensure the schema exists, load the term catalog and register filters.
        """
        await self.store.initialize()
        await self.refresh_terms()

        if self._initialized:
            return

        if self.register_defaults:
            self.register_default_filters()
        self.register_field_filters()

        if self.filters_path:
            for filter in load_filters(self.filters_path, self.terms):
                self.registry.register(filter)

        self._initialized = True
        self.logger.info(f"Listing search ready with {self.registry.count()} filters")

    async def close(self):
        """Close all connections."""
        self.orchestrator.detach()
        await self.store.close()

    # ============================================================================
    # Filters
    # ============================================================================

    def register_default_filters(self):
        """
        Register the keyword, category and tag filters, then let
        REGISTER_FILTERS subscribers add their own.
        """
        self.registry.register(KeywordFilter())
        self.registry.register(CategoryFilter(terms=self.terms, priority=5))
        self.registry.register(TagFilter(terms=self.terms, priority=30))

        self.hooks.emit(HookPoint.REGISTER_FILTERS, self.registry)

    def register_field_filters(self) -> List[str]:
        """
        Register a filter for every filterable field whose type maps to one.

        Returns:
            Names of the filters registered
        """
        registered = []
        for name, definition in self.fields.get_filterable_fields().items():
            filter = self.build_field_filter(definition)
            if filter is None:
                self.logger.debug(f"No filter kind for field '{name}' of type {definition.type}")
                continue
            if self.registry.register(filter):
                registered.append(name)
        return registered

    @staticmethod
    def build_field_filter(definition: FieldDefinition) -> Optional[AbstractFilter]:
        mapping = FIELD_FILTERS.get(definition.type)
        if mapping is None:
            return None

        filter_class, extra = mapping
        config: Dict[str, Any] = dict(extra)
        config.update({
            "name": definition.name,
            "label": definition.label,
            "source": FilterSource.FIELD.value,
            "source_key": definition.name,
            "priority": definition.priority,
        })
        if definition.options:
            config["options"] = dict(definition.options)
        config.update(definition.settings)
        return filter_class(**config)

    def register_filter(self, filter: AbstractFilter) -> bool:
        if filter.source == FilterSource.TAXONOMY.value and filter.config.get('terms') is None:
            filter.config['terms'] = self.terms
        return self.registry.register(filter)

    def add_field(self, definition: FieldDefinition) -> bool:
        return self.fields.register_field(definition)

    # ============================================================================
    # Data
    # ============================================================================

    async def refresh_terms(self):
        """Reload the term catalog from the store."""
        self.terms.replace(await self.store.list_terms())

    async def add_term(self, taxonomy: str, name: str, slug: Optional[str] = None, parent: int = 0) -> int:
        term_id = await self.store.add_term(taxonomy, name, slug=slug, parent=parent)
        await self.refresh_terms()
        return term_id

    async def add_listing(self,
                          title: str,
                          content: str = "",
                          excerpt: str = "",
                          meta: Optional[Dict[str, Any]] = None,
                          terms: Optional[Iterable[int]] = None,
                          **kwargs: Any) -> int:
        listing_id = await self.store.add_listing(
            title, content=content, excerpt=excerpt, meta=meta, terms=terms, **kwargs
        )
        if terms:
            await self.refresh_terms()
        return listing_id

    # ============================================================================
    # Search
    # ============================================================================

    async def search(self, request: SearchRequest, **args: Any) -> SearchResults:
        """
        Run an embedded search: the query is resolved up front, then executed.

        Args:
            request: Request parameters
            **args: QueryBuilder overrides (per_page, status, ...)
        """
        query = self.orchestrator.build_filtered_query(request, **args)
        return await self.store.search(query)

    async def archive(self, request: SearchRequest) -> SearchResults:
        """
        Run the listing archive as the main query; the orchestrator resolves
        the request onto it through PRE_GET_LISTINGS.
        """
        query = QueryBuilder(is_main_query=True, is_archive=True, per_page=self.orchestrator.per_page)
        return await self.store.search(query, request)
