"""
Shared pytest fixtures for listing search tests.
Provides common test infrastructure for all test suites.
"""

import logging
import sys
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from listing_search.config import Config
from listing_search.db.listing_store import ListingStore
from listing_search.events import SearchHooks
from listing_search.fields import FieldDefinition, FieldRegistry
from listing_search.filters import KeywordFilter, RangeFilter, SelectFilter
from listing_search.orchestrator import SearchQueryOrchestrator
from listing_search.registry import FilterRegistry
from listing_search.renderer import FilterRenderer
from listing_search.search_api import ListingSearchAPI
from listing_search.taxonomy import Term, TermCatalog

logging.basicConfig(level=logging.CRITICAL)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def hooks():
    """Provide a fresh hook registry."""
    return SearchHooks()


@pytest.fixture
def registry(hooks):
    """Provide an empty filter registry bound to the hooks."""
    return FilterRegistry(hooks)


@pytest.fixture
def field_registry():
    """Provide listing fields: two searchable text fields and a filterable price."""
    fields = FieldRegistry()
    fields.register_field(FieldDefinition("city", searchable=True))
    fields.register_field(FieldDefinition("phone", searchable=True))
    fields.register_field(FieldDefinition("price", type="number", filterable=True))
    return fields


@pytest.fixture
def terms():
    """Provide a small category tree and a few tags."""
    return TermCatalog([
        Term(id=1, taxonomy="category", name="Restaurants", slug="restaurants", parent=0, count=3),
        Term(id=2, taxonomy="category", name="Pizza", slug="pizza", parent=1, count=2),
        Term(id=3, taxonomy="category", name="Hotels", slug="hotels", parent=0, count=1),
        Term(id=4, taxonomy="category", name="Empty", slug="empty", parent=0, count=0),
        Term(id=10, taxonomy="tag", name="Wifi", slug="wifi", parent=0, count=5),
        Term(id=11, taxonomy="tag", name="Parking", slug="parking", parent=0, count=2),
        Term(id=12, taxonomy="tag", name="Unused", slug="unused", parent=0, count=0),
    ])


@pytest.fixture
def price_filter():
    """Price range over 0 - 1,000,000 in steps of 1000."""
    return RangeFilter(name="price", min=0, max=1000000, step=1000)


@pytest.fixture
def cuisine_filter():
    return SelectFilter(name="cuisine", options={"it": "Italian", "jp": "Japanese"})


@pytest.fixture
def populated_registry(registry, price_filter, cuisine_filter):
    """Registry with keyword, price and cuisine filters."""
    registry.register(KeywordFilter())
    registry.register(price_filter)
    registry.register(cuisine_filter)
    return registry


@pytest.fixture
def orchestrator(registry, field_registry, hooks):
    return SearchQueryOrchestrator(registry, field_registry, hooks)


@pytest.fixture
def renderer(registry, orchestrator, hooks):
    return FilterRenderer(registry, orchestrator, hooks, archive_url="/listings/")


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def store(hooks):
    """Provide a clean ListingStore for each test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        store = ListingStore(str(db_path), hooks)
        await store.initialize()
        yield store
        await store.close()


@pytest_asyncio.fixture
async def api():
    """Provide an initialized ListingSearchAPI with price and cuisine fields."""
    with tempfile.TemporaryDirectory() as tmpdir:
        fields = FieldRegistry()
        fields.register_field(FieldDefinition("city", searchable=True))
        fields.register_field(FieldDefinition("phone", searchable=True))
        fields.register_field(FieldDefinition(
            "price", type="number", filterable=True, priority=20,
            settings={"min": 0, "max": 1000000, "step": 1000},
        ))
        fields.register_field(FieldDefinition(
            "cuisine", type="select", filterable=True, priority=25,
            options={"it": "Italian", "jp": "Japanese"},
        ))

        api = ListingSearchAPI(
            **Config.for_testing(str(Path(tmpdir) / "test.db")),
            field_registry=fields,
        )
        await api.initialize()
        yield api
        await api.close()
