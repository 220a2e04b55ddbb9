"""
Listing Search
Filter registry, query orchestration and search UI rendering for a listing directory.
"""

from .search_api import ListingSearchAPI
from .registry import FilterRegistry
from .orchestrator import SearchQueryOrchestrator
from .renderer import FilterRenderer
from .request import SearchRequest
from .query import QueryBuilder, Compare, ClauseType, SortSpec
from .events import HookPoint, SearchHooks
from .fields import FieldDefinition, FieldRegistry
from .exceptions import ListingSearchError, StorageError, QueryError, ValidationError, InvalidFilterError
from .config import Config

__version__ = "1.0.0"

__all__ = [
    "ListingSearchAPI",
    "FilterRegistry",
    "SearchQueryOrchestrator",
    "FilterRenderer",
    "SearchRequest",
    "QueryBuilder",
    "Compare",
    "ClauseType",
    "SortSpec",
    "HookPoint",
    "SearchHooks",
    "FieldDefinition",
    "FieldRegistry",
    "ListingSearchError",
    "StorageError",
    "QueryError",
    "ValidationError",
    "InvalidFilterError",
    "Config",
]
