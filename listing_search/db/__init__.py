"""
Database module for listing search
Handles SQLite storage and query compilation
"""

from .listing_store import ListingStore, SearchResults
from .sqlite_backend import SQLiteQueryBackend

__all__ = ['ListingStore', 'SearchResults', 'SQLiteQueryBackend']
