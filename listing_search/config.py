"""
Configuration helpers for the listing search engine.
Supports environment variables for easy deployment configuration.
"""

import os
from typing import Any, Dict, Optional


DEFAULT_DB_PATH = "~/.listing-search/data/listings.db"
DEFAULT_ARCHIVE_URL = "/listings/"
DEFAULT_PER_PAGE = 10
DEFAULT_MAX_PER_PAGE = 100


def _int_env(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


class Config:
    """
    Configuration helper that reads from environment variables.

    Environment variables:
        LISTING_SEARCH_DB_PATH: SQLite database path
        LISTING_SEARCH_PER_PAGE: Listings per results page (default: 10)
        LISTING_SEARCH_MAX_PER_PAGE: Upper bound for per-page requests (default: 100)
        LISTING_SEARCH_ARCHIVE_URL: Base URL of the listing archive (default: /listings/)
        LISTING_SEARCH_FILTERS: Optional YAML file with extra filter definitions
    """

    @staticmethod
    def from_env() -> Dict[str, Any]:
        """
        Create configuration from environment variables.

        Returns:
            Dict with configuration parameters for ListingSearchAPI

        Example:
            from listing_search import ListingSearchAPI
            from listing_search.config import Config

            config = Config.from_env()
            api = ListingSearchAPI(**config)
        """
        config = {
            "db_path": os.path.expanduser(
                os.getenv("LISTING_SEARCH_DB_PATH", DEFAULT_DB_PATH)
            ),
            "per_page": _int_env("LISTING_SEARCH_PER_PAGE", DEFAULT_PER_PAGE),
            "max_per_page": _int_env("LISTING_SEARCH_MAX_PER_PAGE", DEFAULT_MAX_PER_PAGE),
            "archive_url": os.getenv("LISTING_SEARCH_ARCHIVE_URL", DEFAULT_ARCHIVE_URL),
        }

        filters_path = os.getenv("LISTING_SEARCH_FILTERS")
        if filters_path:
            config["filters_path"] = os.path.expanduser(filters_path)

        return config

    @staticmethod
    def for_testing(db_path: str, filters_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Configuration for an isolated test database.

        Args:
            db_path: Path to a throwaway SQLite file
            filters_path: Optional YAML filter definitions

        Returns:
            Configuration dict for ListingSearchAPI
        """
        config = {
            "db_path": db_path,
            "per_page": DEFAULT_PER_PAGE,
            "max_per_page": DEFAULT_MAX_PER_PAGE,
            "archive_url": DEFAULT_ARCHIVE_URL,
        }

        if filters_path:
            config["filters_path"] = filters_path

        return config
