#!/usr/bin/env python3
"""
Listing Store
Async SQLite persistence for listings, attribute values and taxonomy terms,
and execution of resolved listing queries.
"""

import logging
import math
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..events import HookPoint, SearchHooks
from ..exceptions import ValidationError
from ..fields import meta_key
from ..query import QueryBuilder
from ..request import SearchRequest
from ..taxonomy import LISTING_TAXONOMIES, LISTING_TYPE, Term
from .db_helpers import aconnect, with_connection
from .sqlite_backend import LISTING_COLUMNS, SQLiteQueryBackend


VIEWS_FIELD = "views_count"


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "term"


@dataclass
class SearchResults:
    """One page of listings plus the total match count."""
    listings: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.per_page > 0 else 0

    @property
    def has_results(self) -> bool:
        return bool(self.listings)

    @property
    def ids(self) -> List[int]:
        return [listing["id"] for listing in self.listings]


class ListingStore:
    """
    Stores listings and runs QueryBuilder searches against them.

    Main queries are announced on PRE_GET_LISTINGS before compilation so
    subscribers (the orchestrator) can resolve the request onto them.
    """

    def __init__(self,
                 db_path: str,
                 hooks: Optional[SearchHooks] = None,
                 backend: Optional[SQLiteQueryBackend] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            hooks: Lifecycle hooks
            backend: Query compiler (defaults to SQLiteQueryBackend)
        """
        self.db_path = db_path
        self.hooks = hooks or SearchHooks()
        self.backend = backend or SQLiteQueryBackend()
        self.logger = logging.getLogger(__name__)

    async def initialize(self):
        """Ensure the database file and schema exist."""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        schema_path = os.path.join(os.path.dirname(__file__), 'schema.sql')
        with open(schema_path, 'r') as f:
            schema = f.read()

        async with aconnect(self.db_path, writer=True) as conn:
            await conn.executescript(schema)

        self.logger.info(f"Listing store ready at {self.db_path}")

    async def close(self):
        """Close database connection (no-op, connections are per operation)"""
        pass

    # ============================================================================
    # Listings
    # ============================================================================

    @with_connection(writer=True)
    async def add_listing(self, conn,
                          title: str,
                          content: str = "",
                          excerpt: str = "",
                          meta: Optional[Dict[str, Any]] = None,
                          terms: Optional[Iterable[int]] = None,
                          status: str = "publish",
                          post_type: str = LISTING_TYPE,
                          created_at: Optional[str] = None) -> int:
        """
        Insert a listing.

        Args:
            title: Listing title
            content: Body text
            excerpt: Short summary
            meta: Field name -> value; lists store one row per item
            terms: Term ids to attach
            status: Publication status
            post_type: Content type
            created_at: 'YYYY-MM-DD HH:MM:SS' (defaults to now, UTC)

        Returns:
            New listing id
        """
        if created_at is None:
            created_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        cursor = await conn.execute("""
            INSERT INTO listings (post_type, status, title, content, excerpt, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (post_type, status, title, content, excerpt, created_at))
        listing_id = cursor.lastrowid

        for name, value in (meta or {}).items():
            values = value if isinstance(value, (list, tuple)) else [value]
            for item in values:
                await conn.execute("""
                    INSERT INTO listing_meta (listing_id, meta_key, meta_value)
                    VALUES (?, ?, ?)
                """, (listing_id, meta_key(name), None if item is None else str(item)))

        for term_id in terms or []:
            await conn.execute("""
                INSERT OR IGNORE INTO listing_terms (listing_id, term_id) VALUES (?, ?)
            """, (listing_id, int(term_id)))

        self.logger.debug(f"Added listing {listing_id}: {title}")
        return listing_id

    @with_connection(writer=False)
    async def get_listing(self, conn, listing_id: int) -> Optional[Dict[str, Any]]:
        cursor = await conn.execute(f"""
            SELECT {', '.join(LISTING_COLUMNS)} FROM listings WHERE id = ?
        """, (listing_id,))
        row = await cursor.fetchone()
        if not row:
            return None

        listing = dict(zip(LISTING_COLUMNS, row))
        listing['meta'] = (await self._load_meta(conn, [listing_id])).get(listing_id, {})
        return listing

    @with_connection(writer=True)
    async def set_meta(self, conn, listing_id: int, name: str, value: Any):
        """Replace every value of one field on a listing."""
        key = meta_key(name)
        await conn.execute("""
            DELETE FROM listing_meta WHERE listing_id = ? AND meta_key = ?
        """, (listing_id, key))

        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            await conn.execute("""
                INSERT INTO listing_meta (listing_id, meta_key, meta_value) VALUES (?, ?, ?)
            """, (listing_id, key, None if item is None else str(item)))

    @with_connection(writer=True)
    async def increment_views(self, conn, listing_id: int) -> int:
        """Add one to a listing's view counter and return the new count."""
        key = meta_key(VIEWS_FIELD)
        cursor = await conn.execute("""
            SELECT meta_value FROM listing_meta WHERE listing_id = ? AND meta_key = ?
        """, (listing_id, key))
        row = await cursor.fetchone()

        try:
            views = int(float(row[0])) + 1 if row and row[0] is not None else 1
        except ValueError:
            views = 1

        if row:
            await conn.execute("""
                UPDATE listing_meta SET meta_value = ? WHERE listing_id = ? AND meta_key = ?
            """, (str(views), listing_id, key))
        else:
            await conn.execute("""
                INSERT INTO listing_meta (listing_id, meta_key, meta_value) VALUES (?, ?, ?)
            """, (listing_id, key, str(views)))
        return views

    # ============================================================================
    # Terms
    # ============================================================================

    @with_connection(writer=True)
    async def add_term(self, conn,
                       taxonomy: str,
                       name: str,
                       slug: Optional[str] = None,
                       parent: int = 0) -> int:
        """
        Create a taxonomy term.

        Returns:
            New term id

        Raises:
            ValidationError: If the taxonomy is not a listing taxonomy or the name is blank
        """
        if taxonomy not in LISTING_TAXONOMIES:
            raise ValidationError(f"Unknown taxonomy: {taxonomy}")
        if not name or not name.strip():
            raise ValidationError("Term name cannot be empty")

        cursor = await conn.execute("""
            INSERT INTO terms (taxonomy, name, slug, parent) VALUES (?, ?, ?, ?)
        """, (taxonomy, name, slug or slugify(name), parent))
        return cursor.lastrowid

    @with_connection(writer=True)
    async def assign_terms(self, conn, listing_id: int, term_ids: Iterable[int]):
        for term_id in term_ids:
            await conn.execute("""
                INSERT OR IGNORE INTO listing_terms (listing_id, term_id) VALUES (?, ?)
            """, (listing_id, int(term_id)))

    @with_connection(writer=False)
    async def list_terms(self, conn, taxonomy: Optional[str] = None) -> List[Term]:
        """
        List terms with the number of published listings attached to each.

        Args:
            taxonomy: Only terms of this taxonomy
        """
        sql = """
            SELECT t.id, t.taxonomy, t.name, t.slug, t.parent,
                   (SELECT COUNT(*) FROM listing_terms AS lt
                    JOIN listings AS l ON l.id = lt.listing_id
                    WHERE lt.term_id = t.id AND l.status = 'publish') AS count
            FROM terms AS t
        """
        params: List[Any] = []
        if taxonomy is not None:
            sql += " WHERE t.taxonomy = ?"
            params.append(taxonomy)
        sql += " ORDER BY t.taxonomy, t.name"

        cursor = await conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [
            Term(id=row[0], taxonomy=row[1], name=row[2], slug=row[3], parent=row[4], count=row[5])
            for row in rows
        ]

    # ============================================================================
    # Search
    # ============================================================================

    async def search(self, query: QueryBuilder, request: Optional[SearchRequest] = None) -> SearchResults:
        """
        Execute a listing query.

        Main queries are first passed to PRE_GET_LISTINGS subscribers along
        with the request; other queries run as given.

        Args:
            query: Query to execute
            request: Request parameters for main-query subscribers

        Returns:
            SearchResults for the query's page
        """
        if query.is_main_query:
            self.hooks.emit(HookPoint.PRE_GET_LISTINGS, query, request or SearchRequest())

        sql, params = self.backend.convert(query)
        count_sql, count_params = self.backend.convert_count(query)

        listings, total = await self._execute_search(sql, params, count_sql, count_params)

        self.logger.debug(f"Search matched {total} listings (page {query.page}, {len(listings)} returned)")
        return SearchResults(listings=listings, total=total, page=query.page, per_page=query.per_page)

    @with_connection(writer=False)
    async def _execute_search(self, conn, sql: str, params: List[Any],
                              count_sql: str, count_params: List[Any]):
        cursor = await conn.execute(count_sql, count_params)
        total = (await cursor.fetchone())[0]

        cursor = await conn.execute(sql, params)
        rows = await cursor.fetchall()
        listings = [dict(zip(LISTING_COLUMNS, row)) for row in rows]

        meta = await self._load_meta(conn, [listing['id'] for listing in listings])
        for listing in listings:
            listing['meta'] = meta.get(listing['id'], {})

        return listings, total

    async def _load_meta(self, conn, listing_ids: List[int]) -> Dict[int, Dict[str, Any]]:
        """Attribute values per listing; repeated keys become lists."""
        if not listing_ids:
            return {}

        placeholders = ", ".join("?" for _ in listing_ids)
        cursor = await conn.execute(f"""
            SELECT listing_id, meta_key, meta_value FROM listing_meta
            WHERE listing_id IN ({placeholders})
            ORDER BY id
        """, listing_ids)
        rows = await cursor.fetchall()

        meta: Dict[int, Dict[str, Any]] = {}
        for listing_id, key, value in rows:
            values = meta.setdefault(listing_id, {})
            if key in values:
                existing = values[key]
                values[key] = existing + [value] if isinstance(existing, list) else [existing, value]
            else:
                values[key] = value
        return meta
