#!/usr/bin/env python3
"""
SQLite backend for listing queries.
Converts a resolved QueryBuilder into a parameter-bound SELECT.

Every condition on attributes or terms is an EXISTS subquery correlated on
the listing id, so a listing with several matching attribute rows is still
returned once and no DISTINCT is needed.
"""

from typing import Any, List, Tuple

from ..exceptions import QueryError, UnsupportedOperatorError
from ..query import (
    AttributeClause, ClauseType, Compare, QueryBuilder, SortDirection, TaxonomyClause
)


LISTING_COLUMNS = ("id", "post_type", "status", "title", "content", "excerpt", "created_at")

# Sort fields that map onto listing columns
SORT_COLUMNS = {
    "created_at": "created_at",
    "title": "title COLLATE NOCASE",
    "id": "id",
}

# Matches the depth limit of hierarchical category rendering
MAX_TERM_DEPTH = 10


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteQueryBackend:
    """
    Converts QueryBuilder instances to SQLite SELECT statements.
    """

    SUPPORTED_COMPARATORS = {
        Compare.EQ, Compare.NE,
        Compare.GT, Compare.GTE,
        Compare.LT, Compare.LTE,
        Compare.IN, Compare.NOT_IN,
        Compare.BETWEEN, Compare.LIKE, Compare.EXISTS,
    }

    _SCALAR_OPERATORS = {
        Compare.EQ: "=",
        Compare.NE: "!=",
        Compare.GT: ">",
        Compare.GTE: ">=",
        Compare.LT: "<",
        Compare.LTE: "<=",
    }

    def __init__(self, table_alias: str = "l"):
        """
        Initialize SQLite backend.

        Args:
            table_alias: Alias of the listings table in generated SQL
        """
        self.table_alias = table_alias
        self.params: List[Any] = []

    def supports_comparator(self, compare: Compare) -> bool:
        return compare in self.SUPPORTED_COMPARATORS

    def convert(self, query: QueryBuilder) -> Tuple[str, List[Any]]:
        """
        Convert a query to a paginated SELECT over listings.

        Returns:
            Tuple of (sql, params)
        """
        self.params = []
        a = self.table_alias

        columns = ", ".join(f"{a}.{column}" for column in LISTING_COLUMNS)
        where = self._build_where(query)
        order_by = self._build_order_by(query)

        sql = f"SELECT {columns} FROM listings AS {a} WHERE {where} ORDER BY {order_by} LIMIT ? OFFSET ?"
        self.params.extend([query.per_page, query.offset])
        return sql, self.params

    def convert_count(self, query: QueryBuilder) -> Tuple[str, List[Any]]:
        """
        Convert a query to a COUNT over every matching listing.

        Returns:
            Tuple of (sql, params)
        """
        self.params = []
        where = self._build_where(query)
        return f"SELECT COUNT(*) FROM listings AS {self.table_alias} WHERE {where}", self.params

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def _build_where(self, query: QueryBuilder) -> str:
        a = self.table_alias
        parts = [f"{a}.post_type = ?"]
        self.params.append(query.post_type)

        if query.status and query.status != "any":
            parts.append(f"{a}.status = ?")
            self.params.append(query.status)

        if query.search_term:
            parts.append(self._build_search(query.search_term, query.search_meta_keys))

        for clause in query.attribute_clauses:
            parts.append(self._build_attribute(clause))

        for clause in query.taxonomy_clauses:
            parts.append(self._build_taxonomy(clause))

        return " AND ".join(parts)

    def _build_search(self, term: str, meta_keys: Tuple[str, ...]) -> str:
        """
        Keyword condition over title, excerpt, content and allowlisted attributes.

        SQLite's LIKE only folds ASCII case, so non-ASCII terms compare through
        the connection's casefold() function on both sides.
        """
        a = self.table_alias
        if term.isascii():
            fold = "{}"
        else:
            fold = "casefold({})"
            term = term.casefold()
        pattern = f"%{escape_like(term)}%"

        conditions = [
            f"{fold.format(f'{a}.{column}')} LIKE ? ESCAPE '\\'"
            for column in ("title", "excerpt", "content")
        ]
        self.params.extend([pattern, pattern, pattern])

        if meta_keys:
            placeholders = ", ".join("?" for _ in meta_keys)
            conditions.append(
                f"EXISTS (SELECT 1 FROM listing_meta AS km WHERE km.listing_id = {a}.id "
                f"AND km.meta_key IN ({placeholders}) AND {fold.format('km.meta_value')} LIKE ? ESCAPE '\\')"
            )
            self.params.extend(meta_keys)
            self.params.append(pattern)

        return f"({' OR '.join(conditions)})"

    def _value_reference(self, clause_type: ClauseType) -> str:
        if clause_type == ClauseType.NUMERIC:
            return "CAST(am.meta_value AS REAL)"
        if clause_type == ClauseType.DATE:
            return "date(am.meta_value)"
        return "am.meta_value"

    def _build_attribute(self, clause: AttributeClause) -> str:
        """EXISTS over the listing's attribute rows for one clause."""
        if not self.supports_comparator(clause.compare):
            raise UnsupportedOperatorError(clause.compare, "SQLite")

        a = self.table_alias
        self.params.append(clause.key)
        prefix = f"EXISTS (SELECT 1 FROM listing_meta AS am WHERE am.listing_id = {a}.id AND am.meta_key = ?"

        if clause.compare == Compare.EXISTS:
            return f"{prefix})"

        ref = self._value_reference(clause.type)
        return f"{prefix} AND {self._build_comparison(ref, clause)})"

    def _build_comparison(self, ref: str, clause: AttributeClause) -> str:
        op = clause.compare
        value = clause.value

        if op in self._SCALAR_OPERATORS:
            self.params.append(value)
            return f"{ref} {self._SCALAR_OPERATORS[op]} ?"

        if op in (Compare.IN, Compare.NOT_IN):
            if not value:
                return "0=1" if op == Compare.IN else "1=1"
            placeholders = ", ".join("?" for _ in value)
            self.params.extend(value)
            return f"{ref} {op.value} ({placeholders})"

        if op == Compare.BETWEEN:
            self.params.extend(value)
            return f"{ref} BETWEEN ? AND ?"

        if op == Compare.LIKE:
            self.params.append(f"%{escape_like(str(value))}%")
            return f"{ref} LIKE ? ESCAPE '\\'"

        raise UnsupportedOperatorError(op, "SQLite")

    def _build_taxonomy(self, clause: TaxonomyClause) -> str:
        """EXISTS over the listing's terms, optionally expanded to descendants."""
        a = self.table_alias
        if not clause.terms:
            return "0=1"

        placeholders = ", ".join("?" for _ in clause.terms)

        if not clause.include_children:
            self.params.append(clause.taxonomy)
            self.params.extend(clause.terms)
            return (
                f"EXISTS (SELECT 1 FROM listing_terms AS lt JOIN terms AS t ON t.id = lt.term_id "
                f"WHERE lt.listing_id = {a}.id AND t.taxonomy = ? AND lt.term_id IN ({placeholders}))"
            )

        self.params.append(clause.taxonomy)
        self.params.extend(clause.terms)
        self.params.extend([clause.taxonomy, MAX_TERM_DEPTH])
        return (
            f"EXISTS (SELECT 1 FROM listing_terms AS lt WHERE lt.listing_id = {a}.id AND lt.term_id IN ("
            f"WITH RECURSIVE term_tree(id, depth) AS ("
            f"SELECT id, 0 FROM terms WHERE taxonomy = ? AND id IN ({placeholders}) "
            f"UNION SELECT c.id, term_tree.depth + 1 FROM terms AS c "
            f"JOIN term_tree ON c.parent = term_tree.id "
            f"WHERE c.taxonomy = ? AND term_tree.depth < ?"
            f") SELECT id FROM term_tree))"
        )

    # ------------------------------------------------------------------
    # ORDER BY
    # ------------------------------------------------------------------

    def _build_order_by(self, query: QueryBuilder) -> str:
        sort = query.sort
        if sort.is_random:
            return "RANDOM()"

        direction = "ASC" if sort.direction == SortDirection.ASC else "DESC"
        a = self.table_alias

        if sort.meta_key:
            # Listings without the attribute sort as zero / empty
            if sort.numeric:
                expression = (
                    f"(SELECT COALESCE(MAX(CAST(sm.meta_value AS REAL)), 0) FROM listing_meta AS sm "
                    f"WHERE sm.listing_id = {a}.id AND sm.meta_key = ?)"
                )
            else:
                expression = (
                    f"(SELECT COALESCE(MAX(sm.meta_value), '') FROM listing_meta AS sm "
                    f"WHERE sm.listing_id = {a}.id AND sm.meta_key = ?)"
                )
            self.params.append(sort.meta_key)
        elif sort.field in SORT_COLUMNS:
            expression = f"{a}.{SORT_COLUMNS[sort.field]}"
        else:
            raise QueryError(f"Unsupported sort field: {sort.field}")

        return f"{expression} {direction}, {a}.id {direction}"
