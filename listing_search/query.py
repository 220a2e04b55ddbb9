#!/usr/bin/env python3
"""
Typed query model for listing searches.

A QueryBuilder collects everything a search needs (search term, attribute
clauses, taxonomy clauses, sort, pagination) as plain values. Nothing here
knows about SQL; backends translate a finished builder into their native
query at execution time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from .exceptions import InvalidFilterError
from .fields import sanitize_key
from .taxonomy import LISTING_TYPE


class Compare(Enum):
    """Comparators an attribute clause can use."""
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "IN"
    NOT_IN = "NOT IN"
    BETWEEN = "BETWEEN"
    LIKE = "LIKE"
    EXISTS = "EXISTS"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string is a valid comparator."""
        return value in {op.value for op in cls}

    @classmethod
    def from_string(cls, value: str) -> Optional['Compare']:
        """Convert string to comparator."""
        for op in cls:
            if op.value == value.upper():
                return op
        return None


class ClauseType(Enum):
    """How the stored attribute value is cast before comparing."""
    CHAR = "CHAR"
    NUMERIC = "NUMERIC"
    DATE = "DATE"


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


LIST_COMPARATORS = {Compare.IN, Compare.NOT_IN}


@dataclass(frozen=True)
class AttributeClause:
    """
    A single condition on a listing attribute.

    Attributes:
        key: Attribute-store key (sanitized on construction)
        compare: Comparator
        value: Scalar, or a tuple for IN/NOT IN/BETWEEN
        type: Cast applied to the stored value
    """
    key: str
    compare: Compare
    value: Any = None
    type: ClauseType = ClauseType.CHAR

    def __post_init__(self):
        key = sanitize_key(self.key)
        if not key:
            raise InvalidFilterError(f"Attribute clause key {self.key!r} is empty after sanitization")
        object.__setattr__(self, 'key', key)

        value = self.value
        if isinstance(value, list):
            value = tuple(value)
            object.__setattr__(self, 'value', value)

        if self.compare == Compare.BETWEEN:
            if not isinstance(value, tuple) or len(value) != 2:
                raise InvalidFilterError("BETWEEN requires exactly 2 values")
        elif self.compare in LIST_COMPARATORS:
            if not isinstance(value, tuple):
                object.__setattr__(self, 'value', (value,))

    def __repr__(self):
        return f"{self.key} {self.compare.value} {self.value!r} ({self.type.value})"


@dataclass(frozen=True)
class TaxonomyClause:
    """Listing must carry at least one of the given terms."""
    taxonomy: str
    terms: Tuple[int, ...]
    include_children: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'taxonomy', sanitize_key(self.taxonomy))
        object.__setattr__(self, 'terms', tuple(int(t) for t in self.terms))


@dataclass(frozen=True)
class SortSpec:
    """
    Resolved sort order.

    Attributes:
        key: Symbolic sort key from the request allowlist
        field: Native column, attribute key, or 'random'
        direction: ASC or DESC
        meta_key: Attribute key when sorting by an attribute value
        numeric: Whether the attribute value sorts numerically
    """
    key: str
    field: str
    direction: SortDirection = SortDirection.DESC
    meta_key: Optional[str] = None
    numeric: bool = False

    @property
    def is_random(self) -> bool:
        return self.field == "random"


DEFAULT_SORT = SortSpec(key="date", field="created_at", direction=SortDirection.DESC)


@dataclass
class QueryBuilder:
    """
    Mutable description of a content-item query before execution.

    Scope flags describe where the query came from so hooks can decide
    whether to touch it: the platform's primary listing query sets
    ``is_main_query``; archive and taxonomy views set ``is_archive`` or
    ``taxonomy``.
    """
    post_type: str = LISTING_TYPE
    status: str = "publish"
    is_main_query: bool = False
    is_archive: bool = False
    is_admin: bool = False
    taxonomy: Optional[str] = None
    search_term: str = ""
    search_meta_keys: Tuple[str, ...] = ()
    attribute_clauses: List[AttributeClause] = field(default_factory=list)
    taxonomy_clauses: List[TaxonomyClause] = field(default_factory=list)
    sort: SortSpec = DEFAULT_SORT
    page: int = 1
    per_page: int = 10

    def add_attribute_clause(self,
                             key: str,
                             compare: Compare,
                             value: Any = None,
                             type: ClauseType = ClauseType.CHAR) -> AttributeClause:
        """Append an attribute clause unless an identical one is already present."""
        clause = AttributeClause(key, compare, value, type)
        if clause not in self.attribute_clauses:
            self.attribute_clauses.append(clause)
        return clause

    def add_taxonomy_clause(self,
                            taxonomy: str,
                            terms: Sequence[int],
                            include_children: bool = False) -> TaxonomyClause:
        """Append a taxonomy clause unless an identical one is already present."""
        clause = TaxonomyClause(taxonomy, tuple(terms), include_children)
        if clause not in self.taxonomy_clauses:
            self.taxonomy_clauses.append(clause)
        return clause

    def set_sort(self, sort: SortSpec) -> None:
        self.sort = sort

    def set_search_term(self, term: str, meta_keys: Sequence[str] = ()) -> None:
        """
        Set the keyword and the attribute keys it may also match.

        Keys are sanitized and de-duplicated; empty keys are dropped.
        """
        self.search_term = term
        keys = []
        for key in meta_keys:
            key = sanitize_key(key)
            if key and key not in keys:
                keys.append(key)
        self.search_meta_keys = tuple(keys)

    def set_pagination(self, page: int, per_page: int) -> None:
        self.page = max(1, int(page))
        self.per_page = max(1, int(per_page))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def has_clauses(self) -> bool:
        return bool(self.attribute_clauses or self.taxonomy_clauses or self.search_term)
